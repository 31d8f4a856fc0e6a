"""Node placement and room geometry per map level."""
