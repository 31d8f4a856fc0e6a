"""Configuration loading and event dispatch."""
