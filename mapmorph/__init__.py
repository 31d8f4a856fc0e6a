"""
mapmorph
--------
Hierarchical map renderer with affine level-to-level transitions.
"""

__version__ = "0.1.0"
