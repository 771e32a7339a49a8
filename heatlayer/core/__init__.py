"""Geometry and spatial indexing."""
