"""Tile rasterization."""
