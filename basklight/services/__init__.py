"""Catalog, filtering and playback services."""
