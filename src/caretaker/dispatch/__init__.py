"""Matching and action dispatch."""
