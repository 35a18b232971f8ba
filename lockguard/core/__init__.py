"""Core scan pipeline components."""
