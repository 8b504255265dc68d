"""Core helpers shared by the workers and producers."""
