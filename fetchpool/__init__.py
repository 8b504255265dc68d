"""Concurrent directory and file materialization workers."""

__version__ = "0.1.0"
