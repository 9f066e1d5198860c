"""Publication helpers for the Alire community index."""

__version__ = "0.1.0"
