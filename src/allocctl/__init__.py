"""allocctl — allocation rule configuration and execution control."""

__version__ = "0.1.0"
