"""Comic-book PDF metadata resolution."""

__version__ = "0.1.0"
