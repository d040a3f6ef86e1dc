"""Go struct generator for relational tables."""

__version__ = "0.1.0"
