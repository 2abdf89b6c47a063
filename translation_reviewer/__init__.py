"""Interactive review of translations stored as nested JSON documents."""

__version__ = "0.1.0"
