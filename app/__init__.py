"""ThisDay journal recall service."""

__version__ = "0.1.0"
