"""Key/value database server, log-entry store and storage utilities."""

__version__ = "0.1.0"