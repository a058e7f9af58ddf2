"""Career risk evaluation API."""

__version__ = "0.1.0"
