"""Client for a remote feed of short posts."""

__version__ = "0.1.0"
