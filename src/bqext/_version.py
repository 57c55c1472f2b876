"""Version of the bqext library."""

__version__ = "0.1.0"
