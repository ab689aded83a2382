"""Unity: a small social network service."""

__version__ = "0.1.0"
