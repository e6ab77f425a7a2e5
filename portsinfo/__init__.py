"""Ports Info - list listening network ports on Linux."""

__version__ = "1.1.0"
