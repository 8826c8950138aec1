"""Keyword search over documents published through ENS content hashes."""

__version__ = "0.1.0"
