"""Similarity search over documents stored in Oracle Database 23ai."""

__version__ = "0.1.0"
