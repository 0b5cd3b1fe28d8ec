"""Publish vault changes to a Jade service."""

__version__ = "0.3.0"
