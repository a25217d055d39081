"""Command line tools for the reservation engine."""

from .main import cli, main

__all__ = ["cli", "main"]
