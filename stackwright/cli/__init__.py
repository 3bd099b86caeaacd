"""Command line interface for stackwright"""

from .main import cli, main

__all__ = ["cli", "main"]
