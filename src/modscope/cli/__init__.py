"""Command-line interface for :mod:`modscope`."""

from modscope.cli.app import app, main

__all__ = ["app", "main"]
