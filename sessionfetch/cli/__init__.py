"""Command-line interface."""

from sessionfetch.cli.main import cli, main


__all__ = ["cli", "main"]
