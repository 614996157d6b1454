"""
Command-line interface for imagegc.

This package contains CLI implementations using Click.
"""

from imagegc.cli.commands import analyze, cli, main, serve

__all__ = ["analyze", "cli", "main", "serve"]
