"""Command-line interface module for tagtree.

This module provides the ``tagtree`` command with parse, validate and format
subcommands.
"""

from .main import main

__all__ = ["main"]
