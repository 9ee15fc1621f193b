"""
CLI layer for perema.

A Typer application whose sub-commands delegate to the operations layer
(``perema.ops``).  This package handles only terminal transport: argument
parsing, coloured output and table formatting.

Entry point::

    perema --help
"""

from perema.cli.app import app

__all__ = ["app"]
