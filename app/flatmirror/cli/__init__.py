"""CLI package for flatmirror.

This package contains the Typer application and all subcommands.
"""

from flatmirror.cli.main import app

__all__ = ["app"]
