"""CLI commands for flatmirror.

This package contains all subcommand implementations.
"""

from flatmirror.cli.commands import init, mirror, status

__all__ = ["init", "mirror", "status"]
