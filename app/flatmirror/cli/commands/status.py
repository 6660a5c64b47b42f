"""Status command implementation.

Shows the refs of the local repository and checks the catalog refs.
"""

from pathlib import Path
from typing import Annotated

import typer

from flatmirror.cli.display import create_refs_table
from flatmirror.core.config import ConfigError, ConfigNotFoundError, MirrorConfig, load_config
from flatmirror.models.reconciliation import ReconciliationReport
from flatmirror.repo.reconciler import MetadataReconciler
from flatmirror.store.ostree import OstreeStore, StoreError
from flatmirror.utils.formatting import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Show the contents of the local repository.",
    invoke_without_command=True,
)


def _load(config_path: Path | None, repo: Path | None) -> MirrorConfig:
    """Load the configuration, tolerating a missing file when --repo is given."""
    try:
        config = load_config(config_path)
    except ConfigNotFoundError as e:
        if repo is None:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        config = MirrorConfig()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if repo is not None:
        config.repository.path = repo
    return config


@app.callback(invoke_without_command=True)
def status(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to the configuration file.",
        ),
    ] = None,
    repo: Annotated[
        Path | None,
        typer.Option(
            "--repo",
            "-r",
            help="Local repository path (overrides config).",
        ),
    ] = None,
    arch: Annotated[
        str | None,
        typer.Option(
            "--arch",
            "-a",
            help="Architecture whose catalog refs are checked.",
        ),
    ] = None,
) -> None:
    """List the refs in the repository and verify the catalog refs.

    Examples:
        flatmirror status
        flatmirror status --repo /srv/flatpak
    """
    if ctx.invoked_subcommand is not None:
        return

    config = _load(config_path, repo)
    store = OstreeStore(config.repository.path)

    if not store.is_initialized():
        print_error(f"No repository at {store.repo_path}")
        print_info("Run 'flatmirror mirror' to create it.")
        raise typer.Exit(code=1)

    try:
        refs = store.list_refs()
    except StoreError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if refs:
        console.print(create_refs_table(refs))
    else:
        print_info("Repository has no refs yet.")

    reconciler = MetadataReconciler(store, arch=arch or config.repository.arch)
    report = ReconciliationReport()
    reconciler.verify(report)

    console.print()
    console.print(f"  Total refs: [bold]{len(refs)}[/bold]")
    for message in report.warnings:
        print_warning(message)
    if not report.warnings:
        print_success("Catalog refs present.")
