"""Init command implementation.

Creates a config.toml file with a default Flathub remote.
"""

from pathlib import Path
from typing import Annotated

import typer

from flatmirror.core.config import ConfigError, default_config, save_config
from flatmirror.core.paths import get_config_path
from flatmirror.utils.formatting import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Create a default configuration file.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def init_config(
    ctx: typer.Context,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path for the configuration file.",
        ),
    ] = None,
    repo: Annotated[
        Path | None,
        typer.Option(
            "--repo",
            "-r",
            help="Local repository path to store in the configuration.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing configuration file.",
        ),
    ] = False,
) -> None:
    """Write a default configuration mirroring Flathub.

    Examples:
        flatmirror init                        # Default location
        flatmirror init --output mirror.toml   # Custom path
        flatmirror init --repo /srv/flatpak    # Custom repository path
    """
    if ctx.invoked_subcommand is not None:
        return

    output_path = output or get_config_path()

    if output_path.exists():
        if not force:
            print_error(f"Config already exists: {output_path}")
            print_info("Use --force to overwrite or specify a different path with --output.")
            raise typer.Exit(code=1)
        print_warning(f"Overwriting existing config: {output_path}")

    config = default_config()
    if repo is not None:
        config.repository.path = repo

    try:
        saved = save_config(config, output_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {saved}")
    console.print(f"  Repository: [muted]{config.repository.path}[/muted]")
    for remote in config.remotes:
        console.print(f"  Remote: [info]{remote.name}[/info] [muted]{remote.url}[/muted]")
