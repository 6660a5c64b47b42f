"""Mirror command implementation.

Runs one mirroring pass: prepare the store, mirror every remote's catalog
components, reconcile the repository metadata and write the client
descriptor.
"""

from pathlib import Path
from typing import Annotated

import typer

from flatmirror.catalog.fetcher import CatalogFetcher
from flatmirror.cli.display import (
    create_results_table,
    create_stages_table,
    print_pass_summary,
    print_usage_hints,
)
from flatmirror.core.config import ConfigError, MirrorConfig, load_config
from flatmirror.core.paths import get_catalog_cache_dir
from flatmirror.mirror.orchestrator import CatalogSource, MirrorOrchestrator
from flatmirror.models.reconciliation import ReconciliationReport
from flatmirror.models.result import MirrorReport
from flatmirror.repo.descriptor import render_descriptor, write_descriptor
from flatmirror.repo.layout import prepare_repository
from flatmirror.repo.reconciler import MetadataReconciler
from flatmirror.store.ostree import OstreeStore, StoreInitError
from flatmirror.utils.formatting import console, print_error, print_info

app = typer.Typer(
    help="Mirror remote packages into the local repository.",
    invoke_without_command=True,
)


def load_mirror_config(
    config_path: Path | None,
    repo: Path | None = None,
    arch: str | None = None,
    max_packages: int | None = None,
) -> MirrorConfig:
    """Load the configuration and apply command-line overrides.

    Exits with code 1 when the configuration cannot be loaded.
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        print_error(str(e))
        print_info("Run 'flatmirror init' to create a configuration file.")
        raise typer.Exit(code=1) from e

    if repo is not None:
        config.repository.path = repo
    if arch:
        config.repository.arch = arch
    if max_packages is not None:
        config.mirror.max_per_remote = max_packages
    return config


def public_url(config: MirrorConfig) -> str:
    """URL clients use to reach the repository."""
    if config.repository.url:
        return config.repository.url
    return config.repository.path.resolve().as_uri()


def run_pass(
    config: MirrorConfig,
    store: OstreeStore,
    catalog_fetcher: CatalogSource,
) -> tuple[MirrorReport, ReconciliationReport]:
    """Run the mirroring and metadata phases against a prepared store.

    Args:
        config: Effective configuration.
        store: Prepared store.
        catalog_fetcher: Source of remote catalogs.

    Returns:
        Tuple of (mirror report, reconciliation report).
    """
    repository = config.repository
    settings = config.mirror

    orchestrator = MirrorOrchestrator(
        store,
        arch=repository.arch,
        default_branch=repository.default_branch,
        include_sdk=settings.include_sdk,
        pull_workers=settings.pull_workers,
    )
    report = orchestrator.run(
        config.get_remotes(),
        catalog_fetcher,
        max_per_remote=settings.max_per_remote or None,
    )

    reconciler = MetadataReconciler(
        store,
        arch=repository.arch,
        title=repository.effective_title,
        comment=repository.comment,
        homepage=repository.homepage,
        integrated_update=settings.integrated_update,
        update_catalog=settings.update_catalog,
    )
    reconciliation = reconciler.reconcile(report.mirrored_components)

    descriptor = render_descriptor(
        title=repository.effective_title,
        url=public_url(config),
        comment=repository.comment,
        homepage=repository.homepage,
        gpg_verify=repository.gpg_verify,
    )
    reconciliation.advisories.append(write_descriptor(store.repo_path, repository.name, descriptor))

    return report, reconciliation


@app.callback(invoke_without_command=True)
def mirror(
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
            help="Architecture to mirror (overrides config).",
        ),
    ] = None,
    max_packages: Annotated[
        int | None,
        typer.Option(
            "--max-packages",
            "-n",
            min=0,
            help="Mirror only the first N components of each remote (0 = all).",
        ),
    ] = None,
) -> None:
    """Mirror the catalog components of every configured remote.

    Per-package failures are reported in the summary and do not change
    the exit status. Configuration and repository setup errors exit with 1.

    Examples:
        flatmirror mirror                      # Mirror everything
        flatmirror mirror -n 5                 # First 5 apps per remote
        flatmirror mirror --repo /srv/flatpak  # Custom repository path
    """
    # Skip if a subcommand is being invoked
    if ctx.invoked_subcommand is not None:
        return

    config = load_mirror_config(config_path, repo, arch, max_packages)

    remotes = config.get_remotes()
    if not remotes:
        print_error("No remotes configured.")
        raise typer.Exit(code=1)

    store = OstreeStore(config.repository.path, pull_timeout=float(config.mirror.pull_timeout))
    try:
        prepare_repository(
            store,
            remotes,
            arch=config.repository.arch,
            mode=config.repository.mode,
            gpg_verify=config.repository.gpg_verify,
        )
    except StoreInitError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_info(f"Mirroring {len(remotes)} remote(s) into {store.repo_path}")
    fetcher = CatalogFetcher(cache_dir=get_catalog_cache_dir())
    report, reconciliation = run_pass(config, store, fetcher)

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    shown = report.results if verbose else report.failures
    if shown:
        console.print()
        console.print(create_results_table(shown, title="Results" if verbose else "Failures"))
    console.print()
    console.print(create_stages_table(reconciliation))

    print_pass_summary(report, reconciliation)
    print_usage_hints(config.repository.name, public_url(config), config.repository.gpg_verify)
