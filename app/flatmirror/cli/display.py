"""Shared Rich display functions for mirroring passes.

Provides table builders and summary printers used by the mirror and
status commands.
"""

from rich.markup import escape
from rich.table import Table

from flatmirror.models.reconciliation import ReconciliationReport, StageStatus
from flatmirror.models.result import MirrorOutcome, MirrorReport, MirrorResult
from flatmirror.utils.formatting import console, print_success, print_warning, short_commit

_OUTCOME_LABELS: dict[MirrorOutcome, str] = {
    MirrorOutcome.PROMOTED: "[success]OK[/success]",
    MirrorOutcome.PULL_FAILED: "[error]PULL[/error]",
    MirrorOutcome.RESOLUTION_FAILED: "[warning]RESOLVE[/warning]",
    MirrorOutcome.PROMOTION_FAILED: "[error]PROMOTE[/error]",
}

_STAGE_STYLES: dict[StageStatus, str] = {
    StageStatus.COMPLETE: "success",
    StageStatus.CONTINUE: "info",
    StageStatus.FAILED: "error",
    StageStatus.SKIPPED: "muted",
}


def create_results_table(results: list[MirrorResult], title: str = "Results") -> Table:
    """Create a Rich table displaying per-ref results.

    Args:
        results: Results to display, in pass order.
        title: Table title.

    Returns:
        Rich Table with Status, Remote, Ref, Commit and Message columns.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=9, justify="center")
    table.add_column("Remote", width=10)
    table.add_column("Ref", no_wrap=True)
    table.add_column("Commit", width=8)
    table.add_column("Message")

    for result in results:
        table.add_row(
            _OUTCOME_LABELS[result.outcome],
            result.remote,
            f"[ref]{result.ref}[/ref]",
            f"[commit]{short_commit(result.commit)}[/commit]",
            f"[muted]{escape(result.error or '')}[/muted]",
        )

    return table


def create_refs_table(refs: list[str]) -> Table:
    """Create a Rich table listing the refs of a store."""
    table = Table(
        title="Refs",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Kind", width=10)
    table.add_column("Ref", no_wrap=True)

    for ref in sorted(refs):
        kind = ref.split("/", 1)[0] if "/" in ref else "-"
        table.add_row(kind, f"[ref]{ref}[/ref]")

    return table


def create_stages_table(reconciliation: ReconciliationReport) -> Table:
    """Create a Rich table with the outcome of every ladder stage that ran."""
    table = Table(
        title="Metadata",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Stage", no_wrap=True)
    table.add_column("Status", width=9)
    table.add_column("Detail")

    for outcome in reconciliation.stages:
        style = _STAGE_STYLES[outcome.status]
        table.add_row(
            outcome.stage.value,
            f"[{style}]{outcome.status.value}[/{style}]",
            f"[muted]{escape(outcome.detail or '')}[/muted]",
        )

    return table


def print_pass_summary(report: MirrorReport, reconciliation: ReconciliationReport) -> None:
    """Print the structured summary that ends every mirroring pass.

    Args:
        report: Result of the mirroring phase.
        reconciliation: Result of the metadata phase.
    """
    stage = reconciliation.stage_used

    console.print()
    console.print("[bold]Mirror Summary[/bold]")
    console.print(f"  Promoted refs: [success]{report.promoted}[/success]")
    console.print(f"  Failed pulls: {_count(report.pull_failures)}")
    console.print(f"  Failed resolutions: {_count(report.resolution_failures)}")
    console.print(f"  Failed promotions: {_count(report.promotion_failures)}")
    console.print(f"  Mirrored components: [info]{len(report.mirrored_components)}[/info]")
    console.print(f"  Metadata stage: [info]{stage.value if stage else 'none'}[/info]")

    for name, error in report.remote_errors.items():
        print_warning(f"Remote {name} skipped: {error}")
    for message in reconciliation.warnings:
        print_warning(message)

    console.print()
    if report.failures or reconciliation.metadata_failed:
        console.print("[warning]Mirroring pass finished with problems.[/warning]")
    else:
        print_success("Mirroring pass completed successfully.")


def print_usage_hints(name: str, url: str, gpg_verify: bool = False) -> None:
    """Print the commands clients use to consume the mirror.

    Args:
        name: Repository name, also the descriptor file stem.
        url: Public URL of the repository root.
        gpg_verify: Whether the repository is signed.
    """
    base = url.rstrip("/")
    no_verify = "" if gpg_verify else " --no-gpg-verify"

    console.print()
    console.print("[bold]Usage[/bold]")
    console.print("  Add the repository with the descriptor:")
    console.print(f"    [muted]flatpak remote-add --user {name} {base}/{name}.flatpakrepo[/muted]")
    console.print("  Or directly:")
    console.print(f"    [muted]flatpak remote-add --user{no_verify} {name} {base}/[/muted]")
    console.print(f"  Then: [muted]flatpak install --user {name} <application-id>[/muted]")


def _count(value: int) -> str:
    if value:
        return f"[error]{value}[/error]"
    return f"[muted]{value}[/muted]"
