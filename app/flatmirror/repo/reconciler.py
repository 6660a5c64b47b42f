"""Repository metadata reconciliation.

After a mirroring pass the summary and the catalog refs must describe the
refs that were promoted. Reconciliation walks an ordered ladder of stages:

1. Integrated update via `flatpak build-update-repo`.
2. Catalog commit of the mirrored components to both catalog refs.
3. Summary fallback via `ostree summary`.

A stage returning COMPLETE ends the ladder. Any other status moves on to
the next stage, which decides on its own whether it has work to do.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from flatmirror.models.package import Component
from flatmirror.models.reconciliation import (
    ReconciliationReport,
    ReconciliationStage,
    StageOutcome,
    StageStatus,
)
from flatmirror.models.result import AdvisoryResult
from flatmirror.repo.layout import catalog_refs, write_catalog
from flatmirror.store.ostree import OstreeStore, StoreError

logger = logging.getLogger(__name__)

CATALOG_SUBJECT = "Update appstream"


@dataclass
class LadderState:
    """Mutable state shared by the stages of one reconciliation.

    Attributes:
        components: Components to publish in the catalog.
        report: Report being filled in.
        summary_stale: Set when refs changed after the summary was written.
    """

    components: list[Component]
    report: ReconciliationReport = field(default_factory=ReconciliationReport)
    summary_stale: bool = False


Stage = Callable[[LadderState], StageOutcome]


class MetadataReconciler:
    """Brings summary and catalog refs in line with the promoted refs.

    Never raises for store failures; every failure is recorded in the
    returned report.

    Attributes:
        store: Target store.
        arch: Catalog architecture.
        title: Repository title for the summary.
        comment: Repository comment for the summary.
        homepage: Repository homepage for the summary.
        integrated_update: Whether the integrated update stage may run.
        update_catalog: Whether the integrated update regenerates the catalog.
    """

    def __init__(
        self,
        store: OstreeStore,
        *,
        arch: str = "x86_64",
        title: str | None = None,
        comment: str | None = None,
        homepage: str | None = None,
        integrated_update: bool = True,
        update_catalog: bool = True,
    ) -> None:
        self.store = store
        self.arch = arch
        self.title = title
        self.comment = comment
        self.homepage = homepage
        self.integrated_update = integrated_update
        self.update_catalog = update_catalog

    @property
    def stages(self) -> list[tuple[ReconciliationStage, Stage]]:
        """The ladder, in execution order."""
        return [
            (ReconciliationStage.INTEGRATED_UPDATE, self.run_integrated_update),
            (ReconciliationStage.CATALOG_COMMIT, self.commit_catalog),
            (ReconciliationStage.SUMMARY_FALLBACK, self.update_summary),
        ]

    @property
    def summary_metadata(self) -> list[tuple[str, str]]:
        """Summary metadata keys published by the fallback stage."""
        pairs = [
            ("xa.title", self.title),
            ("xa.comment", self.comment),
            ("xa.homepage", self.homepage),
        ]
        return [(key, value) for key, value in pairs if value]

    def reconcile(self, mirrored_components: Iterable[Component]) -> ReconciliationReport:
        """Run the ladder and verify the catalog refs.

        Args:
            mirrored_components: Components whose app ref was promoted.

        Returns:
            ReconciliationReport with one outcome per stage that ran.
        """
        components = list(mirrored_components)
        state = LadderState(
            components=components,
            report=ReconciliationReport(catalog_components=len(components)),
        )

        for stage, run in self.stages:
            outcome = run(state)
            state.report.stages.append(outcome)
            logger.info("%s: %s%s", stage.value, outcome.status.value, _suffix(outcome.detail))
            if outcome.status == StageStatus.COMPLETE:
                break

        self.verify(state.report)
        return state.report

    def run_integrated_update(self, state: LadderState) -> StageOutcome:
        """Stage A: let flatpak regenerate summary and catalog in one step."""
        stage = ReconciliationStage.INTEGRATED_UPDATE
        if not self.integrated_update:
            return StageOutcome(stage, StageStatus.SKIPPED, "disabled by configuration")
        if not self.store.has_flatpak():
            return StageOutcome(stage, StageStatus.SKIPPED, "flatpak is not available")

        try:
            self.store.integrated_repo_update(
                update_catalog=self.update_catalog,
                title=self.title,
                comment=self.comment,
                homepage=self.homepage,
            )
        except StoreError as e:
            logger.warning("Integrated repository update failed: %s", e)
            return StageOutcome(stage, StageStatus.FAILED, str(e))

        state.report.summary_updated = True
        if not self.update_catalog:
            return StageOutcome(stage, StageStatus.CONTINUE, "catalog update disabled")

        try:
            refs = set(self.store.list_refs())
        except StoreError as e:
            return StageOutcome(stage, StageStatus.CONTINUE, f"cannot list refs: {e}")

        missing = [ref for ref in catalog_refs(self.arch) if ref not in refs]
        if missing:
            return StageOutcome(
                stage, StageStatus.CONTINUE, f"catalog refs missing: {', '.join(missing)}"
            )
        state.report.catalog_committed = True
        return StageOutcome(stage, StageStatus.COMPLETE)

    def commit_catalog(self, state: LadderState) -> StageOutcome:
        """Stage B: write the catalog and commit it to both catalog refs."""
        stage = ReconciliationStage.CATALOG_COMMIT
        try:
            staging, advisories = write_catalog(
                self.store.repo_path, self.arch, state.components
            )
        except OSError as e:
            logger.error("Cannot write catalog: %s", e)
            return StageOutcome(stage, StageStatus.FAILED, f"cannot write catalog: {e}")
        state.report.advisories.extend(advisories)

        failures: list[str] = []
        for ref in catalog_refs(self.arch):
            try:
                commit = self.store.commit_tree(ref, CATALOG_SUBJECT, staging)
            except StoreError as e:
                logger.warning("Failed to commit %s: %s", ref, e)
                failures.append(f"{ref}: {e}")
                continue
            logger.debug("Committed %s at %s", ref, commit)
            state.report.catalog_committed = True
            state.summary_stale = True

        if len(failures) == len(catalog_refs(self.arch)):
            return StageOutcome(stage, StageStatus.FAILED, "; ".join(failures))
        return StageOutcome(stage, StageStatus.CONTINUE, "; ".join(failures) or None)

    def update_summary(self, state: LadderState) -> StageOutcome:
        """Stage C: recompute the summary and publish repository metadata.

        Only runs when no earlier stage left the summary current.
        """
        stage = ReconciliationStage.SUMMARY_FALLBACK
        if state.report.summary_updated and not state.summary_stale:
            return StageOutcome(stage, StageStatus.SKIPPED, "summary already current")

        try:
            self.store.update_summary()
        except StoreError as e:
            logger.error("Summary update failed: %s", e)
            state.report.summary_updated = False
            return StageOutcome(stage, StageStatus.FAILED, str(e))
        state.report.summary_updated = True
        state.summary_stale = False

        for key, value in self.summary_metadata:
            operation = f"summary metadata {key}"
            try:
                self.store.add_summary_metadata(key, value)
            except StoreError as e:
                logger.warning("Could not set %s: %s", key, e)
                state.report.advisories.append(AdvisoryResult(operation, ok=False, detail=str(e)))
            else:
                state.report.advisories.append(AdvisoryResult(operation, ok=True))
        return StageOutcome(stage, StageStatus.COMPLETE)

    def verify(self, report: ReconciliationReport) -> None:
        """Check that both catalog refs exist and record the result."""
        try:
            refs = set(self.store.list_refs())
        except StoreError as e:
            logger.warning("Cannot verify catalog refs: %s", e)
            report.verification_error = str(e)
            return

        for ref in catalog_refs(self.arch):
            if ref in refs:
                report.present_refs.append(ref)
            else:
                logger.warning("Catalog ref missing: %s", ref)
                report.missing_refs.append(ref)


def _suffix(detail: str | None) -> str:
    return f" ({detail})" if detail else ""
