"""Reconciliation models for repository metadata updates."""

from dataclasses import dataclass, field
from enum import Enum

from flatmirror.models.result import AdvisoryResult


class ReconciliationStage(Enum):
    """Stages of the metadata fallback ladder, in order of preference."""

    INTEGRATED_UPDATE = "integrated-update"
    CATALOG_COMMIT = "catalog-commit"
    SUMMARY_FALLBACK = "summary-fallback"


class StageStatus(Enum):
    """What a stage tells the ladder.

    Attributes:
        COMPLETE: Reconciliation is finished, later stages are not run.
        CONTINUE: The stage did its part, the ladder moves on.
        FAILED: The stage failed, the ladder moves on.
        SKIPPED: The stage was not needed or not available.
    """

    COMPLETE = "complete"
    CONTINUE = "continue"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class StageOutcome:
    """Outcome of running one ladder stage."""

    stage: ReconciliationStage
    status: StageStatus
    detail: str | None = None

    @property
    def succeeded(self) -> bool:
        """Check if the stage ran and did its work."""
        return self.status in (StageStatus.COMPLETE, StageStatus.CONTINUE)


@dataclass
class ReconciliationReport:
    """Outcome of a metadata reconciliation.

    Attributes:
        stages: Outcome of every stage in ladder order.
        catalog_components: Number of components written to the catalog.
        summary_updated: Whether the summary reflects the refs of this pass.
        catalog_committed: Whether at least one catalog ref was committed.
        present_refs: Catalog refs found during verification.
        missing_refs: Catalog refs missing after reconciliation.
        advisories: Results of best-effort steps (metadata keys, copies).
        verification_error: Set when the ref list could not be read.
    """

    stages: list[StageOutcome] = field(default_factory=list)
    catalog_components: int = 0
    summary_updated: bool = False
    catalog_committed: bool = False
    present_refs: list[str] = field(default_factory=list)
    missing_refs: list[str] = field(default_factory=list)
    advisories: list[AdvisoryResult] = field(default_factory=list)
    verification_error: str | None = None

    def outcome_of(self, stage: ReconciliationStage) -> StageOutcome | None:
        """Return the recorded outcome of a stage, if it ran."""
        for outcome in self.stages:
            if outcome.stage == stage:
                return outcome
        return None

    @property
    def stage_used(self) -> ReconciliationStage | None:
        """Last stage that ran successfully."""
        for outcome in reversed(self.stages):
            if outcome.succeeded:
                return outcome.stage
        return None

    @property
    def metadata_failed(self) -> bool:
        """Check if the ladder ended without an up-to-date summary."""
        return not self.summary_updated

    @property
    def warnings(self) -> list[str]:
        """Human-readable warnings from verification and advisory steps."""
        messages = [f"Missing catalog ref: {ref}" for ref in self.missing_refs]
        if self.verification_error:
            messages.append(f"Could not verify refs: {self.verification_error}")
        messages.extend(
            f"{a.operation}: {a.detail or 'failed'}" for a in self.advisories if not a.ok
        )
        return messages
