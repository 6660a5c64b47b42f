"""Result models for mirroring passes.

This module defines the outcome of mirroring a single ref, the aggregate
report of a pass and the result type of advisory operations.
"""

from dataclasses import dataclass, field
from enum import Enum

from flatmirror.models.package import Component, PackageRef


class MirrorOutcome(Enum):
    """Final state of one attempted ref.

    Attributes:
        PROMOTED: Pulled, resolved and published as a local ref.
        PULL_FAILED: The store could not pull the ref.
        RESOLUTION_FAILED: Pulled, but no strategy located its commit.
        PROMOTION_FAILED: The store rejected the local ref write.
    """

    PROMOTED = "promoted"
    PULL_FAILED = "pull-failed"
    RESOLUTION_FAILED = "resolution-failed"
    PROMOTION_FAILED = "promotion-failed"


@dataclass(frozen=True, slots=True)
class MirrorResult:
    """Outcome of mirroring one ref.

    Attributes:
        ref: The ref that was attempted.
        outcome: Final state.
        remote: Name of the remote it was pulled from.
        component_id: ID of the catalog component that required it.
        commit: Resolved commit, when known.
        error: Diagnostic text for failures.
    """

    ref: PackageRef
    outcome: MirrorOutcome
    remote: str
    component_id: str
    commit: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        """Check if the ref was promoted."""
        return self.outcome == MirrorOutcome.PROMOTED

    @property
    def failed(self) -> bool:
        """Check if the ref failed at any stage."""
        return not self.success


@dataclass(frozen=True, slots=True)
class AdvisoryResult:
    """Result of a best-effort operation.

    Advisory results are logged and reported but never turned into
    failures of the calling operation.
    """

    operation: str
    ok: bool
    detail: str | None = None


@dataclass
class MirrorReport:
    """Aggregate of a mirroring pass.

    Attributes:
        results: One MirrorResult per attempted ref, in submission order.
        mirrored_components: Components whose app ref was promoted.
        remote_errors: Remote name to error for remotes whose catalog
            could not be fetched.
    """

    results: list[MirrorResult] = field(default_factory=list)
    mirrored_components: list[Component] = field(default_factory=list)
    remote_errors: dict[str, str] = field(default_factory=dict)

    def count(self, outcome: MirrorOutcome) -> int:
        """Count results with the given outcome."""
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def promoted(self) -> int:
        """Number of promoted refs."""
        return self.count(MirrorOutcome.PROMOTED)

    @property
    def pull_failures(self) -> int:
        """Number of refs that failed to pull."""
        return self.count(MirrorOutcome.PULL_FAILED)

    @property
    def resolution_failures(self) -> int:
        """Number of refs whose commit could not be located."""
        return self.count(MirrorOutcome.RESOLUTION_FAILED)

    @property
    def promotion_failures(self) -> int:
        """Number of refs the store refused to publish."""
        return self.count(MirrorOutcome.PROMOTION_FAILED)

    @property
    def failures(self) -> list[MirrorResult]:
        """All failed results."""
        return [r for r in self.results if r.failed]
