"""Data models for flatmirror.

This module exports the core data structures used throughout the application.
"""

from flatmirror.models.package import Bundle, Component, PackageRef, RefKind, Remote
from flatmirror.models.reconciliation import (
    ReconciliationReport,
    ReconciliationStage,
    StageOutcome,
    StageStatus,
)
from flatmirror.models.result import AdvisoryResult, MirrorOutcome, MirrorReport, MirrorResult

__all__ = [
    "AdvisoryResult",
    "Bundle",
    "Component",
    "MirrorOutcome",
    "MirrorReport",
    "MirrorResult",
    "PackageRef",
    "ReconciliationReport",
    "ReconciliationStage",
    "RefKind",
    "Remote",
    "StageOutcome",
    "StageStatus",
]
