"""Mirroring engine.

This package pulls refs from remotes, resolves the commits they produced
and promotes them to stable local refs.
"""

from flatmirror.mirror.orchestrator import CatalogSource, ComponentRefs, MirrorOrchestrator
from flatmirror.mirror.promoter import RefPromoter
from flatmirror.mirror.resolver import RefResolver, Resolution

__all__ = [
    "CatalogSource",
    "ComponentRefs",
    "MirrorOrchestrator",
    "RefPromoter",
    "RefResolver",
    "Resolution",
]
