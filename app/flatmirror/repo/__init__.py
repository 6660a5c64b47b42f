"""Local repository layout, metadata reconciliation and client descriptor."""

from flatmirror.repo.descriptor import render_descriptor, write_descriptor
from flatmirror.repo.layout import (
    catalog_dir,
    catalog_refs,
    catalog_staging_dir,
    prepare_repository,
    write_catalog,
)
from flatmirror.repo.reconciler import LadderState, MetadataReconciler

__all__ = [
    "LadderState",
    "MetadataReconciler",
    "catalog_dir",
    "catalog_refs",
    "catalog_staging_dir",
    "prepare_repository",
    "render_descriptor",
    "write_catalog",
    "write_descriptor",
]
