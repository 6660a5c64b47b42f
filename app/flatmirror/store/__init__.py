"""Repository store access.

This package wraps the OSTree repository behind a narrow command interface.
"""

from flatmirror.store.ostree import OstreeStore, StoreError, StoreInitError

__all__ = ["OstreeStore", "StoreError", "StoreInitError"]
