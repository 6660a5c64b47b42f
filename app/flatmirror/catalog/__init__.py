"""AppStream catalog handling.

This package decodes and encodes component catalogs and fetches them
from remote repositories.
"""

from flatmirror.catalog.codec import (
    CatalogError,
    compress,
    decode_catalog,
    decompress,
    encode_catalog,
)
from flatmirror.catalog.fetcher import CatalogFetcher, catalog_url

__all__ = [
    "CatalogError",
    "CatalogFetcher",
    "catalog_url",
    "compress",
    "decode_catalog",
    "decompress",
    "encode_catalog",
]
