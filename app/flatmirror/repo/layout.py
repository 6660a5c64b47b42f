"""Repository layout and preparation.

Creates the store and the Flatpak directory structure expected around it,
and knows where the catalog is staged before being committed.
"""

import logging
import shutil
from pathlib import Path

from flatmirror.catalog.codec import compress, encode_catalog
from flatmirror.models.package import Component, Remote
from flatmirror.models.result import AdvisoryResult
from flatmirror.store.ostree import OstreeStore, StoreError, StoreInitError

logger = logging.getLogger(__name__)

# File names of the staged catalog
CATALOG_FILE = "appstream.xml"
CATALOG_GZ_FILE = "appstream.xml.gz"


def catalog_dir(repo_path: Path, arch: str) -> Path:
    """Directory holding the legacy catalog copies: ``appstream/<arch>``."""
    return repo_path / "appstream" / arch


def catalog_staging_dir(repo_path: Path, arch: str) -> Path:
    """Directory committed to the catalog refs: ``appstream/<arch>/active``."""
    return catalog_dir(repo_path, arch) / "active"


def catalog_refs(arch: str) -> tuple[str, str]:
    """Return the (legacy, current) catalog ref names for an architecture."""
    return (f"appstream/{arch}", f"appstream2/{arch}")


def prepare_repository(
    store: OstreeStore,
    remotes: list[Remote],
    *,
    arch: str,
    mode: str = "archive-z2",
    gpg_verify: bool = False,
) -> None:
    """Make the store usable for a mirroring pass.

    Initializes the repository if needed, creates the catalog directory
    structure and registers every remote.

    Args:
        store: Store to prepare.
        remotes: Remotes to register.
        arch: Architecture whose catalog directories are created.
        mode: OSTree mode used when the repository is created.
        gpg_verify: Whether remotes are registered with GPG verification.

    Raises:
        StoreInitError: If the repository cannot be made usable.
    """
    if not store.is_available():
        msg = "ostree is not available on this system"
        raise StoreInitError(msg)

    try:
        store.repo_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        msg = f"Cannot create repository directory {store.repo_path}: {e}"
        raise StoreInitError(msg) from e

    if store.init(mode):
        logger.info("Repository initialized: %s", store.repo_path)
    else:
        logger.info("Using existing repository: %s", store.repo_path)

    base = catalog_dir(store.repo_path, arch)
    for directory in (base, base / "icons", base / "active"):
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Cannot create {directory}: {e}"
            raise StoreInitError(msg) from e

    for remote in remotes:
        try:
            store.add_remote(remote, gpg_verify=gpg_verify)
        except StoreError as e:
            msg = f"Failed to add remote {remote.name}: {e}"
            raise StoreInitError(msg, e.command, e.diagnostic) from e
        logger.debug("Remote registered: %s (%s)", remote.name, remote.url)


def write_catalog(
    repo_path: Path, arch: str, components: list[Component]
) -> tuple[Path, list[AdvisoryResult]]:
    """Write the catalog of mirrored components to the staging directory.

    The staging directory is emptied first so that it contains exactly
    the catalog. Copies are also placed in ``appstream/<arch>`` for
    clients that read the files directly; failing copies are advisory.

    Args:
        repo_path: Store root.
        arch: Catalog architecture.
        components: Components to publish.

    Returns:
        Tuple of (staging directory, advisory results of the copies).

    Raises:
        OSError: If the staged catalog cannot be written.
    """
    staging = catalog_staging_dir(repo_path, arch)
    if staging.exists():
        shutil.rmtree(staging)
    staging.mkdir(parents=True)

    xml = encode_catalog(components)
    (staging / CATALOG_FILE).write_bytes(xml)
    (staging / CATALOG_GZ_FILE).write_bytes(compress(xml))
    logger.info("Generated %s with %d components", CATALOG_FILE, len(components))

    advisories: list[AdvisoryResult] = []
    for name in (CATALOG_FILE, CATALOG_GZ_FILE):
        target = catalog_dir(repo_path, arch) / name
        try:
            shutil.copyfile(staging / name, target)
        except OSError as e:
            logger.warning("Could not copy catalog to %s: %s", target, e)
            advisories.append(AdvisoryResult(f"copy {name}", ok=False, detail=str(e)))
    return staging, advisories
