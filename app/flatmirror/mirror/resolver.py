"""Locate the commit produced by a mirror-mode pull."""

import logging
from dataclasses import dataclass
from pathlib import Path

from flatmirror.mirror.candidates import MIRRORS_DIR, file_candidates, refspec_candidates
from flatmirror.models.package import PackageRef, Remote
from flatmirror.store.ostree import OstreeStore, StoreError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Resolution:
    """A located commit.

    Attributes:
        commit: Commit checksum.
        source: Where it was found (relative path or ref-spec).
        path: File it was read from, None when found by rev-parse.
    """

    commit: str
    source: str
    path: Path | None = None


class RefResolver:
    """Finds the commit of a pulled ref across all known transient layouts.

    Strategies run in order and the first hit wins:

    1. scan ``refs/mirrors`` for a file matching the ref,
    2. probe the fixed candidate paths,
    3. rev-parse the remote-qualified and the bare ref-spec.

    Example:
        >>> resolver = RefResolver()
        >>> resolution = resolver.resolve(store, remote, ref)
        >>> if resolution is not None:
        ...     print(resolution.commit)
    """

    def resolve(self, store: OstreeStore, remote: Remote, ref: PackageRef) -> Resolution | None:
        """Locate the commit of a ref pulled from a remote.

        Args:
            store: Store the ref was pulled into.
            remote: Remote it was pulled from.
            ref: The pulled ref.

        Returns:
            Resolution, or None if no strategy found the commit.
        """
        mirrors_dir = store.repo_path / MIRRORS_DIR
        if mirrors_dir.is_dir():
            resolution = self._scan_mirrors(mirrors_dir, store.repo_path, ref)
            if resolution is None:
                resolution = self._probe_candidates(store.repo_path, remote, ref)
            if resolution is not None:
                return resolution
        else:
            logger.debug("No transient mirror directory in %s", store.repo_path)

        resolution = self._rev_parse(store, remote, ref)
        if resolution is None:
            logger.warning("Could not find commit for %s after pull", ref)
        return resolution

    def _scan_mirrors(
        self, mirrors_dir: Path, repo_path: Path, ref: PackageRef
    ) -> Resolution | None:
        """Search the mirror namespace for a file named after the ref."""
        ref_parts = tuple(str(ref).split("/"))

        for path in _walk_files(mirrors_dir):
            if not _contains_parts(path.relative_to(mirrors_dir).parts, ref_parts):
                continue
            commit = _read_commit(path)
            if commit:
                source = path.relative_to(repo_path).as_posix()
                logger.info("Found mirrored ref at %s: %s", source, commit[:8])
                return Resolution(commit=commit, source=source, path=path)
        return None

    def _probe_candidates(
        self, repo_path: Path, remote: Remote, ref: PackageRef
    ) -> Resolution | None:
        """Check the fixed list of candidate paths."""
        for relative in file_candidates(remote, ref):
            path = repo_path / relative
            if not path.is_file():
                continue
            commit = _read_commit(path)
            if commit:
                logger.info("Found mirrored ref at %s: %s", relative, commit[:8])
                return Resolution(commit=commit, source=relative, path=path)
        return None

    def _rev_parse(self, store: OstreeStore, remote: Remote, ref: PackageRef) -> Resolution | None:
        """Ask the store directly."""
        for refspec in refspec_candidates(remote, ref):
            try:
                commit = store.rev_parse(refspec)
            except StoreError as e:
                logger.debug("rev-parse %s failed: %s", refspec, e)
                continue
            logger.info("Found ref via rev-parse: %s -> %s", refspec, commit[:8])
            return Resolution(commit=commit, source=refspec)
        return None


def _walk_files(root: Path) -> list[Path]:
    """Return all regular files below root in a stable order."""
    return sorted(p for p in root.rglob("*") if p.is_file())


def _read_commit(path: Path) -> str | None:
    """Read a commit checksum from a ref file."""
    try:
        commit = path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Cannot read ref file %s: %s", path, e)
        return None
    return commit or None


def _contains_parts(parts: tuple[str, ...], ref_parts: tuple[str, ...]) -> bool:
    """Check if the ref's path segments appear contiguously in a path."""
    width = len(ref_parts)
    return any(parts[i : i + width] == ref_parts for i in range(len(parts) - width + 1))
