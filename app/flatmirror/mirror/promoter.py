"""Promote resolved commits to stable local refs."""

import logging
from collections.abc import Iterable
from pathlib import Path

from flatmirror.mirror.candidates import MIRRORS_DIR, file_candidates, transient_refspec
from flatmirror.models.package import PackageRef, Remote
from flatmirror.models.result import AdvisoryResult
from flatmirror.store.ostree import OstreeStore, StoreError

logger = logging.getLogger(__name__)


class RefPromoter:
    """Publishes pulled content under its stable ref name.

    Promotion is a forced ref write, so promoting the same commit twice
    is a no-op and promoting a newer commit replaces the old target.
    Cleanup of transient mirror artifacts is advisory: it reports what
    it could not remove but never fails.
    """

    def promote(self, store: OstreeStore, ref: PackageRef, commit: str) -> None:
        """Point the local ref named after ``ref`` at ``commit``.

        Args:
            store: Target store.
            ref: Ref to publish.
            commit: Commit the ref must point at.

        Raises:
            StoreError: If the store rejects the ref write.
        """
        store.create_ref(str(ref), commit, force=True)
        logger.info("Created/updated local ref: %s -> %s", ref, commit[:8])

    def cleanup(
        self,
        store: OstreeStore,
        remote: Remote,
        ref: PackageRef,
        extra_paths: Iterable[Path] = (),
    ) -> list[AdvisoryResult]:
        """Remove transient artifacts a mirror pull left for a ref.

        Args:
            store: Store the ref was pulled into.
            remote: Remote it was pulled from.
            ref: The promoted ref.
            extra_paths: Additional transient files, e.g. the one the
                resolver read the commit from.

        Returns:
            One AdvisoryResult per artifact actually removed or failing to be removed.
        """
        results: list[AdvisoryResult] = []
        mirrors_dir = (store.repo_path / MIRRORS_DIR).resolve()

        paths = [store.repo_path / p for p in file_candidates(remote, ref)]
        paths.extend(p for p in extra_paths if p not in paths)

        for path in paths:
            if not _is_within(path, mirrors_dir):
                logger.debug("Not removing %s: outside %s", path, MIRRORS_DIR)
                continue
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.debug("Could not remove mirrored ref %s: %s", path, e)
                results.append(AdvisoryResult(f"remove {path}", ok=False, detail=str(e)))
                continue
            logger.debug("Cleaned mirrored ref: %s", path)
            results.append(AdvisoryResult(f"remove {path}", ok=True))

        refspec = transient_refspec(remote, ref)
        try:
            store.delete_ref(refspec)
        except StoreError as e:
            # Usually the pull never created a remote-qualified ref
            logger.debug("Could not delete transient ref %s: %s", refspec, e)
        else:
            results.append(AdvisoryResult(f"delete {refspec}", ok=True))

        return results


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.resolve().relative_to(root)
    except ValueError:
        return False
    return True
