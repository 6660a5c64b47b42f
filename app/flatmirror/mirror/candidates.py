"""Transient mirror locations of a freshly pulled ref.

A mirror-mode pull writes the commit of the pulled ref to a location
that depends on the store version and on whether collection IDs are in
use. The observed layouts are listed here as data, most specific first;
supporting a new layout means adding an entry.
"""

from dataclasses import dataclass
from enum import Enum

from flatmirror.models.package import PackageRef, Remote

# Root of the transient mirror namespace, relative to the store root
MIRRORS_DIR = "refs/mirrors"


class CandidateKind(Enum):
    """How a candidate location is probed."""

    FILE = "file"
    REFSPEC = "refspec"


@dataclass(frozen=True, slots=True)
class MirrorCandidate:
    """A hypothesis for where a pulled ref's commit was deposited.

    Attributes:
        kind: FILE for paths relative to the store root, REFSPEC for
            arguments to rev-parse.
        template: Format string with ``{remote}``, ``{collection_id}``
            and ``{ref}`` placeholders.
        needs_collection_id: Only applies when the remote has a collection ID.
    """

    kind: CandidateKind
    template: str
    needs_collection_id: bool = False

    def render(self, remote: Remote, ref: PackageRef) -> str:
        """Fill in the template for a remote and ref."""
        return self.template.format(
            remote=remote.name,
            collection_id=remote.collection_id or "",
            ref=str(ref),
        )


# Files a mirror pull may leave behind, probed in order
FILE_CANDIDATES: tuple[MirrorCandidate, ...] = (
    MirrorCandidate(CandidateKind.FILE, MIRRORS_DIR + "/{collection_id}/{ref}", True),
    MirrorCandidate(CandidateKind.FILE, MIRRORS_DIR + "/org.{remote}.Stable/{ref}"),
    MirrorCandidate(CandidateKind.FILE, MIRRORS_DIR + "/{remote}.Stable/{ref}"),
    MirrorCandidate(CandidateKind.FILE, MIRRORS_DIR + "/{remote}/{ref}"),
)

# Ref-specs queried directly against the store, in order
REFSPEC_CANDIDATES: tuple[MirrorCandidate, ...] = (
    MirrorCandidate(CandidateKind.REFSPEC, "{remote}:{ref}"),
    MirrorCandidate(CandidateKind.REFSPEC, "{ref}"),
)


def _applicable(candidates: tuple[MirrorCandidate, ...], remote: Remote) -> list[MirrorCandidate]:
    return [c for c in candidates if remote.collection_id or not c.needs_collection_id]


def file_candidates(remote: Remote, ref: PackageRef) -> list[str]:
    """Return the relative file paths to probe for a ref, in order."""
    paths: list[str] = []
    for candidate in _applicable(FILE_CANDIDATES, remote):
        path = candidate.render(remote, ref)
        if path not in paths:
            paths.append(path)
    return paths


def refspec_candidates(remote: Remote, ref: PackageRef) -> list[str]:
    """Return the ref-specs to rev-parse for a ref, in order."""
    return [c.render(remote, ref) for c in _applicable(REFSPEC_CANDIDATES, remote)]


def transient_refspec(remote: Remote, ref: PackageRef) -> str:
    """Return the remote-qualified ref-spec a pull may leave in the store."""
    return REFSPEC_CANDIDATES[0].render(remote, ref)
