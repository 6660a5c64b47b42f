"""Package models for remotes, refs and catalog components.

This module defines the core data structures that identify what is
mirrored: upstream remotes, Flatpak refs and AppStream components.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from xml.etree.ElementTree import Element


class RefKind(Enum):
    """Kind of a mirrorable Flatpak ref."""

    APP = "app"
    RUNTIME = "runtime"


@dataclass(frozen=True, slots=True)
class Remote:
    """An upstream repository to mirror from.

    Attributes:
        name: Remote name as registered in the local store (e.g., 'flathub').
        url: Base URL of the remote repository.
        collection_id: Optional collection ID (e.g., 'org.flathub.Stable')
            used by stores that scope transient mirror refs by collection.
    """

    name: str
    url: str
    collection_id: str | None = None

    def __post_init__(self) -> None:
        """Validate remote data after initialization."""
        if not self.name:
            msg = "Remote name cannot be empty"
            raise ValueError(msg)
        if not self.url:
            msg = f"Remote '{self.name}' has no URL"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class PackageRef:
    """Canonical identity of a mirrorable unit.

    The string form ``kind/id/arch/branch`` is also the name of the
    local ref created once the package is mirrored.

    Attributes:
        kind: App or runtime.
        id: Application or runtime ID (e.g., 'org.gnome.Calculator').
        arch: Architecture (e.g., 'x86_64').
        branch: Branch (e.g., 'stable', '46').
    """

    kind: RefKind
    id: str
    arch: str
    branch: str

    def __post_init__(self) -> None:
        """Validate ref data after initialization."""
        for name in ("id", "arch", "branch"):
            value = getattr(self, name)
            if not value or "/" in value:
                msg = f"Invalid ref {name}: {value!r}"
                raise ValueError(msg)

    def __str__(self) -> str:
        return f"{self.kind.value}/{self.id}/{self.arch}/{self.branch}"

    @property
    def is_app(self) -> bool:
        """Check if this ref is an application."""
        return self.kind == RefKind.APP

    @classmethod
    def parse(cls, text: str) -> PackageRef:
        """Parse a full ``kind/id/arch/branch`` ref string.

        Args:
            text: Ref string such as 'app/org.gnome.Calculator/x86_64/stable'.

        Returns:
            Parsed PackageRef.

        Raises:
            ValueError: If the string is not a valid four-part ref.
        """
        parts = text.strip().split("/")
        if len(parts) != 4:
            msg = f"Invalid ref format: {text!r}. Expected: kind/id/arch/branch"
            raise ValueError(msg)
        kind, ref_id, arch, branch = parts
        try:
            ref_kind = RefKind(kind)
        except ValueError:
            msg = f"Unknown ref kind {kind!r} in {text!r}"
            raise ValueError(msg) from None
        return cls(kind=ref_kind, id=ref_id, arch=arch, branch=branch)

    @classmethod
    def from_runtime_spec(cls, spec: str) -> PackageRef:
        """Parse an AppStream ``id/arch/branch`` runtime or SDK reference.

        Args:
            spec: Runtime spec such as 'org.gnome.Platform/x86_64/46'.

        Returns:
            PackageRef of kind RUNTIME.

        Raises:
            ValueError: If the spec is not a valid three-part reference.
        """
        spec = spec.strip()
        if spec.startswith(f"{RefKind.RUNTIME.value}/"):
            return cls.parse(spec)
        parts = spec.split("/")
        if len(parts) != 3:
            msg = f"Invalid runtime reference: {spec!r}. Expected: id/arch/branch"
            raise ValueError(msg)
        return cls(kind=RefKind.RUNTIME, id=parts[0], arch=parts[1], branch=parts[2])


@dataclass(frozen=True, slots=True)
class Bundle:
    """Bundle metadata of a catalog component.

    Attributes:
        kind: Bundle type attribute (e.g., 'flatpak').
        ref: Full ref given as bundle text, if any.
        runtime: Runtime reference (``id/arch/branch``), if any.
        sdk: SDK reference (``id/arch/branch``), if any.
    """

    kind: str
    ref: str | None = None
    runtime: str | None = None
    sdk: str | None = None

    @property
    def is_flatpak(self) -> bool:
        """Check if the bundle describes a deployable Flatpak."""
        return self.kind == "flatpak"


@dataclass(frozen=True, slots=True)
class Component:
    """A single AppStream component parsed from a remote catalog.

    Attributes:
        id: Component ID.
        name: Human-readable name.
        summary: One-line description.
        bundle: Bundle metadata, None when the component has no bundle.
        element: Original XML element, republished unchanged when the
            component is written to the local catalog.
    """

    id: str
    name: str = ""
    summary: str = ""
    bundle: Bundle | None = None
    element: Element | None = field(default=None, compare=False, repr=False)

    @property
    def display_name(self) -> str:
        """Name to show to users, falling back to the component ID."""
        return self.name or self.id
