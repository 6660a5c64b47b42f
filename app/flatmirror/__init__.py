"""flatmirror - Mirror Flatpak applications into a local OSTree repository."""

__version__ = "0.1.0"
