"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from pathlib import Path

import pytest
from fakes import FakeCatalogSource, FakeStore
from flatmirror.models.package import Remote

SAMPLE_CATALOG = b"""<?xml version="1.0" encoding="UTF-8"?>
<components version="0.14" origin="flathub">
  <component type="desktop-application">
    <id>org.gnome.Calculator</id>
    <name>Calculator</name>
    <name xml:lang="de">Taschenrechner</name>
    <summary>Perform arithmetic, scientific or financial calculations</summary>
    <bundle type="flatpak" runtime="org.gnome.Platform/x86_64/46" sdk="org.gnome.Sdk/x86_64/46">app/org.gnome.Calculator/x86_64/stable</bundle>
  </component>
  <component type="desktop-application">
    <id>org.mozilla.firefox</id>
    <name>Firefox</name>
    <summary>Fast, Private and Safe Web Browser</summary>
    <bundle type="flatpak" runtime="org.freedesktop.Platform/x86_64/23.08"/>
  </component>
  <component type="addon">
    <id>org.example.NoBundle</id>
    <name>No Bundle</name>
  </component>
  <component type="desktop-application">
    <name>Missing ID</name>
  </component>
</components>
"""


@pytest.fixture
def sample_catalog_xml() -> bytes:
    """Sample AppStream catalog with a mix of bundle variants."""
    return SAMPLE_CATALOG


@pytest.fixture
def fake_store(tmp_path: Path) -> FakeStore:
    """In-memory store rooted at a temporary directory."""
    repo = tmp_path / "repo"
    repo.mkdir()
    return FakeStore(repo)


@pytest.fixture
def flathub() -> Remote:
    """Remote with a collection ID."""
    return Remote(name="flathub", url="https://dl.flathub.org/repo", collection_id="org.flathub.Stable")


@pytest.fixture
def plain_remote() -> Remote:
    """Remote without a collection ID."""
    return Remote(name="origin", url="https://example.org/repo")


@pytest.fixture
def catalog_source() -> FakeCatalogSource:
    """Empty catalog source; tests fill in ``catalogs``."""
    return FakeCatalogSource()
