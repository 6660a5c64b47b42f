"""Unit tests for commit resolution after mirror pulls."""

from pathlib import Path

from fakes import FakeStore
from flatmirror.mirror.resolver import RefResolver
from flatmirror.models.package import PackageRef, Remote

REF = PackageRef.parse("app/org.gnome.Calculator/x86_64/stable")
COMMIT = "1" * 64


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class TestScan:
    """Tests for the mirror directory scan."""

    def test_finds_file_in_unknown_layout(self, fake_store: FakeStore, flathub: Remote) -> None:
        """Any file whose path ends in the ref's segments is found."""
        path = _write(fake_store.repo_path / "refs/mirrors/some.Other.Layout" / str(REF), COMMIT + "\n")

        resolution = RefResolver().resolve(fake_store, flathub, REF)

        assert resolution is not None
        assert resolution.commit == COMMIT
        assert resolution.path == path
        assert resolution.source == f"refs/mirrors/some.Other.Layout/{REF}"

    def test_ignores_partial_segment_match(self, fake_store: FakeStore, flathub: Remote) -> None:
        """A ref whose ID merely extends the wanted ID does not match."""
        other = "app/org.gnome.Calculator.Devel/x86_64/stable"
        _write(fake_store.repo_path / "refs/mirrors/org.flathub.Stable" / other, "2" * 64)

        assert RefResolver().resolve(fake_store, flathub, REF) is None

    def test_skips_empty_files(self, fake_store: FakeStore, flathub: Remote) -> None:
        """Empty ref files are not a hit."""
        _write(fake_store.repo_path / "refs/mirrors/a" / str(REF), "\n")
        _write(fake_store.repo_path / "refs/mirrors/b" / str(REF), COMMIT)

        resolution = RefResolver().resolve(fake_store, flathub, REF)

        assert resolution is not None
        assert resolution.commit == COMMIT
        assert resolution.source.startswith("refs/mirrors/b/")


class TestCandidates:
    """Tests for the fixed candidate paths."""

    def test_collection_path(self, fake_store: FakeStore, flathub: Remote) -> None:
        """The collection-scoped candidate is probed when the remote has a collection ID."""
        path = _write(fake_store.repo_path / "refs/mirrors/org.flathub.Stable" / str(REF), COMMIT)

        resolution = RefResolver()._probe_candidates(fake_store.repo_path, flathub, REF)

        assert resolution is not None
        assert resolution.commit == COMMIT
        assert resolution.path == path

    def test_collection_path_skipped_without_collection_id(
        self, fake_store: FakeStore, plain_remote: Remote
    ) -> None:
        """Without a collection ID only the remote-name layouts are probed."""
        _write(fake_store.repo_path / "refs/mirrors/org.example.Collection" / str(REF), COMMIT)

        assert RefResolver()._probe_candidates(fake_store.repo_path, plain_remote, REF) is None

    def test_remote_name_path(self, fake_store: FakeStore, plain_remote: Remote) -> None:
        """The plain remote-name layout is the last file candidate."""
        _write(fake_store.repo_path / "refs/mirrors/origin" / str(REF), COMMIT)

        resolution = RefResolver()._probe_candidates(fake_store.repo_path, plain_remote, REF)

        assert resolution is not None
        assert resolution.source == f"refs/mirrors/origin/{REF}"


class TestRevParse:
    """Tests for the rev-parse fallback."""

    def test_reached_without_mirror_directory(self, fake_store: FakeStore, flathub: Remote) -> None:
        """rev-parse is used when no transient files exist at all."""
        fake_store.refs[f"flathub:{REF}"] = COMMIT

        resolution = RefResolver().resolve(fake_store, flathub, REF)

        assert resolution is not None
        assert resolution.commit == COMMIT
        assert resolution.source == f"flathub:{REF}"
        assert resolution.path is None

    def test_reached_with_empty_mirror_directory(self, fake_store: FakeStore, flathub: Remote) -> None:
        """rev-parse is used when the mirror directory has no matching file."""
        (fake_store.repo_path / "refs/mirrors/org.flathub.Stable").mkdir(parents=True)
        fake_store.refs[str(REF)] = COMMIT

        resolution = RefResolver().resolve(fake_store, flathub, REF)

        assert resolution is not None
        assert resolution.source == str(REF)

    def test_nothing_found(self, fake_store: FakeStore, plain_remote: Remote) -> None:
        """None is returned when every strategy misses."""
        assert RefResolver().resolve(fake_store, plain_remote, REF) is None
