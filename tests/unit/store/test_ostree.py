"""Unit tests for the OSTree store command interface."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from flatmirror.models.package import Remote
from flatmirror.store.ostree import OstreeStore, StoreError, StoreInitError, gvariant_string
from flatmirror.utils.shell import CommandResult

OK = CommandResult(stdout="", stderr="", returncode=0)


@pytest.fixture
def store(tmp_path: Path) -> OstreeStore:
    """Store rooted at a temporary directory."""
    return OstreeStore(tmp_path / "repo", pull_timeout=120)


def _args(mock_run: MagicMock) -> list[str]:
    return mock_run.call_args.args[0]


class TestAvailability:
    """Tests for tool and repository checks."""

    @patch("flatmirror.store.ostree.command_exists", return_value=True)
    def test_is_available(self, mock_exists: MagicMock, store: OstreeStore) -> None:
        """is_available checks for the ostree executable."""
        assert store.is_available()
        mock_exists.assert_called_once_with("ostree")

    @patch("flatmirror.store.ostree.command_exists", return_value=False)
    def test_has_flatpak(self, mock_exists: MagicMock, store: OstreeStore) -> None:
        """has_flatpak checks for the flatpak executable."""
        assert not store.has_flatpak()
        mock_exists.assert_called_once_with("flatpak")

    def test_is_initialized(self, store: OstreeStore) -> None:
        """A repository is initialized once it has an object store."""
        assert not store.is_initialized()
        (store.repo_path / "objects").mkdir(parents=True)
        assert store.is_initialized()


class TestInit:
    """Tests for repository initialization."""

    @patch("flatmirror.store.ostree.run_command", return_value=OK)
    def test_init_new_repository(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """init runs ostree init with the requested mode."""
        assert store.init("archive-z2") is True
        assert _args(mock_run) == [
            "ostree",
            "init",
            f"--repo={store.repo_path}",
            "--mode=archive-z2",
        ]

    @patch("flatmirror.store.ostree.run_command")
    def test_init_existing_repository(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """init does nothing when the repository exists."""
        (store.repo_path / "objects").mkdir(parents=True)
        assert store.init() is False
        mock_run.assert_not_called()

    @patch(
        "flatmirror.store.ostree.run_command",
        return_value=CommandResult(stdout="", stderr="Permission denied", returncode=1),
    )
    def test_init_failure(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """A failing init raises StoreInitError with the diagnostic."""
        with pytest.raises(StoreInitError, match="Permission denied") as exc_info:
            store.init()
        assert exc_info.value.diagnostic == "Permission denied"


class TestRemotes:
    """Tests for remote registration."""

    @patch("flatmirror.store.ostree.run_command", return_value=OK)
    def test_add_remote_with_collection(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """Remotes are added idempotently without GPG verification by default."""
        remote = Remote("flathub", "https://dl.flathub.org/repo", "org.flathub.Stable")

        store.add_remote(remote)

        args = _args(mock_run)
        assert args[:3] == ["ostree", "remote", "add"]
        assert "--if-not-exists" in args
        assert "--no-gpg-verify" in args
        assert "--collection-id=org.flathub.Stable" in args
        assert args[-2:] == ["flathub", "https://dl.flathub.org/repo"]

    @patch("flatmirror.store.ostree.run_command", return_value=OK)
    def test_add_remote_with_gpg(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """GPG verification keeps the default ostree behavior."""
        store.add_remote(Remote("origin", "https://example.org/repo"), gpg_verify=True)

        args = _args(mock_run)
        assert "--no-gpg-verify" not in args
        assert not any(a.startswith("--collection-id") for a in args)


class TestPull:
    """Tests for mirror-mode pulls."""

    @patch("flatmirror.store.ostree.run_command", return_value=OK)
    def test_pull_uses_mirror_mode(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """pull passes --mirror and the pull timeout."""
        store.pull("flathub", "app/org.gnome.Calculator/x86_64/stable")

        assert _args(mock_run) == [
            "ostree",
            "pull",
            f"--repo={store.repo_path}",
            "--mirror",
            "flathub",
            "app/org.gnome.Calculator/x86_64/stable",
        ]
        assert mock_run.call_args.kwargs["timeout"] == 120

    @patch(
        "flatmirror.store.ostree.run_command",
        return_value=CommandResult(stdout="", stderr="No such branch", returncode=1),
    )
    def test_pull_failure(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """A failed pull raises StoreError naming the command."""
        with pytest.raises(StoreError, match="ostree pull failed: No such branch"):
            store.pull("flathub", "app/missing/x86_64/stable")

    @patch(
        "flatmirror.store.ostree.run_command",
        side_effect=subprocess.TimeoutExpired(cmd=["ostree"], timeout=120),
    )
    def test_pull_timeout(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """A timeout becomes a StoreError."""
        with pytest.raises(StoreError, match="timed out after 120s"):
            store.pull("flathub", "app/a.b.C/x86_64/stable")

    @patch("flatmirror.store.ostree.run_command", side_effect=FileNotFoundError("ostree"))
    def test_missing_executable(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """A missing executable becomes a StoreError."""
        with pytest.raises(StoreError, match="Cannot run ostree"):
            store.pull("flathub", "app/a.b.C/x86_64/stable")


class TestRefs:
    """Tests for ref listing, creation and resolution."""

    @patch(
        "flatmirror.store.ostree.run_command",
        return_value=CommandResult(
            stdout="app/a.b.C/x86_64/stable\n\nappstream2/x86_64\n", stderr="", returncode=0
        ),
    )
    def test_list_refs(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """list_refs returns one entry per non-empty line."""
        assert store.list_refs() == ["app/a.b.C/x86_64/stable", "appstream2/x86_64"]

    @patch("flatmirror.store.ostree.run_command", return_value=OK)
    def test_create_ref_forced(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """create_ref overwrites existing refs by default."""
        store.create_ref("app/a.b.C/x86_64/stable", "abc123")

        args = _args(mock_run)
        assert "--create=app/a.b.C/x86_64/stable" in args
        assert args[-2:] == ["abc123", "--force"]

    @patch("flatmirror.store.ostree.run_command", return_value=OK)
    def test_create_ref_unforced(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """force=False leaves out --force."""
        store.create_ref("app/a.b.C/x86_64/stable", "abc123", force=False)
        assert "--force" not in _args(mock_run)

    @patch("flatmirror.store.ostree.run_command", return_value=OK)
    def test_delete_ref(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """delete_ref passes the refspec to ostree refs --delete."""
        store.delete_ref("flathub:app/a.b.C/x86_64/stable")
        assert _args(mock_run)[-2:] == ["--delete", "flathub:app/a.b.C/x86_64/stable"]

    @patch(
        "flatmirror.store.ostree.run_command",
        return_value=CommandResult(stdout="abc123\n", stderr="", returncode=0),
    )
    def test_rev_parse(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """rev_parse returns the stripped checksum."""
        assert store.rev_parse("flathub:app/a.b.C/x86_64/stable") == "abc123"

    @patch("flatmirror.store.ostree.run_command", return_value=OK)
    def test_rev_parse_empty_output(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """Empty rev-parse output is an error."""
        with pytest.raises(StoreError, match="no commit"):
            store.rev_parse("app/a.b.C/x86_64/stable")


class TestMetadata:
    """Tests for summary and catalog commands."""

    @patch("flatmirror.store.ostree.run_command", return_value=OK)
    def test_update_summary(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """update_summary runs ostree summary --update."""
        store.update_summary()
        assert _args(mock_run) == ["ostree", "summary", f"--repo={store.repo_path}", "--update"]

    @patch("flatmirror.store.ostree.run_command", return_value=OK)
    def test_add_summary_metadata(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """Metadata values are written as GVariant strings."""
        store.add_summary_metadata("xa.title", "Bob's Mirror")
        assert _args(mock_run)[-1] == "--add-metadata=xa.title='Bob\\'s Mirror'"

    @patch("flatmirror.store.ostree.run_command", return_value=OK)
    def test_integrated_repo_update(self, mock_run: MagicMock, store: OstreeStore) -> None:
        """integrated_repo_update passes metadata options and the repo path."""
        store.integrated_repo_update(title="Mirror", comment="Local", homepage=None)

        args = _args(mock_run)
        assert args[:2] == ["flatpak", "build-update-repo"]
        assert "--title=Mirror" in args
        assert "--comment=Local" in args
        assert "--no-update-appstream" not in args
        assert not any(a.startswith("--homepage") for a in args)
        assert args[-1] == str(store.repo_path)

    @patch("flatmirror.store.ostree.run_command", return_value=OK)
    def test_integrated_repo_update_without_catalog(
        self, mock_run: MagicMock, store: OstreeStore
    ) -> None:
        """update_catalog=False disables catalog regeneration."""
        store.integrated_repo_update(update_catalog=False)
        assert "--no-update-appstream" in _args(mock_run)

    @patch(
        "flatmirror.store.ostree.run_command",
        return_value=CommandResult(stdout="deadbeef\n", stderr="", returncode=0),
    )
    def test_commit_tree(self, mock_run: MagicMock, store: OstreeStore, tmp_path: Path) -> None:
        """commit_tree commits with --skip-if-unchanged and returns the checksum."""
        commit = store.commit_tree("appstream2/x86_64", "Update appstream", tmp_path)

        assert commit == "deadbeef"
        args = _args(mock_run)
        assert "--branch=appstream2/x86_64" in args
        assert "--subject=Update appstream" in args
        assert "--skip-if-unchanged" in args
        assert args[-1] == str(tmp_path)

    @patch("flatmirror.store.ostree.run_command")
    def test_commit_tree_unchanged(
        self, mock_run: MagicMock, store: OstreeStore, tmp_path: Path
    ) -> None:
        """An unchanged tree resolves the existing branch head."""
        mock_run.side_effect = [OK, CommandResult(stdout="cafe\n", stderr="", returncode=0)]

        assert store.commit_tree("appstream/x86_64", "Update appstream", tmp_path) == "cafe"
        assert mock_run.call_args_list[1].args[0][:2] == ["ostree", "rev-parse"]


class TestGvariantString:
    """Tests for gvariant_string function."""

    def test_plain(self) -> None:
        """Plain strings are single-quoted."""
        assert gvariant_string("Flathub Mirror") == "'Flathub Mirror'"

    def test_escapes(self) -> None:
        """Quotes and backslashes are escaped."""
        assert gvariant_string("a'b\\c") == "'a\\'b\\\\c'"
