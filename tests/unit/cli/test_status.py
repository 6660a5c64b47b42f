"""Unit tests for the status command."""

from pathlib import Path
from unittest.mock import patch

from fakes import FakeStore
from flatmirror.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


def _invoke(args: list[str], store: FakeStore):
    with patch("flatmirror.cli.commands.status.OstreeStore", return_value=store):
        return runner.invoke(app, args)


class TestStatusCommand:
    """Tests for flatmirror status command."""

    def test_lists_refs(self, tmp_path: Path, fake_store: FakeStore) -> None:
        """status lists refs and confirms the catalog refs."""
        (fake_store.repo_path / "objects").mkdir()
        fake_store.refs.update(
            {
                "app/org.example.A/x86_64/stable": "1" * 64,
                "appstream/x86_64": "2" * 64,
                "appstream2/x86_64": "2" * 64,
            }
        )

        result = _invoke(["status", "--repo", str(fake_store.repo_path)], fake_store)

        assert result.exit_code == 0
        assert "org.example.A" in result.stdout
        assert "Catalog refs present" in result.stdout

    def test_warns_about_missing_catalog_refs(self, fake_store: FakeStore) -> None:
        """Missing catalog refs are reported as warnings."""
        (fake_store.repo_path / "objects").mkdir()

        result = _invoke(["status", "--repo", str(fake_store.repo_path)], fake_store)

        assert result.exit_code == 0
        assert "Missing catalog ref" in result.output

    def test_uninitialized_repository(self, fake_store: FakeStore) -> None:
        """A directory without a repository exits with 1."""
        result = _invoke(["status", "--repo", str(fake_store.repo_path)], fake_store)

        assert result.exit_code == 1
        assert "No repository" in result.output

    def test_missing_config_without_repo(self, tmp_path: Path) -> None:
        """Without --repo a config file is required."""
        result = runner.invoke(app, ["status", "--config", str(tmp_path / "missing.toml")])

        assert result.exit_code == 1
        assert "Config not found" in result.output
