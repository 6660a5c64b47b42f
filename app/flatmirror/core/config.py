"""Mirror configuration and settings.

This module provides the configuration models and I/O functions for
flatmirror. The configuration names the local repository, the remotes to
mirror from and the tuning knobs of a mirroring pass.

Configuration is stored in ~/.config/flatmirror/config.toml
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from flatmirror.core.paths import get_config_path
from flatmirror.models.package import Remote


class RemoteConfig(BaseModel):
    """An upstream remote to mirror from.

    Attributes:
        name: Remote name registered in the local store.
        url: Base URL of the remote repository.
        collection_id: Optional collection ID of the remote.
    """

    model_config = ConfigDict(extra="forbid")

    name: Annotated[str, Field(min_length=1, description="Remote name")]
    url: Annotated[str, Field(min_length=1, description="Remote base URL")]
    collection_id: Annotated[
        str | None,
        Field(description="Collection ID used for transient mirror refs"),
    ] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject names that cannot be used as ref-spec prefixes."""
        if ":" in v or "/" in v or v.strip() != v:
            msg = f"Invalid remote name: {v!r}"
            raise ValueError(msg)
        return v

    def to_remote(self) -> Remote:
        """Convert to the immutable Remote model."""
        return Remote(name=self.name, url=self.url.rstrip("/"), collection_id=self.collection_id)


class RepositoryConfig(BaseModel):
    """Local repository settings.

    Attributes:
        path: Store root directory.
        name: Repository name, used for the descriptor file.
        title: Title published in the summary and descriptor.
        comment: Comment published in the summary and descriptor.
        homepage: Homepage published in the summary and descriptor.
        url: Public URL clients use to reach the repository.
        mode: OSTree repository mode used on init.
        arch: Architecture to mirror.
        default_branch: Branch assumed when a catalog entry has no bundle ref.
        gpg_verify: Whether remotes are added with GPG verification.
    """

    model_config = ConfigDict(extra="forbid")

    path: Annotated[Path, Field(description="Store root directory")] = Path("repo")
    name: Annotated[str, Field(min_length=1, description="Repository name")] = "flatmirror"
    title: Annotated[str | None, Field(description="Repository title")] = None
    comment: Annotated[str, Field(description="Repository comment")] = (
        "Mirrored Flatpak Repository"
    )
    homepage: Annotated[str | None, Field(description="Repository homepage")] = None
    url: Annotated[str | None, Field(description="Public repository URL")] = None
    mode: Annotated[str, Field(description="OSTree repository mode")] = "archive-z2"
    arch: Annotated[str, Field(min_length=1, description="Architecture to mirror")] = "x86_64"
    default_branch: Annotated[str, Field(min_length=1, description="Default branch")] = "stable"
    gpg_verify: Annotated[bool, Field(description="Verify remotes with GPG")] = False

    @property
    def effective_title(self) -> str:
        """Title to publish, falling back to the repository name."""
        return self.title or self.name


class MirrorSettings(BaseModel):
    """Tuning of a mirroring pass.

    Attributes:
        max_per_remote: Mirror only the first N components of each remote (0 = all).
        pull_workers: Number of concurrent pulls.
        pull_timeout: Timeout in seconds for a single pull.
        include_sdk: Also mirror the SDK of each component.
        integrated_update: Use `flatpak build-update-repo` for metadata.
        update_catalog: Let the integrated update regenerate the catalog refs.
    """

    model_config = ConfigDict(extra="forbid")

    max_per_remote: Annotated[int, Field(ge=0, description="Component cap per remote")] = 0
    pull_workers: Annotated[int, Field(ge=1, le=32, description="Concurrent pulls")] = 4
    pull_timeout: Annotated[int, Field(ge=60, description="Pull timeout in seconds")] = 3600
    include_sdk: Annotated[bool, Field(description="Mirror SDK runtimes")] = False
    integrated_update: Annotated[bool, Field(description="Use flatpak build-update-repo")] = True
    update_catalog: Annotated[bool, Field(description="Regenerate catalog on update")] = True


class MirrorConfig(BaseModel):
    """Complete flatmirror configuration."""

    model_config = ConfigDict(extra="forbid")

    repository: Annotated[RepositoryConfig, Field(default_factory=RepositoryConfig)]
    mirror: Annotated[MirrorSettings, Field(default_factory=MirrorSettings)]
    remotes: Annotated[list[RemoteConfig], Field(default_factory=list)]

    @field_validator("remotes")
    @classmethod
    def validate_unique_remotes(cls, v: list[RemoteConfig]) -> list[RemoteConfig]:
        """Validate that remote names are unique."""
        names = [r.name for r in v]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            msg = f"Duplicate remote names: {sorted(duplicates)}"
            raise ValueError(msg)
        return v

    def get_remotes(self) -> list[Remote]:
        """Return the configured remotes as immutable Remote objects."""
        return [r.to_remote() for r in self.remotes]


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> MirrorConfig:
    """Load configuration from a TOML file.

    Relative repository paths are resolved against the directory holding
    the config file.

    Args:
        path: Path to the config file. If None, uses default config path.

    Returns:
        Validated MirrorConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        config = MirrorConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e

    if not config.repository.path.is_absolute():
        config.repository.path = config_path.parent / config.repository.path
    return config


def save_config(config: MirrorConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The MirrorConfig object to save.
        path: Path to save the config. If None, uses default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    # Ensure parent directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = _config_to_dict(config)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def _config_to_dict(config: MirrorConfig) -> dict[str, Any]:
    """Convert MirrorConfig to a dictionary for TOML serialization.

    TOML has no null, so unset optional values are left out.

    Args:
        config: The MirrorConfig to convert.

    Returns:
        Dictionary ready for TOML serialization.
    """
    data = config.model_dump(mode="json", exclude_none=True)
    return {
        "repository": data["repository"],
        "mirror": data["mirror"],
        "remotes": data["remotes"],
    }


def default_config() -> MirrorConfig:
    """Create a default configuration mirroring Flathub.

    Returns:
        MirrorConfig with a single Flathub remote.
    """
    return MirrorConfig(
        remotes=[
            RemoteConfig(
                name="flathub",
                url="https://dl.flathub.org/repo",
                collection_id="org.flathub.Stable",
            )
        ]
    )
