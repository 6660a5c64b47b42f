"""Client bootstrap descriptor (``.flatpakrepo``) generation."""

import configparser
import io
import logging
from pathlib import Path

from flatmirror.models.result import AdvisoryResult

logger = logging.getLogger(__name__)


def render_descriptor(
    *,
    title: str,
    url: str,
    comment: str,
    homepage: str | None = None,
    gpg_verify: bool = False,
) -> str:
    """Render the contents of a ``.flatpakrepo`` file.

    Args:
        title: Repository title shown by clients.
        url: URL clients pull from.
        comment: One-line description.
        homepage: Optional homepage, defaults to the URL.
        gpg_verify: Whether clients should verify signatures.

    Returns:
        The descriptor as INI text.
    """
    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    parser["Flatpak Repo"] = {
        "Title": title,
        "Url": url,
        "Homepage": homepage or url,
        "Comment": comment,
        "Description": "Mirrored Flatpak packages for local network use",
        "GPGVerify": "true" if gpg_verify else "false",
    }
    buffer = io.StringIO()
    parser.write(buffer, space_around_delimiters=False)
    return buffer.getvalue()


def write_descriptor(repo_path: Path, name: str, content: str) -> AdvisoryResult:
    """Write ``<name>.flatpakrepo`` into the repository root.

    Returns:
        AdvisoryResult; a failed write is reported, not raised.
    """
    path = repo_path / f"{name}.flatpakrepo"
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        logger.warning("Could not create %s: %s", path.name, e)
        return AdvisoryResult(f"write {path.name}", ok=False, detail=str(e))
    logger.info("Created %s", path.name)
    return AdvisoryResult(f"write {path.name}", ok=True)
