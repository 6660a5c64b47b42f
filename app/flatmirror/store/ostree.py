"""OSTree repository store.

Wraps the `ostree` and `flatpak` command-line tools behind a narrow
interface. The store path is always passed explicitly on the command line;
no environment variables are used to redirect the tools.
"""

import logging
import subprocess
from pathlib import Path

from flatmirror.models.package import Remote
from flatmirror.utils.shell import CommandResult, command_exists, run_command

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when a store command fails.

    Attributes:
        command: The command that failed.
        diagnostic: Error output of the command.
    """

    def __init__(
        self, message: str, command: list[str] | None = None, diagnostic: str = ""
    ) -> None:
        super().__init__(message)
        self.command = command or []
        self.diagnostic = diagnostic


class StoreInitError(StoreError):
    """Raised when the repository cannot be initialized or prepared."""


class OstreeStore:
    """Command interface to a local OSTree repository.

    Attributes:
        repo_path: Root directory of the repository.
        pull_timeout: Timeout in seconds for pull operations.
    """

    # Timeout for quick metadata commands
    _COMMAND_TIMEOUT: float = 60.0

    # Timeout for summary and catalog regeneration
    _UPDATE_TIMEOUT: float = 600.0

    def __init__(self, repo_path: Path, pull_timeout: float = 3600.0) -> None:
        """Initialize the store.

        Args:
            repo_path: Root directory of the repository.
            pull_timeout: Timeout in seconds for pull operations.
        """
        self.repo_path = Path(repo_path)
        self.pull_timeout = pull_timeout

    @property
    def _repo_arg(self) -> str:
        return f"--repo={self.repo_path}"

    def is_available(self) -> bool:
        """Check if the ostree CLI is available."""
        return command_exists("ostree")

    def has_flatpak(self) -> bool:
        """Check if the flatpak CLI is available."""
        return command_exists("flatpak")

    def is_initialized(self) -> bool:
        """Check if the repository has an object store."""
        return (self.repo_path / "objects").is_dir()

    def init(self, mode: str = "archive-z2") -> bool:
        """Initialize the repository if it does not exist yet.

        Args:
            mode: OSTree repository mode.

        Returns:
            True if the repository was created, False if it already existed.

        Raises:
            StoreInitError: If initialization fails.
        """
        if self.is_initialized():
            logger.debug("Repository already initialized: %s", self.repo_path)
            return False

        logger.info("Initializing repository: %s", self.repo_path)
        try:
            self._run(["ostree", "init", self._repo_arg, f"--mode={mode}"])
        except StoreError as e:
            msg = f"Failed to initialize repository {self.repo_path}: {e}"
            raise StoreInitError(msg, e.command, e.diagnostic) from e
        return True

    def add_remote(self, remote: Remote, gpg_verify: bool = False) -> None:
        """Register a remote in the repository, unless it exists already.

        Args:
            remote: Remote to register.
            gpg_verify: Whether pulls from the remote verify GPG signatures.

        Raises:
            StoreError: If the remote cannot be added.
        """
        args = ["ostree", "remote", "add", self._repo_arg, "--if-not-exists"]
        if not gpg_verify:
            args.append("--no-gpg-verify")
        if remote.collection_id:
            args.append(f"--collection-id={remote.collection_id}")
        args.extend([remote.name, remote.url])
        self._run(args)

    def pull(self, remote: str, refspec: str) -> CommandResult:
        """Pull a ref from a remote in mirror mode.

        Mirror mode deposits the content without establishing the
        permanent local ref; the caller resolves and promotes it.

        Args:
            remote: Remote name.
            refspec: Ref to pull (e.g., 'app/org.gnome.Calculator/x86_64/stable').

        Returns:
            CommandResult of the pull.

        Raises:
            StoreError: If the pull fails.
        """
        args = ["ostree", "pull", self._repo_arg, "--mirror", remote, refspec]
        logger.info("Pulling %s from %s", refspec, remote)
        result = self._run(args, timeout=self.pull_timeout)
        if result.stderr.strip() and "Receiving" not in result.stderr:
            logger.debug("Pull stderr for %s: %s", refspec, result.stderr.strip())
        return result

    def list_refs(self) -> list[str]:
        """List all refs in the repository.

        Raises:
            StoreError: If the refs cannot be listed.
        """
        result = self._run(["ostree", "refs", self._repo_arg])
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def create_ref(self, name: str, commit: str, force: bool = True) -> None:
        """Create a ref pointing at a commit.

        Args:
            name: Ref name.
            commit: Target commit checksum.
            force: Overwrite the ref if it already exists.

        Raises:
            StoreError: If the store rejects the ref.
        """
        args = ["ostree", "refs", self._repo_arg, f"--create={name}", commit]
        if force:
            args.append("--force")
        self._run(args)

    def delete_ref(self, refspec: str) -> None:
        """Delete a ref.

        Raises:
            StoreError: If the ref cannot be deleted (including when absent).
        """
        self._run(["ostree", "refs", self._repo_arg, "--delete", refspec])

    def rev_parse(self, refspec: str) -> str:
        """Resolve a refspec to a commit checksum.

        Raises:
            StoreError: If the refspec does not resolve.
        """
        result = self._run(["ostree", "rev-parse", self._repo_arg, refspec])
        commit = result.stdout.strip()
        if not commit:
            msg = f"rev-parse returned no commit for {refspec}"
            raise StoreError(msg)
        return commit

    def update_summary(self) -> None:
        """Recompute the repository summary.

        Raises:
            StoreError: If the summary cannot be regenerated.
        """
        self._run(["ostree", "summary", self._repo_arg, "--update"], timeout=self._UPDATE_TIMEOUT)

    def add_summary_metadata(self, key: str, value: str) -> None:
        """Add a string key/value pair to the summary metadata.

        Args:
            key: Metadata key (e.g., 'xa.title').
            value: String value.

        Raises:
            StoreError: If the metadata cannot be added.
        """
        self._run(
            [
                "ostree",
                "summary",
                self._repo_arg,
                f"--add-metadata={key}={gvariant_string(value)}",
            ]
        )

    def integrated_repo_update(
        self,
        *,
        update_catalog: bool = True,
        title: str | None = None,
        comment: str | None = None,
        homepage: str | None = None,
    ) -> CommandResult:
        """Run `flatpak build-update-repo` on the repository.

        This recomputes the summary and, with update_catalog, commits the
        catalog refs in one step.

        Raises:
            StoreError: If the update fails or flatpak is missing.
        """
        args = ["flatpak", "build-update-repo"]
        if not update_catalog:
            args.append("--no-update-appstream")
        if title:
            args.append(f"--title={title}")
        if comment:
            args.append(f"--comment={comment}")
        if homepage:
            args.append(f"--homepage={homepage}")
        args.append(str(self.repo_path))
        return self._run(args, timeout=self._UPDATE_TIMEOUT)

    def commit_tree(self, branch: str, subject: str, source_dir: Path) -> str:
        """Commit a directory tree to a branch.

        Unchanged trees do not create a new commit.

        Args:
            branch: Branch (ref) to commit to.
            subject: Commit subject.
            source_dir: Directory whose contents form the tree.

        Returns:
            Checksum of the branch head after the commit.

        Raises:
            StoreError: If the commit fails.
        """
        result = self._run(
            [
                "ostree",
                "commit",
                self._repo_arg,
                f"--branch={branch}",
                f"--subject={subject}",
                "--skip-if-unchanged",
                str(source_dir),
            ],
            timeout=self._UPDATE_TIMEOUT,
        )
        commit = result.stdout.strip()
        return commit or self.rev_parse(branch)

    def _run(self, args: list[str], timeout: float | None = None) -> CommandResult:
        """Run a store command and raise StoreError on failure.

        Args:
            args: Command and arguments.
            timeout: Timeout override in seconds.

        Returns:
            CommandResult of a successful command.

        Raises:
            StoreError: On non-zero exit, timeout or missing executable.
        """
        logger.debug("Running: %s", " ".join(args))
        try:
            result = run_command(args, timeout=timeout or self._COMMAND_TIMEOUT)
        except subprocess.TimeoutExpired as e:
            msg = f"{args[0]} {args[1]} timed out after {e.timeout:.0f}s"
            raise StoreError(msg, args) from e
        except OSError as e:
            msg = f"Cannot run {args[0]}: {e}"
            raise StoreError(msg, args) from e

        if not result.success:
            msg = f"{args[0]} {args[1]} failed: {result.diagnostic}"
            raise StoreError(msg, args, result.diagnostic)
        return result


def gvariant_string(value: str) -> str:
    """Format a Python string as a GVariant text-format string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"
