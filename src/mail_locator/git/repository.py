"""Access to the history of a local git working directory.

Every operation maps to one invocation of the git executable in the working
directory. A non-zero exit status, or a failure to launch git at all, is
reported as `GitError` carrying the trimmed stderr (or the launch error).
"""

from __future__ import annotations

import re
import shutil
import subprocess
from datetime import datetime
from pathlib import Path

import structlog

from mail_locator.exceptions import GitError
from mail_locator.git.runner import CommandRunner, SubprocessRunner

logger = structlog.get_logger()


UNADVERTISED_OBJECT_ERROR = "error: Server does not allow request for unadvertised object"

# Newer servers phrase the rejection through upload-pack instead.
_UNADVERTISED_OBJECT_MARKER = "not our ref"

_REMOTE_NAME_UNSAFE = re.compile(r"[^A-Za-z0-9_\-]")

_STDOUT_LOG_LIMIT = 20
_STDERR_LOG_LIMIT = 1000


class GitRepository:
    """A local directory bound to a git checkout.

    Use `GitRepository.open` for an existing (or new) local directory and
    `GitRepository.clone` to create one from a remote.
    """

    def __init__(
        self,
        working_directory: Path,
        *,
        runner: CommandRunner | None = None,
        git_executable: str = "git",
        debug: bool = False,
    ) -> None:
        """Create a repository handle without touching the filesystem.

        Args:
            working_directory: The directory of the checkout.
            runner: Runs git commands. Defaults to a `SubprocessRunner`.
            git_executable: Name or path of the git executable.
            debug: Log every command together with its output.
        """

        self._working_directory = Path(working_directory)
        self._runner = runner or SubprocessRunner()
        self._git = git_executable
        self._debug = debug

    @classmethod
    def open(
        cls,
        working_directory: Path,
        *,
        runner: CommandRunner | None = None,
        git_executable: str = "git",
        debug: bool = False,
    ) -> GitRepository:
        """Open `working_directory` as a git repository, creating it if needed.

        Raises:
            GitError: If the path is not (and cannot become) a directory, or if
                `git init` fails.
        """

        repo = cls(working_directory, runner=runner, git_executable=git_executable, debug=debug)
        repo.initialize()
        return repo

    @classmethod
    def clone(
        cls,
        remote_url: str,
        destination: Path,
        *,
        runner: CommandRunner | None = None,
        git_executable: str = "git",
        debug: bool = False,
    ) -> GitRepository:
        """Clone `remote_url` into `destination`, which must not exist yet.

        A failed clone removes the destination directory again before the
        error is raised.

        Raises:
            GitError: If the destination exists or cloning fails.
        """

        destination = Path(destination)
        if destination.exists():
            raise GitError(f"{destination} already exists")

        try:
            destination.mkdir(parents=True)
        except OSError as exc:
            raise GitError(f"Couldn't create destination directory: {destination}") from exc

        repo = cls(destination, runner=runner, git_executable=git_executable, debug=debug)
        try:
            repo._run("clone", remote_url, str(destination.resolve()))
            repo.initialize()
        except GitError:
            _remove_failed_clone(destination)
            raise

        logger.info("git_repository_cloned", remote_url=remote_url, destination=str(destination))
        return repo

    @property
    def working_directory(self) -> Path:
        """The directory of this checkout."""
        return self._working_directory

    def initialize(self) -> None:
        """Make sure the working directory exists and is a git repository."""

        if not self._working_directory.is_dir():
            try:
                self._working_directory.mkdir(parents=True)
            except OSError as exc:
                raise GitError(f"{self._working_directory} is not a directory") from exc

        if not (self._working_directory / ".git").exists():
            self._run("init")
            logger.info("git_repository_initialized", path=str(self._working_directory))

    def add_remote(self, name: str, url: str) -> None:
        self._run("remote", "add", name, url)

    def list_remotes(self) -> set[str]:
        """Return the names of all remotes of this repository."""

        output = self._run("remote")
        return {line.strip() for line in output.splitlines() if line.strip()}

    @staticmethod
    def create_remote_name(url: str) -> str:
        """Derive a remote name from a URL.

        The scheme (everything up to the first colon, plus following slashes)
        and a trailing ``.git`` are dropped; every other character that is not
        alphanumeric, ``_`` or ``-`` becomes ``_``.
        """

        colon = url.find(":")
        if colon != -1:
            url = url[colon + 1 :].lstrip("/")

        if url.endswith(".git"):
            url = url[: -len(".git")]

        return _REMOTE_NAME_UNSAFE.sub("_", url)

    def fetch(self, remote_name: str, commit_or_branch: str | None = None) -> None:
        """Fetch a remote.

        With `commit_or_branch`, only the history leading up to that ref is
        requested. Servers that refuse to hand out unadvertised objects are
        handled by falling back to fetching the complete remote.
        """

        if commit_or_branch is None:
            self._run("fetch", remote_name)
            return

        try:
            self._run("fetch", remote_name, commit_or_branch)
        except GitError as exc:
            if not _is_unadvertised_object_error(str(exc)):
                raise
            logger.warning(
                "git_fetch_ref_unsupported",
                remote=remote_name,
                ref=commit_or_branch,
                error=str(exc),
            )
            self.fetch(remote_name)

    def checkout(self, ref: str) -> None:
        """Force the working tree to `ref` (commit, branch or tag)."""
        self._run("checkout", "--force", ref)

    def checkout_remote_branch(self, remote_name: str, branch: str) -> None:
        self._run("checkout", "--force", f"{remote_name}/{branch}")

    def checkout_path(self, ref: str, path: str | Path) -> None:
        """Restore only `path` (relative to the working directory) as of `ref`.

        Raises:
            GitError: If `path` does not exist at `ref`.
        """
        self._run("checkout", "--force", ref, "--", str(path))

    def list_all_commits(self) -> list[str]:
        """List the commits reachable from HEAD, ordered by author date, oldest first."""

        output = self._run("log", "--format=format:%H", "--author-date-order", "--reverse")
        return [line.strip() for line in output.splitlines() if line.strip()]

    def commit_before(self, remote_name: str, branch: str, date: str | datetime) -> str | None:
        """Return the newest commit of `remote_name/branch` not after `date`.

        Returns:
            The commit hash, or None if the branch has no commit that old.
        """

        if isinstance(date, datetime):
            date = date.isoformat()

        output = self._run("rev-list", "-n", "1", f"--before={date}", f"{remote_name}/{branch}")
        return output or None

    def last_commit_of_branch(self, remote_name: str, branch: str) -> str:
        return self._run("rev-list", "-n", "1", f"{remote_name}/{branch}")

    def contains_remote_branch(self, remote_name: str, branch: str) -> bool:
        output = self._run("branch", "-r")
        branches = {line.strip() for line in output.splitlines()}
        return f"{remote_name}/{branch}" in branches

    def contains_commit(self, ref: str) -> bool:
        """Check whether `ref` names a commit in this repository.

        Any failure, including git not being runnable, counts as "not contained".
        """

        try:
            self._run("cat-file", "-e", f"{ref}^{{commit}}")
        except GitError:
            return False
        return True

    def _run(self, *args: str) -> str:
        command = [self._git, *args]
        if self._debug:
            logger.debug("git_command", command=command, cwd=str(self._working_directory))

        try:
            result = self._runner.run(command, self._working_directory)
        except (OSError, subprocess.SubprocessError) as exc:
            raise GitError(str(exc), command=command) from exc

        stdout = result.stdout.strip()
        stderr = result.stderr.strip()

        if self._debug:
            _log_with_limit("git_stdout", stdout, _STDOUT_LOG_LIMIT)
            _log_with_limit("git_stderr", stderr, _STDERR_LOG_LIMIT)

        if not result.ok:
            raise GitError(stderr, command=command, returncode=result.returncode)

        return stdout


def _is_unadvertised_object_error(message: str) -> bool:
    return message.startswith(UNADVERTISED_OBJECT_ERROR) or _UNADVERTISED_OBJECT_MARKER in message


def _log_with_limit(event: str, output: str, limit: int) -> None:
    if output.count("\n") > limit:
        logger.debug(event, output="<too long>")
    else:
        logger.debug(event, output=output)


def _remove_failed_clone(destination: Path) -> None:
    try:
        shutil.rmtree(destination)
    except OSError as exc:
        logger.warning("git_clone_cleanup_failed", destination=str(destination), error=str(exc))
