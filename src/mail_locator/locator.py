"""Locates variables in mailing list archives.

A mail source is a git repository in which every commit replaces one tracked
file with the next mail of the list (as done by public-inbox archives). The
locator walks all commits of every source, oldest first, and reports each
variable found in a mail body together with the mail's identifier and the
number of occurrences.
"""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path
from re import Pattern

import structlog

from mail_locator.config import Settings
from mail_locator.exceptions import ConfigurationError, GitError
from mail_locator.git import CommandRunner, GitRepository, SubprocessRunner
from mail_locator.mail import parse_mail, to_locations
from mail_locator.models import VariableMailLocation
from mail_locator.utils import ProgressLogger, retry_on_failure

logger = structlog.get_logger()

ResultSink = Callable[[VariableMailLocation], None]


class VariableInMailingListLocator:
    """Finds variables in the mails of one or more git-backed mail archives."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        runner: CommandRunner | None = None,
        result_sink: ResultSink | None = None,
    ) -> None:
        """Initialize the locator.

        Args:
            settings: Application settings. If None, uses default settings.
            runner: Runs git commands. If None, git is run as a subprocess.
            result_sink: Called once per result, in emission order.

        Raises:
            ConfigurationError: If no mail source is configured.
        """
        from mail_locator.config import get_settings

        self.settings = settings or get_settings()

        self._mail_sources = list(self.settings.mail_sources)
        if not self._mail_sources:
            raise ConfigurationError("No mail source given in mail_sources")

        self._variable_regex = self.settings.variable_regex
        self._url_prefix = self.settings.url_prefix

        self._runner = runner or SubprocessRunner(timeout=self.settings.git_timeout)
        self._result_sink = result_sink
        self._results: list[VariableMailLocation] = []

        logger.info(
            "mail_locator_initialized",
            mail_sources=len(self._mail_sources),
            variable_regex=self._variable_regex.pattern,
            url_prefix=self._url_prefix,
        )

    @property
    def mail_sources(self) -> list[str]:
        return list(self._mail_sources)

    @property
    def variable_regex(self) -> Pattern[str]:
        return self._variable_regex

    @property
    def url_prefix(self) -> str:
        return self._url_prefix

    def execute(self) -> list[VariableMailLocation]:
        """Crawl all configured mail sources.

        A source that cannot be opened or cloned is logged and skipped; the
        remaining sources are still crawled.

        Returns:
            All found locations, in emission order.
        """

        self._results = []
        progress = ProgressLogger("mail_locator_sources", len(self._mail_sources))

        for mail_source in self._mail_sources:
            if Path(mail_source).is_dir():
                self._crawl_local(Path(mail_source))
            else:
                self._crawl_remote(mail_source)
            progress.processed_one()

        progress.close()
        logger.info("mail_locator_finished", results=len(self._results))
        return list(self._results)

    def _crawl_local(self, path: Path) -> None:
        try:
            repo = GitRepository.open(
                path,
                runner=self._runner,
                git_executable=self.settings.git_executable,
                debug=self.settings.debug,
            )
        except GitError as exc:
            logger.exception("mail_source_invalid", source=str(path), error=str(exc))
            return

        self._crawl(repo)

    def _crawl_remote(self, url: str) -> None:
        clone_root = self.settings.clone_dir
        try:
            if clone_root is not None:
                clone_root.mkdir(parents=True, exist_ok=True)
            temp_dir = Path(tempfile.mkdtemp(prefix="cloned_mail_source", dir=clone_root))
        except OSError as exc:
            logger.exception(
                "mail_source_clone_failed",
                source=url,
                clone_dir=str(clone_root),
                error=str(exc),
            )
            return

        try:
            clone = retry_on_failure(
                max_retries=self.settings.max_retries,
                delay=self.settings.retry_delay,
                exceptions=(GitError,),
            )(GitRepository.clone)
            try:
                repo = clone(
                    url,
                    temp_dir / "repo.git",
                    runner=self._runner,
                    git_executable=self.settings.git_executable,
                    debug=self.settings.debug,
                )
            except GitError as exc:
                logger.exception("mail_source_clone_failed", source=url, error=str(exc))
                return

            self._crawl(repo)
        finally:
            try:
                shutil.rmtree(temp_dir)
            except OSError as exc:
                logger.warning("temporary_clone_cleanup_failed", path=str(temp_dir), error=str(exc))

    def _crawl(self, repo: GitRepository) -> None:
        default_branch = self.settings.default_branch

        try:
            repo.checkout(default_branch)
            commits = repo.list_all_commits()
        except GitError as exc:
            logger.exception(
                "mail_source_initialization_failed",
                path=str(repo.working_directory),
                error=str(exc),
            )
            return

        progress = ProgressLogger("mail_locator_mails", len(commits))
        try:
            for commit in commits:
                self._process_commit(repo, commit)
                progress.processed_one()
        finally:
            progress.close()
            # leave the checkout on the default branch
            try:
                repo.checkout(default_branch)
            except GitError as exc:
                logger.warning(
                    "mail_source_reset_failed",
                    path=str(repo.working_directory),
                    branch=default_branch,
                    error=str(exc),
                )

    def _process_commit(self, repo: GitRepository, commit: str) -> None:
        mail_file = self.settings.mail_file

        try:
            # only the mail file is needed, which is faster than a full checkout
            repo.checkout_path(commit, mail_file)
        except GitError as exc:
            logger.exception("mail_checkout_failed", commit=commit, error=str(exc))
            return

        try:
            with (repo.working_directory / mail_file).open(encoding="utf-8", errors="replace") as fh:
                mail = parse_mail(fh, self._variable_regex)
        except OSError as exc:
            logger.exception("mail_read_failed", commit=commit, error=str(exc))
            return

        if mail is None:
            logger.debug("mail_without_message_id", commit=commit)
            return

        for location in to_locations(mail, self._url_prefix):
            self._add_result(location)

    def _add_result(self, location: VariableMailLocation) -> None:
        self._results.append(location)
        if self._result_sink is not None:
            self._result_sink(location)
