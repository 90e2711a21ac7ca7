"""Custom exceptions for Mail Variable Locator."""

from __future__ import annotations

from collections.abc import Sequence


class MailLocatorError(Exception):
    """Base exception for all Mail Variable Locator errors."""


class GitError(MailLocatorError):
    """Exception raised when a git command cannot be run or exits non-zero.

    The message is the trimmed stderr of git, or the launch error if git could
    not be started at all.
    """

    def __init__(
        self,
        message: str,
        *,
        command: Sequence[str] | None = None,
        returncode: int | None = None,
    ) -> None:
        super().__init__(message)
        self.command = list(command) if command is not None else None
        self.returncode = returncode


class ConfigurationError(MailLocatorError):
    """Exception raised for configuration related errors."""
