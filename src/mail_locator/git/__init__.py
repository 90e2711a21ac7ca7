"""Git history access.

This package wraps the git executable behind a small, typed interface used to
walk the snapshots of a mail archive.
"""

from .repository import GitRepository
from .runner import CommandResult, CommandRunner, SubprocessRunner

__all__ = ["CommandResult", "CommandRunner", "GitRepository", "SubprocessRunner"]
