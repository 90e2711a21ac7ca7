"""Fixtures that build a real git mail archive."""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

import pytest

# Author and committer dates of the four archive commits, oldest first.
COMMIT_DATES = [
    "2019-06-04T12:18:42+02:00",
    "2019-06-04T13:08:11+02:00",
    "2019-06-04T13:09:38+02:00",
    "2019-06-04T13:10:02+02:00",
]


@dataclass(frozen=True)
class MailArchive:
    """A local git repository holding one mail per commit in the file `m`."""

    path: Path
    commits: list[str]
    mails: list[str]

    @property
    def url(self) -> str:
        return f"file://{self.path}"


def _git(cwd: Path, *args: str, env: dict[str, str] | None = None) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
        env=env,
    )
    return result.stdout.strip()


@pytest.fixture
def mail_archive(tmp_path, archive_mails) -> MailArchive:
    """Create a four-commit mail archive on the master branch."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    path = tmp_path / "archive"
    path.mkdir()
    _git(path, "init", "-q")
    _git(path, "symbolic-ref", "HEAD", "refs/heads/master")

    (path / "README").write_text("Mail archive used for testing\n")

    commits = []
    for index, (mail, date) in enumerate(zip(archive_mails, COMMIT_DATES), start=1):
        (path / "m").write_text(mail)
        _git(path, "add", "--all")

        env = dict(os.environ)
        env.update(
            GIT_AUTHOR_NAME="Archiver",
            GIT_AUTHOR_EMAIL="archiver@test.org",
            GIT_AUTHOR_DATE=date,
            GIT_COMMITTER_NAME="Archiver",
            GIT_COMMITTER_EMAIL="archiver@test.org",
            GIT_COMMITTER_DATE=date,
        )
        _git(path, "-c", "commit.gpgsign=false", "commit", "-q", "-m", f"mail {index}", env=env)
        commits.append(_git(path, "rev-parse", "HEAD"))

    return MailArchive(path=path, commits=commits, mails=list(archive_mails))
