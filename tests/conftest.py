"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest
import structlog

from mail_locator.git.runner import CommandResult

MAIL_ABC = """Received: (sender1@test.org) by some.server.org
From: Sender One <sender1@test.org>
Subject: [PATCH] foo: add option
Message-ID: <1215-4-7-1-5-4-7@test.org>

This patch adds CONFIG_ABC to the foo driver.
"""

MAIL_DEF = """Received: (sender2@test.org) by some.server.org
From: Sender Two <sender2@test.org>
Subject: Re: [PATCH] foo: add option
message-id: 121554-8-6-4-4-777@test.org

Shouldn't this depend on CONFIG_DEF?
"""

MAIL_ABC_TWICE = """Received: (sender3@test.org) by some.server.org
From: Sender Three <sender3@test.org>
Subject: Re: [PATCH] foo: add option
Message-Id: <121554-8-6-4-4-778@test.org>

CONFIG_ABC is fine, but please rename CONFIG_ABC's help text.
"""

MAIL_SLASH_ID = """Received: (sender4@test.org) by some.server.org
From: Sender Four <sender4@test.org>
Subject: Re: [PATCH] foo: add option
MESSAGE-ID: <123/456@test.org>

Acked, CONFIG_ABC looks good.
"""

MAIL_WITHOUT_ID = """Received: (sender5@test.org) by some.server.org
From: Sender Five <sender5@test.org>
Subject: no id here

CONFIG_GHI is mentioned, but this mail cannot be referenced.
"""

ARCHIVE_MAILS = [MAIL_ABC, MAIL_DEF, MAIL_ABC_TWICE, MAIL_SLASH_ID]


class FakeRunner:
    """Records git invocations and answers them from registered responses.

    Responses are matched on a prefix of the git arguments (the executable is
    ignored); the most recently registered match wins. Unmatched commands
    succeed with empty output.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.cwds: list[Path] = []
        self._responses: list[tuple[tuple[str, ...], CommandResult | Exception]] = []

    def respond(
        self,
        *prefix: str,
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
        error: Exception | None = None,
    ) -> None:
        self._responses.append((prefix, error or CommandResult(returncode, stdout, stderr)))

    def run(self, args: Sequence[str], cwd: Path) -> CommandResult:
        self.calls.append(list(args))
        self.cwds.append(Path(cwd))

        git_args = tuple(args[1:])
        for prefix, response in reversed(self._responses):
            if git_args[: len(prefix)] == prefix:
                if isinstance(response, Exception):
                    raise response
                return response
        return CommandResult(0, "", "")

    @property
    def git_calls(self) -> list[list[str]]:
        return [call[1:] for call in self.calls]


class MailArchiveRunner(FakeRunner):
    """Simulates a mail archive: one mail file per commit.

    Single-path checkouts write the commit's mail into the working directory.
    Commits mapped to None, or listed in `broken`, fail to check out.
    """

    def __init__(self, mails: dict[str, str | None], broken: Sequence[str] = ()) -> None:
        super().__init__()
        self.mails = mails
        self.broken = set(broken)
        self.respond("log", stdout="\n".join(mails))

    def run(self, args: Sequence[str], cwd: Path) -> CommandResult:
        git_args = list(args[1:])
        if git_args[:2] == ["checkout", "--force"] and "--" in git_args:
            self.calls.append(list(args))
            self.cwds.append(Path(cwd))
            commit, path = git_args[2], git_args[4]
            mail = self.mails.get(commit)
            if commit in self.broken or mail is None:
                return CommandResult(
                    1, "", f"error: pathspec '{path}' did not match any file(s) known to git"
                )
            (Path(cwd) / path).write_text(mail, encoding="utf-8")
            return CommandResult(0, "", "")
        return super().run(args, cwd)


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Keep cached settings and structlog configuration from leaking between tests."""
    from mail_locator.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()


@pytest.fixture
def mock_settings(tmp_path):
    """Provide settings for testing; retries are disabled and clones stay in tmp_path."""
    from mail_locator.config import Settings

    return Settings(
        mail_sources=[str(tmp_path / "archive")],
        url_prefix="https://lore.kernel.org/lkml/",
        clone_dir=tmp_path / "clones",
        max_retries=0,
        retry_delay=0.0,
        log_level="DEBUG",
    )


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def archive_runner():
    """Factory for runners that simulate a mail archive."""

    def factory(mails: dict[str, str | None], broken: Sequence[str] = ()) -> MailArchiveRunner:
        return MailArchiveRunner(mails, broken)

    return factory


@pytest.fixture
def sample_mail_lines() -> list[str]:
    return MAIL_ABC_TWICE.splitlines(keepends=True)


@pytest.fixture
def archive_mails() -> list[str]:
    """Four mails: CONFIG_ABC once, CONFIG_DEF once, CONFIG_ABC twice, CONFIG_ABC once."""
    return list(ARCHIVE_MAILS)


@pytest.fixture
def mail_without_id() -> str:
    return MAIL_WITHOUT_ID
