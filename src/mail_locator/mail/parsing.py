"""Helpers for parsing archived mails into internal models.

Mails are not parsed as full RFC 5322 messages. Only the Message-ID header is
read from the header section (everything up to the first empty line); the rest
of the mail is scanned line by line for variables.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from re import Pattern
from urllib.parse import quote

from mail_locator.models import ParsedMail, VariableMailLocation

_MESSAGE_ID_HEADER = "message-id:"

# RFC 3986 path characters that may stay literal; "/" is not among them.
_SAFE_ID_CHARS = "@!$&'()*+,;=:"


def extract_message_id(header_value: str) -> str:
    """Trim a Message-ID header value and drop one pair of enclosing angle brackets."""

    message_id = header_value.strip()
    if message_id.startswith("<") and message_id.endswith(">") and len(message_id) >= 2:
        message_id = message_id[1:-1]
    return message_id


def _find_message_id(lines: Iterator[str]) -> str | None:
    message_id: str | None = None
    for line in lines:
        if line == "":
            break
        if message_id is None and line.lower().startswith(_MESSAGE_ID_HEADER):
            message_id = extract_message_id(line[len(_MESSAGE_ID_HEADER) :])
    return message_id


def _count_variables(lines: Iterable[str], pattern: Pattern[str]) -> dict[str, int]:
    found: dict[str, int] = {}
    for line in lines:
        for match in pattern.finditer(line):
            variable = match.group()
            found[variable] = found.get(variable, 0) + 1
    return found


def parse_mail(lines: Iterable[str], pattern: Pattern[str]) -> ParsedMail | None:
    """Parse a mail and count the variables mentioned in its body.

    Args:
        lines: The lines of the mail; trailing line breaks are ignored.
        pattern: Regular expression matching variable names.

    Returns:
        ParsedMail, or None if the header section has no Message-ID header
        or the header is present but empty (`Message-ID:` or `Message-ID: <>`).
    """

    stripped = (line.rstrip("\r\n") for line in lines)

    message_id = _find_message_id(stripped)
    if not message_id:
        return None

    return ParsedMail(message_id=message_id, variables=_count_variables(stripped, pattern))


def build_mail_identifier(url_prefix: str, message_id: str) -> str:
    """Append the percent-encoded message-id to `url_prefix`."""
    return url_prefix + quote(message_id, safe=_SAFE_ID_CHARS)


def to_locations(mail: ParsedMail, url_prefix: str) -> list[VariableMailLocation]:
    """Turn a parsed mail into one location per distinct variable."""

    if not mail.variables:
        return []

    mail_identifier = build_mail_identifier(url_prefix, mail.message_id)
    return [
        VariableMailLocation(variable=variable, mail_identifier=mail_identifier, num_occurrences=count)
        for variable, count in mail.variables.items()
    ]
