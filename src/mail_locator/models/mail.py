"""Parsed view of a single mail from the archive."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ParsedMail:
    """A mail reduced to its message-id and the variables found in its body.

    `variables` maps each variable to its number of occurrences, in the order
    the variables first appear in the body.
    """

    message_id: str
    variables: dict[str, int] = field(default_factory=dict)
