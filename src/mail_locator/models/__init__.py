"""Data models for Mail Variable Locator.

This module contains Pydantic models for data validation and serialization.
"""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from mail_locator.models.mail import ParsedMail


class VariableMailLocation(BaseModel):
    """A variable that was found in a mail from a mailing list."""

    model_config = ConfigDict(frozen=True)

    TABLE_HEADER: ClassVar[tuple[str, str, str]] = ("Variable", "Mail", "Occurrences")

    variable: str = Field(description="The variable that was found")
    mail_identifier: str = Field(
        description="Identifier of the mail, usually a URL to a web interface showing it"
    )
    num_occurrences: int = Field(gt=0, description="Number of occurrences of the variable in the mail")

    def as_row(self) -> tuple[str, str, int]:
        """Return the fields in `TABLE_HEADER` order."""
        return (self.variable, self.mail_identifier, self.num_occurrences)


__all__ = ["ParsedMail", "VariableMailLocation"]
