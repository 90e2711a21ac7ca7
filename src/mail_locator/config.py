"""Configuration management for Mail Variable Locator.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

import re
from functools import lru_cache
from pathlib import Path
from re import Pattern

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the MAIL_LOCATOR_ prefix (e.g., MAIL_LOCATOR_URL_PREFIX).
    List settings such as MAIL_LOCATOR_MAIL_SOURCES are given as JSON.
    """

    model_config = SettingsConfigDict(
        env_prefix="MAIL_LOCATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Mail locator configuration
    mail_sources: list[str] = Field(
        default_factory=list,
        description=(
            "Git repositories that contain the mails to be searched. These may be "
            "remote URLs or local directories. Remote URLs are cloned into a "
            "temporary directory; for local directories the default branch of the "
            "existing checkout is used directly."
        ),
    )
    variable_regex: Pattern[str] = Field(
        default=re.compile(r"CONFIG_\w+"),
        description="Regular expression used to find relevant variables in mail bodies",
    )
    url_prefix: str = Field(
        default="https://lore.kernel.org/lkml/",
        description=(
            "URL prefix for the mails. The percent-encoded message-id of the mail "
            "is appended to this string to create the identifier of the mail."
        ),
    )
    mail_file: str = Field(
        default="m",
        description="Path of the file that holds the mail in every commit of the archive",
    )
    default_branch: str = Field(
        default="master",
        description="Branch the archive checkout is reset to before and after crawling",
    )

    # Git configuration
    git_executable: str = Field(
        default="git",
        description="Name or path of the git executable",
    )
    git_timeout: float | None = Field(
        default=None,
        description="Timeout for a single git command in seconds (no timeout if unset)",
    )
    clone_dir: Path | None = Field(
        default=None,
        description="Parent directory for temporary clones (system temp dir if unset)",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Log every git command together with its output",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        description="Maximum number of retries when cloning a remote mail source",
    )
    retry_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Initial delay between clone retries in seconds",
    )

    @field_validator("mail_sources")
    @classmethod
    def _drop_blank_sources(cls, value: list[str]) -> list[str]:
        return [source.strip() for source in value if source.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
