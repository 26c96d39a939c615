"""Settings for jadetree, read from the environment or a `.env` file."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

type LogLevel = Literal[
    "TRACE",
    "DEBUG",
    "RESCORE",
    "INFO",
    "WARNING",
    "ERROR",
    "CRITICAL",
]

type LogFormat = Literal["short", "full"]


class TreeSettings(BaseSettings):
    """Runtime settings for classification trees and logging.

    Every field can be overridden with a `JADETREE_` prefixed environment
    variable, e.g. `JADETREE_LOG_LEVEL=DEBUG`.

    Attributes:
        propagate_insert_invalidation (bool): When True, every inode on the
            path of an insert clears its cached maximum leaf, so a subsequent
            `expand_score()` re-compares all sibling subtrees. When False, only
            the receiving leaf is dirtied and ancestors keep their cached leaf
            until an explicit `make_dirty()`.
        log_level (LogLevel): Default minimum level for `enable_logging()`.
        log_format (LogFormat): Default format style for `enable_logging()`.

    Examples:
        >>> settings = TreeSettings(propagate_insert_invalidation=False)
        >>> settings.propagate_insert_invalidation
        False
    """

    model_config = SettingsConfigDict(
        env_prefix="JADETREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    propagate_insert_invalidation: bool = Field(
        default=True,
        description="Clear cached maximum leaves on every inode along an insertion path.",
    )
    log_level: LogLevel = Field(default="INFO", description="Default minimum log level for enable_logging().")
    log_format: LogFormat = Field(default="short", description="Default log format for enable_logging().")
