# -*- coding: utf-8 -*-
"""Location: ./webmerge/config.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

webmerge configuration.

All settings can be overridden via environment variables with the WEBMERGE_ prefix.
For example: WEBMERGE_DOCUMENT_ROOT=/srv/www, WEBMERGE_SHORT_CIRCUIT_REFERENCE_SCAN=false

Examples:
    >>> from webmerge.config import Settings
    >>> s = Settings(_env_file=None)
    >>> s.fingerprint_separator
    '_wu_'
    >>> s.short_circuit_reference_scan
    True
"""

# Standard
from functools import lru_cache
import logging

# Third-Party
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Runtime configuration for the resource validation engine."""

    document_root: str = Field(default=".", description="Directory that logical resource paths are resolved against")
    context_path: str = Field(default="", description="Context prefix stripped from request URIs before resource parsing")
    fingerprint_separator: str = Field(default="_wu_", description="Reserved token separating a URL stem from its fingerprint")
    short_circuit_reference_scan: bool = Field(
        default=True,
        description="Stop scanning a stylesheet for image references at the first reference that forces a touch",
    )
    gzip_etag_suffix: str = Field(default="-gzip", description="Suffix appended to ETags by compression layers, stripped before comparison")
    cache_max_age: int = Field(default=31536000, description="Cache-Control max-age in seconds for fingerprinted URLs")
    log_level: str = Field(default="INFO", description="Logging level for webmerge components")

    @field_validator("fingerprint_separator")
    @classmethod
    def separator_not_blank(cls, value: str) -> str:
        """Reject an empty or whitespace-only fingerprint separator.

        Args:
            value: Configured separator.

        Returns:
            The separator unchanged.

        Raises:
            ValueError: If the separator is blank.

        Examples:
            >>> Settings.separator_not_blank("_v_")
            '_v_'
        """
        if not value or not value.strip():
            raise ValueError("fingerprint_separator must not be blank")
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        """Upper-case the log level name.

        Args:
            value: Configured level name.

        Returns:
            Upper-cased level name.

        Examples:
            >>> Settings.normalize_log_level("debug")
            'DEBUG'
        """
        return value.upper()

    model_config = SettingsConfigDict(env_prefix="WEBMERGE_", env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Cached settings instance

    Examples:
        >>> get_settings() is get_settings()
        True
    """
    cfg = Settings()
    logger.debug(f"Loaded webmerge settings (document_root={cfg.document_root!r}, context_path={cfg.context_path!r})")
    return cfg


settings = get_settings()
