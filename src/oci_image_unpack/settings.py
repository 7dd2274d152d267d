"""
Settings and configuration for the OCI image unpacker.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables when the CLI starts.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

__all__ = ["Settings", "create_settings_from_env"]

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for the unpacker.

    Resolution:
        max_index_depth: Maximum number of nested image indexes to descend
            into (None = unlimited)

    Logging:
        log_level: Root log level used by the CLI
    """
    max_index_depth: Optional[int] = None
    log_level: str = "WARNING"

    def __post_init__(self):
        """Validate settings on construction."""
        if self.max_index_depth is not None and self.max_index_depth <= 0:
            raise ValueError(f"max_index_depth must be positive, got {self.max_index_depth}")

        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level: {self.log_level}. Must be one of {', '.join(_LOG_LEVELS)}"
            )

    @property
    def log_level_value(self) -> int:
        """Numeric logging level for ``logging.basicConfig``."""
        return getattr(logging, self.log_level.upper())


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - OCI_UNPACK_MAX_INDEX_DEPTH (default: unlimited)
        - OCI_UNPACK_LOG_LEVEL (default: WARNING)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
        This ensures test isolation and eliminates global state.
    """
    depth = os.getenv("OCI_UNPACK_MAX_INDEX_DEPTH")
    try:
        max_index_depth = int(depth) if depth else None
    except ValueError:
        raise ValueError(f"OCI_UNPACK_MAX_INDEX_DEPTH must be an integer, got {depth!r}") from None

    log_level = os.getenv("OCI_UNPACK_LOG_LEVEL", "WARNING")

    return Settings(max_index_depth=max_index_depth, log_level=log_level)
