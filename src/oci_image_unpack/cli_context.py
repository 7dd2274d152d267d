"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings,
avoiding global state and enabling proper dependency injection.
"""
from __future__ import annotations

from dataclasses import dataclass

from .settings import Settings, create_settings_from_env


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Holds the application-level settings, loaded once per CLI command
    execution.
    """
    settings: Settings

    @classmethod
    def from_env(cls) -> CLIContext:
        """
        Create CLI context from environment variables.

        Returns:
            CLIContext with settings loaded from environment
        """
        return cls(settings=create_settings_from_env())
