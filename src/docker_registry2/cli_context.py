"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings and the
registry client, avoiding global state and enabling dependency injection.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .registry import Registry
from .settings import Settings, create_settings_from_env


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Holds the settings for one command execution and creates the Registry
    client on first use.
    """
    settings: Settings
    _registry: Optional[Registry] = None

    @classmethod
    def from_env(cls) -> CLIContext:
        """Create CLI context from environment variables."""
        return cls(settings=create_settings_from_env())

    @property
    def registry(self) -> Registry:
        """Get or create the registry client (lazy initialization)."""
        if self._registry is None:
            self._registry = Registry(self.settings)
        return self._registry

    def close(self) -> None:
        if self._registry is not None:
            self._registry.close()
            self._registry = None
