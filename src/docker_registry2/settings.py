"""
Settings and configuration for the registry client.

Centralizes configuration values and provides validation with fail-fast behavior.
Settings are immutable once constructed; a client never mutates them.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlparse

__all__ = ["Settings", "create_settings_from_env", "DEFAULT_REGISTRY_URL"]

DEFAULT_REGISTRY_URL = "https://registry.hub.docker.com"


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for a registry client.

    Registry Settings:
        base_uri: Registry base URI (scheme://host[:port][/path])
        user: Username for Basic auth and token requests
        password: Password for Basic auth and token requests
        open_timeout: Seconds to wait for a connection
        read_timeout: Seconds to wait for data
        http_options: Extra keyword arguments for ``httpx.Client``. A
            ``timeout`` entry here takes precedence over the two timeouts above.
    """
    base_uri: str = DEFAULT_REGISTRY_URL
    user: Optional[str] = None
    password: Optional[str] = None
    open_timeout: float = 2.0
    read_timeout: float = 5.0
    http_options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.base_uri:
            raise ValueError("base_uri is required")

        url_pattern = r"^https?://[a-zA-Z0-9.-]+(?::[0-9]+)?(?:/.*)?$"
        if not re.match(url_pattern, self.base_uri):
            raise ValueError(f"Invalid base_uri format: {self.base_uri}")

        # scheme://host:port/path, no trailing slash
        parsed = urlparse(self.base_uri)
        normalized = f"{parsed.scheme}://{parsed.netloc}{parsed.path.rstrip('/')}"
        object.__setattr__(self, "base_uri", normalized)

        if bool(self.user) != bool(self.password):
            raise ValueError("user and password must be given together")

        if self.open_timeout <= 0:
            raise ValueError(f"open_timeout must be positive, got {self.open_timeout}")
        if self.read_timeout <= 0:
            raise ValueError(f"read_timeout must be positive, got {self.read_timeout}")

    @property
    def host(self) -> str:
        """Registry host name without port."""
        return urlparse(self.base_uri).hostname or ""

    @property
    def has_credentials(self) -> bool:
        return bool(self.user)


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - DOCKER_REGISTRY_URL (default: https://registry.hub.docker.com)
        - DOCKER_REGISTRY_USERNAME (optional)
        - DOCKER_REGISTRY_PASSWORD (optional)
        - DOCKER_REGISTRY_OPEN_TIMEOUT (default: 2.0)
        - DOCKER_REGISTRY_READ_TIMEOUT (default: 5.0)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    return Settings(
        base_uri=os.getenv("DOCKER_REGISTRY_URL") or DEFAULT_REGISTRY_URL,
        user=os.getenv("DOCKER_REGISTRY_USERNAME") or None,
        password=os.getenv("DOCKER_REGISTRY_PASSWORD") or None,
        open_timeout=get_float("DOCKER_REGISTRY_OPEN_TIMEOUT", 2.0),
        read_timeout=get_float("DOCKER_REGISTRY_READ_TIMEOUT", 5.0),
    )
