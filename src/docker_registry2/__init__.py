"""
docker-registry2: a client for the Docker/OCI Distribution HTTP API.

    >>> from docker_registry2 import connect
    >>> reg = connect("https://registry.example.com", user="me", password="secret")
    >>> reg.digest("library/alpine", "latest", architecture="amd64", os="linux")
"""
from __future__ import annotations

from .registry import DigestResult, Registry, TagPage
from .settings import DEFAULT_REGISTRY_URL, Settings, create_settings_from_env
from .storage.blobs import Blob
from .storage.errors import (
    AuthenticationFailed,
    AuthorizationFailed,
    DigestMismatch,
    MalformedResponse,
    MethodNotSupported,
    NotFound,
    RegistryError,
    RegistryUnreachable,
    UnknownAuthScheme,
    UnsupportedSchemaVersion,
)
from .storage.manifest import (
    Manifest,
    ManifestList,
    ManifestV1,
    ManifestV2,
    PlatformDescriptor,
    manifest_sum,
)

__version__ = "0.1.0"


def connect(uri: str = DEFAULT_REGISTRY_URL, **options) -> Registry:
    """
    Create a Registry client.

    Keyword options are Settings fields: ``user``, ``password``,
    ``open_timeout``, ``read_timeout``, ``http_options``.
    """
    return Registry(Settings(base_uri=uri, **options))


__all__ = [
    "connect",
    "Registry",
    "TagPage",
    "DigestResult",
    "Settings",
    "create_settings_from_env",
    "Blob",
    "Manifest",
    "ManifestV1",
    "ManifestV2",
    "ManifestList",
    "PlatformDescriptor",
    "manifest_sum",
    "RegistryError",
    "RegistryUnreachable",
    "AuthenticationFailed",
    "AuthorizationFailed",
    "NotFound",
    "MethodNotSupported",
    "UnsupportedSchemaVersion",
    "MalformedResponse",
    "UnknownAuthScheme",
    "DigestMismatch",
]
