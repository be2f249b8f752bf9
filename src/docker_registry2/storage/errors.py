"""
Registry error classes.

Provides a clear taxonomy of errors that can occur while talking to a
Distribution API registry. HTTP status codes and transport failures are
mapped onto these classes so callers see one error interface regardless of
which request in the pipeline failed.
"""
from __future__ import annotations


class RegistryError(Exception):
    """Base class for all registry client errors."""
    pass


class RegistryUnreachable(RegistryError):
    """
    The registry could not be reached.

    Raised when:
    - DNS resolution or TCP connect fails
    - The connection times out or drops mid-request
    """
    pass


class AuthenticationFailed(RegistryError):
    """
    Credentials or token were rejected.

    Raised when:
    - HTTP 401 on a request already retried with credentials/token
    - HTTP 401 or 403 from the token realm
    """
    pass


class AuthorizationFailed(RegistryError):
    """Valid identity but insufficient scope (HTTP 403 on a registry call)."""
    pass


class NotFound(RegistryError):
    """Repository, tag, manifest or blob does not exist (HTTP 404)."""
    pass


class MethodNotSupported(RegistryError):
    """
    The registry rejected the HTTP method for this endpoint (HTTP 405).

    Pre-2.3 registries answer HEAD on manifests with 405. The request layer
    hands this back as a value so the calling operation can switch to GET.
    """

    def __init__(self, message: str, method: str | None = None, path: str | None = None):
        super().__init__(message)
        self.method = method
        self.path = path


class UnsupportedSchemaVersion(RegistryError):
    """Operation needs schema version 2 semantics the manifest does not have."""
    pass


class MalformedResponse(RegistryError):
    """
    Response could not be interpreted.

    Raised when:
    - Body is not valid JSON where JSON is expected
    - An expected header (Docker-Content-Digest, Content-Length) is missing or unparseable
    """
    pass


class UnknownAuthScheme(RegistryError):
    """WWW-Authenticate challenge uses a scheme other than Basic or Bearer."""
    pass


class DigestMismatch(RegistryError):
    """
    Downloaded content does not hash to its digest.

    Raised when a streamed sha256 or sha512 blob fails verification.
    """

    def __init__(self, message: str, expected: str | None = None, actual: str | None = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


__all__ = [
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
