"""
Registry authentication negotiation.

Parses ``WWW-Authenticate`` challenges and performs the Basic or Bearer
re-authentication a registry asks for. Nothing here is cached: a token is
obtained for one original request and handed back to the caller, which
attaches it to exactly one retry.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

from ..settings import Settings
from .errors import (
    AuthenticationFailed,
    MalformedResponse,
    NotFound,
    RegistryError,
    RegistryUnreachable,
    UnknownAuthScheme,
)

logger = logging.getLogger(__name__)

SCHEME_BASIC = "basic"
SCHEME_BEARER = "bearer"

_PARAM_RE = re.compile(r'(\w+)="([^"]*)"')


@dataclass(frozen=True)
class Challenge:
    """A parsed ``WWW-Authenticate`` header."""
    scheme: str
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def realm(self) -> Optional[str]:
        return self.params.get("realm")

    @property
    def service(self) -> Optional[str]:
        return self.params.get("service")

    @property
    def scope(self) -> Optional[str]:
        return self.params.get("scope")

    @property
    def error(self) -> Optional[str]:
        return self.params.get("error")


def parse_challenge(header: Optional[str]) -> Challenge:
    """
    Parse a ``WWW-Authenticate`` header into scheme and parameters.

    Format: ``Bearer realm="...",service="...",scope="..."``

    Raises:
        UnknownAuthScheme: If the scheme is neither Basic nor Bearer
    """
    header = (header or "").strip()
    scheme = header.split(" ", 1)[0].lower() if header else ""
    if scheme not in (SCHEME_BASIC, SCHEME_BEARER):
        raise UnknownAuthScheme(f"Unknown authentication scheme in challenge: {header!r}")

    params = {m.group(1): m.group(2) for m in _PARAM_RE.finditer(header)}
    return Challenge(scheme=scheme, params=params)


def basic_auth(settings: Settings) -> Optional[httpx.BasicAuth]:
    """Basic credentials for a retry, or None for anonymous access."""
    if not settings.has_credentials:
        return None
    return httpx.BasicAuth(settings.user, settings.password)


def fetch_bearer_token(client: httpx.Client, challenge: Challenge, settings: Settings) -> str:
    """
    Exchange a Bearer challenge for a token.

    Issues ``GET realm`` with ``service``, ``scope`` and, when credentials are
    configured, ``account``; the request itself is Basic-authenticated in that
    case. The token is read from ``token``, falling back to ``access_token``.

    Raises:
        RegistryUnreachable: If the realm cannot be reached
        AuthenticationFailed: If the realm answers 401 or 403
        NotFound: If the realm answers 404
        MalformedResponse: If the response is not a JSON object carrying a token
    """
    if not challenge.realm:
        raise MalformedResponse("Bearer challenge is missing a realm")

    params = {}
    if challenge.service:
        params["service"] = challenge.service
    if challenge.scope:
        params["scope"] = challenge.scope
    if settings.has_credentials:
        params["account"] = settings.user

    logger.debug(f"Requesting bearer token from {challenge.realm} "
                 f"(service={challenge.service}, scope={challenge.scope})")

    try:
        response = client.get(challenge.realm, params=params, auth=basic_auth(settings))
    except httpx.TransportError as e:
        raise RegistryUnreachable(f"Cannot reach token realm {challenge.realm}: {e}") from e

    if response.status_code in (401, 403):
        raise AuthenticationFailed(
            f"Token realm {challenge.realm} rejected credentials (HTTP {response.status_code})"
        )
    if response.status_code == 404:
        raise NotFound(f"Token realm not found: {challenge.realm}")
    if response.is_error:
        raise RegistryError(f"Token realm error {response.status_code} from {challenge.realm}")

    try:
        token_data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedResponse(f"Invalid JSON from token realm {challenge.realm}: {e}") from e
    if not isinstance(token_data, dict):
        raise MalformedResponse(f"Token realm {challenge.realm} did not return a JSON object")

    token = token_data.get("token") or token_data.get("access_token")
    if not token:
        raise MalformedResponse(f"Token realm {challenge.realm} returned no token")
    return token


__all__ = [
    "Challenge",
    "parse_challenge",
    "basic_auth",
    "fetch_bearer_token",
    "SCHEME_BASIC",
    "SCHEME_BEARER",
]
