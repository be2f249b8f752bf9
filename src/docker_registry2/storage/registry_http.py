"""
Registry HTTP Client for the Distribution API.

Sends a single logical request through ``httpx`` with the registry's auth
flow: try anonymously, and on 401 answer the challenge (Basic or Bearer)
and retry exactly once. Status codes are mapped onto the error taxonomy in
``errors.py``; a 405 is handed back as a ``MethodNotSupported`` value so
callers can choose a fallback method.
"""
from __future__ import annotations

import logging
from typing import BinaryIO, Dict, Optional, Union
from urllib.parse import urljoin

import httpx

from ..settings import Settings
from .auth import SCHEME_BASIC, basic_auth, fetch_bearer_token, parse_challenge
from .errors import (
    AuthenticationFailed,
    AuthorizationFailed,
    MethodNotSupported,
    NotFound,
    RegistryError,
    RegistryUnreachable,
)
from .media_types import ACCEPTED_MANIFEST_TYPES

logger = logging.getLogger(__name__)

USER_AGENT = "docker-registry2/0.1.0"

RequestResult = Union[httpx.Response, MethodNotSupported]


class RegistryHTTP:
    """
    HTTP client for Distribution API operations.

    Holds only immutable settings and the ``httpx.Client`` connection pool.
    Tokens obtained during a 401 round trip live for that one request.
    """

    def __init__(self, settings: Settings):
        """
        Initialize registry HTTP client.

        Args:
            settings: Registry configuration; ``http_options`` are passed to
                ``httpx.Client`` and may override timeout or transport
        """
        self.settings = settings
        self.base_url = settings.base_uri

        options = dict(settings.http_options)
        options.setdefault(
            "timeout",
            httpx.Timeout(settings.read_timeout, connect=settings.open_timeout),
        )
        options.setdefault("follow_redirects", True)
        headers = {"User-Agent": USER_AGENT}
        headers.update(options.pop("headers", {}) or {})
        self.client = httpx.Client(headers=headers, **options)

    def url_for(self, path: str) -> str:
        """Absolute URL for an API path; absolute URLs pass through."""
        if path.startswith(("http://", "https://")):
            return path
        return urljoin(self.base_url + "/", path.lstrip("/"))

    def request(self, method: str, path: str, *, content: Optional[bytes] = None,
                content_type: Optional[str] = None, sink: Optional[BinaryIO] = None) -> httpx.Response:
        """
        Make a request, raising on every failure including 405.

        Raises:
            MethodNotSupported: If the registry rejects the method
            (plus everything ``try_request`` raises)
        """
        result = self.try_request(method, path, content=content, content_type=content_type, sink=sink)
        if isinstance(result, MethodNotSupported):
            raise result
        return result

    def try_request(self, method: str, path: str, *, content: Optional[bytes] = None,
                    content_type: Optional[str] = None, sink: Optional[BinaryIO] = None) -> RequestResult:
        """
        Make a request with transparent Basic/Bearer auth.

        Handles 401 responses by:
        1. Parsing the WWW-Authenticate challenge
        2. Basic: retrying with the configured credentials
        3. Bearer: fetching a token from the realm and retrying with it
        Only one retry is made; a second 401 is an authentication failure.

        Args:
            method: HTTP method
            path: API path (``/v2/...``) or absolute URL
            content: Request body for PUT
            content_type: Content-Type of ``content``
            sink: Writable binary file; a successful body is streamed into it

        Returns:
            The response, or a ``MethodNotSupported`` value on HTTP 405

        Raises:
            RegistryUnreachable: On connection-level failure
            AuthenticationFailed: If credentials or token are rejected
            AuthorizationFailed: On HTTP 403
            NotFound: On HTTP 404
            UnknownAuthScheme: If the challenge scheme is not Basic/Bearer
            RegistryError: On any other error status
        """
        url = self.url_for(path)
        headers = self._headers(content_type)

        response = self._send(method, url, headers, None, content, sink)

        if response.status_code == 401:
            challenge = parse_challenge(response.headers.get("www-authenticate"))
            logger.debug(f"{method} {url} challenged with {challenge.scheme}")

            auth = None
            if challenge.scheme == SCHEME_BASIC:
                auth = basic_auth(self.settings)
            else:
                token = fetch_bearer_token(self.client, challenge, self.settings)
                headers["Authorization"] = f"Bearer {token}"

            response = self._send(method, url, headers, auth, content, sink)
            if response.status_code == 401:
                raise AuthenticationFailed(f"Authentication failed for {method} {url}")

        return self._check(method, url, response)

    def _headers(self, content_type: Optional[str]) -> Dict[str, str]:
        headers = {}
        if content_type is None:
            headers["Accept"] = ",".join(ACCEPTED_MANIFEST_TYPES)
        else:
            headers["Content-Type"] = content_type
        return headers

    def _send(self, method: str, url: str, headers: Dict[str, str],
              auth: Optional[httpx.Auth], content: Optional[bytes],
              sink: Optional[BinaryIO]) -> httpx.Response:
        """Single round trip; error bodies are always read into memory."""
        kwargs = {"headers": headers, "content": content}
        if auth is not None:
            kwargs["auth"] = auth
        try:
            if sink is None:
                return self.client.request(method, url, **kwargs)

            with self.client.stream(method, url, **kwargs) as response:
                if response.is_success:
                    for chunk in response.iter_bytes():
                        sink.write(chunk)
                else:
                    response.read()
                return response
        except httpx.TransportError as e:
            raise RegistryUnreachable(f"Cannot reach registry at {url}: {e}") from e

    def _check(self, method: str, url: str, response: httpx.Response) -> RequestResult:
        status = response.status_code
        if status == 405:
            return MethodNotSupported(f"{method} not supported for {url}", method=method, path=url)
        if status == 404:
            raise NotFound(f"Not found at {url}")
        if status == 403:
            raise AuthorizationFailed(f"Insufficient scope for {method} {url}")
        if status == 401:
            raise AuthenticationFailed(f"Authentication failed for {method} {url}")
        if response.is_error:
            raise RegistryError(f"Registry error {status} for {method} {url}")
        return response

    def close(self):
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


__all__ = ["RegistryHTTP", "RequestResult", "USER_AGENT"]
