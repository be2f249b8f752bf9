"""
Link-header pagination.

When a result set is too large the registry returns the first page and a
``Link: <url>; rel="next"`` header pointing at the next one. The header is
parsed by httpx (``Response.links``). Registries disagree on which query key
carries the cursor inside that URL, so the key is looked up per host.
"""
from __future__ import annotations

from typing import Callable, Dict, Iterator, Mapping, Optional
from urllib.parse import parse_qs, urlparse

import httpx

DEFAULT_CURSOR_KEY = "last"

# host -> query key that carries the next-page cursor
CURSOR_KEYS: Dict[str, str] = {
    "quay.io": "next_page",
}


def next_link(response: httpx.Response) -> Optional[str]:
    """URL of the next page, or None on the last page."""
    return response.links.get("next", {}).get("url") or None


def cursor_key_for(host: str, table: Optional[Mapping[str, str]] = None) -> str:
    table = CURSOR_KEYS if table is None else table
    return table.get(host.lower(), DEFAULT_CURSOR_KEY)


def next_cursor(response: httpx.Response, host: str) -> Optional[str]:
    """
    Cursor value for the next page, read from the ``rel="next"`` link.

    Returns None when there is no next page or the link carries no cursor.
    """
    url = next_link(response)
    if not url:
        return None
    query = parse_qs(urlparse(url).query)
    values = query.get(cursor_key_for(host))
    return values[0] if values else None


def paginate(initial_url: str, fetch_page: Callable[[str], httpx.Response]) -> Iterator[httpx.Response]:
    """
    Lazily fetch pages starting at ``initial_url``.

    Each response is yielded before its Link header is inspected. The
    sequence ends at the first response without a ``rel="next"`` link.
    """
    url: Optional[str] = initial_url
    while url:
        response = fetch_page(url)
        yield response
        url = next_link(response)


def unique(items) -> list:
    """Drop duplicates, keeping first-seen order."""
    return list(dict.fromkeys(items))


__all__ = [
    "CURSOR_KEYS",
    "DEFAULT_CURSOR_KEY",
    "next_link",
    "cursor_key_for",
    "next_cursor",
    "paginate",
    "unique",
]
