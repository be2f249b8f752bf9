"""
Blob retrieval by content digest.

Blobs are fetched either into memory or streamed straight to a file. File
writes land in a temp file next to the destination and are renamed into
place, so a destination path only ever holds a complete blob.
"""
from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from .errors import DigestMismatch, MalformedResponse, NotFound
from .registry_http import RegistryHTTP

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Blob:
    """A content-addressed blob held in memory."""
    digest: str
    headers: Mapping[str, str]
    body: bytes


class _HashingWriter:
    """File wrapper that hashes what it writes."""

    def __init__(self, fd, algorithm: Optional[str]):
        self._fd = fd
        self._hash = hashlib.new(algorithm) if algorithm else None

    def write(self, chunk: bytes) -> int:
        if self._hash is not None:
            self._hash.update(chunk)
        return self._fd.write(chunk)

    def hexdigest(self) -> Optional[str]:
        return self._hash.hexdigest() if self._hash is not None else None


def _verifiable_algorithm(digest: str) -> Optional[str]:
    algorithm = digest.split(":", 1)[0].lower()
    return algorithm if algorithm in ("sha256", "sha512") else None


class BlobStore:
    """Blob endpoint operations for one registry."""

    def __init__(self, http: RegistryHTTP):
        self._http = http

    @staticmethod
    def blob_path(repo: str, digest: str) -> str:
        return f"/v2/{repo}/blobs/{digest}"

    def get(self, repo: str, digest: str) -> Blob:
        """Fetch a blob into memory."""
        try:
            response = self._http.request("GET", self.blob_path(repo, digest))
        except NotFound as e:
            raise NotFound(f"Blob not found: {repo}@{digest}") from e
        return Blob(digest=digest, headers=response.headers, body=response.content)

    def fetch_to(self, repo: str, digest: str, outpath: Union[str, Path]) -> Path:
        """
        Stream a blob to ``outpath``.

        The parent directory is created if needed. sha256/sha512 digests are
        verified before the file is moved into place.

        Returns:
            The destination path

        Raises:
            NotFound: If the blob does not exist
            DigestMismatch: If the streamed bytes do not match the digest
        """
        target = Path(outpath)
        target.parent.mkdir(parents=True, exist_ok=True)
        algorithm = _verifiable_algorithm(digest)

        fd, temp_name = tempfile.mkstemp(prefix=".blob.tmp.", dir=target.parent)
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as out:
                writer = _HashingWriter(out, algorithm)
                try:
                    self._http.request("GET", self.blob_path(repo, digest), sink=writer)
                except NotFound as e:
                    raise NotFound(f"Blob not found: {repo}@{digest}") from e

            actual = writer.hexdigest()
            if actual is not None:
                expected = digest.split(":", 1)[1].lower()
                if actual != expected:
                    raise DigestMismatch(
                        f"Digest mismatch for {repo}@{digest}: got {algorithm}:{actual}",
                        expected=digest,
                        actual=f"{algorithm}:{actual}",
                    )

            os.replace(temp_path, target)
        except Exception:
            temp_path.unlink(missing_ok=True)
            raise

        logger.debug(f"Wrote blob {digest} to {target}")
        return target

    def size(self, repo: str, digest: str) -> int:
        """
        Size of a blob from ``Content-Length`` of a HEAD request.

        Raises:
            MalformedResponse: If Content-Length is missing, not an integer or negative
        """
        try:
            response = self._http.request("HEAD", self.blob_path(repo, digest))
        except NotFound as e:
            raise NotFound(f"Blob not found: {repo}@{digest}") from e

        length = response.headers.get("content-length")
        try:
            size = int(length, 10)
        except (TypeError, ValueError) as e:
            raise MalformedResponse(
                f"Invalid Content-Length {length!r} for blob {repo}@{digest}"
            ) from e
        if size < 0:
            raise MalformedResponse(f"Negative Content-Length {length!r} for blob {repo}@{digest}")
        return size


__all__ = ["Blob", "BlobStore"]
