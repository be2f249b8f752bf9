"""
Registry facade.

Composes the request pipeline, pagination, manifest resolution and blob
store into the public operations: search, tags, manifest get/put, digest
resolution, tag deletion, pull, retag and blob size.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
from urllib.parse import urlencode

import httpx

from .settings import Settings
from .storage.blobs import Blob, BlobStore
from .storage.errors import (
    MalformedResponse,
    MethodNotSupported,
    NotFound,
    UnsupportedSchemaVersion,
)
from .storage.manifest import (
    AnyManifest,
    ManifestList,
    PlatformDescriptor,
    parse_manifest,
    select_platform,
)
from .storage.media_types import (
    CONTENT_DIGEST_HEADER,
    DEFAULT_PUT_MEDIA_TYPE,
    PLAIN_MANIFEST_TYPES,
    base_media_type,
)
from .storage.pagination import next_cursor, paginate, unique
from .storage.registry_http import RegistryHTTP

logger = logging.getLogger(__name__)

DigestResult = Union[str, List[PlatformDescriptor]]


@dataclass(frozen=True)
class TagPage:
    """
    One tag listing.

    ``last`` is the cursor for the next page (None on the final page);
    ``hashes`` maps tag -> digest when requested.
    """
    name: str
    tags: List[str]
    hashes: Optional[Dict[str, str]] = None
    last: Optional[str] = None


def _manifest_path(repo: str, ref: str) -> str:
    return f"/v2/{repo}/manifests/{ref}"


def _json(response: httpx.Response, what: str) -> dict:
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedResponse(f"Invalid JSON in {what}: {e}") from e
    if not isinstance(data, dict):
        raise MalformedResponse(f"Expected a JSON object in {what}")
    return data


class Registry:
    """
    Client for one Distribution API registry.

    The only state is the immutable ``Settings`` and the HTTP connection
    pool; every operation is one blocking unit of work.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._http = RegistryHTTP(settings)
        self._blobs = BlobStore(self._http)

    # -- manifests -------------------------------------------------------

    def _manifest_request(self, method: str, repo: str, ref: str):
        try:
            return self._http.try_request(method, _manifest_path(repo, ref))
        except NotFound as e:
            raise NotFound(f"Manifest not found: {repo}:{ref}") from e

    def _get_manifest_response(self, repo: str, ref: str) -> httpx.Response:
        result = self._manifest_request("GET", repo, ref)
        if isinstance(result, MethodNotSupported):
            raise result
        return result

    def _lookup_digest(self, repo: str, ref: str, use_get: bool = False) -> httpx.Response:
        """
        Digest-only lookup: HEAD, or GET when the registry rejects HEAD.

        The returned response carries ``Docker-Content-Digest``.
        """
        if not use_get:
            result = self._manifest_request("HEAD", repo, ref)
            if not isinstance(result, MethodNotSupported):
                return result
            logger.debug(f"HEAD rejected for {repo}:{ref}, falling back to GET")
        return self._get_manifest_response(repo, ref)

    @staticmethod
    def _content_digest(response: httpx.Response, repo: str, ref: str) -> str:
        digest = response.headers.get(CONTENT_DIGEST_HEADER)
        if not digest:
            raise MalformedResponse(
                f"Registry did not return {CONTENT_DIGEST_HEADER} header for {repo}:{ref}"
            )
        return digest

    def manifest(self, repo: str, ref: str) -> AnyManifest:
        """
        Fetch and parse a manifest, manifest list or index.

        Raises:
            NotFound: If the repository or reference does not exist
            MalformedResponse: If the body is not a JSON object
        """
        response = self._get_manifest_response(repo, ref)
        return parse_manifest(response.content, response.headers)

    def put_manifest(self, repo: str, ref: str, body: bytes,
                     media_type: Optional[str] = None) -> Optional[str]:
        """
        Upload manifest bytes unchanged under ``repo:ref``.

        Returns:
            The digest the registry assigned, if it reported one
        """
        response = self._http.request(
            "PUT",
            _manifest_path(repo, ref),
            content=body,
            content_type=media_type or DEFAULT_PUT_MEDIA_TYPE,
        )
        return response.headers.get(CONTENT_DIGEST_HEADER)

    def digest(self, repo: str, ref: str, architecture: Optional[str] = None,
               os: Optional[str] = None, variant: Optional[str] = None) -> DigestResult:
        """
        Resolve a reference to its content digest.

        For a single-platform manifest the digest string is returned and the
        platform arguments are ignored. For a manifest list or index:

        - with both ``architecture`` and ``os``, entries matching every given
          field are selected; one match returns its digest, several return
          the matching descriptors
        - with either missing, every descriptor is returned unfiltered

        Raises:
            NotFound: If the reference is missing, or no list entry matches
                the requested platform
            MalformedResponse: If no Docker-Content-Digest header is returned
        """
        response = self._lookup_digest(repo, ref)
        digest = self._content_digest(response, repo, ref)

        if base_media_type(response.headers.get("content-type")) in PLAIN_MANIFEST_TYPES:
            return digest

        if response.request.method == "HEAD":
            manifest = self.manifest(repo, digest)
        else:
            manifest = parse_manifest(response.content, response.headers)

        if not isinstance(manifest, ManifestList):
            return digest

        logger.debug(f"{repo}:{ref} is a manifest list, selecting "
                     f"architecture={architecture} os={os} variant={variant}")
        return select_platform(manifest.manifests, repo, ref, architecture, os, variant)

    def tag(self, repo: str, ref: str, new_repo: str, new_ref: str) -> Optional[str]:
        """
        Copy a manifest to ``new_repo:new_ref`` byte-for-byte.

        Raises:
            UnsupportedSchemaVersion: If the source manifest is not schema 2
        """
        manifest = self.manifest(repo, ref)
        if manifest.schema_version != 2:
            raise UnsupportedSchemaVersion(
                f"Cannot tag {repo}:{ref}: schemaVersion {manifest.schema_version} "
                f"manifests cannot be re-pushed"
            )
        logger.info(f"Tagging {repo}:{ref} as {new_repo}:{new_ref}")
        return self.put_manifest(new_repo, new_ref, manifest.body, manifest.media_type)

    def rmtag(self, repo: str, tag: str) -> int:
        """
        Delete a tag by deleting the manifest it points at.

        Registries refuse DELETE by tag name, so the tag is first resolved to
        its digest.

        Returns:
            HTTP status code of the DELETE
        """
        digest = self._content_digest(self._lookup_digest(repo, tag), repo, tag)
        logger.info(f"Deleting {repo}:{tag} ({digest})")
        try:
            response = self._http.request("DELETE", _manifest_path(repo, digest))
        except NotFound as e:
            raise NotFound(f"Manifest not found: {repo}@{digest}") from e
        return response.status_code

    # -- listing ---------------------------------------------------------

    def search(self, query: str = "") -> List[str]:
        """
        List repositories from the catalog, following every page.

        ``query`` is a regular expression applied client-side; the catalog
        endpoint has no server-side filter.
        """
        pattern = re.compile(query) if query else None
        repos: List[str] = []
        for response in paginate("/v2/_catalog", lambda url: self._http.request("GET", url)):
            names = _json(response, "catalog").get("repositories") or []
            if pattern is not None:
                names = [name for name in names if pattern.search(name)]
            repos.extend(names)
        return repos

    def _tags_page(self, repo: str, count: Optional[int], last: Optional[str],
                   with_hashes: bool, use_get: bool = False) -> Tuple[TagPage, bool]:
        """
        Fetch one tag page.

        Returns the page and whether digest lookups have switched to GET,
        so the caller can keep using GET on later pages.
        """
        params = []
        if last:
            params.append(("last", last))
        if count is not None:
            params.append(("n", count))
        path = f"/v2/{repo}/tags/list"
        if params:
            path = f"{path}?{urlencode(params)}"

        try:
            response = self._http.request("GET", path)
        except NotFound as e:
            raise NotFound(f"Repository not found: {repo}") from e

        data = _json(response, f"tag list for {repo}")
        tags = data.get("tags") or []

        hashes = None
        if with_hashes:
            hashes = {}
            for tag in tags:
                lookup = self._lookup_digest(repo, tag, use_get=use_get)
                # pre-2.3 registries reject HEAD; stay on GET for the rest
                use_get = lookup.request.method == "GET"
                hashes[tag] = lookup.headers.get(CONTENT_DIGEST_HEADER)

        page = TagPage(
            name=data.get("name", repo),
            tags=tags,
            hashes=hashes,
            last=next_cursor(response, self.settings.host),
        )
        return page, use_get

    def tags(self, repo: str, count: Optional[int] = None, last: str = "",
             with_hashes: bool = False, auto_paginate: bool = False) -> TagPage:
        """
        List tags of a repository.

        Args:
            repo: Repository name
            count: Page size (``n``)
            last: Cursor to start after
            with_hashes: Also resolve each tag to its digest
            auto_paginate: Follow cursors until the last page; tags are merged
                without duplicates in first-seen order

        Returns:
            A TagPage; ``last`` is None after auto-pagination
        """
        page, use_get = self._tags_page(repo, count, last, with_hashes)
        if not auto_paginate:
            return page

        tags = unique(page.tags)
        hashes = dict(page.hashes) if page.hashes is not None else None
        cursor = page.last
        while cursor:
            more, use_get = self._tags_page(repo, count, cursor, with_hashes, use_get)
            tags = unique(tags + more.tags)
            if hashes is not None and more.hashes:
                hashes.update(more.hashes)
            cursor = more.last

        return TagPage(name=page.name, tags=tags, hashes=hashes, last=None)

    # -- blobs -----------------------------------------------------------

    def blob(self, repo: str, digest: str,
             outpath: Union[str, Path, None] = None) -> Union[Blob, Path]:
        """Fetch a blob into memory, or stream it to ``outpath`` and return the path."""
        if outpath is None:
            return self._blobs.get(repo, digest)
        return self._blobs.fetch_to(repo, digest, outpath)

    def blob_size(self, repo: str, digest: str) -> int:
        return self._blobs.size(repo, digest)

    def pull(self, repo: str, ref: str, directory: Union[str, Path],
             architecture: Optional[str] = None, os: Optional[str] = None,
             variant: Optional[str] = None) -> List[Path]:
        """
        Download every layer of an image into ``directory``.

        Each layer is stored under its digest. Layers whose file already
        exists are skipped, since equal digests mean equal bytes. A manifest
        list is narrowed to one platform with the same rules as ``digest``.

        Returns:
            Paths of all layer files considered, downloaded or skipped

        Raises:
            ValueError: If a manifest list cannot be narrowed to a single
                platform with the given architecture, os and variant
        """
        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)

        manifest = self.manifest(repo, ref)
        if isinstance(manifest, ManifestList):
            selected = select_platform(manifest.manifests, repo, ref, architecture, os, variant)
            if not isinstance(selected, str):
                raise ValueError(
                    f"{repo}:{ref} is a manifest list with {len(selected)} candidate "
                    f"platforms; pass architecture and os (and variant) to select one"
                )
            manifest = self.manifest(repo, selected)

        layer_files: List[Path] = []
        for digest in manifest.layer_digests():
            layer_file = target_dir / digest
            layer_files.append(layer_file)
            if layer_file.is_file():
                logger.debug(f"Skipping layer {digest}, already present")
                continue
            logger.info(f"Pulling layer {digest} of {repo}:{ref}")
            self._blobs.fetch_to(repo, digest, layer_file)
        return layer_files

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


__all__ = ["Registry", "TagPage", "DigestResult"]
