"""
Manifest documents and platform selection.

A registry answers a manifest request with one of four shapes: Docker
schema 1, Docker schema 2, Docker manifest list or OCI index (OCI image
manifests share the schema 2 shape). They are modelled as a small tagged
union sharing an envelope that keeps the raw body bytes and response
headers, because the content digest travels in a header and re-uploads must
be byte-for-byte.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import MalformedResponse, NotFound, UnsupportedSchemaVersion
from .media_types import CONTENT_DIGEST_HEADER, base_media_type


@dataclass(frozen=True)
class PlatformDescriptor:
    """One entry of a manifest list / OCI index."""
    digest: str
    media_type: Optional[str]
    size: Optional[int]
    architecture: Optional[str]
    os: Optional[str]
    variant: Optional[str] = None

    @classmethod
    def from_dict(cls, entry: Mapping[str, Any]) -> PlatformDescriptor:
        if "digest" not in entry:
            raise MalformedResponse(f"Manifest list entry has no digest: {entry}")
        platform = entry.get("platform") or {}
        return cls(
            digest=entry["digest"],
            media_type=entry.get("mediaType"),
            size=entry.get("size"),
            architecture=platform.get("architecture"),
            os=platform.get("os"),
            variant=platform.get("variant"),
        )

    def matches(self, architecture: str, os: str, variant: Optional[str] = None) -> bool:
        if self.architecture != architecture or self.os != os:
            return False
        return variant is None or self.variant == variant


@dataclass(frozen=True)
class Manifest:
    """
    Envelope shared by every manifest flavor.

    ``body`` is exactly the bytes that produced ``data``.
    """
    data: Dict[str, Any]
    body: bytes
    headers: Mapping[str, str]

    @property
    def schema_version(self) -> Optional[int]:
        return self.data.get("schemaVersion")

    @property
    def media_type(self) -> Optional[str]:
        """Media type from the document, else from Content-Type."""
        return self.data.get("mediaType") or base_media_type(self.headers.get("content-type"))

    @property
    def digest(self) -> Optional[str]:
        return self.headers.get(CONTENT_DIGEST_HEADER)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __contains__(self, key: str) -> bool:
        return key in self.data

    def layer_digests(self) -> List[str]:
        raise UnsupportedSchemaVersion(
            f"{type(self).__name__} does not list layers"
        )


@dataclass(frozen=True)
class ManifestV1(Manifest):
    """Docker image manifest, schema 1."""

    @property
    def fs_layers(self) -> List[Dict[str, Any]]:
        return self.data.get("fsLayers", [])

    @property
    def history(self) -> List[Dict[str, Any]]:
        return self.data.get("history", [])

    def layer_digests(self) -> List[str]:
        return [layer["blobSum"] for layer in self.fs_layers]


@dataclass(frozen=True)
class ManifestV2(Manifest):
    """Single-platform schema 2 manifest (Docker v2 or OCI image manifest)."""

    @property
    def config(self) -> Optional[Dict[str, Any]]:
        return self.data.get("config")

    @property
    def layers(self) -> List[Dict[str, Any]]:
        return self.data.get("layers", [])

    def layer_digests(self) -> List[str]:
        return [layer["digest"] for layer in self.layers]


@dataclass(frozen=True)
class ManifestList(Manifest):
    """Docker manifest list or OCI index."""

    @property
    def manifests(self) -> List[PlatformDescriptor]:
        return [PlatformDescriptor.from_dict(entry) for entry in self.data.get("manifests", [])]


AnyManifest = Union[ManifestV1, ManifestV2, ManifestList]


def parse_manifest(body: bytes, headers: Mapping[str, str]) -> AnyManifest:
    """
    Decode a manifest body and pick its flavor.

    Discriminated by the presence of ``manifests`` first, then ``schemaVersion``.

    Raises:
        MalformedResponse: If the body is not a JSON object
        UnsupportedSchemaVersion: If schemaVersion is neither 1 nor 2
    """
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedResponse(f"Invalid JSON in manifest: {e}") from e
    if not isinstance(data, dict):
        raise MalformedResponse("Manifest is not a JSON object")

    if "manifests" in data:
        return ManifestList(data=data, body=body, headers=headers)

    version = data.get("schemaVersion")
    if version == 1:
        return ManifestV1(data=data, body=body, headers=headers)
    if version == 2:
        return ManifestV2(data=data, body=body, headers=headers)
    raise UnsupportedSchemaVersion(f"Unsupported manifest schemaVersion: {version!r}")


def select_platform(
    descriptors: List[PlatformDescriptor],
    image: str,
    reference: str,
    architecture: Optional[str] = None,
    os: Optional[str] = None,
    variant: Optional[str] = None,
) -> Union[str, List[PlatformDescriptor]]:
    """
    Pick the entries of a manifest list matching a platform.

    Filtering only happens when both ``architecture`` and ``os`` are given;
    otherwise every descriptor is returned unfiltered. A single match
    returns its digest string, several matches return the matching
    descriptors (the caller disambiguates).

    Raises:
        NotFound: If architecture and os are given and nothing matches
    """
    if not architecture or not os:
        return list(descriptors)

    matching = [d for d in descriptors if d.matches(architecture, os, variant)]
    if len(matching) == 1:
        return matching[0].digest
    if not matching:
        platform = f"os={os} architecture={architecture}"
        if variant:
            platform += f" variant={variant}"
        raise NotFound(f"No manifest for image {image}:{reference} matching {platform}")
    return matching


def manifest_sum(manifest: Manifest) -> int:
    """Total size of the layers of a schema 2 manifest."""
    if not isinstance(manifest, ManifestV2):
        raise UnsupportedSchemaVersion("Layer sizes are only recorded in schema 2 manifests")
    return sum(layer.get("size", 0) for layer in manifest.layers)


__all__ = [
    "PlatformDescriptor",
    "Manifest",
    "ManifestV1",
    "ManifestV2",
    "ManifestList",
    "AnyManifest",
    "parse_manifest",
    "select_platform",
    "manifest_sum",
]
