"""
Manifest media types and header names.

Single source of truth for the media types the client negotiates and the
headers of record it reads.
"""
from __future__ import annotations

# Docker distribution manifest types
DOCKER_MANIFEST_V1 = "application/vnd.docker.distribution.manifest.v1+json"
DOCKER_MANIFEST_V1_SIGNED = "application/vnd.docker.distribution.manifest.v1+prettyjws"
DOCKER_MANIFEST_V2 = "application/vnd.docker.distribution.manifest.v2+json"
DOCKER_MANIFEST_LIST = "application/vnd.docker.distribution.manifest.list.v2+json"

# OCI manifest types
OCI_IMAGE_MANIFEST = "application/vnd.oci.image.manifest.v1+json"
OCI_IMAGE_INDEX = "application/vnd.oci.image.index.v1+json"

GENERIC_JSON = "application/json"

# Accept header for manifest fetches (in order of preference)
ACCEPTED_MANIFEST_TYPES = [
    DOCKER_MANIFEST_V2,
    DOCKER_MANIFEST_LIST,
    OCI_IMAGE_MANIFEST,
    OCI_IMAGE_INDEX,
    GENERIC_JSON,
]

# Single-platform manifests: a HEAD response with one of these is final
PLAIN_MANIFEST_TYPES = frozenset({
    DOCKER_MANIFEST_V1,
    DOCKER_MANIFEST_V1_SIGNED,
    DOCKER_MANIFEST_V2,
    OCI_IMAGE_MANIFEST,
})

LIST_MANIFEST_TYPES = frozenset({
    DOCKER_MANIFEST_LIST,
    OCI_IMAGE_INDEX,
})

# Used for PUT when the source manifest carries no media type of its own
DEFAULT_PUT_MEDIA_TYPE = DOCKER_MANIFEST_V2

CONTENT_DIGEST_HEADER = "Docker-Content-Digest"


def base_media_type(content_type: str | None) -> str | None:
    """Strip parameters (``; charset=...``) from a Content-Type value."""
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower()


__all__ = [
    "DOCKER_MANIFEST_V1",
    "DOCKER_MANIFEST_V1_SIGNED",
    "DOCKER_MANIFEST_V2",
    "DOCKER_MANIFEST_LIST",
    "OCI_IMAGE_MANIFEST",
    "OCI_IMAGE_INDEX",
    "GENERIC_JSON",
    "ACCEPTED_MANIFEST_TYPES",
    "PLAIN_MANIFEST_TYPES",
    "LIST_MANIFEST_TYPES",
    "DEFAULT_PUT_MEDIA_TYPE",
    "CONTENT_DIGEST_HEADER",
    "base_media_type",
]
