"""
Tests for manifest parsing and platform selection.
"""
from __future__ import annotations

import json

import pytest

from docker_registry2.storage.errors import MalformedResponse, NotFound, UnsupportedSchemaVersion
from docker_registry2.storage.manifest import (
    ManifestList,
    ManifestV1,
    ManifestV2,
    PlatformDescriptor,
    manifest_sum,
    parse_manifest,
    select_platform,
)
from docker_registry2.storage.media_types import OCI_IMAGE_INDEX, base_media_type

AMD64 = PlatformDescriptor("sha256:" + "a" * 64, None, 100, "amd64", "linux")
ARM64 = PlatformDescriptor("sha256:" + "b" * 64, None, 100, "arm64", "linux")
ARM64_V8 = PlatformDescriptor("sha256:" + "c" * 64, None, 100, "arm64", "linux", "v8")


def _parse(document, headers=None):
    return parse_manifest(json.dumps(document).encode(), headers or {})


class TestParseManifest:

    def test_schema1(self):
        manifest = _parse({"schemaVersion": 1, "fsLayers": [{"blobSum": "sha256:1"}], "history": [{}]})
        assert isinstance(manifest, ManifestV1)
        assert manifest.layer_digests() == ["sha256:1"]
        assert len(manifest.history) == 1

    def test_schema2(self):
        manifest = _parse({
            "schemaVersion": 2,
            "config": {"digest": "sha256:c"},
            "layers": [{"digest": "sha256:1", "size": 3}, {"digest": "sha256:2", "size": 4}],
        })
        assert isinstance(manifest, ManifestV2)
        assert manifest.config["digest"] == "sha256:c"
        assert manifest.layer_digests() == ["sha256:1", "sha256:2"]
        assert manifest_sum(manifest) == 7

    def test_oci_index_is_a_list(self):
        manifest = _parse({
            "schemaVersion": 2,
            "mediaType": OCI_IMAGE_INDEX,
            "manifests": [{"digest": "sha256:x", "size": 1,
                           "platform": {"architecture": "amd64", "os": "linux"}}],
        })
        assert isinstance(manifest, ManifestList)
        assert manifest.manifests[0].architecture == "amd64"
        assert manifest.media_type == OCI_IMAGE_INDEX

    def test_envelope_keeps_body_and_headers(self):
        body = b'{"schemaVersion": 2,   "layers": []}'
        headers = {"Docker-Content-Digest": "sha256:abc",
                   "content-type": "application/vnd.oci.image.manifest.v1+json; charset=utf-8"}
        manifest = parse_manifest(body, headers)
        assert manifest.body == body
        assert manifest.digest == "sha256:abc"
        assert manifest.media_type == "application/vnd.oci.image.manifest.v1+json"
        assert manifest["schemaVersion"] == 2
        assert "layers" in manifest

    def test_invalid_json(self):
        with pytest.raises(MalformedResponse):
            parse_manifest(b"not json", {})

    def test_non_object(self):
        with pytest.raises(MalformedResponse):
            parse_manifest(b"[1, 2]", {})

    def test_unknown_schema_version(self):
        with pytest.raises(UnsupportedSchemaVersion):
            _parse({"schemaVersion": 3})

    def test_list_has_no_layers(self):
        manifest = _parse({"schemaVersion": 2, "manifests": []})
        with pytest.raises(UnsupportedSchemaVersion):
            manifest.layer_digests()

    def test_manifest_sum_requires_schema2(self):
        with pytest.raises(UnsupportedSchemaVersion):
            manifest_sum(_parse({"schemaVersion": 1, "fsLayers": []}))

    def test_descriptor_without_digest(self):
        manifest = _parse({"schemaVersion": 2, "manifests": [{"size": 1}]})
        with pytest.raises(MalformedResponse):
            manifest.manifests


class TestSelectPlatform:

    def test_unique_match_returns_digest(self):
        result = select_platform([AMD64, ARM64], "img", "latest", architecture="amd64", os="linux")
        assert result == AMD64.digest

    def test_missing_architecture_returns_everything(self):
        result = select_platform([AMD64, ARM64], "img", "latest", os="linux")
        assert result == [AMD64, ARM64]

    def test_missing_os_returns_everything(self):
        result = select_platform([AMD64, ARM64], "img", "latest", architecture="amd64")
        assert result == [AMD64, ARM64]

    def test_no_match_names_image_tag_os_and_architecture(self):
        with pytest.raises(NotFound) as exc_info:
            select_platform([AMD64, ARM64], "img", "latest", architecture="arm64", os="windows")
        message = str(exc_info.value)
        for fragment in ("img", "latest", "windows", "arm64"):
            assert fragment in message

    def test_ambiguous_match_returns_descriptors(self):
        result = select_platform([AMD64, ARM64, ARM64_V8], "img", "latest",
                                 architecture="arm64", os="linux")
        assert result == [ARM64, ARM64_V8]

    def test_variant_narrows(self):
        result = select_platform([AMD64, ARM64, ARM64_V8], "img", "latest",
                                 architecture="arm64", os="linux", variant="v8")
        assert result == ARM64_V8.digest


def test_base_media_type():
    assert base_media_type("Application/JSON; charset=utf-8") == "application/json"
    assert base_media_type(None) is None
