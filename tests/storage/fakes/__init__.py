# Fake implementations for testing

from .fake_registry_server import FakeRegistryServer, manifest_bytes, sha256_digest

__all__ = ["FakeRegistryServer", "manifest_bytes", "sha256_digest"]
