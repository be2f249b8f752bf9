"""Root pytest configuration for docker-registry2 tests."""
import pytest

from docker_registry2.registry import Registry
from docker_registry2.settings import Settings

from .storage.fakes.fake_registry_server import FakeRegistryServer


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires a live registry)"
    )


# Keep the developer's environment out of settings loading
@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Automatically clear registry environment variables."""
    for name in (
        "DOCKER_REGISTRY_URL",
        "DOCKER_REGISTRY_USERNAME",
        "DOCKER_REGISTRY_PASSWORD",
        "DOCKER_REGISTRY_OPEN_TIMEOUT",
        "DOCKER_REGISTRY_READ_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def server():
    """Anonymous fake registry."""
    return FakeRegistryServer()


@pytest.fixture
def settings(server) -> Settings:
    """Settings wired to the fake registry."""
    return server.settings()


@pytest.fixture
def registry(settings):
    """Registry client talking to the fake registry."""
    with Registry(settings) as reg:
        yield reg
