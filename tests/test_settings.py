"""
Tests for settings module.

Tests settings validation, URI normalization and environment variable loading.
"""
from __future__ import annotations

import os
import pytest
from unittest.mock import patch

from docker_registry2.settings import DEFAULT_REGISTRY_URL, Settings, create_settings_from_env


class TestSettings:
    """Test Settings dataclass validation."""

    def test_defaults(self):
        settings = Settings()
        assert settings.base_uri == "https://registry.hub.docker.com"
        assert settings.user is None
        assert settings.password is None
        assert settings.open_timeout == 2.0
        assert settings.read_timeout == 5.0
        assert settings.http_options == {}
        assert settings.has_credentials is False

    def test_full_settings(self):
        settings = Settings(
            base_uri="http://localhost:5000",
            user="alice",
            password="secret",
            open_timeout=1.0,
            read_timeout=30.0,
            http_options={"verify": False},
        )
        assert settings.base_uri == "http://localhost:5000"
        assert settings.host == "localhost"
        assert settings.has_credentials is True
        assert settings.http_options == {"verify": False}

    def test_trailing_slash_removed(self):
        assert Settings(base_uri="https://quay.io/").base_uri == "https://quay.io"
        assert Settings(base_uri="https://example.com/mirror/").base_uri == "https://example.com/mirror"

    def test_settings_are_immutable(self):
        settings = Settings()
        with pytest.raises(AttributeError):
            settings.base_uri = "https://other.example"

    @pytest.mark.parametrize("uri", ["", "registry.example.com", "ftp://example.com", "https://"])
    def test_invalid_base_uri(self, uri):
        with pytest.raises(ValueError):
            Settings(base_uri=uri)

    def test_user_without_password(self):
        with pytest.raises(ValueError, match="together"):
            Settings(user="alice")

    def test_password_without_user(self):
        with pytest.raises(ValueError, match="together"):
            Settings(password="secret")

    def test_non_positive_timeouts(self):
        with pytest.raises(ValueError, match="open_timeout"):
            Settings(open_timeout=0)
        with pytest.raises(ValueError, match="read_timeout"):
            Settings(read_timeout=-1)


class TestCreateSettingsFromEnv:
    """Test creating settings from environment variables."""

    def test_empty_environment_uses_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = create_settings_from_env()
        assert settings.base_uri == DEFAULT_REGISTRY_URL
        assert settings.has_credentials is False

    def test_full_environment(self):
        env = {
            "DOCKER_REGISTRY_URL": "https://ghcr.io/",
            "DOCKER_REGISTRY_USERNAME": "alice",
            "DOCKER_REGISTRY_PASSWORD": "secret",
            "DOCKER_REGISTRY_OPEN_TIMEOUT": "3.5",
            "DOCKER_REGISTRY_READ_TIMEOUT": "60",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = create_settings_from_env()

        assert settings.base_uri == "https://ghcr.io"
        assert settings.user == "alice"
        assert settings.password == "secret"
        assert settings.open_timeout == 3.5
        assert settings.read_timeout == 60.0

    def test_empty_values_treated_as_unset(self):
        env = {"DOCKER_REGISTRY_USERNAME": "", "DOCKER_REGISTRY_READ_TIMEOUT": ""}
        with patch.dict(os.environ, env, clear=True):
            settings = create_settings_from_env()
        assert settings.user is None
        assert settings.read_timeout == 5.0

    def test_bad_timeout_raises(self):
        with patch.dict(os.environ, {"DOCKER_REGISTRY_OPEN_TIMEOUT": "soon"}, clear=True):
            with pytest.raises(ValueError):
                create_settings_from_env()

    def test_partial_credentials_raise(self):
        with patch.dict(os.environ, {"DOCKER_REGISTRY_USERNAME": "alice"}, clear=True):
            with pytest.raises(ValueError, match="together"):
                create_settings_from_env()

    def test_fresh_instance_every_call(self):
        with patch.dict(os.environ, {}, clear=True):
            assert create_settings_from_env() is not create_settings_from_env()
