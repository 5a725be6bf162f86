"""
Tests for ComposerRepoConfig.
"""

import json
import os
from unittest.mock import patch

import pytest

from src.gitlab_composer.config import ComposerRepoConfig, ConfigurationError


class TestComposerRepoConfig:
    """Test configuration defaults and normalization."""

    def test_defaults(self):
        config = ComposerRepoConfig()
        assert config.method == "ssh"
        assert config.cache_dir is None
        assert config.groups == []
        assert config.projects == []
        assert config.per_page == 100

    def test_unknown_method_falls_back_to_ssh(self):
        assert ComposerRepoConfig(method="ftp").method == "ssh"
        assert ComposerRepoConfig(method="http").method == "http"

    def test_cache_dir_trailing_slash_stripped(self):
        assert ComposerRepoConfig(cache_dir="/var/cache/composer/").cache_dir == (
            "/var/cache/composer"
        )
        assert ComposerRepoConfig(cache_dir="").cache_dir is None

    def test_add_group_accepts_list_and_varargs(self):
        config = ComposerRepoConfig()
        result = config.add_group("acme", "tools").add_group(["libs"])

        assert result is config
        assert config.groups == ["acme", "tools", "libs"]

    def test_add_project(self):
        config = ComposerRepoConfig().add_project(["acme/lib"], "acme/core")
        assert config.projects == ["acme/lib", "acme/core"]

    def test_validate(self):
        with pytest.raises(ConfigurationError, match="URL"):
            ComposerRepoConfig(token="t").validate()
        with pytest.raises(ConfigurationError, match="token"):
            ComposerRepoConfig(endpoint="https://gitlab.example.com").validate()
        ComposerRepoConfig(endpoint="https://gitlab.example.com", token="t").validate()


class TestConfigLoading:
    """Test loading from environment and files."""

    @patch("src.gitlab_composer.config.load_dotenv")
    @patch.dict(
        os.environ,
        {
            "GITLAB_URL": "https://gitlab.example.com/",
            "GITLAB_TOKEN": "secret",
            "GITLAB_COMPOSER_METHOD": "http",
            "GITLAB_COMPOSER_CACHE_DIR": "/tmp/composer-cache",
            "GITLAB_COMPOSER_GROUPS": "acme, tools",
            "GITLAB_COMPOSER_PROJECTS": "acme/lib",
        },
        clear=True,
    )
    def test_from_env(self, mock_load_dotenv):
        config = ComposerRepoConfig.from_env()

        mock_load_dotenv.assert_called_once()
        assert config.endpoint == "https://gitlab.example.com"
        assert config.token == "secret"
        assert config.method == "http"
        assert config.cache_dir == "/tmp/composer-cache"
        assert config.groups == ["acme", "tools"]
        assert config.projects == ["acme/lib"]

    @patch("src.gitlab_composer.config.load_dotenv")
    @patch.dict(os.environ, {}, clear=True)
    def test_from_env_empty(self, mock_load_dotenv):
        config = ComposerRepoConfig.from_env()
        assert config.endpoint == ""
        assert config.cache_dir is None
        assert config.groups == []

    def test_from_file(self, tmp_path):
        config_file = tmp_path / "composer.json"
        config_file.write_text(
            json.dumps(
                {
                    "endpoint": "https://gitlab.example.com",
                    "token": "t",
                    "groups": ["acme"],
                }
            )
        )

        config = ComposerRepoConfig.from_file(config_file)

        assert config.endpoint == "https://gitlab.example.com"
        assert config.groups == ["acme"]

    def test_from_file_errors(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            ComposerRepoConfig.from_file(tmp_path / "missing.json")

        bad = tmp_path / "bad.json"
        bad.write_text("{")
        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            ComposerRepoConfig.from_file(bad)

        unknown = tmp_path / "unknown.json"
        unknown.write_text(json.dumps({"endpoint": "x", "colour": "blue"}))
        with pytest.raises(ConfigurationError, match="colour"):
            ComposerRepoConfig.from_file(unknown)
