"""Tests for configuration management."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from pullke.config import (
    DEFAULT_PR_TTL_SECONDS,
    DEFAULT_REPO_TTL_SECONDS,
    ApplicationConfig,
    CacheConfig,
    ConfigManager,
    GitHubConfig,
    MonitoringConfig,
    SearchConfig,
    _parse_bool,
    get_config_manager,
    parse_list,
    reset_config,
)
from pullke.errors import ConfigurationError


class TestConfigurationDataclasses:
    """Test configuration dataclasses."""

    def test_cache_config_defaults(self):
        """Test cache configuration defaults."""
        config = CacheConfig()

        assert config.enabled is True
        assert config.repo_ttl_seconds == DEFAULT_REPO_TTL_SECONDS == 604800
        assert config.pr_ttl_seconds == DEFAULT_PR_TTL_SECONDS == 86400
        assert config.cache_dir == str(Path.home() / ".cache" / "pullke")

    def test_github_config_defaults(self):
        """Test GitHub configuration defaults."""
        config = GitHubConfig()

        assert config.api_url == "https://api.github.com"
        assert config.auth_command == ["gh", "auth", "token"]
        assert config.token is None

    def test_search_config_defaults(self):
        """Test search configuration defaults."""
        config = SearchConfig()

        assert config.organizations == []
        assert config.max_pages == 10
        assert config.per_page == 100
        assert config.concurrent_scopes is False

    def test_application_config_composition(self):
        """Test application configuration composition."""
        config = ApplicationConfig()

        assert isinstance(config.cache, CacheConfig)
        assert isinstance(config.github, GitHubConfig)
        assert isinstance(config.search, SearchConfig)
        assert isinstance(config.monitoring, MonitoringConfig)


class TestConfigurationValidation:
    """Test configuration validation."""

    def test_valid_configuration(self):
        """Test validation of valid configuration."""
        ApplicationConfig().validate()

    def test_invalid_ttl(self):
        """Test validation of non-positive TTLs."""
        config = ApplicationConfig()
        config.cache.repo_ttl_seconds = 0

        with pytest.raises(ConfigurationError, match="Repository cache TTL must be positive"):
            config.validate()

    def test_invalid_max_pages(self):
        """Test validation of the page bound."""
        config = ApplicationConfig()
        config.search.max_pages = 11

        with pytest.raises(ConfigurationError, match="Max pages must be between 1 and 10"):
            config.validate()

    def test_invalid_log_level(self):
        """Test validation of invalid log level."""
        config = ApplicationConfig()
        config.monitoring.log_level = "INVALID"

        with pytest.raises(ConfigurationError, match="Log level must be one of"):
            config.validate()

    def test_multiple_errors_reported_together(self):
        config = ApplicationConfig()
        config.github.request_timeout = 0
        config.github.rate_limit = 0

        with pytest.raises(ConfigurationError) as exc_info:
            config.validate()

        assert "Request timeout must be positive" in exc_info.value.message
        assert "Rate limit must be positive" in exc_info.value.message


class TestEnvironmentConfiguration:
    """Test configuration loading from environment variables."""

    def test_from_environment_defaults(self):
        """Test loading configuration with default values."""
        with patch.dict(os.environ, {}, clear=True):
            config = ApplicationConfig.from_environment()

        assert config.search.organizations == []
        assert config.search.keywords is None
        assert config.cache.repo_ttl_seconds == DEFAULT_REPO_TTL_SECONDS

    def test_from_environment_prefixed_variables(self):
        env_vars = {
            "PULLKE_CACHE_DIR": "/tmp/pullke-test",
            "PULLKE_CACHE_ENABLED": "false",
            "PULLKE_PR_CACHE_TTL": "60",
            "PULLKE_ORGANIZATIONS": "octo-org, other-org,,",
            "PULLKE_KEYWORDS": "api,web",
            "PULLKE_INCLUDE_USER_REPOS": "yes",
            "PULLKE_MAX_PAGES": "3",
            "PULLKE_GITHUB_TOKEN": "ghp_secret",
            "PULLKE_LOG_LEVEL": "debug",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            config = ApplicationConfig.from_environment()

        assert config.cache.cache_dir == "/tmp/pullke-test"
        assert config.cache.enabled is False
        assert config.cache.pr_ttl_seconds == 60
        assert config.search.organizations == ["octo-org", "other-org"]
        assert config.search.keywords == "api,web"
        assert config.search.include_current_user is True
        assert config.search.max_pages == 3
        assert config.github.token == "ghp_secret"
        assert config.monitoring.log_level == "DEBUG"

    def test_from_environment_launcher_variables(self):
        """Launcher workflow variables are honoured."""
        env_vars = {
            "organizations": "acme",
            "keywords": "  ",
            "cache_ttl_hours": "2",
            "include_user_repos": "1",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            config = ApplicationConfig.from_environment()

        assert config.search.organizations == ["acme"]
        assert config.search.keywords is None
        assert config.cache.repo_ttl_seconds == 7200
        assert config.search.include_current_user is True

    def test_from_environment_invalid_values(self):
        with patch.dict(os.environ, {"PULLKE_MAX_PAGES": "0"}, clear=True):
            with pytest.raises(ConfigurationError):
                ApplicationConfig.from_environment()


class TestConfigurationSerialization:
    """Test configuration serialization."""

    def test_to_dict(self):
        config = ApplicationConfig()
        config_dict = config.to_dict()

        assert set(config_dict) == {"cache", "github", "search", "monitoring"}
        assert config_dict["search"]["max_pages"] == 10

    def test_to_safe_dict_masks_token(self):
        config = ApplicationConfig()
        config.github.token = "ghp_secret"

        safe_dict = config.to_safe_dict()

        assert safe_dict["github"]["token"] == "***MASKED***"
        assert config.github.token == "ghp_secret"


class TestConfigManager:
    """Test configuration manager."""

    def setup_method(self):
        reset_config()

    def teardown_method(self):
        reset_config()

    def test_config_manager_caching(self):
        """Test configuration caching."""
        manager = ConfigManager()

        with patch.dict(os.environ, {}, clear=True):
            config1 = manager.get_config()
            config2 = manager.get_config()

        assert config1 is config2

    def test_config_manager_reload(self):
        manager = ConfigManager()

        with patch.dict(os.environ, {"PULLKE_ORGANIZATIONS": "a"}, clear=True):
            config1 = manager.get_config()
        with patch.dict(os.environ, {"PULLKE_ORGANIZATIONS": "b"}, clear=True):
            config2 = manager.reload_config()

        assert config1.search.organizations == ["a"]
        assert config2.search.organizations == ["b"]

    def test_set_config_validates(self):
        manager = ConfigManager()
        config = ApplicationConfig()
        config.search.per_page = 500

        with pytest.raises(ConfigurationError):
            manager.set_config(config)

    def test_global_config_manager(self):
        assert get_config_manager() is get_config_manager()


class TestParsing:
    """Test environment value parsing helpers."""

    @pytest.mark.parametrize("value", ["true", "1", "YES", "on", "enabled"])
    def test_parse_bool_true(self, value):
        assert _parse_bool(value) is True

    @pytest.mark.parametrize("value", ["false", "0", "no", ""])
    def test_parse_bool_false(self, value):
        assert _parse_bool(value) is False

    def test_parse_list(self):
        assert parse_list(" a , b,, c ") == ["a", "b", "c"]
        assert parse_list("") == []
