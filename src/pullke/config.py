"""
Configuration management with validation and environment variable support.

Settings come from ``PULLKE_*`` variables; the launcher workflow variables
(``organizations``, ``keywords``, ``cache_ttl_hours``, ``include_user_repos``)
are honoured as well so the same configuration drives both entry points.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import ConfigurationError, ErrorSeverity

logger = logging.getLogger(__name__)

DEFAULT_REPO_TTL_SECONDS = 7 * 24 * 60 * 60
DEFAULT_PR_TTL_SECONDS = 24 * 60 * 60
GITHUB_MAX_PAGES = 10
GITHUB_MAX_PER_PAGE = 100


@dataclass
class CacheConfig:
    """On-disk cache settings."""

    cache_dir: Optional[str] = None
    enabled: bool = True
    repo_ttl_seconds: float = DEFAULT_REPO_TTL_SECONDS
    pr_ttl_seconds: float = DEFAULT_PR_TTL_SECONDS

    def __post_init__(self):
        if self.cache_dir is None:
            self.cache_dir = str(Path.home() / ".cache" / "pullke")


@dataclass
class GitHubConfig:
    """GitHub API and credential settings."""

    api_url: str = "https://api.github.com"
    request_timeout: float = 30.0
    # Search API allows 30 authenticated requests per minute
    rate_limit: int = 30
    rate_period: float = 60.0
    auth_command: List[str] = field(default_factory=lambda: ["gh", "auth", "token"])
    auth_timeout: float = 10.0
    token: Optional[str] = None


@dataclass
class SearchConfig:
    """Search defaults."""

    organizations: List[str] = field(default_factory=list)
    keywords: Optional[str] = None
    include_current_user: bool = False
    max_pages: int = GITHUB_MAX_PAGES
    max_results: int = 1000
    per_page: int = GITHUB_MAX_PER_PAGE
    pr_max_results: int = 100
    concurrent_scopes: bool = False


@dataclass
class MonitoringConfig:
    """Logging configuration."""

    log_level: str = "WARNING"


@dataclass
class ApplicationConfig:
    """Main application configuration."""

    cache: CacheConfig = field(default_factory=CacheConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    @classmethod
    def from_environment(cls) -> "ApplicationConfig":
        """Create configuration from environment variables."""
        config = cls()

        # Cache configuration
        config.cache.cache_dir = os.getenv("PULLKE_CACHE_DIR", config.cache.cache_dir)
        config.cache.enabled = _parse_bool(
            os.getenv("PULLKE_CACHE_ENABLED", str(config.cache.enabled))
        )
        config.cache.repo_ttl_seconds = float(
            os.getenv("PULLKE_REPO_CACHE_TTL", config.cache.repo_ttl_seconds)
        )
        config.cache.pr_ttl_seconds = float(
            os.getenv("PULLKE_PR_CACHE_TTL", config.cache.pr_ttl_seconds)
        )
        ttl_hours = os.getenv("cache_ttl_hours")
        if ttl_hours:
            config.cache.repo_ttl_seconds = float(ttl_hours) * 3600

        # GitHub configuration
        config.github.api_url = os.getenv("PULLKE_GITHUB_API_URL", config.github.api_url)
        config.github.request_timeout = float(
            os.getenv("PULLKE_REQUEST_TIMEOUT", config.github.request_timeout)
        )
        config.github.rate_limit = int(os.getenv("PULLKE_RATE_LIMIT", config.github.rate_limit))
        config.github.token = os.getenv("PULLKE_GITHUB_TOKEN", config.github.token)

        # Search configuration
        organizations = os.getenv("PULLKE_ORGANIZATIONS", os.getenv("organizations"))
        if organizations is not None:
            config.search.organizations = parse_list(organizations)
        keywords = os.getenv("PULLKE_KEYWORDS", os.getenv("keywords"))
        if keywords is not None:
            config.search.keywords = keywords.strip() or None
        config.search.include_current_user = _parse_bool(
            os.getenv(
                "PULLKE_INCLUDE_USER_REPOS",
                os.getenv("include_user_repos", str(config.search.include_current_user)),
            )
        )
        config.search.max_pages = int(os.getenv("PULLKE_MAX_PAGES", config.search.max_pages))
        config.search.max_results = int(
            os.getenv("PULLKE_MAX_RESULTS", config.search.max_results)
        )
        config.search.concurrent_scopes = _parse_bool(
            os.getenv("PULLKE_CONCURRENT_SCOPES", str(config.search.concurrent_scopes))
        )

        # Monitoring configuration
        config.monitoring.log_level = os.getenv(
            "PULLKE_LOG_LEVEL", config.monitoring.log_level
        ).upper()

        config.validate()

        return config

    def validate(self) -> None:
        """Validate configuration settings."""
        errors = []

        if self.cache.repo_ttl_seconds <= 0:
            errors.append("Repository cache TTL must be positive")

        if self.cache.pr_ttl_seconds <= 0:
            errors.append("Pull request cache TTL must be positive")

        if self.github.request_timeout <= 0:
            errors.append("Request timeout must be positive")

        if self.github.rate_limit <= 0:
            errors.append("Rate limit must be positive")

        if not (1 <= self.search.max_pages <= GITHUB_MAX_PAGES):
            errors.append(f"Max pages must be between 1 and {GITHUB_MAX_PAGES}")

        if self.search.max_results <= 0:
            errors.append("Max results must be positive")

        if not (1 <= self.search.per_page <= GITHUB_MAX_PER_PAGE):
            errors.append(f"Per page must be between 1 and {GITHUB_MAX_PER_PAGE}")

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.monitoring.log_level not in valid_log_levels:
            errors.append(f"Log level must be one of: {', '.join(valid_log_levels)}")

        if errors:
            error_message = "Configuration validation failed:\n" + "\n".join(
                f"- {error}" for error in errors
            )
            raise ConfigurationError(error_message, severity=ErrorSeverity.CRITICAL)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""

        def _dataclass_to_dict(obj):
            if hasattr(obj, "__dataclass_fields__"):
                return {k: _dataclass_to_dict(v) for k, v in obj.__dict__.items()}
            elif isinstance(obj, list):
                return [_dataclass_to_dict(item) for item in obj]
            else:
                return obj

        return _dataclass_to_dict(self)

    def to_safe_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary with the token masked."""
        config_dict = self.to_dict()
        if config_dict["github"].get("token"):
            config_dict["github"]["token"] = "***MASKED***"
        return config_dict


def _parse_bool(value: str) -> bool:
    """Parse boolean value from string."""
    return value.lower() in ("true", "1", "yes", "on", "enabled")


def parse_list(value: str) -> List[str]:
    """Split a comma separated setting, dropping blanks."""
    return [item.strip() for item in value.split(",") if item.strip()]


class ConfigManager:
    """Configuration manager with caching and validation."""

    def __init__(self):
        self._config: Optional[ApplicationConfig] = None

    def get_config(self) -> ApplicationConfig:
        """Get the current configuration."""
        if self._config is None:
            self._config = ApplicationConfig.from_environment()
            logger.debug("Configuration loaded from environment variables")

        return self._config

    def reload_config(self) -> ApplicationConfig:
        """Reload configuration from environment."""
        self._config = None
        return self.get_config()

    def set_config(self, config: ApplicationConfig) -> None:
        """Set configuration (for testing)."""
        config.validate()
        self._config = config


_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_config() -> ApplicationConfig:
    """Get the current application configuration."""
    return get_config_manager().get_config()


def reset_config() -> None:
    """Reset configuration (for testing)."""
    global _config_manager
    _config_manager = None
