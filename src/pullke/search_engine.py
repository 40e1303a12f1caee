"""
Public search interface.

Wires configuration, the credential provider, the cache store and the GitHub
client into the repository and pull request searches.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from .auth import CredentialProvider, StaticCredentialProvider
from .cache import CacheInfo, CacheStore, ClearResult
from .config import ApplicationConfig, get_config
from .errors import ConfigurationError, PullkeError, error_message
from .github_client import GitHubClient, create_client
from .models import PullRequestSearchOptions, RepositorySearchOptions, SearchResult
from .search.pull_requests import PullRequestSearch
from .search.repositories import RepositorySearch

logger = logging.getLogger(__name__)


def _invalid_parameters(error: ValidationError) -> SearchResult:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}" for item in error.errors()
    )
    return SearchResult.failure(error_message(ConfigurationError(f"Invalid search parameters: {problems}")))


class SearchEngine:
    """Cached GitHub repository and pull request search."""

    def __init__(
        self,
        config: Optional[ApplicationConfig] = None,
        credentials: Optional[CredentialProvider] = None,
        store: Optional[CacheStore] = None,
        transport: Any = None,
    ):
        self.config = config or get_config()
        self.credentials = credentials or self._default_credentials()
        self.store = store or CacheStore.from_config(self.config.cache)
        self._transport = transport

        cache_store = self.store if self.config.cache.enabled else None
        self.repositories = RepositorySearch(self._create_client, cache_store, self.config.search)
        self.pull_requests = PullRequestSearch(self._create_client, cache_store, self.config.search)

    def _default_credentials(self) -> CredentialProvider:
        if self.config.github.token:
            return StaticCredentialProvider(self.config.github.token)
        return CredentialProvider(self.config.github.auth_command, self.config.github.auth_timeout)

    async def _create_client(self) -> GitHubClient:
        return await create_client(self.credentials, self.config.github, transport=self._transport)

    async def search_repositories(
        self, options: Optional[RepositorySearchOptions] = None, **params: Any
    ) -> SearchResult:
        """Search repositories; unset parameters fall back to configuration."""
        if options is None:
            search = self.config.search
            params.setdefault("organizations", list(search.organizations))
            params.setdefault("keywords", search.keywords)
            params.setdefault("include_current_user", search.include_current_user)
            try:
                options = RepositorySearchOptions(**params)
            except ValidationError as e:
                return _invalid_parameters(e)
        return await self.repositories.search(options)

    async def search_pull_requests(
        self, options: Optional[PullRequestSearchOptions] = None, **params: Any
    ) -> SearchResult:
        """Search pull requests in one repository."""
        if options is None:
            try:
                options = PullRequestSearchOptions(**params)
            except ValidationError as e:
                return _invalid_parameters(e)
        return await self.pull_requests.search(options)

    def clear_all_cache(self) -> ClearResult:
        return self.store.clear_all()

    def get_cache_info(self) -> CacheInfo:
        return self.store.info()

    async def test_authentication(self) -> bool:
        """Whether a token can be obtained and GitHub accepts it."""
        try:
            async with await self._create_client() as client:
                user = await client.get_authenticated_user()
        except PullkeError as e:
            logger.warning(f"Authentication check failed: {e.message}")
            return False

        logger.info(f"Authenticated as {user.get('login')}")
        return True


_default_engine: Optional[SearchEngine] = None


def get_search_engine() -> SearchEngine:
    """Shared engine built from the environment configuration."""
    global _default_engine
    if _default_engine is None:
        _default_engine = SearchEngine()
    return _default_engine


def reset_search_engine() -> None:
    """Drop the shared engine (for testing)."""
    global _default_engine
    _default_engine = None


async def search_repositories(**params: Any) -> SearchResult:
    return await get_search_engine().search_repositories(**params)


async def search_pull_requests(**params: Any) -> SearchResult:
    return await get_search_engine().search_pull_requests(**params)


def clear_all_cache() -> ClearResult:
    return get_search_engine().clear_all_cache()


def get_cache_info() -> CacheInfo:
    return get_search_engine().get_cache_info()
