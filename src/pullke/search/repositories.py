"""
Repository search across several organizations and the authenticated user.

Each scope (one organization, or the user's own repositories) is paginated
and cached independently. Results are merged in scope order and
deduplicated by ``full_name`` so earlier scopes win.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..cache import CacheKey, CacheStore, get_from_cache_or_fetch, repository_search_key
from ..config import GITHUB_MAX_PAGES, SearchConfig
from ..errors import ConfigurationError, error_message
from ..github_client import ClientFactory, ClientUnavailable, LazyClient
from ..models import RepositorySearchOptions, SearchResult
from .query import USER_REPOSITORIES_QUERY, build_repository_query

logger = logging.getLogger(__name__)

Repository = Dict[str, Any]


@dataclass(frozen=True)
class SearchScope:
    """One independently paginated and cached unit of a repository search."""

    name: str
    query: str
    cache_key: CacheKey


@dataclass
class ScopeOutcome:
    items: List[Repository] = field(default_factory=list)
    cached: bool = False
    failed: bool = False


def build_scopes(
    options: RepositorySearchOptions,
    max_pages: Optional[int] = None,
    max_results: Optional[int] = None,
) -> List[SearchScope]:
    """Organization scopes in input order, then the user scope if requested.

    The user scope ignores keywords and returns all of the user's repositories.
    ``max_pages`` and ``max_results`` are the effective caps each scope is
    paginated with; they are folded into the cache keys.
    """
    limits = {"max_pages": max_pages, "max_results": max_results}
    scopes = [
        SearchScope(
            name=org,
            query=build_repository_query(org, options.keywords),
            cache_key=repository_search_key([org], options.keywords, **limits),
        )
        for org in options.organizations
    ]
    if options.include_current_user:
        scopes.append(
            SearchScope(
                name="@me",
                query=USER_REPOSITORIES_QUERY,
                cache_key=repository_search_key([], None, include_current_user=True, **limits),
            )
        )
    return scopes


def deduplicate(repositories: List[Repository]) -> List[Repository]:
    """Drop repeated ``full_name`` entries, keeping the first occurrence."""
    seen = set()
    unique = []
    for repo in repositories:
        name = repo.get("full_name")
        if name in seen:
            continue
        seen.add(name)
        unique.append(repo)
    return unique


class RepositorySearch:
    """Fan-out repository search with bounded pagination per scope."""

    def __init__(
        self,
        client_factory: ClientFactory,
        store: Optional[CacheStore] = None,
        config: Optional[SearchConfig] = None,
    ):
        self.client_factory = client_factory
        self.store = store
        self.config = config or SearchConfig()

    def _max_pages(self, options: RepositorySearchOptions) -> int:
        requested = options.max_pages or self.config.max_pages
        return max(1, min(requested, GITHUB_MAX_PAGES))

    def _max_results(self, options: RepositorySearchOptions) -> Optional[int]:
        return options.max_results or self.config.max_results

    async def search(self, options: RepositorySearchOptions) -> SearchResult:
        """Run every scope and merge the results. Never raises."""
        if not options.organizations and not options.include_current_user:
            error = ConfigurationError(
                "No organizations configured. Set the organizations to search.",
                field="organizations",
            )
            return SearchResult.failure(error_message(error))

        scopes = build_scopes(options, self._max_pages(options), self._max_results(options))
        logger.info(f"Searching repositories in {len(scopes)} scopes")

        client = LazyClient(self.client_factory)
        try:
            if self.config.concurrent_scopes:
                outcomes = await self._run_concurrently(scopes, options, client)
            else:
                outcomes = []
                for scope in scopes:
                    outcomes.append(await self._run_scope(scope, options, client))
        except ClientUnavailable as e:
            logger.error(f"Repository search failed: {e.message}")
            return SearchResult.failure(error_message(e))
        finally:
            await client.close()

        failed = sum(1 for outcome in outcomes if outcome.failed)
        if failed:
            logger.warning(f"{failed} of {len(scopes)} scopes failed; returning partial results")

        merged: List[Repository] = []
        for outcome in outcomes:
            merged.extend(outcome.items)

        items = deduplicate(merged)
        max_results = self._max_results(options)
        if max_results and len(items) > max_results:
            items = items[:max_results]

        logger.info(f"Total unique repositories found: {len(items)}")

        return SearchResult(
            success=True,
            items=items,
            total_count=len(items),
            incomplete_results=False,
            cached=all(outcome.cached for outcome in outcomes),
        )

    async def _run_concurrently(
        self, scopes: List[SearchScope], options: RepositorySearchOptions, client: LazyClient
    ) -> List[ScopeOutcome]:
        """Run every scope at once and wait for all of them to settle.

        The first error a scope let through is raised only after the other
        scopes finished, so the shared client is closed after its last use.
        """
        results = await asyncio.gather(
            *(self._run_scope(scope, options, client) for scope in scopes),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)

    async def _run_scope(
        self, scope: SearchScope, options: RepositorySearchOptions, client: LazyClient
    ) -> ScopeOutcome:
        async def fetch() -> List[Repository]:
            return await self._paginate(scope, options, client)

        try:
            if options.use_cache and self.store is not None:
                fetched = await get_from_cache_or_fetch(
                    self.store, scope.cache_key, fetch, options.cache_ttl
                )
                items, cached = fetched.data, fetched.cached
            else:
                items, cached = await fetch(), False
        except ClientUnavailable:
            raise
        except Exception as e:
            logger.error(f"Search in scope {scope.name} failed: {e}")
            return ScopeOutcome(failed=True)

        logger.debug(f"Found {len(items)} repos in {scope.name}")
        return ScopeOutcome(items=list(items), cached=cached)

    async def _paginate(
        self, scope: SearchScope, options: RepositorySearchOptions, client: LazyClient
    ) -> List[Repository]:
        github = await client.get()
        per_page = self.config.per_page
        max_pages = self._max_pages(options)
        max_results = self._max_results(options)

        repos: List[Repository] = []
        for page in range(1, max_pages + 1):
            data = await github.search_repositories(q=scope.query, page=page, per_page=per_page)
            page_repos = data["items"]
            repos.extend(page_repos)

            logger.debug(f"Page {page} of {scope.name}: {len(page_repos)} repos (total: {len(repos)})")

            if len(page_repos) < per_page:
                break

            if max_results and len(repos) >= max_results:
                break

        if max_results and len(repos) > max_results:
            return repos[:max_results]

        return repos
