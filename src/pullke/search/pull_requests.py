"""Pull request search within a single repository."""

import logging
from typing import Any, Dict, Optional

from ..cache import CacheStore, get_from_cache_or_fetch, pull_request_search_key
from ..config import GITHUB_MAX_PER_PAGE, SearchConfig
from ..errors import ConfigurationError, error_message
from ..github_client import ClientFactory, LazyClient
from ..models import PullRequestSearchOptions, SearchResult, SortField, SortOrder
from .query import build_pull_request_query

logger = logging.getLogger(__name__)


class PullRequestSearch:
    """Single-scope search over ``GET /search/issues`` restricted to one repo."""

    def __init__(
        self,
        client_factory: ClientFactory,
        store: Optional[CacheStore] = None,
        config: Optional[SearchConfig] = None,
    ):
        self.client_factory = client_factory
        self.store = store
        self.config = config or SearchConfig()

    async def search(self, options: PullRequestSearchOptions) -> SearchResult:
        """Search pull requests; failures are reported in the result."""
        if not options.owner or not options.repo:
            error = ConfigurationError(
                "Repository not specified. Expected format: owner/repo", field="repo"
            )
            return SearchResult.failure(error_message(error))

        client = LazyClient(self.client_factory)

        async def fetch() -> Dict[str, Any]:
            return await self._fetch(options, client)

        try:
            if options.use_cache and self.store is not None:
                cache_key = pull_request_search_key(
                    options.owner, options.repo, options.cache_options()
                )
                fetched = await get_from_cache_or_fetch(
                    self.store, cache_key, fetch, options.cache_ttl
                )
                data, cached = fetched.data, fetched.cached
            else:
                data, cached = await fetch(), False
        except Exception as e:
            logger.error(f"Pull request search failed: {e}")
            return SearchResult.failure(error_message(e))
        finally:
            await client.close()

        return SearchResult(
            success=True,
            items=data["items"],
            total_count=data["total_count"],
            incomplete_results=data["incomplete_results"],
            cached=cached,
        )

    async def _fetch(self, options: PullRequestSearchOptions, client: LazyClient) -> Dict[str, Any]:
        github = await client.get()
        logger.info(f"Searching pull requests in {options.owner}/{options.repo}")

        query = build_pull_request_query(
            options.owner,
            options.repo,
            states=options.states,
            author=options.author,
            assignee=options.assignee,
            labels=options.labels,
            review_status=options.review_status,
            query=options.query,
            date_from=options.date_from,
            date_to=options.date_to,
        )
        logger.debug(f"Search query: {query!r}")

        max_results = options.max_results or self.config.pr_max_results
        per_page = min(max_results, GITHUB_MAX_PER_PAGE)
        sort = SortField.CREATED if options.sort == SortField.CREATED else SortField.UPDATED
        order = SortOrder.ASC if options.order == SortOrder.ASC else SortOrder.DESC

        data = await github.search_issues(
            q=query, per_page=per_page, sort=sort.value, order=order.value
        )
        items = data["items"][:max_results]

        logger.info(f"Found {len(items)} pull requests")

        return {
            "items": items,
            "total_count": int(data.get("total_count", len(items))),
            "incomplete_results": bool(data.get("incomplete_results", False)),
        }
