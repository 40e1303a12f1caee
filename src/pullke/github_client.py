"""Async client for the GitHub search REST endpoints."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from asyncio_throttle import Throttler

from . import __version__
from .auth import CredentialProvider
from .config import GITHUB_MAX_PER_PAGE, GitHubConfig
from .errors import AuthenticationError, RemoteSearchError, RetryConfig, retry_async

logger = logging.getLogger(__name__)


class GitHubClient:
    """Thin wrapper over ``httpx.AsyncClient`` for search and user lookups."""

    def __init__(
        self,
        token: str,
        config: Optional[GitHubConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.config = config or GitHubConfig()
        self.retry_config = retry_config or RetryConfig()
        self.throttler = Throttler(rate_limit=self.config.rate_limit, period=self.config.rate_period)
        self._client = httpx.AsyncClient(
            base_url=self.config.api_url.rstrip("/"),
            headers={
                "Authorization": f"token {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": f"pullke/{__version__}",
            },
            timeout=self.config.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request_once(self, path: str, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        async with self.throttler:
            try:
                response = await self._client.get(path, params=params)
            except httpx.TransportError as e:
                raise RemoteSearchError(
                    f"Request to {path} failed: {e}", retryable=True, cause=e
                ) from e

        if response.status_code == 401:
            raise AuthenticationError(f"GitHub authentication failed ({path}: 401)")

        if response.status_code >= 400:
            message = _error_detail(response)
            raise RemoteSearchError(
                f"GitHub request {path} failed with {response.status_code}: {message}",
                status_code=response.status_code,
                retryable=response.status_code >= 500,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteSearchError(
                f"Malformed response from {path}", status_code=response.status_code, cause=e
            ) from e

        if not isinstance(data, dict):
            raise RemoteSearchError(
                f"Unexpected response shape from {path}", status_code=response.status_code
            )
        return data

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await retry_async(
            self._request_once, self.retry_config, (RemoteSearchError,), path, params
        )

    async def _search(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._get(path, params)
        if not isinstance(data.get("items"), list):
            raise RemoteSearchError(f"Search response from {path} has no items")
        return data

    async def search_repositories(
        self,
        q: str,
        page: int = 1,
        per_page: int = GITHUB_MAX_PER_PAGE,
        sort: str = "updated",
        order: str = "desc",
    ) -> Dict[str, Any]:
        """One page of ``GET /search/repositories``."""
        logger.debug(f"Searching repositories: q={q!r} page={page}")
        return await self._search(
            "/search/repositories",
            {"q": q, "sort": sort, "order": order, "per_page": per_page, "page": page},
        )

    async def search_issues(
        self,
        q: str,
        per_page: int = GITHUB_MAX_PER_PAGE,
        sort: str = "updated",
        order: str = "desc",
        page: int = 1,
        advanced_search: bool = True,
    ) -> Dict[str, Any]:
        """One page of ``GET /search/issues``."""
        logger.debug(f"Searching issues: q={q!r} page={page}")
        params: Dict[str, Any] = {
            "q": q,
            "sort": sort,
            "order": order,
            "per_page": min(per_page, GITHUB_MAX_PER_PAGE),
            "page": page,
        }
        if advanced_search:
            params["advanced_search"] = "true"
        return await self._search("/search/issues", params)

    async def get_authenticated_user(self) -> Dict[str, Any]:
        """``GET /user`` for the token's owner."""
        return await self._get("/user")


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


async def create_client(
    credentials: CredentialProvider,
    config: Optional[GitHubConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> GitHubClient:
    """Authenticated client; raises AuthenticationError when no token is available."""
    token = credentials.get_token()
    return GitHubClient(token, config=config, transport=transport)


class ClientUnavailable(AuthenticationError):
    """No client could be built, so no scope of the request can run."""


ClientFactory = Callable[[], Awaitable[GitHubClient]]


class LazyClient:
    """Builds the client on first use, so cache hits never need credentials."""

    def __init__(self, factory: ClientFactory):
        self._factory = factory
        self._client: Optional[GitHubClient] = None
        self._error: Optional[ClientUnavailable] = None
        self._lock = asyncio.Lock()

    async def get(self) -> GitHubClient:
        """The shared client; a failed construction is not retried."""
        async with self._lock:
            if self._error is not None:
                raise self._error
            if self._client is None:
                try:
                    self._client = await self._factory()
                except AuthenticationError as e:
                    self._error = ClientUnavailable(e.message, cause=e)
                    raise self._error from e
            return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
