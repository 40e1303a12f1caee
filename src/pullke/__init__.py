"""
Pullke: cached GitHub repository and pull request search.

Repository searches fan out over several organizations (and optionally the
authenticated user's own repositories); pull request searches target a single
repository. Results are cached on disk with per-family TTLs.
"""

__version__ = "0.1.0"

from .errors import AuthenticationError, CacheError, ConfigurationError, PullkeError
from .models import (
    PullRequestSearchOptions,
    PullRequestState,
    RepositorySearchOptions,
    SearchResult,
)
from .search_engine import (
    SearchEngine,
    clear_all_cache,
    get_cache_info,
    search_pull_requests,
    search_repositories,
)

__all__ = [
    "__version__",
    "AuthenticationError",
    "CacheError",
    "ConfigurationError",
    "PullRequestSearchOptions",
    "PullRequestState",
    "PullkeError",
    "RepositorySearchOptions",
    "SearchEngine",
    "SearchResult",
    "clear_all_cache",
    "get_cache_info",
    "search_pull_requests",
    "search_repositories",
]
