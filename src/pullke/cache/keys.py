"""
Deterministic cache keys for repository and pull request searches.

Equivalent parameter sets must map to the same key: organization and keyword
order, surrounding whitespace and duplicates never change the result.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from ..search.query import split_keywords


class KeyFamily(Enum):
    """Class of cache keys sharing a default TTL policy."""

    REPOSITORIES = "repos"
    PULL_REQUESTS = "prs"

    @property
    def prefix(self) -> str:
        return f"{self.value}_"


@dataclass(frozen=True)
class CacheKey:
    """Cache key tagged with the family that selects its default TTL."""

    family: KeyFamily
    value: str

    def __str__(self) -> str:
        return self.value


USER_SCOPE_MARKER = "user"
PR_OPTION_SEPARATOR = "|"


def repository_search_key(
    organizations: Iterable[str],
    keywords: Optional[str] = None,
    include_current_user: bool = False,
    max_pages: Optional[int] = None,
    max_results: Optional[int] = None,
) -> CacheKey:
    """Build the key for a repository search across ``organizations``.

    Page and result caps, when given, become part of the key, so lists cut
    by different caps are cached apart.
    """
    orgs_key = ",".join(sorted({org.strip().lower() for org in organizations if org.strip()}))
    keywords_key = ",".join(sorted(split_keywords(keywords)))
    user_key = USER_SCOPE_MARKER if include_current_user else ""

    value = f"{KeyFamily.REPOSITORIES.prefix}{orgs_key}_{keywords_key}_{user_key}"
    if max_pages is not None:
        value += f"_pages{max_pages}"
    if max_results is not None:
        value += f"_max{max_results}"

    return CacheKey(KeyFamily.REPOSITORIES, value)


def _render_option(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (list, tuple)):
        return ",".join(_render_option(item) for item in value)
    return str(value)


def pull_request_search_key(
    owner: str, repo: str, options: Optional[Mapping[str, Any]] = None
) -> CacheKey:
    """Build the key for a pull request search in ``owner/repo``.

    Options set to ``None`` are left out entirely, so omitting a filter and
    passing ``None`` for it produce the same key.
    """
    options = options or {}
    options_key = PR_OPTION_SEPARATOR.join(
        f"{name}:{_render_option(options[name])}"
        for name in sorted(options)
        if options[name] is not None
    )

    return CacheKey(
        KeyFamily.PULL_REQUESTS,
        f"{KeyFamily.PULL_REQUESTS.prefix}{owner}_{repo}_{options_key}",
    )
