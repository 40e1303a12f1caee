"""Data models for GitHub search requests and results."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class PullRequestState(str, Enum):
    """State filters understood by the pull request search."""

    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"
    DRAFT = "draft"
    ALL = "all"


class SortField(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ReviewStatus(str, Enum):
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    REVIEW_REQUIRED = "review_required"
    NONE = "none"


class RepositorySearchOptions(BaseModel):
    """Parameters for a multi-organization repository search."""

    organizations: List[str] = Field(default_factory=list)
    keywords: Optional[str] = None
    include_current_user: bool = False
    use_cache: bool = True
    cache_ttl: Optional[float] = None
    max_results: Optional[int] = Field(None, ge=1)
    max_pages: Optional[int] = Field(None, ge=1)

    @field_validator("organizations")
    @classmethod
    def _strip_organizations(cls, value: List[str]) -> List[str]:
        return [org.strip() for org in value if org and org.strip()]


class PullRequestSearchOptions(BaseModel):
    """Parameters for a single-repository pull request search."""

    owner: str = ""
    repo: str = ""
    states: Optional[List[PullRequestState]] = None
    sort: Optional[SortField] = None
    order: Optional[SortOrder] = None
    author: Optional[str] = None
    assignee: Optional[str] = None
    labels: Optional[List[str]] = None
    review_status: Optional[ReviewStatus] = None
    query: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    max_results: Optional[int] = Field(None, ge=1)
    use_cache: bool = True
    cache_ttl: Optional[float] = None

    def cache_options(self) -> Dict[str, Any]:
        """Filter parameters that distinguish one cached result from another."""
        return {
            "states": [state.value for state in self.states] if self.states else self.states,
            "sort": self.sort.value if self.sort else None,
            "order": self.order.value if self.order else None,
            "author": self.author,
            "assignee": self.assignee,
            "labels": self.labels,
            "review_status": self.review_status.value if self.review_status else None,
            "query": self.query,
            "date_from": self.date_from,
            "date_to": self.date_to,
            "max_results": self.max_results,
        }


class SearchResult(BaseModel):
    """Aggregate result returned by every search operation."""

    success: bool
    items: List[Dict[str, Any]] = Field(default_factory=list)
    total_count: int = 0
    incomplete_results: bool = False
    cached: bool = False
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "SearchResult":
        return cls(success=False, items=[], total_count=0, incomplete_results=False, error=error)
