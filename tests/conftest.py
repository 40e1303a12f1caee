"""Shared fixtures: an in-memory stand-in for the GitHub client."""

from typing import Dict, List, Optional

import pytest

from pullke.errors import AuthenticationError, RemoteSearchError


def repo(full_name, **fields):
    owner, name = full_name.split("/")
    data = {"full_name": full_name, "name": name, "html_url": f"https://github.com/{full_name}"}
    data.update(fields)
    return data


def make_repos(owner: str, count: int, start: int = 0) -> List[dict]:
    return [repo(f"{owner}/repo{i}") for i in range(start, start + count)]


class FakeGitHub:
    """Serves canned search pages keyed by query."""

    def __init__(
        self,
        repository_pages: Optional[Dict[str, List[List[dict]]]] = None,
        issues: Optional[dict] = None,
        failing_queries: Optional[Dict[str, Exception]] = None,
    ):
        self.repository_pages = repository_pages or {}
        self.issues = issues or {"total_count": 0, "incomplete_results": False, "items": []}
        self.failing_queries = failing_queries or {}
        self.repository_calls: List[dict] = []
        self.issue_calls: List[dict] = []
        self.closed = False

    async def search_repositories(self, q, page=1, per_page=100, sort="updated", order="desc"):
        self.repository_calls.append({"q": q, "page": page, "per_page": per_page})
        if q in self.failing_queries:
            raise self.failing_queries[q]
        pages = self.repository_pages.get(q, [])
        items = pages[page - 1] if page <= len(pages) else []
        return {"total_count": sum(len(p) for p in pages), "items": items}

    async def search_issues(self, q, per_page=100, sort="updated", order="desc", page=1, advanced_search=True):
        self.issue_calls.append({"q": q, "per_page": per_page, "sort": sort, "order": order})
        if q in self.failing_queries:
            raise self.failing_queries[q]
        return self.issues

    async def close(self):
        self.closed = True


class FakeFactory:
    """Async client factory counting how often a client was requested."""

    def __init__(self, client: Optional[FakeGitHub] = None, error: Optional[Exception] = None):
        self.client = client or FakeGitHub()
        self.error = error
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.client


@pytest.fixture
def remote_error():
    return RemoteSearchError("GitHub request /search/repositories failed with 422: Validation Failed", status_code=422)


@pytest.fixture
def auth_failure():
    return AuthenticationError("GitHub CLI authentication failed")
