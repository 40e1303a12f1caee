"""Tests for multi-organization repository search."""

import pytest

from conftest import FakeFactory, FakeGitHub, make_repos, repo
from pullke.cache import CacheStore, repository_search_key
from pullke.config import SearchConfig
from pullke.models import RepositorySearchOptions
from pullke.search.repositories import RepositorySearch, build_scopes, deduplicate


def options(**params):
    params.setdefault("organizations", ["a", "b"])
    return RepositorySearchOptions(**params)


@pytest.fixture
def store(tmp_path):
    return CacheStore(tmp_path / "cache")


class TestScopes:
    """Test scope construction and deduplication."""

    def test_organization_scopes_then_user(self):
        scopes = build_scopes(options(keywords="api", include_current_user=True))

        assert [s.name for s in scopes] == ["a", "b", "@me"]
        assert [s.query for s in scopes] == ["org:a (api)", "org:b (api)", "user:@me"]
        assert scopes[0].cache_key == repository_search_key(["a"], "api")
        assert scopes[2].cache_key == repository_search_key([], None, include_current_user=True)

    def test_user_scope_ignores_keywords(self):
        with_keywords = build_scopes(options(organizations=[], keywords="x", include_current_user=True))
        without = build_scopes(options(organizations=[], include_current_user=True))

        assert with_keywords == without

    def test_deduplicate_keeps_first(self):
        first = repo("a/x", description="first")
        second = repo("a/x", description="second")

        assert deduplicate([first, repo("a/y"), second]) == [first, repo("a/y")]


class TestRepositorySearch:
    """Test search orchestration without a cache."""

    @pytest.mark.asyncio
    async def test_merges_and_deduplicates_in_scope_order(self):
        shared_from_a = repo("shared/x", description="from a")
        shared_from_b = repo("shared/x", description="from b")
        github = FakeGitHub(
            {
                "org:a": [[repo("a/one"), shared_from_a]],
                "org:b": [[shared_from_b, repo("b/two")]],
            }
        )
        search = RepositorySearch(FakeFactory(github))

        result = await search.search(options())

        assert result.success is True
        assert [r["full_name"] for r in result.items] == ["a/one", "shared/x", "b/two"]
        assert result.items[1]["description"] == "from a"
        assert result.total_count == 3
        assert result.cached is False
        assert result.incomplete_results is False
        assert github.closed is True

    @pytest.mark.asyncio
    async def test_page_limit(self):
        github = FakeGitHub({"org:a": [make_repos("a", 100), make_repos("a", 100, 100), make_repos("a", 100, 200)]})
        search = RepositorySearch(FakeFactory(github))

        result = await search.search(options(organizations=["a"], max_pages=2))

        assert len(github.repository_calls) == 2
        assert [c["page"] for c in github.repository_calls] == [1, 2]
        assert all(c["per_page"] == 100 for c in github.repository_calls)
        assert len(result.items) == 200

    @pytest.mark.asyncio
    async def test_page_limit_clamped(self):
        pages = [make_repos("a", 100, 100 * i) for i in range(12)]
        github = FakeGitHub({"org:a": pages})
        search = RepositorySearch(FakeFactory(github))

        await search.search(options(organizations=["a"], max_pages=50, max_results=5000))

        assert len(github.repository_calls) == 10

    @pytest.mark.asyncio
    async def test_short_page_stops_pagination(self):
        github = FakeGitHub({"org:a": [make_repos("a", 100), make_repos("a", 7, 100)]})
        search = RepositorySearch(FakeFactory(github))

        result = await search.search(options(organizations=["a"]))

        assert len(github.repository_calls) == 2
        assert len(result.items) == 107

    @pytest.mark.asyncio
    async def test_max_results_truncates(self):
        github = FakeGitHub({"org:a": [make_repos("a", 100), make_repos("a", 100, 100)]})
        search = RepositorySearch(FakeFactory(github))

        result = await search.search(options(organizations=["a"], max_results=150))

        assert len(github.repository_calls) == 2
        assert len(result.items) == 150
        assert result.total_count == 150

    @pytest.mark.asyncio
    async def test_partial_scope_failure(self, remote_error):
        github = FakeGitHub({"org:b": [[repo("b/ok")]]}, failing_queries={"org:a": remote_error})
        search = RepositorySearch(FakeFactory(github))

        result = await search.search(options())

        assert result.success is True
        assert [r["full_name"] for r in result.items] == ["b/ok"]

    @pytest.mark.asyncio
    async def test_every_scope_failing_still_succeeds(self, remote_error):
        github = FakeGitHub(failing_queries={"org:a": remote_error, "org:b": remote_error})
        search = RepositorySearch(FakeFactory(github))

        result = await search.search(options())

        assert result.success is True
        assert result.items == []

    @pytest.mark.asyncio
    async def test_user_scope(self):
        github = FakeGitHub({"org:a": [[repo("a/x")]], "user:@me": [[repo("me/mine"), repo("a/x")]]})
        search = RepositorySearch(FakeFactory(github))

        result = await search.search(options(organizations=["a"], keywords="", include_current_user=True))

        assert [c["q"] for c in github.repository_calls] == ["org:a", "user:@me"]
        assert [r["full_name"] for r in result.items] == ["a/x", "me/mine"]

    @pytest.mark.asyncio
    async def test_user_scope_without_organizations(self):
        github = FakeGitHub({"user:@me": [[repo("me/mine")]]})
        search = RepositorySearch(FakeFactory(github))

        result = await search.search(options(organizations=[], include_current_user=True))

        assert result.success is True
        assert result.total_count == 1

    @pytest.mark.asyncio
    async def test_no_organizations(self):
        factory = FakeFactory()
        search = RepositorySearch(factory)

        result = await search.search(options(organizations=[" ", ""]))

        assert result.success is False
        assert "organizations" in result.error.lower()
        assert result.items == []
        assert factory.calls == 0

    @pytest.mark.asyncio
    async def test_authentication_failure(self, auth_failure):
        search = RepositorySearch(FakeFactory(error=auth_failure))

        result = await search.search(options())

        assert result.success is False
        assert result.error == "GitHub CLI authentication failed"
        assert result.items == []
        assert result.total_count == 0

    @pytest.mark.asyncio
    async def test_concurrent_scopes_keep_order(self):
        github = FakeGitHub(
            {
                "org:a": [[repo("a/1"), repo("dup/x", description="a")]],
                "org:b": [[repo("dup/x", description="b"), repo("b/1")]],
                "org:c": [[repo("c/1")]],
            }
        )
        search = RepositorySearch(FakeFactory(github), config=SearchConfig(concurrent_scopes=True))

        result = await search.search(options(organizations=["a", "b", "c"]))

        assert [r["full_name"] for r in result.items] == ["a/1", "dup/x", "b/1", "c/1"]
        assert result.items[1]["description"] == "a"


class TestRepositorySearchCaching:
    """Test per-scope caching."""

    @pytest.mark.asyncio
    async def test_second_search_served_from_cache(self, store):
        github = FakeGitHub({"org:a": [[repo("a/x")]], "org:b": [[repo("b/y")]]})
        factory = FakeFactory(github)
        search = RepositorySearch(factory, store)

        first = await search.search(options())
        second = await search.search(options(organizations=["b", "a"]))

        assert first.cached is False
        assert second.cached is True
        assert len(github.repository_calls) == 2
        assert factory.calls == 1
        assert [r["full_name"] for r in second.items] == ["b/y", "a/x"]

    @pytest.mark.asyncio
    async def test_mixed_cache_state_is_not_cached(self, store):
        github = FakeGitHub({"org:a": [[repo("a/x")]], "org:b": [[repo("b/y")]]})
        search = RepositorySearch(FakeFactory(github), store)

        await search.search(options(organizations=["a"]))
        result = await search.search(options())

        assert result.cached is False
        assert [c["q"] for c in github.repository_calls] == ["org:a", "org:b"]

    @pytest.mark.asyncio
    async def test_fully_cached_search_needs_no_credentials(self, store, auth_failure):
        store.write(repository_search_key(["a"], max_pages=10, max_results=1000), [repo("a/x")])
        factory = FakeFactory(error=auth_failure)
        search = RepositorySearch(factory, store)

        result = await search.search(options(organizations=["a"]))

        assert result.success is True
        assert result.cached is True
        assert factory.calls == 0

    @pytest.mark.asyncio
    async def test_use_cache_false_bypasses_store(self, store):
        github = FakeGitHub({"org:a": [[repo("a/x")]]})
        search = RepositorySearch(FakeFactory(github), store)

        await search.search(options(organizations=["a"], use_cache=False))
        await search.search(options(organizations=["a"], use_cache=False))

        assert len(github.repository_calls) == 2
        assert store.info().entry_count == 0

    @pytest.mark.asyncio
    async def test_failed_scope_not_cached(self, store, remote_error):
        github = FakeGitHub(failing_queries={"org:a": remote_error})
        search = RepositorySearch(FakeFactory(github), store)

        await search.search(options(organizations=["a"]))

        assert store.info().entry_count == 0

    @pytest.mark.asyncio
    async def test_capped_search_does_not_shadow_larger_search(self, store):
        github = FakeGitHub({"org:a": [make_repos("a", 100), make_repos("a", 50, 100)]})
        search = RepositorySearch(FakeFactory(github), store)

        small = await search.search(options(organizations=["a"], max_results=5))
        full = await search.search(options(organizations=["a"]))

        assert len(small.items) == 5
        assert len(full.items) == 150
        assert full.cached is False

    @pytest.mark.asyncio
    async def test_page_cap_is_part_of_cache_entry(self, store):
        github = FakeGitHub({"org:a": [make_repos("a", 100), make_repos("a", 50, 100)]})
        search = RepositorySearch(FakeFactory(github), store)

        one_page = await search.search(options(organizations=["a"], max_pages=1))
        again = await search.search(options(organizations=["a"], max_pages=1))
        all_pages = await search.search(options(organizations=["a"], max_pages=2))

        assert len(one_page.items) == 100
        assert again.cached is True
        assert len(all_pages.items) == 150
        assert all_pages.cached is False
        assert store.info().entry_count == 2


class FailingOnceFactory(FakeFactory):
    """Factory whose first client construction fails."""

    async def __call__(self):
        self.calls += 1
        if self.calls == 1:
            raise self.error
        return self.client


class TestConcurrentScopeFailures:
    """Test client failures while scopes run concurrently."""

    @pytest.mark.asyncio
    async def test_client_failure_builds_no_second_client(self, auth_failure):
        github = FakeGitHub({org: [[repo(f"{org}/x")]] for org in ("org:a", "org:b", "org:c")})
        factory = FailingOnceFactory(github, error=auth_failure)
        search = RepositorySearch(factory, config=SearchConfig(concurrent_scopes=True))

        result = await search.search(options(organizations=["a", "b", "c"]))

        assert result.success is False
        assert result.error == "GitHub CLI authentication failed"
        assert factory.calls == 1
        assert github.repository_calls == []

    @pytest.mark.asyncio
    async def test_every_scope_settles_before_client_closes(self, remote_error):
        github = FakeGitHub(
            {"org:a": [[repo("a/x")]], "org:c": [[repo("c/x")]]},
            failing_queries={"org:b": remote_error},
        )
        close_calls_seen = []

        original_close = github.close

        async def close():
            close_calls_seen.append(len(github.repository_calls))
            await original_close()

        github.close = close
        search = RepositorySearch(FakeFactory(github), config=SearchConfig(concurrent_scopes=True))

        result = await search.search(options(organizations=["a", "b", "c"]))

        assert [r["full_name"] for r in result.items] == ["a/x", "c/x"]
        assert close_calls_seen == [3]
