"""Command line entry point producing launcher JSON on stdout."""

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict
from typing import List, Optional

from .auth import AUTH_ERROR_INFO, is_authentication_error
from .config import get_config
from .errors import ConfigurationError
from .formatting import (
    auth_error_item,
    error_item,
    pull_request_item,
    render,
    repository_item,
)
from .models import SearchResult
from .repository_utils import detect_github_repository, parse_full_name
from .search_engine import SearchEngine

logger = logging.getLogger(__name__)


def _emit(args, result: Optional[SearchResult], items: List[dict]) -> None:
    if args.json and result is not None:
        print(result.model_dump_json())
    else:
        print(render(items))


def _failure_items(result: SearchResult) -> List[dict]:
    if is_authentication_error(result.error):
        return [auth_error_item(AUTH_ERROR_INFO)]
    return [error_item("Search Error", result.error or "Unknown error occurred")]


async def search_repos(args, engine: SearchEngine) -> None:
    """Search repositories in the configured organizations."""
    params = {"use_cache": not args.no_cache, "cache_ttl": args.cache_ttl}
    if args.org:
        params["organizations"] = args.org
    if args.keywords is not None:
        params["keywords"] = args.keywords
    if args.include_user:
        params["include_current_user"] = True
    if args.max_results:
        params["max_results"] = args.max_results
    if args.max_pages:
        params["max_pages"] = args.max_pages

    result = await engine.search_repositories(**params)

    if not result.success:
        if result.error and "organizations" in result.error.lower():
            items = [
                error_item(
                    "Organizations not set",
                    "Configure organizations in the workflow settings",
                    uid="config-error",
                )
            ]
        else:
            items = _failure_items(result)
        _emit(args, result, items)
        return

    logger.info(
        f"Found {result.total_count} repositories "
        f"{'(cached)' if result.cached else '(fresh)'}"
    )
    _emit(args, result, [repository_item(repo) for repo in result.items])


async def search_prs(args, engine: SearchEngine) -> None:
    """Search pull requests in one repository."""
    try:
        selected = args.repo or os.environ.get("selectedRepo")
        if selected:
            owner, repo = parse_full_name(selected)
        else:
            owner, repo = detect_github_repository()
    except ValueError as e:
        _emit(args, None, [error_item("No repository specified", str(e), uid="config-error")])
        return

    result = await engine.search_pull_requests(
        owner=owner,
        repo=repo,
        states=args.state or ["all"],
        sort=args.sort,
        order=args.order,
        author=args.author,
        assignee=args.assignee,
        labels=args.label,
        review_status=args.review_status,
        query=args.query,
        date_from=args.date_from,
        date_to=args.date_to,
        max_results=args.max_results or engine.config.search.pr_max_results,
        use_cache=not args.no_cache,
        cache_ttl=args.cache_ttl,
    )

    if not result.success:
        _emit(args, result, _failure_items(result))
        return

    if not result.items:
        _emit(
            args,
            result,
            [error_item("No PRs found", f"No pull requests found in {owner}/{repo}")],
        )
        return

    logger.info(
        f"Found {result.total_count} PRs, returning {len(result.items)} items "
        f"{'(cached)' if result.cached else '(fresh)'}"
    )
    _emit(args, result, [pull_request_item(pr) for pr in result.items])


def clear_cache(args, engine: SearchEngine) -> None:
    """Remove every cached search result."""
    info = engine.get_cache_info()
    if info.entry_count == 0:
        items = [error_item("No Cache to Clear", "Cache directory is already empty", uid="no-cache")]
        _emit(args, None, items)
        return

    result = engine.clear_all_cache()
    if args.json:
        print(json.dumps(asdict(result)))
        return

    if result.error_count:
        items = [
            error_item(
                "Cache Partially Cleared",
                f"{result.removed_count} files cleared, {result.error_count} errors occurred",
                uid="cache-partial",
            )
        ]
    else:
        items = [
            error_item(
                "Cache Cleared",
                f"{result.removed_count} cache files removed - next search will fetch fresh data",
                uid="cache-cleared",
            )
        ]
    _emit(args, None, items)


def cache_info(args, engine: SearchEngine) -> None:
    """Show where the cache lives and how big it is."""
    info = engine.get_cache_info()
    if args.json:
        print(json.dumps(asdict(info)))
        return

    subtitle = f"{info.entry_count} entries, {info.total_bytes / 1024:.1f} KiB"
    _emit(args, None, [error_item(info.location, subtitle, uid="cache-info")])


async def auth_test(args, engine: SearchEngine) -> bool:
    """Check that GitHub accepts the current credentials."""
    ok = await engine.test_authentication()
    if ok:
        items = [error_item("GitHub authentication OK", "Token accepted by GitHub", uid="auth-ok")]
    else:
        items = [auth_error_item(AUTH_ERROR_INFO)]
    _emit(args, None, items)
    return ok


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pullke",
        description="Cached GitHub repository and pull request search",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--json", action="store_true", help="Print the raw search result instead of launcher items"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    repos_parser = subparsers.add_parser("repos", help="Search repositories")
    repos_parser.add_argument(
        "--org", "-o", action="append", help="Organization to search (repeatable)"
    )
    repos_parser.add_argument("--keywords", "-k", help="Comma separated keywords")
    repos_parser.add_argument(
        "--include-user", action="store_true", help="Also list your own repositories"
    )
    repos_parser.add_argument("--max-results", type=int, help="Maximum repositories returned")
    repos_parser.add_argument("--max-pages", type=int, help="Maximum pages per organization")

    prs_parser = subparsers.add_parser("prs", help="Search pull requests in a repository")
    prs_parser.add_argument(
        "--repo", "-r", help="Repository as owner/repo (defaults to the current checkout)"
    )
    prs_parser.add_argument(
        "--state",
        action="append",
        choices=["open", "closed", "merged", "draft", "all"],
        help="State filter (repeatable)",
    )
    prs_parser.add_argument("--author")
    prs_parser.add_argument("--assignee")
    prs_parser.add_argument("--label", action="append", help="Label filter (repeatable)")
    prs_parser.add_argument(
        "--review",
        dest="review_status",
        choices=["approved", "changes_requested", "review_required", "none"],
        help="Review status filter",
    )
    prs_parser.add_argument("--query", "-q", help="Free text searched in title and body")
    prs_parser.add_argument("--from", dest="date_from", help="Created on or after (YYYY-MM-DD)")
    prs_parser.add_argument("--to", dest="date_to", help="Created on or before (YYYY-MM-DD)")
    prs_parser.add_argument("--sort", choices=["created", "updated"], default="updated")
    prs_parser.add_argument("--order", choices=["asc", "desc"], default="desc")
    prs_parser.add_argument("--max-results", type=int, help="Maximum pull requests returned")

    for search_parser in (repos_parser, prs_parser):
        search_parser.add_argument("--no-cache", action="store_true", help="Bypass the cache")
        search_parser.add_argument("--cache-ttl", type=float, help="Cache TTL override in seconds")

    subparsers.add_parser("clear-cache", help="Remove all cached search results")
    subparsers.add_parser("cache-info", help="Show cache location and size")
    subparsers.add_parser("auth-test", help="Check GitHub authentication")

    return parser


def _configure_logging(level) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = get_config()
    except ConfigurationError as e:
        _configure_logging(logging.DEBUG if args.verbose else logging.WARNING)
        print(render([error_item("Configuration Error", e.user_message, uid="config-error")]))
        return 0

    # --verbose wins over PULLKE_LOG_LEVEL
    _configure_logging(logging.DEBUG if args.verbose else config.monitoring.log_level)
    engine = SearchEngine(config)

    try:
        if args.command == "repos":
            asyncio.run(search_repos(args, engine))
        elif args.command == "prs":
            asyncio.run(search_prs(args, engine))
        elif args.command == "clear-cache":
            clear_cache(args, engine)
        elif args.command == "cache-info":
            cache_info(args, engine)
        elif args.command == "auth-test":
            return 0 if asyncio.run(auth_test(args, engine)) else 1
    except Exception as e:
        logger.error(f"{args.command} failed: {e}")
        print(render([error_item("Script Error", str(e) or "Unknown error")]))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
