"""Launcher (Alfred Script Filter) items for search results."""

import json
from typing import Any, Dict, List

from .auth import AuthErrorInfo

Item = Dict[str, Any]


def repository_subtitle(repo: Dict[str, Any]) -> str:
    """Description, then language and stars, falling back to the URL."""
    subtitle_parts = []

    if repo.get("description"):
        subtitle_parts.append(repo["description"])

    extras = []
    if repo.get("language"):
        extras.append(repo["language"])
    if repo.get("stargazers_count"):
        extras.append(f"⭐ {repo['stargazers_count']}")
    if extras:
        subtitle_parts.append(" • ".join(extras))

    if not subtitle_parts:
        subtitle_parts.append(repo.get("html_url", ""))

    return " | ".join(subtitle_parts)


def repository_item(repo: Dict[str, Any]) -> Item:
    return {
        "uid": repo["full_name"],
        "title": repo.get("name") or repo["full_name"],
        "subtitle": repository_subtitle(repo),
        "arg": repo.get("html_url", ""),
        "autocomplete": repo["full_name"],
        "valid": True,
        "variables": {"selectedRepo": repo["full_name"]},
    }


def _pull_request_state(pr: Dict[str, Any]) -> str:
    if pr.get("draft"):
        return "draft"
    if (pr.get("pull_request") or {}).get("merged_at"):
        return "merged"
    return pr.get("state", "")


def pull_request_item(pr: Dict[str, Any]) -> Item:
    author = (pr.get("user") or {}).get("login", "")
    subtitle = f"{_pull_request_state(pr)} • #{pr['number']}"
    if author:
        subtitle += f" by {author}"
    return {
        "uid": str(pr.get("id", pr["number"])),
        "title": pr.get("title", ""),
        "subtitle": subtitle,
        "arg": pr.get("html_url", ""),
        "valid": True,
    }


def error_item(title: str, subtitle: str, uid: str = "error") -> Item:
    return {"uid": uid, "title": title, "subtitle": subtitle, "arg": "", "valid": False}


def auth_error_item(info: AuthErrorInfo) -> Item:
    return error_item(info.title, info.subtitle, uid="auth-error")


def render(items: List[Item]) -> str:
    """Script Filter JSON document."""
    return json.dumps({"items": items}, ensure_ascii=False)
