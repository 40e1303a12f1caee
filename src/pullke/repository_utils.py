"""
Repository utilities for resolving which GitHub repository to search.

Accepts an explicit ``owner/repo`` or derives it from a local checkout's
remote, handling https, ssh and scp-style remote URLs.
"""

import logging
import os
import re
from typing import Optional, Tuple

import git

logger = logging.getLogger(__name__)

_REMOTE_PATTERNS = (
    # https://github.com/owner/repo(.git)
    re.compile(r"^(?:https?|git)://(?:[^@/]+@)?[^/]+/(?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$"),
    # ssh://git@github.com/owner/repo(.git)
    re.compile(r"^ssh://(?:[^@/]+@)?[^/]+/(?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$"),
    # git@github.com:owner/repo(.git)
    re.compile(r"^(?:[^@/]+@)?[^:/]+:(?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$"),
)


def parse_full_name(full_name: str) -> Tuple[str, str]:
    """
    Split ``owner/repo`` into its parts.

    Raises:
        ValueError: If the value is not of the form owner/repo
    """
    parts = full_name.strip().split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Invalid repository format '{full_name}'. Expected format: owner/repo")
    return parts[0], parts[1]


def parse_github_remote(url: str) -> Tuple[str, str]:
    """
    Extract ``(owner, repo)`` from a remote URL.

    Raises:
        ValueError: If the URL is not recognised
    """
    url = url.strip()
    for pattern in _REMOTE_PATTERNS:
        match = pattern.match(url)
        if match:
            return match.group("owner"), match.group("repo")
    raise ValueError(f"Unrecognised remote URL: {url}")


def detect_github_repository(
    working_dir: Optional[str] = None, remote: str = "origin"
) -> Tuple[str, str]:
    """
    Owner and name of the GitHub repository a local checkout points at.

    Args:
        working_dir: Any directory within a Git repository or worktree
            (defaults to the current working directory)
        remote: Name of the remote to read

    Returns:
        Tuple of (owner, repo)

    Raises:
        ValueError: If the directory is not within a Git repository, has no
            such remote, or the remote URL is not recognised
    """
    working_dir = os.path.abspath(working_dir or os.getcwd())

    try:
        repo = git.Repo(working_dir, search_parent_directories=True)
    except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
        raise ValueError(f"Not a Git repository: {working_dir}") from e

    try:
        remote_url = repo.remote(remote).url
    except ValueError as e:
        raise ValueError(f"Repository at {working_dir} has no remote '{remote}'") from e
    finally:
        repo.close()

    owner, name = parse_github_remote(remote_url)
    logger.debug(f"Detected repository {owner}/{name} from remote {remote}")
    return owner, name
