"""Render search filters into GitHub search query syntax."""

from typing import Iterable, List, Optional, Union

from ..models import PullRequestState, ReviewStatus

USER_REPOSITORIES_QUERY = "user:@me"

# Rendering order of state clauses, independent of the order requested
_STATE_ORDER = (
    PullRequestState.OPEN,
    PullRequestState.CLOSED,
    PullRequestState.MERGED,
    PullRequestState.DRAFT,
)

StateLike = Union[PullRequestState, str]

_REVIEW_QUALIFIERS = {
    ReviewStatus.APPROVED: "approved",
    ReviewStatus.CHANGES_REQUESTED: "changes_requested",
    ReviewStatus.REVIEW_REQUIRED: "required",
    ReviewStatus.NONE: "none",
}


def split_keywords(keywords: Optional[str]) -> List[str]:
    """Comma separated keywords, trimmed, with blanks dropped."""
    if not keywords:
        return []
    return [keyword.strip() for keyword in keywords.split(",") if keyword.strip()]


def build_repository_query(organization: str, keywords: Optional[str] = None) -> str:
    """Query for repositories in ``organization`` matching any keyword."""
    query_parts = [f"org:{organization}"]

    keyword_list = split_keywords(keywords)
    if keyword_list:
        query_parts.append(f"({' OR '.join(keyword_list)})")

    return " ".join(query_parts)


def _state_clause(states: Optional[Iterable[StateLike]]) -> Optional[str]:
    requested = {PullRequestState(state) for state in states or ()}
    if not requested or PullRequestState.ALL in requested:
        return None

    clauses = [f"is:{state.value}" for state in _STATE_ORDER if state in requested]
    if len(clauses) > 1:
        return f"({' OR '.join(clauses)})"
    return clauses[0]


def _label_clause(label: str) -> str:
    if any(ch.isspace() for ch in label):
        return f'label:"{label}"'
    return f"label:{label}"


def build_pull_request_query(
    owner: str,
    repo: str,
    states: Optional[Iterable[StateLike]] = None,
    author: Optional[str] = None,
    assignee: Optional[str] = None,
    labels: Optional[Iterable[str]] = None,
    review_status: Optional[Union[ReviewStatus, str]] = None,
    query: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> str:
    """
    Query for pull requests in ``owner/repo``.

    Clause order is fixed: repo, type, state, author, assignee, labels,
    review, created-from, created-to, free text.

    >>> build_pull_request_query("o", "r", states=["open", "draft"], author="u",
    ...                          labels=["bug", "needs review"])
    'repo:o/r is:pr (is:open OR is:draft) author:u label:bug label:"needs review"'
    """
    query_parts = [f"repo:{owner}/{repo}", "is:pr"]

    state_clause = _state_clause(states)
    if state_clause:
        query_parts.append(state_clause)

    if author:
        query_parts.append(f"author:{author}")

    if assignee:
        query_parts.append(f"assignee:{assignee}")

    for label in labels or ():
        query_parts.append(_label_clause(label))

    if review_status:
        query_parts.append(f"review:{_REVIEW_QUALIFIERS[ReviewStatus(review_status)]}")

    if date_from:
        query_parts.append(f"created:>={date_from}")
    if date_to:
        query_parts.append(f"created:<={date_to}")

    if query:
        query_parts.append(query)

    return " ".join(query_parts)
