# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation
"""
Gerrit search query construction for the review dashboards.

Queries use Gerrit's URL form: terms are joined with ``+`` (implicit AND)
and a leading ``-`` negates a term. Usernames and project names are passed
through verbatim; Gerrit's query syntax decides what is valid.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

DEFAULT_QUERY_LIMIT: int = 5

# Options requested for the dashboard views
DEFAULT_VIEW_OPTIONS: tuple[str, ...] = ("LABELS",)

REPO_TABLE_TITLE = "Gerrit reviews on repo"


class ReviewView(str, Enum):
    """The fixed personal-dashboard views."""

    OPEN_OWNED = "open"
    INCOMING_REVIEW = "incoming"
    CLOSED_OWNED = "closed"

    @property
    def title(self) -> str:
        return _VIEW_TITLES[self]


_VIEW_TITLES: dict[ReviewView, str] = {
    ReviewView.OPEN_OWNED: "Open Reviews",
    ReviewView.INCOMING_REVIEW: "Incoming Reviews",
    ReviewView.CLOSED_OWNED: "Closed Reviews",
}


def _view_terms(username: str, view: ReviewView) -> list[str]:
    if view is ReviewView.OPEN_OWNED:
        return ["is:open", f"owner:{username}"]
    if view is ReviewView.INCOMING_REVIEW:
        return ["is:open", f"reviewer:{username}", f"-owner:{username}"]
    return ["is:closed", f"owner:{username}"]


def build_view_query(
    username: str,
    view: ReviewView,
    limit: int = DEFAULT_QUERY_LIMIT,
    options: Sequence[str] = DEFAULT_VIEW_OPTIONS,
) -> str:
    """
    Build the query string for one dashboard view.

    Args:
        username: Gerrit username the view is about.
        view: Which dashboard view to build.
        limit: Maximum number of changes to return.
        options: ChangeInfo options to request (``o=`` parameters).

    Returns:
        The text that follows ``changes/?q=``, e.g.
        ``is:open+owner:alice+limit:5&o=LABELS``.
    """
    terms = _view_terms(username, view)
    terms.append(f"limit:{limit}")
    query = "+".join(terms)
    for opt in options:
        query += f"&o={opt}"
    return query


def build_project_query(project: str) -> str:
    """Build the repo-scoped query for every change in ``project``."""
    return f"project:{project}"


def changes_path(query: str) -> str:
    """Build the proxied change-query path for a query string."""
    return f"changes/?q={query}"


__all__ = [
    "DEFAULT_QUERY_LIMIT",
    "DEFAULT_VIEW_OPTIONS",
    "REPO_TABLE_TITLE",
    "ReviewView",
    "build_project_query",
    "build_view_query",
    "changes_path",
]
