# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation
"""Projection of Gerrit changes into display rows."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from gerritreviews.gerrit.models import ChangeRow, GerritChange, OwnerCell
from gerritreviews.gerrit.urls import GerritLinkBuilder


class FeedKind(str, Enum):
    """Which page a list of changes is shown on."""

    REPO = "repo"
    DASHBOARD = "dashboard"


def truncate_timestamp(updated: str) -> str:
    """Drop the sub-second fraction: "2023-01-01 10:00:00.123" -> "2023-01-01 10:00:00"."""
    return updated.split(".", 1)[0]


def project_row(
    change: GerritChange,
    links: GerritLinkBuilder,
    feed: FeedKind = FeedKind.REPO,
) -> ChangeRow:
    """
    Build the display row for a change.

    The owner cell starts out pending; the feed fills it in once the
    account lookup completes. Dashboard rows also link the project, since
    they mix changes from many repositories.
    """
    account_id = change.owner.account_id
    project_url = None
    if feed is FeedKind.DASHBOARD:
        project_url = links.project_browser_url(change.project)

    return ChangeRow(
        subject=change.subject,
        change_url=links.change_url(change.project, change.number),
        owner=OwnerCell(account_id=account_id),
        owner_url=links.owner_query_url(account_id),
        project=change.project,
        project_url=project_url,
        branch=change.branch,
        branch_url=links.branch_browser_url(change.project, change.branch),
        updated=truncate_timestamp(change.updated),
        status=change.status,
        change_id=change.change_id,
        number=change.number,
    )


def project_rows(
    changes: list[GerritChange],
    links: GerritLinkBuilder,
    feed: FeedKind = FeedKind.REPO,
) -> list[ChangeRow]:
    return [project_row(change, links, feed) for change in changes]


SORT_KEYS: dict[str, Callable[[ChangeRow], str]] = {
    "subject": lambda row: row.subject.lower(),
    "owner": lambda row: row.owner.display.lower(),
    "project": lambda row: row.project.lower(),
    "branch": lambda row: row.branch.lower(),
    "updated": lambda row: row.updated,
    "status": lambda row: row.status,
}


def sort_rows(
    rows: list[ChangeRow], column: str, descending: bool = False
) -> list[ChangeRow]:
    """
    Return ``rows`` ordered by one display column.

    Text columns compare case-insensitively; ties keep server order.

    Raises:
        ValueError: If ``column`` is not sortable.
    """
    try:
        key = SORT_KEYS[column]
    except KeyError:
        raise ValueError(
            f"Cannot sort by {column!r}; choose one of: {', '.join(SORT_KEYS)}"
        ) from None
    return sorted(rows, key=key, reverse=descending)


__all__ = [
    "FeedKind",
    "SORT_KEYS",
    "project_row",
    "project_rows",
    "sort_rows",
    "truncate_timestamp",
]
