# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation
"""
Gerrit integration package for gerrit-reviews.

This package turns Gerrit REST responses, fetched through the portal's
proxy gateway, into display-ready change tables.

Modules:
    client: async proxy client, XSSI guard stripping and response parsing
    models: Pydantic models for changes, rows and owner cells
    queries: search query construction for the dashboard views
    resolver: account id to username resolution
    urls: links into the Gerrit web UI
    rows: projection of changes into display rows
    feeds: table state machine, lifetime token and feed orchestration

Usage:
    from gerritreviews.gerrit import GerritProxyClient, ReviewView, build_view_query

    async with GerritProxyClient(proxy_url="https://portal/api/proxy") as client:
        changes = await client.query_changes(
            build_view_query("alice", ReviewView.OPEN_OWNED)
        )
"""

from gerritreviews.gerrit.client import (
    GerritProxyClient,
    GerritRestError,
    MalformedResponseError,
    TransportError,
    parse_changes,
    parse_gerrit_json,
    parse_username,
    strip_xssi_guard,
)
from gerritreviews.gerrit.feeds import (
    ChangeTable,
    GerritFeedService,
    InvalidTransitionError,
    Lifetime,
    TableState,
)
from gerritreviews.gerrit.models import (
    ChangeRow,
    GerritAccountRef,
    GerritChange,
    OwnerCell,
    OwnerState,
)
from gerritreviews.gerrit.queries import (
    DEFAULT_QUERY_LIMIT,
    ReviewView,
    build_project_query,
    build_view_query,
    changes_path,
)
from gerritreviews.gerrit.resolver import (
    AccountResolver,
    CachingAccountResolver,
    ProxyAccountResolver,
)
from gerritreviews.gerrit.rows import (
    FeedKind,
    project_row,
    project_rows,
    truncate_timestamp,
)
from gerritreviews.gerrit.urls import DEFAULT_WEB_URL, GerritLinkBuilder

__all__ = [
    # Client
    "GerritProxyClient",
    "GerritRestError",
    "MalformedResponseError",
    "TransportError",
    "parse_changes",
    "parse_gerrit_json",
    "parse_username",
    "strip_xssi_guard",
    # Feeds
    "ChangeTable",
    "GerritFeedService",
    "InvalidTransitionError",
    "Lifetime",
    "TableState",
    # Models
    "ChangeRow",
    "GerritAccountRef",
    "GerritChange",
    "OwnerCell",
    "OwnerState",
    # Queries
    "DEFAULT_QUERY_LIMIT",
    "ReviewView",
    "build_project_query",
    "build_view_query",
    "changes_path",
    # Resolver
    "AccountResolver",
    "CachingAccountResolver",
    "ProxyAccountResolver",
    # Rows
    "FeedKind",
    "project_row",
    "project_rows",
    "truncate_timestamp",
    # URLs
    "DEFAULT_WEB_URL",
    "GerritLinkBuilder",
]
