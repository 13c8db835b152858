# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation
"""
Feed orchestration for the Gerrit review tables.

This module ties the query builder, proxy client, row projector and
account resolver together. It provides:

- ChangeTable: one table's state (IDLE -> LOADING -> READY | FAILED)
- Lifetime: a mountedness token checked before any result is committed
- GerritFeedService: the repo-scoped feed and the personal dashboard

Each table loads on its own; a failed query only fails its own table, and a
failed username lookup only marks its own row.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from enum import Enum
from typing import Any, TypeVar

from gerritreviews.gerrit.client import GerritProxyClient, GerritRestError
from gerritreviews.gerrit.models import ChangeRow, OwnerCell
from gerritreviews.gerrit.queries import (
    DEFAULT_QUERY_LIMIT,
    REPO_TABLE_TITLE,
    ReviewView,
    build_project_query,
    build_view_query,
)
from gerritreviews.gerrit.resolver import AccountResolver
from gerritreviews.gerrit.rows import FeedKind, project_rows
from gerritreviews.gerrit.urls import GerritLinkBuilder

log = logging.getLogger("gerritreviews.gerrit.feeds")

T = TypeVar("T")

TableListener = Callable[["ChangeTable"], None]


class InvalidTransitionError(RuntimeError):
    """Raised when a table is moved to a state it cannot reach."""


class TableState(str, Enum):
    """Load state of a table."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


_ALLOWED_TRANSITIONS: dict[TableState, frozenset[TableState]] = {
    TableState.IDLE: frozenset({TableState.LOADING}),
    TableState.LOADING: frozenset({TableState.READY, TableState.FAILED}),
    TableState.READY: frozenset(),
    TableState.FAILED: frozenset(),
}


class ChangeTable:
    """
    A titled table of change rows and its load state.

    Listeners are called after every visible change: state transitions and
    owner cells filling in. A table never goes back to LOADING; reloading
    means building a new table.
    """

    def __init__(self, title: str, feed: FeedKind) -> None:
        self.title = title
        self.feed = feed
        self.state = TableState.IDLE
        self.rows: list[ChangeRow] = []
        self.error: str | None = None
        self._listeners: list[TableListener] = []

    def subscribe(self, listener: TableListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self)

    def _transition(self, target: TableState) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Table {self.title!r} cannot go from "
                f"{self.state.value} to {target.value}"
            )
        self.state = target

    def start_loading(self) -> None:
        self._transition(TableState.LOADING)
        self._notify()

    def succeed(self, rows: list[ChangeRow]) -> None:
        self._transition(TableState.READY)
        self.rows = rows
        self._notify()

    def fail(self, error: str) -> None:
        self._transition(TableState.FAILED)
        self.error = error
        self._notify()

    def set_owner(self, index: int, owner: OwnerCell) -> None:
        """Replace the owner cell of one row."""
        if self.state is not TableState.READY:
            raise InvalidTransitionError(
                f"Table {self.title!r} has no rows to update "
                f"(state={self.state.value})"
            )
        self.rows[index] = self.rows[index].model_copy(update={"owner": owner})
        self._notify()

    @property
    def is_empty(self) -> bool:
        return self.state is TableState.READY and not self.rows

    def __repr__(self) -> str:
        return (
            f"ChangeTable(title={self.title!r}, state={self.state.value}, "
            f"rows={len(self.rows)})"
        )


class Lifetime:
    """
    Mountedness token for a view.

    Work started through ``spawn`` is cancelled on ``cancel()``; results
    must only be committed while ``alive`` is True.
    """

    def __init__(self) -> None:
        self._alive = True
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def alive(self) -> bool:
        return self._alive

    def spawn(self, coro: Coroutine[Any, Any, T]) -> asyncio.Task[T]:
        """Run ``coro`` as a task owned by this lifetime."""
        if not self._alive:
            coro.close()
            raise RuntimeError("Cannot spawn work on a cancelled lifetime")
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def cancel(self) -> None:
        """Tear down: stop committing results and cancel owned tasks."""
        if not self._alive:
            return
        self._alive = False
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        log.debug("Lifetime cancelled (%d pending task(s))", len(pending))


async def _gather_owned(
    lifetime: Lifetime, coros: list[Coroutine[Any, Any, None]]
) -> None:
    """Run coroutines concurrently; tasks cancelled by teardown are ignored."""
    tasks = [lifetime.spawn(coro) for coro in coros]
    results = await asyncio.gather(*tasks, return_exceptions=True)
    for result in results:
        if isinstance(result, Exception):
            raise result


class GerritFeedService:
    """
    Loads change tables for the repo page and the personal dashboard.

    The service holds no per-render state; every call builds fresh tables
    and issues fresh requests.
    """

    def __init__(
        self,
        client: GerritProxyClient,
        resolver: AccountResolver,
        links: GerritLinkBuilder,
        *,
        username: str,
        limit: int = DEFAULT_QUERY_LIMIT,
    ) -> None:
        """
        Initialize the feed service.

        Args:
            client: Proxy client used for change queries.
            resolver: Account resolver used for the owner column.
            links: Builder for links into the Gerrit web UI.
            username: Default user for the personal dashboard.
            limit: Maximum changes per dashboard table.
        """
        self._client = client
        self._resolver = resolver
        self._links = links
        self.username = username
        self.limit = limit

    async def load_repo_feed(
        self,
        project: str,
        lifetime: Lifetime,
        on_update: TableListener | None = None,
    ) -> ChangeTable:
        """
        Load every change of one repository into a single table.

        Args:
            project: The catalog entity's name (the Gerrit project).
            lifetime: Token of the view the table is shown in.
            on_update: Optional listener for incremental repaints.
        """
        table = ChangeTable(REPO_TABLE_TITLE, FeedKind.REPO)
        if on_update is not None:
            table.subscribe(on_update)

        await _gather_owned(
            lifetime,
            [self._load_table(table, build_project_query(project), lifetime)],
        )
        return table

    async def load_dashboard(
        self,
        lifetime: Lifetime,
        username: str | None = None,
        on_update: TableListener | None = None,
    ) -> dict[ReviewView, ChangeTable]:
        """
        Load the open, incoming and closed tables for a user concurrently.

        Changes are not deduplicated across tables.
        """
        user = username or self.username
        tables: dict[ReviewView, ChangeTable] = {}
        jobs: list[Coroutine[Any, Any, None]] = []
        for view in ReviewView:
            table = ChangeTable(view.title, FeedKind.DASHBOARD)
            if on_update is not None:
                table.subscribe(on_update)
            tables[view] = table
            query = build_view_query(user, view, limit=self.limit)
            jobs.append(self._load_table(table, query, lifetime))

        log.debug("Loading dashboard for %s", user)
        await _gather_owned(lifetime, jobs)
        return tables

    async def _load_table(
        self, table: ChangeTable, query: str, lifetime: Lifetime
    ) -> None:
        """Run one query and fill ``table``; errors stay in the table."""
        table.start_loading()
        try:
            changes = await self._client.query_changes(query)
        except GerritRestError as exc:
            if not lifetime.alive:
                return
            log.warning("Loading %r failed: %s", table.title, exc)
            table.fail(str(exc))
            return

        if not lifetime.alive:
            log.debug("Dropping result for %r after teardown", table.title)
            return
        table.succeed(project_rows(changes, self._links, table.feed))
        # A listener may have torn the view down while painting the rows.
        if lifetime.alive:
            await self._resolve_owners(table, lifetime)

    async def _resolve_owners(self, table: ChangeTable, lifetime: Lifetime) -> None:
        await _gather_owned(
            lifetime,
            [
                self._resolve_owner(table, index, lifetime)
                for index in range(len(table.rows))
            ],
        )

    async def _resolve_owner(
        self, table: ChangeTable, index: int, lifetime: Lifetime
    ) -> None:
        cell = table.rows[index].owner
        if not cell.account_id:
            if lifetime.alive:
                table.set_owner(index, cell.failed("Change has no owner"))
            return

        try:
            username = await self._resolver.resolve(cell.account_id)
        except GerritRestError as exc:
            log.warning(
                "Username lookup for account %s failed: %s", cell.account_id, exc
            )
            updated = cell.failed(str(exc))
        else:
            updated = cell.resolved(username)

        if lifetime.alive:
            table.set_owner(index, updated)


__all__ = [
    "ChangeTable",
    "GerritFeedService",
    "InvalidTransitionError",
    "Lifetime",
    "TableListener",
    "TableState",
]
