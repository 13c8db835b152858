# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation
"""
Account id to username resolution.

Rows resolve their owner independently, so a table with N changes by the
same owner issues N identical lookups. CachingAccountResolver can wrap any
resolver to collapse those without touching the call sites.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from gerritreviews.gerrit.client import GerritProxyClient

log = logging.getLogger("gerritreviews.gerrit.resolver")


class AccountResolver(Protocol):
    """Anything that can turn a numeric account id into a username."""

    async def resolve(self, account_id: str) -> str: ...


class ProxyAccountResolver:
    """Resolves usernames with one ``accounts/<id>/username`` call each."""

    def __init__(self, client: GerritProxyClient) -> None:
        self._client = client

    async def resolve(self, account_id: str) -> str:
        username = await self._client.get_username(account_id)
        log.debug("Resolved account %s -> %r", account_id, username)
        return username


class CachingAccountResolver:
    """
    Memoising decorator for an AccountResolver.

    Concurrent lookups of the same id share one in-flight task. Failed
    lookups are not cached, so the next call tries again.
    """

    def __init__(self, inner: AccountResolver) -> None:
        self._inner = inner
        self._tasks: dict[str, asyncio.Task[str]] = {}

    async def resolve(self, account_id: str) -> str:
        task = self._tasks.get(account_id)
        if task is None:
            task = asyncio.ensure_future(self._inner.resolve(account_id))
            self._tasks[account_id] = task
        else:
            log.debug("Reusing lookup for account %s", account_id)
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                self._forget(account_id, task)
            raise
        except Exception:
            self._forget(account_id, task)
            raise

    def _forget(self, account_id: str, task: asyncio.Task[str]) -> None:
        if self._tasks.get(account_id) is task:
            del self._tasks[account_id]

    def clear(self) -> None:
        """Forget every cached username."""
        self._tasks.clear()


__all__ = [
    "AccountResolver",
    "CachingAccountResolver",
    "ProxyAccountResolver",
]
