# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation
"""Tests for account username resolution."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from conftest import make_client
from gerritreviews.gerrit.client import TransportError
from gerritreviews.gerrit.resolver import (
    CachingAccountResolver,
    ProxyAccountResolver,
)


class TestProxyAccountResolver:
    """Tests for ProxyAccountResolver."""

    @pytest.mark.asyncio
    async def test_resolve(self):
        """Test the documented body decodes to the username."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=")]}'\"jdoe\"")

        resolver = ProxyAccountResolver(make_client(handler))
        assert await resolver.resolve("1000001") == "jdoe"

    @pytest.mark.asyncio
    async def test_one_request_per_call(self):
        """Without caching, every call issues its own request."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            return httpx.Response(200, text=")]}'\n\"jdoe\"")

        resolver = ProxyAccountResolver(make_client(handler))
        await asyncio.gather(*(resolver.resolve("7") for _ in range(3)))

        assert calls == ["/api/proxy/gerrit/accounts/7/username"] * 3

    @pytest.mark.asyncio
    async def test_failure_propagates(self):
        """Errors are raised, never turned into an empty username."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="Not found")

        resolver = ProxyAccountResolver(make_client(handler))
        with pytest.raises(TransportError):
            await resolver.resolve("404")


class TestCachingAccountResolver:
    """Tests for the caching decorator."""

    @pytest.mark.asyncio
    async def test_caches_success(self):
        inner = AsyncMock()
        inner.resolve.return_value = "jdoe"
        resolver = CachingAccountResolver(inner)

        assert await resolver.resolve("1") == "jdoe"
        assert await resolver.resolve("1") == "jdoe"
        inner.resolve.assert_awaited_once_with("1")

    @pytest.mark.asyncio
    async def test_concurrent_lookups_share_request(self):
        """Concurrent lookups of one id wait on the same request."""
        started = 0
        release = asyncio.Event()

        class SlowResolver:
            async def resolve(self, account_id):
                nonlocal started
                started += 1
                await release.wait()
                return f"user-{account_id}"

        resolver = CachingAccountResolver(SlowResolver())
        tasks = [asyncio.ensure_future(resolver.resolve("9")) for _ in range(4)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks)

        assert results == ["user-9"] * 4
        assert started == 1

    @pytest.mark.asyncio
    async def test_failures_not_cached(self):
        inner = AsyncMock()
        inner.resolve.side_effect = [TransportError("boom"), "jdoe"]
        resolver = CachingAccountResolver(inner)

        with pytest.raises(TransportError):
            await resolver.resolve("1")
        assert await resolver.resolve("1") == "jdoe"
        assert inner.resolve.await_count == 2

    @pytest.mark.asyncio
    async def test_distinct_ids(self):
        inner = AsyncMock()
        inner.resolve.side_effect = lambda account_id: f"u{account_id}"
        resolver = CachingAccountResolver(inner)

        assert await resolver.resolve("1") == "u1"
        assert await resolver.resolve("2") == "u2"

    @pytest.mark.asyncio
    async def test_clear(self):
        inner = AsyncMock()
        inner.resolve.return_value = "jdoe"
        resolver = CachingAccountResolver(inner)

        await resolver.resolve("1")
        resolver.clear()
        await resolver.resolve("1")
        assert inner.resolve.await_count == 2
