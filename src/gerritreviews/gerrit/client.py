# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation
"""
Gerrit proxy client and response parsing.

This module provides an async wrapper around the portal's Gerrit proxy with:
- XSSI guard stripping for Gerrit JSON responses
- Decoding of change lists into validated models
- Decoding of the quoted-string username endpoint
- Transport and decode error classification

Requests are never retried; a failure surfaces to the caller as-is.

Usage:
    from gerritreviews.gerrit.client import GerritProxyClient

    async with GerritProxyClient(proxy_url="https://portal/api/proxy") as client:
        changes = await client.query_changes("project:releng/tool")
"""

from __future__ import annotations

import json
import logging
from typing import Any, Final

import httpx
from pydantic import ValidationError

from gerritreviews.gerrit.models import GerritChange
from gerritreviews.gerrit.queries import changes_path

log = logging.getLogger("gerritreviews.gerrit.client")


XSSI_GUARD: Final[str] = ")]}'"

# Path segment the proxy gateway mounts the Gerrit server under
_PROXY_PREFIX: Final[str] = "gerrit"


class GerritRestError(RuntimeError):
    """Base class for errors raised while talking to Gerrit."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class TransportError(GerritRestError):
    """Raised for network failures and non-successful HTTP responses."""


class MalformedResponseError(GerritRestError):
    """Raised when a response body cannot be decoded into the expected shape."""


def strip_xssi_guard(text: str) -> str:
    """
    Strip Gerrit's XSSI guard from JSON responses.

    Gerrit prepends ")]}'" to JSON responses to prevent JSON hijacking.
    This function removes that prefix if present.
    """
    if text.startswith(XSSI_GUARD):
        # Common patterns: ")]}'\n" or ")]}'\r\n"
        if text[4:6] == "\r\n":
            return text[6:]
        if text[4:5] == "\n":
            return text[5:]
        return text[4:]
    return text


def parse_gerrit_json(text: str) -> Any:
    """Parse a Gerrit JSON body, providing clear error messages."""
    try:
        return json.loads(strip_xssi_guard(text))
    except json.JSONDecodeError as exc:
        msg = f"Failed to parse JSON response: {exc}"
        raise MalformedResponseError(msg, response_body=text) from exc


def parse_changes(text: str) -> list[GerritChange]:
    """
    Decode a change query response into GerritChange records.

    Args:
        text: Raw response body, with or without the XSSI guard.

    Returns:
        The decoded changes, in server order. May be empty.

    Raises:
        MalformedResponseError: If the body is not JSON, is not a list of
            objects, or an entry lacks a required field.
    """
    data = parse_gerrit_json(text)
    if not isinstance(data, list):
        raise MalformedResponseError(
            f"Expected a list of changes, got {type(data).__name__}",
            response_body=text,
        )

    changes: list[GerritChange] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise MalformedResponseError(
                f"Change #{index} is not an object: {item!r}",
                response_body=text,
            )
        try:
            changes.append(GerritChange.from_api_response(item))
        except ValidationError as exc:
            missing = ", ".join(
                ".".join(str(part) for part in err["loc"])
                for err in exc.errors()
            )
            raise MalformedResponseError(
                f"Change #{index} is malformed ({missing})",
                response_body=text,
            ) from exc
    return changes


def parse_username(text: str) -> str:
    """Decode the accounts/<id>/username body, e.g. ``)]}'"jdoe"``."""
    return strip_xssi_guard(text).strip().replace('"', "")


class GerritProxyClient:
    """
    Async client for Gerrit reached through the portal's proxy gateway.

    All paths are relative to ``{proxy_url}/gerrit/``. The client owns an
    ``httpx.AsyncClient`` unless one is passed in.
    """

    def __init__(
        self,
        *,
        proxy_url: str,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the proxy client.

        Args:
            proxy_url: Base URL of the host's proxy backend.
            timeout: Request timeout in seconds; None waits indefinitely.
            http_client: Optional preconfigured client (used by tests).
        """
        self._base_url: str = f"{proxy_url.rstrip('/')}/{_PROXY_PREFIX}/"
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout)
        )

        log.debug(
            "GerritProxyClient initialized: base_url=%s, timeout=%s",
            self._base_url,
            "none" if timeout is None else f"{timeout:.1f}s",
        )

    @property
    def base_url(self) -> str:
        """Get the proxied Gerrit base URL."""
        return self._base_url

    async def __aenter__(self) -> GerritProxyClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def get_text(self, path: str) -> str:
        """
        Perform a GET and return the raw body text.

        Args:
            path: Path relative to the proxied Gerrit root
                  (e.g., "changes/?q=is:open").

        Raises:
            TransportError: On network failure, an unusable URL or a non-2xx
                status.
        """
        if not path:
            raise ValueError("path is required")

        url = self._base_url + path.lstrip("/")
        log.debug("Gerrit proxy GET %s", url)

        try:
            resp = await self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(
                f"Gerrit proxy GET {path!r} failed: {exc}"
            ) from exc

        if resp.status_code >= 400:
            raise TransportError(
                f"Gerrit proxy GET {path} failed with HTTP {resp.status_code}",
                status_code=resp.status_code,
                response_body=resp.text,
            )
        return resp.text

    async def query_changes(self, query: str) -> list[GerritChange]:
        """
        Run a change query.

        Args:
            query: Everything after ``changes/?q=``, e.g.
                   "is:open+owner:alice+limit:5&o=LABELS".

        Returns:
            Matching changes; an empty list when nothing matches.
        """
        text = await self.get_text(changes_path(query))
        changes = parse_changes(text)
        log.debug("Query %r returned %d change(s)", query, len(changes))
        return changes

    async def get_username(self, account_id: str) -> str:
        """Look up the username for a numeric account id."""
        text = await self.get_text(f"accounts/{account_id}/username")
        return parse_username(text)

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"GerritProxyClient(base_url='{self._base_url}')"


__all__ = [
    "GerritProxyClient",
    "GerritRestError",
    "MalformedResponseError",
    "TransportError",
    "XSSI_GUARD",
    "parse_changes",
    "parse_gerrit_json",
    "parse_username",
    "strip_xssi_guard",
]
