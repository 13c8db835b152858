# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation
"""Shared fixtures for gerrit-reviews tests."""

import json
from typing import Any, Callable

import httpx
import pytest

from gerritreviews.gerrit.client import GerritProxyClient

PROXY_URL = "http://portal.example.org/api/proxy"
WEB_URL = "https://gerrit.example.org"


def gerrit_body(data: Any) -> str:
    """Encode data the way Gerrit does, XSSI guard included."""
    return ")]}'\n" + json.dumps(data)


def make_client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> GerritProxyClient:
    """Build a proxy client whose requests are answered by ``handler``."""
    return GerritProxyClient(
        proxy_url=PROXY_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def change_data(
    number: int = 12345,
    project: str = "my-project",
    account_id: int = 1000001,
    **overrides: Any,
) -> dict[str, Any]:
    """Sample Gerrit ChangeInfo dict."""
    data = {
        "_number": number,
        "change_id": f"I{number:040d}",
        "project": project,
        "subject": "Chore: Bump actions/checkout from 4.1.0 to 4.2.0",
        "branch": "main",
        "status": "NEW",
        "owner": {"_account_id": account_id},
        "updated": "2024-01-15 12:00:00.000000000",
    }
    data.update(overrides)
    return data


@pytest.fixture
def sample_change_data():
    """A single sample change dict."""
    return change_data()
