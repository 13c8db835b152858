# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation
"""
Configuration for gerrit-reviews.

Values come from explicit arguments first, then environment variables,
then defaults:

    GERRIT_PROXY_URL     proxy backend base URL (required)
    GERRIT_WEB_URL       Gerrit web UI origin used for links
    GERRIT_USERNAME      user shown on the personal dashboard
    GERRIT_QUERY_LIMIT   changes per dashboard table
"""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, Field, ValidationError

from gerritreviews.gerrit.queries import DEFAULT_QUERY_LIMIT
from gerritreviews.gerrit.urls import DEFAULT_WEB_URL

log = logging.getLogger("gerritreviews.config")

DEFAULT_USERNAME = "user1"


class ConfigError(ValueError):
    """Raised when the configuration is missing or invalid."""


class GerritReviewsConfig(BaseModel):
    """Settings bound at call time instead of being hardcoded."""

    proxy_url: str = Field(..., min_length=1, description="Proxy backend base URL")
    web_url: str = Field(DEFAULT_WEB_URL, description="Gerrit web UI origin")
    username: str = Field(DEFAULT_USERNAME, min_length=1)
    limit: int = Field(DEFAULT_QUERY_LIMIT, gt=0)
    timeout: float | None = Field(None, gt=0, description="Request timeout (s)")
    cache_usernames: bool = False


def _env(name: str) -> str:
    return os.getenv(name, "").strip()


def build_config(
    *,
    proxy_url: str | None = None,
    web_url: str | None = None,
    username: str | None = None,
    limit: int | None = None,
    timeout: float | None = None,
    cache_usernames: bool = False,
) -> GerritReviewsConfig:
    """
    Build a GerritReviewsConfig from arguments and the environment.

    Raises:
        ConfigError: If no proxy URL is available or a value is invalid.
    """
    resolved_proxy = (proxy_url or "").strip() or _env("GERRIT_PROXY_URL")
    if not resolved_proxy:
        raise ConfigError(
            "No proxy URL configured (use --proxy-url or set GERRIT_PROXY_URL)"
        )

    resolved_limit: int | str = limit if limit is not None else (
        _env("GERRIT_QUERY_LIMIT") or DEFAULT_QUERY_LIMIT
    )

    try:
        config = GerritReviewsConfig(
            proxy_url=resolved_proxy,
            web_url=(web_url or "").strip() or _env("GERRIT_WEB_URL") or DEFAULT_WEB_URL,
            username=(username or "").strip() or _env("GERRIT_USERNAME") or DEFAULT_USERNAME,
            limit=resolved_limit,
            timeout=timeout,
            cache_usernames=cache_usernames,
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

    log.debug(
        "Configuration: proxy_url=%s, web_url=%s, username=%s, limit=%d",
        config.proxy_url,
        config.web_url,
        config.username,
        config.limit,
    )
    return config


__all__ = [
    "ConfigError",
    "DEFAULT_USERNAME",
    "GerritReviewsConfig",
    "build_config",
]
