# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation
"""
Gerrit web UI link construction.

This module provides a single place that turns change coordinates into
links on the Gerrit web UI. Project and branch names are embedded verbatim:
Gerrit's routes expect nested project names such as "releng/tool" with
literal slashes.

Usage:
    from gerritreviews.gerrit.urls import GerritLinkBuilder

    links = GerritLinkBuilder("https://gerrit.example.org")
    links.change_url("releng/project", "12345")
"""

from __future__ import annotations

import logging

log = logging.getLogger("gerritreviews.gerrit.urls")

DEFAULT_WEB_URL = "http://localhost:8080"


class GerritLinkBuilder:
    """Builder for links into the Gerrit web UI."""

    def __init__(self, web_url: str = DEFAULT_WEB_URL) -> None:
        """
        Initialize the link builder.

        Args:
            web_url: Origin (and optional base path) of the Gerrit web UI,
                     e.g. "https://gerrit.example.org/infra".
        """
        self._web_url = web_url.strip().rstrip("/")
        log.debug("GerritLinkBuilder: web_url=%s", self._web_url)

    @property
    def web_url(self) -> str:
        """Get the normalized web UI root (without trailing slash)."""
        return self._web_url

    def _join(self, path: str) -> str:
        return f"{self._web_url}/{path.lstrip('/')}"

    def change_url(self, project: str, change_number: str | int) -> str:
        """Link to a change page: ``/c/<project>/+/<number>``."""
        return self._join(f"c/{project}/+/{change_number}")

    def owner_query_url(self, account: str) -> str:
        """Link to the search page for changes owned by ``account``."""
        return self._join(f"q/owner:{account}")

    def project_browser_url(self, project: str) -> str:
        """Link to the project's gitiles page."""
        return self._join(f"plugins/gitiles/{project}")

    def branch_browser_url(self, project: str, branch: str) -> str:
        """Link to the branch's file browser in gitiles."""
        return self._join(f"plugins/gitiles/{project}/+/refs/heads/{branch}")

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"GerritLinkBuilder(web_url={self._web_url!r})"


__all__ = [
    "DEFAULT_WEB_URL",
    "GerritLinkBuilder",
]
