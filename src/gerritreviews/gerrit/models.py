# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation
"""
Gerrit data models for gerrit-reviews.

This module defines Pydantic models for the changes returned by the Gerrit
query endpoint and for the display rows projected from them.

These models provide:
- Type-safe representations of Gerrit API responses
- Factory methods for parsing raw API data
- Row and owner-cell structures consumed by table renderers
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OwnerState(str, Enum):
    """Resolution state of a row's owner username."""

    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


class GerritAccountRef(BaseModel):
    """Reference to a Gerrit account as embedded in ChangeInfo."""

    model_config = ConfigDict(
        populate_by_name=True, coerce_numbers_to_str=True
    )

    account_id: str = Field(..., alias="_account_id")


class GerritChange(BaseModel):
    """
    Represents one Gerrit change as returned by ``/changes/?q=``.

    ``project``, ``number`` and ``change_id`` are required to build links;
    everything else defaults to an empty value when the server omits it.
    """

    model_config = ConfigDict(
        populate_by_name=True, coerce_numbers_to_str=True
    )

    # Core identifiers
    number: str = Field(..., alias="_number", description="Gerrit change number")
    change_id: str = Field(..., description="Gerrit Change-Id (I-prefixed)")
    project: str = Field(..., description="Gerrit project name")

    subject: str = Field("", description="First line of commit message")
    owner: GerritAccountRef = Field(
        default_factory=lambda: GerritAccountRef(account_id=""),
        description="Change owner",
    )
    branch: str = Field("", description="Target branch")
    updated: str = Field("", description="Last update timestamp")
    status: str = Field("", description="Change status (NEW, MERGED, ABANDONED)")

    # Present when the query asks for o=LABELS
    labels: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> GerritChange:
        """
        Create a GerritChange from a Gerrit REST API ChangeInfo dict.

        Raises:
            pydantic.ValidationError: If a required field is missing.
        """
        return cls.model_validate(data)


class OwnerCell(BaseModel):
    """
    The owner column of a row.

    ``username`` stays empty while the lookup is pending; a failed lookup
    keeps the error message so the renderer can show it.
    """

    account_id: str
    state: OwnerState = OwnerState.PENDING
    username: str = ""
    error: str | None = None

    @property
    def display(self) -> str:
        """Username if resolved, otherwise the raw account id."""
        if self.state is OwnerState.RESOLVED and self.username:
            return self.username
        return self.account_id

    def resolved(self, username: str) -> OwnerCell:
        return self.model_copy(
            update={"state": OwnerState.RESOLVED, "username": username}
        )

    def failed(self, error: str) -> OwnerCell:
        return self.model_copy(
            update={"state": OwnerState.FAILED, "error": error}
        )


class ChangeRow(BaseModel):
    """A display-ready table row derived from a GerritChange."""

    subject: str
    change_url: str
    owner: OwnerCell
    owner_url: str
    project: str
    project_url: str | None = None
    branch: str
    branch_url: str
    updated: str
    status: str
    change_id: str
    number: str
