# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation
"""
Catalog entity helpers.

The portal shows the Gerrit tab only for entities whose source location
points at a Gerrit server. The check is a pure function of the entity's
metadata so it can be tested without a catalog.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

SOURCE_LOCATION_ANNOTATION = "backstage.io/source-location"

DEFAULT_GERRIT_HOSTS: tuple[str, ...] = ("localhost:8080",)


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def source_location(entity: Mapping[str, Any]) -> str:
    """Return the entity's source-location annotation, or "" if unset."""
    metadata = _mapping(entity.get("metadata"))
    annotations = _mapping(metadata.get("annotations"))
    value = annotations.get(SOURCE_LOCATION_ANNOTATION)
    return value if isinstance(value, str) else ""


def entity_name(entity: Mapping[str, Any]) -> str:
    """Return ``metadata.name``, which doubles as the Gerrit project name."""
    metadata = _mapping(entity.get("metadata"))
    return str(metadata.get("name") or "")


def is_gerrit_entity(
    entity: Mapping[str, Any],
    gerrit_hosts: Iterable[str] = DEFAULT_GERRIT_HOSTS,
) -> bool:
    """
    Check whether an entity is backed by Gerrit.

    Matches when the source location contains one of ``gerrit_hosts`` or
    the word "gerrit". Matching is by substring, as in the portal.
    """
    location = source_location(entity)
    if not location:
        return False
    if "gerrit" in location:
        return True
    return any(host and host in location for host in gerrit_hosts)


__all__ = [
    "DEFAULT_GERRIT_HOSTS",
    "SOURCE_LOCATION_ANNOTATION",
    "entity_name",
    "is_gerrit_entity",
    "source_location",
]
