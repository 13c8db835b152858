# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from . import __version__
from .config import ConfigError, GerritReviewsConfig, build_config
from .entity import DEFAULT_GERRIT_HOSTS, entity_name, is_gerrit_entity
from .gerrit.client import GerritProxyClient
from .gerrit.feeds import ChangeTable, GerritFeedService, Lifetime, TableState
from .gerrit.models import ChangeRow, OwnerState
from .gerrit.queries import ReviewView
from .gerrit.resolver import AccountResolver, CachingAccountResolver, ProxyAccountResolver
from .gerrit.rows import SORT_KEYS, sort_rows
from .gerrit.urls import GerritLinkBuilder

app = typer.Typer(
    help="Show Gerrit review tables fetched through a portal proxy"
)
console = Console(markup=False)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"gerrit-reviews version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging"
    ),
):
    """Gerrit review tables for developer portals."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_service(
    config: GerritReviewsConfig, client: GerritProxyClient
) -> GerritFeedService:
    """Wire a feed service from configuration."""
    resolver: AccountResolver = ProxyAccountResolver(client)
    if config.cache_usernames:
        resolver = CachingAccountResolver(resolver)
    return GerritFeedService(
        client,
        resolver,
        GerritLinkBuilder(config.web_url),
        username=config.username,
        limit=config.limit,
    )


def _load_config(**kwargs) -> GerritReviewsConfig:
    try:
        return build_config(**kwargs)
    except ConfigError as e:
        console.print(f"Error: {e}", soft_wrap=True)
        raise typer.Exit(2) from e


async def _fetch_repo(config: GerritReviewsConfig, project: str) -> ChangeTable:
    lifetime = Lifetime()
    async with GerritProxyClient(
        proxy_url=config.proxy_url, timeout=config.timeout
    ) as client:
        try:
            return await _build_service(config, client).load_repo_feed(
                project, lifetime
            )
        finally:
            lifetime.cancel()


async def _fetch_dashboard(
    config: GerritReviewsConfig,
) -> Dict[ReviewView, ChangeTable]:
    lifetime = Lifetime()
    async with GerritProxyClient(
        proxy_url=config.proxy_url, timeout=config.timeout
    ) as client:
        try:
            return await _build_service(config, client).load_dashboard(lifetime)
        finally:
            lifetime.cancel()


def _owner_text(row: ChangeRow) -> Text:
    owner = row.owner
    if owner.state is OwnerState.FAILED:
        return Text(f"{owner.account_id} (lookup failed: {owner.error})", style="red")
    if owner.state is OwnerState.PENDING:
        return Text("…", style="dim")
    return Text(owner.display, style=f"link {row.owner_url}")


def _render_table(table: ChangeTable, rows: List[ChangeRow]) -> None:
    """Print one change table, or its loading/error state."""
    if table.state is TableState.FAILED:
        console.print(f"{table.title}: ❌ {table.error}", style="red", soft_wrap=True)
        return
    if table.state is not TableState.READY:
        console.print(f"{table.title}: loading…", style="dim")
        return

    out = Table(title=table.title)
    out.add_column("Subject", style="white", max_width=50)
    out.add_column("Owner", style="yellow")
    out.add_column("Project", style="cyan")
    out.add_column("Branch", style="cyan")
    out.add_column("Updated", style="white")
    out.add_column("Status", style="green")
    out.add_column("Change Id", style="dim")

    for row in rows:
        project = Text(row.project)
        if row.project_url:
            project.stylize(f"link {row.project_url}")
        out.add_row(
            Text(row.subject, style=f"link {row.change_url}"),
            _owner_text(row),
            project,
            Text(row.branch, style=f"link {row.branch_url}"),
            row.updated,
            row.status,
            row.change_id,
        )

    console.print(out)


def _tables_as_json(
    tables: List[ChangeTable], sort: Optional[str], descending: bool
) -> str:
    payload = [
        {
            "title": table.title,
            "state": table.state.value,
            "error": table.error,
            "rows": [
                row.model_dump(mode="json")
                for row in _ordered_rows(table, sort, descending)
            ],
        }
        for table in tables
    ]
    return json.dumps(payload, indent=2)


def _ordered_rows(
    table: ChangeTable, sort: Optional[str], descending: bool
) -> List[ChangeRow]:
    if sort is None:
        return table.rows
    return sort_rows(table.rows, sort, descending)


def _check_sort(sort: Optional[str]) -> None:
    if sort is not None and sort not in SORT_KEYS:
        console.print(
            f"Error: cannot sort by {sort!r}; choose one of: {', '.join(SORT_KEYS)}",
            soft_wrap=True,
        )
        raise typer.Exit(2)


def _output(
    tables: List[ChangeTable],
    output_format: str,
    sort: Optional[str] = None,
    descending: bool = False,
) -> None:
    if output_format == "json":
        console.print(_tables_as_json(tables, sort, descending), soft_wrap=True)
        return
    for table in tables:
        _render_table(table, _ordered_rows(table, sort, descending))
        console.print()


@app.command()
def repo(
    project: str = typer.Argument(..., help="Gerrit project (catalog entity name)"),
    proxy_url: Optional[str] = typer.Option(
        None, "--proxy-url", help="Proxy backend URL (or set GERRIT_PROXY_URL env var)"
    ),
    web_url: Optional[str] = typer.Option(
        None, "--web-url", help="Gerrit web UI origin (or set GERRIT_WEB_URL env var)"
    ),
    cache: bool = typer.Option(
        False, "--cache/--no-cache", help="Share username lookups between rows"
    ),
    output_format: str = typer.Option(
        "table", "--format", help="Output format: table or json"
    ),
    sort: Optional[str] = typer.Option(
        None,
        "--sort",
        help="Sort rows by subject, owner, project, branch, updated or status",
    ),
    descending: bool = typer.Option(False, "--desc", help="Reverse the sort order"),
):
    """
    Show every change of one repository.
    """
    _check_sort(sort)
    config = _load_config(proxy_url=proxy_url, web_url=web_url, cache_usernames=cache)
    table = asyncio.run(_fetch_repo(config, project))
    _output([table], output_format, sort, descending)
    if table.state is TableState.FAILED:
        raise typer.Exit(1)


@app.command()
def dashboard(
    user: Optional[str] = typer.Option(
        None, "--user", help="Gerrit username (or set GERRIT_USERNAME env var)"
    ),
    limit: Optional[int] = typer.Option(
        None, "--limit", help="Changes per table (or set GERRIT_QUERY_LIMIT env var)"
    ),
    proxy_url: Optional[str] = typer.Option(
        None, "--proxy-url", help="Proxy backend URL (or set GERRIT_PROXY_URL env var)"
    ),
    web_url: Optional[str] = typer.Option(
        None, "--web-url", help="Gerrit web UI origin (or set GERRIT_WEB_URL env var)"
    ),
    cache: bool = typer.Option(
        False, "--cache/--no-cache", help="Share username lookups between rows"
    ),
    output_format: str = typer.Option(
        "table", "--format", help="Output format: table or json"
    ),
    sort: Optional[str] = typer.Option(
        None,
        "--sort",
        help="Sort rows by subject, owner, project, branch, updated or status",
    ),
    descending: bool = typer.Option(False, "--desc", help="Reverse the sort order"),
):
    """
    Show the open, incoming and closed review tables for a user.

    A failing table is reported inline; the other tables still render.
    """
    _check_sort(sort)
    config = _load_config(
        proxy_url=proxy_url,
        web_url=web_url,
        username=user,
        limit=limit,
        cache_usernames=cache,
    )
    tables = asyncio.run(_fetch_dashboard(config))
    _output(list(tables.values()), output_format, sort, descending)
    if all(t.state is TableState.FAILED for t in tables.values()):
        raise typer.Exit(1)


@app.command("check-entity")
def check_entity(
    entity_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="Catalog entity descriptor (JSON)"
    ),
    gerrit_host: Optional[List[str]] = typer.Option(
        None, "--gerrit-host", help="Host that marks a Gerrit source location (repeatable)"
    ),
):
    """
    Report whether a catalog entity is backed by Gerrit.

    Exits with status 1 when it is not.
    """
    try:
        entity = json.loads(entity_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"Error: {entity_file} is not valid JSON: {e}", soft_wrap=True)
        raise typer.Exit(2) from e
    if not isinstance(entity, dict):
        console.print(f"Error: {entity_file} is not a JSON object", soft_wrap=True)
        raise typer.Exit(2)

    name = entity_name(entity) or "(unnamed)"
    hosts = tuple(gerrit_host) if gerrit_host else DEFAULT_GERRIT_HOSTS
    if is_gerrit_entity(entity, hosts):
        console.print(f"{name}: Gerrit-backed ✅")
        return
    console.print(f"{name}: not a Gerrit repository")
    raise typer.Exit(1)


if __name__ == "__main__":
    app()
