"""
CLI utility helpers: output formatting and session management.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.orm import Session

from perema.core.orm import create_perema_engine, init_schema, perema_session_factory
from perema.core.settings import PeremaSettings, get_settings
from perema.ops.context import OperationContext
from perema.ops.result import OperationResult, PagedResult

console = Console()
err_console = Console(stderr=True)


# ── Session helper ───────────────────────────────────────────────────────


def database_url(database: str | None = None, settings: PeremaSettings | None = None) -> str:
    """``--database`` path when given, else the configured URL."""
    if database:
        return database if "://" in database else f"sqlite:///{database}"
    return (settings or get_settings()).effective_database_url


def open_session(database: str | None = None) -> Session:
    """Open a session on a database whose tables exist."""
    engine = create_perema_engine(database_url(database))
    init_schema(engine)
    return perema_session_factory(engine)()


def make_context(database: str | None = None) -> tuple[OperationContext, Session]:
    """Create an ``OperationContext`` + session pair for CLI commands."""
    session = open_session(database)
    return OperationContext(session=session, caller="cli"), session


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def _fail(result: OperationResult[Any]) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = err.code if err else "ERROR"
    err_console.print(f"[bold red]Error[/bold red] ({code}): {msg}")
    raise typer.Exit(code=1)


def output_result(
    result: OperationResult[Any],
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render an ``OperationResult`` to the terminal."""
    if not result.success:
        _fail(result)

    data = result.data

    if as_json:
        if isinstance(data, list | tuple):
            payload = [d if isinstance(d, str | int | float) else _to_dict(d) for d in data]
        else:
            payload = _to_dict(data)
        console.print_json(json.dumps(payload, default=str))
        return

    if isinstance(data, list):
        if not data:
            console.print("[dim]No items.[/dim]")
            return
        if not isinstance(data[0], dict) and not hasattr(data[0], "__dataclass_fields__"):
            for item in data:
                console.print(f"  {item}")
            return
        _print_table(data, title=title)
    else:
        _print_dict(_to_dict(data), title=title)

    for warning in result.warnings:
        err_console.print(f"[yellow]Warning:[/yellow] {warning}")


def output_paged(
    result: PagedResult[Any],
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render a ``PagedResult`` to the terminal with pagination info."""
    if not result.success:
        _fail(result)

    items = result.data or []

    if as_json:
        payload = {
            "items": [_to_dict(d) for d in items],
            "total": result.total,
            "page": result.page,
            "limit": result.limit,
            "offset": result.offset,
            "has_more": result.has_more,
        }
        console.print_json(json.dumps(payload, default=str))
        return

    if not items:
        console.print("[dim]No items.[/dim]")
        return

    _print_table(items, title=title)
    console.print(
        f"\n[dim]Showing {len(items)} of {result.total}"
        f" (page {result.page}, offset {result.offset})[/dim]"
    )


# ── Private helpers ──────────────────────────────────────────────────────


def _print_table(items: list, *, title: str = "") -> None:
    """Render a list of dataclasses/dicts as a Rich table."""
    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        d = _to_dict(item)
        table.add_row(*(_cell(d.get(col)) for col in first))
    console.print(table)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")
