"""
CLI: ``perema db``, database management commands.
"""

from __future__ import annotations

import typer

from perema.cli.utils import database_url, output_result

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help="Database path or URL"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Create any missing tables."""
    from perema.core.orm import create_perema_engine, init_schema
    from perema.ops.result import OperationResult

    url = database_url(database)
    engine = create_perema_engine(url)
    try:
        created = init_schema(engine)
    finally:
        engine.dispose()
    result = OperationResult.ok({"database": engine.url.render_as_string(), "tables_created": created})
    output_result(result, as_json=json_out, title="Database Init")
