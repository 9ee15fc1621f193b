"""
Root Typer application for the perema CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

app = Typer(
    name="perema",
    help="perema: a personal relationship manager.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from perema import __version__

        typer.echo(f"perema {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """perema CLI: serve the app, manage the database, run jobs, browse contacts."""


# ── Sub-command registration ─────────────────────────────────────────────

from perema.cli.contacts import app as contacts_app  # noqa: E402
from perema.cli.db import app as db_app  # noqa: E402
from perema.cli.jobs import app as jobs_app  # noqa: E402
from perema.cli.serve import app as serve_app  # noqa: E402

app.add_typer(serve_app, name="serve", help="Run the web server.")
app.add_typer(db_app, name="db", help="Database operations.")
app.add_typer(jobs_app, name="jobs", help="Run or host the mail jobs.")
app.add_typer(contacts_app, name="contacts", help="Browse and add contacts.")


if __name__ == "__main__":
    app()
