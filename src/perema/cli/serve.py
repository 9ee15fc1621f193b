"""
CLI: ``perema serve``, start the web server (API + frontend + scheduler).
"""

from __future__ import annotations

import typer
import uvicorn

from perema.cli.utils import console
from perema.core.settings import get_settings

app = typer.Typer(no_args_is_help=True)


@app.command("start")
def start(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address (default: settings)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default: settings)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    log_level: str = typer.Option("info", "--log-level"),
) -> None:
    """Start the perema web server.

    A single worker process: the background jobs run inside it.
    """
    settings = get_settings()
    host = host or settings.host
    port = port or settings.port

    console.print(f"[bold green]Starting perema[/bold green] on {host}:{port}")
    uvicorn.run(
        "perema.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=1,
        log_level=log_level,
    )
