"""
CLI: ``perema jobs``, run the mail jobs once or host the scheduler.
"""

from __future__ import annotations

import datetime
import time

import typer

from perema.cli.utils import console, err_console, make_context, output_result

app = typer.Typer(no_args_is_help=True)


def _mailer():
    from perema.core.errors import ConfigError
    from perema.core.settings import get_settings
    from perema.notifications import create_mailer

    try:
        return create_mailer(get_settings())
    except ConfigError as exc:
        err_console.print(f"[bold red]Error[/bold red] (UNAVAILABLE): {exc.message}")
        raise typer.Exit(code=1) from exc


@app.command()
def birthdays(
    date: datetime.datetime | None = typer.Option(
        None, "--date", formats=["%Y-%m-%d"], help="Run as if today were this date"
    ),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Send today's birthday reminders."""
    from perema.core.settings import get_settings
    from perema.ops.birthdays import send_birthday_reminders
    from perema.ops.requests import BirthdayRunRequest

    mailer = _mailer()
    ctx, session = make_context(database)
    with session:
        day = date.date() if date else None
        result = send_birthday_reminders(ctx, mailer, get_settings(), BirthdayRunRequest(day=day))
    output_result(result, as_json=json_out, title="Birthday Reminders")


@app.command()
def reminders(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Mail every due reminder."""
    from perema.core.settings import get_settings
    from perema.ops.birthdays import send_due_reminders
    from perema.ops.requests import DueRemindersRequest

    mailer = _mailer()
    ctx, session = make_context(database)
    with session:
        result = send_due_reminders(ctx, mailer, get_settings(), DueRemindersRequest())
    output_result(result, as_json=json_out, title="Due Reminders")


@app.command()
def worker() -> None:
    """Host the scheduler without the web server (blocks until Ctrl+C)."""
    from perema.core.logging import configure_logging
    from perema.core.orm import create_perema_engine, init_schema, perema_session_factory
    from perema.core.settings import get_settings
    from perema.scheduling import APSchedulerBackend, register_jobs

    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json, service="perema")
    mailer = _mailer()

    engine = create_perema_engine(settings.effective_database_url)
    init_schema(engine)
    backend = APSchedulerBackend(timezone=settings.scheduler_timezone)
    job_ids = register_jobs(backend, perema_session_factory(engine), mailer, settings)
    backend.start()
    console.print(
        f"[bold green]Scheduler running[/bold green] ({', '.join(job_ids)}, tz={settings.scheduler_timezone})"
    )

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Scheduler stopped by user[/yellow]")
    finally:
        backend.stop()
        engine.dispose()
