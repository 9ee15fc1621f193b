"""
CLI: ``perema contacts``, browse and add contacts.
"""

from __future__ import annotations

import typer

from perema.cli.utils import make_context, output_paged, output_result

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_contacts(
    search: str | None = typer.Option(None, "--search", "-s", help="Match first, last or nick name"),
    circle: str | None = typer.Option(None, "--circle", "-c", help="Only contacts in this circle"),
    fields: str = typer.Option(
        "firstname,lastname,nickname,birthday,circles", "--fields", help="Comma-separated columns"
    ),
    page: int = typer.Option(1, "--page"),
    limit: int = typer.Option(25, "--limit"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List contacts."""
    from perema.ops.contacts import list_contacts as _list
    from perema.ops.requests import ListContactsRequest

    ctx, session = make_context(database)
    with session:
        result = _list(
            ctx,
            ListContactsRequest(page=page, limit=limit, fields=fields, search=search, circle=circle),
        )
    output_paged(result, as_json=json_out, title="Contacts")


@app.command()
def show(
    contact_id: int = typer.Argument(..., help="Contact ID"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one contact with its records."""
    from perema.ops.contacts import get_contact

    ctx, session = make_context(database)
    with session:
        result = get_contact(ctx, contact_id)
    output_result(result, as_json=json_out, title=f"Contact {contact_id}")


@app.command()
def add(
    firstname: str = typer.Argument(..., help="First name"),
    lastname: str | None = typer.Option(None, "--lastname", "-l"),
    nickname: str | None = typer.Option(None, "--nickname", "-n"),
    birthday: str | None = typer.Option(None, "--birthday", "-b", help="YYYY-MM-DD or --MM-DD"),
    email: str | None = typer.Option(None, "--email"),
    circle: list[str] = typer.Option([], "--circle", "-c", help="Repeat for several circles"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Add a contact."""
    from perema.ops.contacts import create_contact
    from perema.ops.requests import CreateContactRequest

    values = {
        "firstname": firstname,
        "lastname": lastname,
        "nickname": nickname,
        "birthday": birthday,
        "email": email,
        "circles": circle,
    }
    ctx, session = make_context(database)
    with session:
        result = create_contact(
            ctx, CreateContactRequest(values={k: v for k, v in values.items() if v is not None})
        )
    output_result(result, as_json=json_out, title="Contact created")


@app.command()
def circles(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List circle names in use."""
    from perema.ops.contacts import list_circles

    ctx, session = make_context(database)
    with session:
        result = list_circles(ctx)
    output_result(result, as_json=json_out, title="Circles")
