"""Record commands.

- get-value: Read a labelled value from a record
- search: Keyword search within an app
"""

from __future__ import annotations

import json
from typing import List

import typer
from typer import Context

from apptivolink.cli.app import app, get_client, label_from_args, unwrap_or_exit
from apptivolink.connectors.base import PagingParams


@app.command(name="get-value")
def get_value_command(
    ctx: Context,
    app_name: str = typer.Argument(..., help="App name or id"),
    record_id: str = typer.Argument(..., help="Record id"),
    label: List[str] = typer.Argument(..., help="Field label, or section label then field label"),
):
    """Read a labelled value from a record.

    Examples:
        apptivolink get-value cases 12345 "Case Status"
        apptivolink get-value customers 678 "Address||Billing||City"
    """
    if len(label) > 2:
        typer.echo("❌ Give a field label, or a section label and a field label", err=True)
        raise typer.Exit(1)
    client = get_client(ctx)
    record = unwrap_or_exit(client.read(app_name, record_id))
    details = unwrap_or_exit(client.get_value(label_from_args(label), record, app_name))
    typer.echo(details.value_text)


@app.command(name="search")
def search_command(
    ctx: Context,
    app_name: str = typer.Argument(..., help="App name or id"),
    text: str = typer.Argument(..., help="Search text"),
    limit: int = typer.Option(50, "--limit", "-n", help="Maximum records to return"),
    as_json: bool = typer.Option(False, "--json", help="Print the records as JSON"),
):
    """Keyword search within an app.

    Examples:
        apptivolink search customers "Acme"
        apptivolink search cases "printer" --limit 10 --json
    """
    client = get_client(ctx)
    page = unwrap_or_exit(client.search_by_text(app_name, text, PagingParams(num_records=limit)))

    if as_json:
        typer.echo(json.dumps(page.records, indent=2, default=str))
        return

    if not page.records:
        typer.echo(f"No {app_name} records match: {text}")
        return

    typer.echo(f"🔍 {len(page.records)} of {page.total_count} {app_name} records:")
    for record in page.records:
        name = (
            record.get("fullName")
            or record.get("customerName")
            or record.get("caseSummary")
            or record.get("name")
            or ""
        )
        typer.echo(f"   • {record.get('id')}  {name}")
