"""Schema inspection commands.

- resolve-app: Show the request parameters of an app
- find-attribute: Resolve a label to its attribute definition
- sections: List an app's sections and attribute labels
"""

from __future__ import annotations

from typing import List

import typer
from typer import Context

from apptivolink.apps import resolve_app
from apptivolink.cli.app import app, get_client, label_from_args, unwrap_or_exit
from apptivolink.schema.walker import iter_attributes


@app.command(name="resolve-app")
def resolve_app_command(
    app_name: str = typer.Argument(..., help="App name, id, or <name>-<id>"),
):
    """Show the request parameters for an app.

    Examples:
        apptivolink resolve-app cases
        apptivolink resolve-app customapp-445566
    """
    descriptor = unwrap_or_exit(resolve_app(app_name))
    typer.echo(f"📦 {app_name}")
    typer.echo(f"   App id: {descriptor.numeric_app_id}")
    typer.echo(f"   URL segment: {descriptor.url_segment}")
    typer.echo(f"   Envelope: {descriptor.data_envelope_key}")
    typer.echo(f"   Id param: {descriptor.id_param_name}")
    if descriptor.alias_name:
        typer.echo(f"   Alias: {descriptor.alias_name}")


@app.command(name="find-attribute")
def find_attribute_command(
    ctx: Context,
    app_name: str = typer.Argument(..., help="App name or id"),
    label: List[str] = typer.Argument(..., help="Field label, or section label then field label"),
):
    """Resolve a label to its attribute definition.

    Examples:
        apptivolink find-attribute cases "Case Status"
        apptivolink find-attribute cases Shipping Zip
    """
    if len(label) > 2:
        typer.echo("❌ Give a field label, or a section label and a field label", err=True)
        raise typer.Exit(1)
    client = get_client(ctx)
    resolved = unwrap_or_exit(client.find_attribute(label_from_args(label), app_name))

    typer.echo(f"🔎 {' > '.join(label)}")
    typer.echo(f"   Attribute id: {resolved.attribute_id}")
    typer.echo(f"   Type: {resolved.definition.type}")
    typer.echo(f"   Tag: {resolved.attribute_tag}")
    typer.echo(f"   Tag name: {resolved.tag_name}")
    if resolved.section_label:
        typer.echo(f"   Section: {resolved.section_label}")
    options = resolved.definition.options
    if options:
        typer.echo(f"   Options: {', '.join(o.text for o in options)}")


@app.command(name="sections")
def sections_command(
    ctx: Context,
    app_name: str = typer.Argument(..., help="App name or id"),
    include_disabled: bool = typer.Option(
        False, "--include-disabled", help="Also list disabled attributes"
    ),
):
    """List an app's sections and their attribute labels."""
    client = get_client(ctx)
    document = unwrap_or_exit(client.get_config(app_name))

    current_section = None
    for section, attribute in iter_attributes(document, include_disabled=include_disabled):
        if section is not current_section:
            typer.echo(f"📂 {section.modified_label or '(unlabelled)'} [{section.id}]")
            current_section = section
        typer.echo(f"   • {attribute.modified_label} ({attribute.type}/{attribute.tag})")
