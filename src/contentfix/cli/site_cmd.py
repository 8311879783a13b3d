"""contentfix site / issues / types commands."""

from __future__ import annotations

import json
from pathlib import Path

import click

from contentfix.cli.common import DEFAULT_USER, build_orchestrator, open_store
from contentfix.core.output import console, print_available


@click.group()
def site():
    """Manage sites."""


@site.command("add")
@click.argument("url")
@click.option("--username", "-u", required=True, help="Content store user name")
@click.option("--password", "-p", prompt=True, hide_input=True,
              help="Application password (stored encrypted)")
@click.option("--name", default="", help="Display name")
@click.option("--keyword", "keywords", multiple=True, help="Target keyword (repeatable)")
@click.option("--user", default=DEFAULT_USER, show_default=True, help="Owning user id")
def site_add(url: str, username: str, password: str, name: str, keywords: tuple[str, ...], user: str):
    """Register a site and its credentials."""
    store = open_store()
    new_site = store.add_site(user, url, username, password, name=name, keywords=list(keywords))
    console.print(f"\n  [green]✅ Added {new_site.name}[/green]")
    console.print(f"  Site id: [bold]{new_site.id}[/bold]\n")


@click.group()
def issues():
    """Manage tracked issues."""


@issues.command("import")
@click.argument("site_id")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--user", default=DEFAULT_USER, show_default=True, help="Owning user id")
def issues_import(site_id: str, file: Path, user: str):
    """Import auditor issues from a JSON FILE.

    The file holds a list of issues, or an object with an "issues" list.
    """
    try:
        data = json.loads(file.read_text())
    except ValueError as exc:
        raise click.ClickException(f"{file} is not valid JSON: {exc}")
    records = data.get("issues", []) if isinstance(data, dict) else data
    if not isinstance(records, list):
        raise click.ClickException("Expected a list of issues")

    store = open_store()
    if store.get_site(site_id, user) is None:
        raise click.ClickException(f"Site {site_id} not found")
    ids = store.import_issues(site_id, user, records)
    console.print(f"\n  Imported {len(ids)} issue(s).\n")


@click.command()
@click.argument("site_id")
@click.option("--user", default=DEFAULT_USER, show_default=True, help="Owning user id")
def types(site_id: str, user: str):
    """Show the fix types a run would attempt for SITE_ID."""
    store = open_store()
    print_available(build_orchestrator(store).available_fix_types(site_id, user))
