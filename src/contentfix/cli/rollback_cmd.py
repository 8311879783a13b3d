"""contentfix rollback command."""

from __future__ import annotations

import click

from contentfix.backup.manager import BackupManager
from contentfix.cli.common import DEFAULT_USER, open_store
from contentfix.cms.client import ContentStoreClient, ContentStoreError
from contentfix.core.config import load_config
from contentfix.core.output import console, print_rollback


@click.command()
@click.argument("session_id")
@click.option("--site", "site_id", required=True, help="Site the session ran against")
@click.option("--user", default=DEFAULT_USER, show_default=True, help="Owning user id")
def rollback(session_id: str, site_id: str, user: str):
    """Restore every document backed up by SESSION_ID."""
    store = open_store()
    site = store.get_site(site_id, user)
    if site is None:
        raise click.ClickException(f"Site {site_id} not found")

    manager = BackupManager(store)
    if not manager.load(session_id):
        console.print(f"\n  No backup recorded for session {session_id}.\n")
        return

    client = ContentStoreClient(site.credentials(), load_config().client)
    try:
        client.test_connection()
    except ContentStoreError as exc:
        raise click.ClickException(str(exc))

    print_rollback(manager.rollback_session(client, session_id))
