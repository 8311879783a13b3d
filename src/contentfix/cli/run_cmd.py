"""contentfix run command."""

from __future__ import annotations

import json

import click
from rich.prompt import Confirm

from contentfix.cli.common import DEFAULT_USER, build_orchestrator, open_store
from contentfix.core.models import RemediationOptions
from contentfix.core.output import console, print_result


@click.command()
@click.argument("site_id")
@click.option("--apply", "apply_fixes", is_flag=True, help="Write changes (default is a dry run)")
@click.option("--type", "fix_types", multiple=True, help="Only fix this issue type (repeatable)")
@click.option("--max-changes", type=int, default=None, help="Maximum number of fixes")
@click.option("--skip-backup", is_flag=True, help="Do not snapshot content before fixing")
@click.option("--no-reanalysis", is_flag=True, help="Skip the score re-analysis")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Show the detailed run log")
@click.option("--user", default=DEFAULT_USER, show_default=True, help="Owning user id")
def run(
    site_id: str,
    apply_fixes: bool,
    fix_types: tuple[str, ...],
    max_changes: int | None,
    skip_backup: bool,
    no_reanalysis: bool,
    yes: bool,
    as_json: bool,
    verbose: bool,
    user: str,
):
    """Remediate tracked issues for SITE_ID.

    Without --apply nothing is written; the run reports what would be fixed
    and the estimated score improvement.
    """
    store = open_store()
    orchestrator = build_orchestrator(store)

    if apply_fixes and skip_backup and not yes and not as_json:
        if not Confirm.ask("  Apply fixes without a backup? Rollback will not be possible",
                           default=False):
            console.print("  [dim]Aborted.[/dim]")
            return

    options = RemediationOptions(
        fix_types=list(fix_types) or None,
        max_changes=max_changes,
        skip_backup=skip_backup,
        enable_reanalysis=not no_reanalysis,
    )
    result = orchestrator.run_remediation(site_id, user, dry_run=not apply_fixes, options=options)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        print_result(result, verbose=verbose)

    if not result.success:
        raise SystemExit(1)
