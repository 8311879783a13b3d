"""Rich terminal formatting for ContentFix output."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from contentfix.core.models import AvailableFixes, FixOutcome, RemediationResult, RollbackResult

console = Console()
error_console = Console(stderr=True)


def score_color(score: float) -> str:
    """Return color name based on score."""
    if score >= 80:
        return "green"
    elif score >= 60:
        return "yellow"
    return "red"


def outcome_mark(outcome: FixOutcome) -> str:
    if not outcome.success:
        return "[red]❌[/red]"
    if outcome.already_optimal:
        return "[blue]=[/blue]"
    if outcome.verified is True:
        return "[green]✅[/green]"
    return "[yellow]~[/yellow]"


def print_outcome(outcome: FixOutcome) -> None:
    """Print a single fix outcome."""
    target = f" [dim]({outcome.content_kind} {outcome.post_id})[/dim]" if outcome.post_id else ""
    console.print(f"  {outcome_mark(outcome)} [bold]{outcome.type}[/bold]{target}  {outcome.description}")
    if outcome.error:
        console.print(f"     [red]-> {outcome.error}[/red]")
    elif outcome.verification_details and not outcome.already_optimal:
        console.print(f"     [dim]-> {outcome.verification_details}[/dim]")


def print_result(result: RemediationResult, verbose: bool = False) -> None:
    """Print a full remediation result."""
    title = "Dry run" if result.dry_run else "Remediation"
    color = "green" if result.success else "red"
    body = f"[{color}]{result.message}[/{color}]\n[dim]Session {result.fix_session_id}[/dim]"
    console.print()
    console.print(Panel(body, title=f"[bold]{title}[/bold]", expand=False))

    if result.fixes_applied:
        console.print()
        for outcome in result.fixes_applied:
            print_outcome(outcome)

    stats = result.stats
    console.print()
    console.print(
        f"  Issues: {stats.total_issues_found}  Attempted: {stats.fixes_attempted}  "
        f"[green]Successful: {stats.fixes_successful}[/green]  "
        f"[red]Failed: {stats.fixes_failed}[/red]  Verified: {stats.fixes_verified}"
    )
    if stats.fixes_attempted:
        console.print(f"  Estimated impact: {stats.estimated_impact}")

    if result.reanalysis:
        r = result.reanalysis
        label = "Estimated score" if r.simulated else "Score"
        if r.success:
            c = score_color(r.final_score)
            console.print(
                f"  {label}: {r.initial_score:g} -> [{c}]{r.final_score:g}[/{c}] "
                f"({r.score_improvement:+g})"
            )
        else:
            console.print(f"  [yellow]Re-analysis failed: {r.error}[/yellow]")

    if result.errors:
        console.print()
        console.print(f"  [red]{len(result.errors)} error(s):[/red]")
        for error in result.errors:
            console.print(f"    [red]-[/red] {error}")

    if verbose and result.detailed_log:
        console.print()
        console.print("  [bold]Log[/bold]")
        for line in result.detailed_log:
            console.print(f"  [dim]{line}[/dim]", markup=False, highlight=False)

    if result.success and not result.dry_run and result.fixes_applied:
        console.print(f"\n  [dim]Run `contentfix rollback {result.fix_session_id} --site <site-id>` to revert.[/dim]")
    console.print()


def print_available(summary: AvailableFixes) -> None:
    if not summary.total_fixable_issues:
        console.print("\n  No fixable issues found.\n")
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Type")
    table.add_column("Issues", justify="right")
    table.add_column("Supported")
    for issue_type, count in sorted(summary.breakdown.items(), key=lambda kv: -kv[1]):
        supported = "[red]no[/red]" if issue_type in summary.unsupported else "[green]yes[/green]"
        table.add_row(issue_type, str(count), supported)

    console.print()
    console.print(table)
    console.print(
        f"\n  {summary.total_fixable_issues} fixable issue(s), "
        f"estimated time: {summary.estimated_time}\n"
    )


def print_rollback(result: RollbackResult) -> None:
    if result.success:
        console.print(f"\n  [green]✅ Restored {result.restored} item(s).[/green]")
    else:
        console.print("\n  [red]❌ Nothing was restored.[/red]")
    for error in result.errors:
        console.print(f"     [red]-> {error}[/red]")
    console.print()
