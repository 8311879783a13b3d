"""Click CLI entry point for ContentFix."""

from __future__ import annotations

import logging

import click

from contentfix._version import __version__


@click.group()
@click.version_option(version=__version__, prog_name="contentfix")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose: bool):
    """ContentFix - automated content-quality remediation.

    Import auditor issues for a site, preview what would change, apply fixes
    with verification, and roll back a session if needed.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Import and register subcommands
from contentfix.cli.site_cmd import issues, site, types  # noqa: E402
from contentfix.cli.run_cmd import run  # noqa: E402
from contentfix.cli.rollback_cmd import rollback  # noqa: E402

cli.add_command(site)
cli.add_command(issues)
cli.add_command(types)
cli.add_command(run)
cli.add_command(rollback)


if __name__ == "__main__":
    cli()
