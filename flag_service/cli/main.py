"""Main CLI entry point for flag-service management commands."""

import click

from flag_service import __version__
from flag_service.cli.commands import flags, users
from flag_service.infra.logging.config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="flag-service")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Flag Service CLI - management commands for the feature flag API.

    \b
    Command Groups:
      users      User account management
      flags      Feature flag inspection and maintenance

    \b
    Quick Start:
      flag-service users create-admin
      flag-service flags list
      flag-service flags check new-checkout --user user-42
    """
    ctx.ensure_object(dict)


cli.add_command(users.users)
cli.add_command(flags.flags)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
