"""Rendering of bookkeeping errors on the command line."""

import click
import structlog

from onchaincounting.domain.errors import AuthorizationError, DomainError

logger = structlog.get_logger(__name__)

TOKEN_HINT = "Check MONERIUM_ACCESS_TOKEN and request a new token if it expired."


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Print the error, log its category and exit with status 1."""
    logger.debug(
        "cli.command_failed",
        command=ctx.command_path,
        error_type=type(error).__name__,
    )
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, AuthorizationError):
        click.echo(TOKEN_HINT, err=True)
    ctx.exit(1)
