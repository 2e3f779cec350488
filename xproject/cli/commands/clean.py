import asyncio

import typer

from xproject.cli.context import CliContext
from xproject.cli.runner import run_clean_async
from xproject.cli.utils import report_error
from xproject.domain.errors import XprojectError


def clean_artifacts(
    ctx: typer.Context,
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be removed"),
) -> None:
    """Remove build and report directories."""
    options: CliContext = ctx.obj

    try:
        asyncio.run(run_clean_async(options, dry_run))
    except XprojectError as e:
        report_error(e)
        raise typer.Exit(1) from None
