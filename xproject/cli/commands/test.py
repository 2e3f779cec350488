import asyncio

import typer

from xproject.cli.context import CliContext
from xproject.cli.runner import run_matrix_async
from xproject.cli.utils import report_error
from xproject.domain.errors import XprojectError


def run_tests(
    ctx: typer.Context,
    scheme: list[str] = typer.Option([], "--scheme", "-s", help="Scheme to test (repeatable)"),
    destination: str | None = typer.Option(
        None, "--destination", "-d", help="Run tests only on this destination"
    ),
    clean: bool = typer.Option(False, "--clean", help="Clean before building"),
    skip_build: bool = typer.Option(False, "--skip-build", help="Reuse existing build products"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print commands without running"),
    timeout: float | None = typer.Option(
        None, "--timeout", min=1, help="Kill any xcodebuild command running longer (seconds)"
    ),
) -> None:
    """Build and test the configured schemes."""
    options: CliContext = ctx.obj

    try:
        result = asyncio.run(
            run_matrix_async(
                options, scheme, destination, clean, skip_build, dry_run, timeout
            )
        )
    except XprojectError as e:
        report_error(e)
        raise typer.Exit(1) from None

    if result.has_failures:
        raise typer.Exit(1)
