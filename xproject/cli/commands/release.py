import asyncio

import typer

from xproject.cli.context import CliContext
from xproject.cli.runner import run_release_async
from xproject.cli.utils import report_error
from xproject.domain.errors import XprojectError


def create_release(
    ctx: typer.Context,
    environment: str = typer.Argument(..., help="Release environment name"),
    archive_only: bool = typer.Option(False, "--archive-only", help="Only create the archive"),
    skip_upload: bool = typer.Option(False, "--skip-upload", help="Archive and export only"),
    upload_only: bool = typer.Option(False, "--upload-only", help="Only upload the exported ipa"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print commands without running"),
    timeout: float | None = typer.Option(
        None, "--timeout", min=1, help="Kill any xcodebuild or altool run longer (seconds)"
    ),
) -> None:
    """Archive, export and upload a release."""
    options: CliContext = ctx.obj

    try:
        result = asyncio.run(
            run_release_async(
                options, environment, archive_only, skip_upload, upload_only, dry_run, timeout
            )
        )
    except XprojectError as e:
        report_error(e)
        raise typer.Exit(1) from None

    if not result.is_complete:
        raise typer.Exit(1)
