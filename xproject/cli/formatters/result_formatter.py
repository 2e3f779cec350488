from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from xproject.cli.theme import theme
from xproject.domain.entities.clean_result import CleanResult
from xproject.domain.entities.matrix_result import MatrixResult, SchemeResult
from xproject.domain.entities.release_result import RELEASE_STAGE_ORDER, ReleaseResult
from xproject.domain.value_objects.stage_status import StageStatus

STATUS_LABELS = {
    StageStatus.SUCCEEDED: ("✅ succeeded", theme.STATUS_SUCCEEDED),
    StageStatus.FAILED: ("❌ failed", theme.STATUS_FAILED),
    StageStatus.NOT_ATTEMPTED: ("– not attempted", theme.STATUS_NOT_ATTEMPTED),
}


def _error_lines(text: str | None, limit: int = 160, max_lines: int = 4) -> list[str]:
    """Headline plus the first few detail lines of an error message."""
    if not text or not text.strip():
        return []
    lines = [line.strip() for line in text.strip().splitlines() if line.strip()]
    return [
        line if len(line) <= limit else line[: limit - 3] + "..." for line in lines[:max_lines]
    ]


def format_info_block(
    console: Console,
    working_directory: Path,
    config_file: Path,
    toolchain_version: str | None = None,
) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Label", style=theme.TABLE_LABEL)
    table.add_column("Value", style=theme.TABLE_VALUE)

    table.add_row("Working directory", escape(str(working_directory)))
    table.add_row("Configuration", escape(str(config_file)))
    if toolchain_version:
        table.add_row("Xcode version", escape(toolchain_version))

    console.print(table)
    console.print()


def format_scheme_result(console: Console, result: SchemeResult) -> None:
    console.print(f"\n[{theme.HEADER}]Scheme {escape(result.scheme)}[/]")

    if result.build_status != StageStatus.NOT_ATTEMPTED:
        label, style = STATUS_LABELS[result.build_status]
        console.print(f"  Build: [{style}]{label}[/]")
    else:
        console.print(f"  Build: [{theme.DIM}]skipped[/]")

    if result.build_status == StageStatus.FAILED:
        headline, *details = _error_lines(result.build_error) or [""]
        console.print(f"  [{theme.ERROR}]{escape(headline)}[/]")
        for line in details:
            console.print(f"    [{theme.DIM}]{escape(line)}[/]")
        console.print(f"  [{theme.DIM_ITALIC}]Tests were not run for this scheme[/]")
        return

    for outcome in result.destinations:
        if outcome.succeeded:
            console.print(f"  [{theme.SUCCESS}]✅ {escape(outcome.destination)}[/]")
        else:
            console.print(f"  [{theme.ERROR}]❌ {escape(outcome.destination)}[/]")
            for line in _error_lines(outcome.error):
                console.print(f"     [{theme.DIM}]{escape(line)}[/]")


def format_matrix_result(console: Console, result: MatrixResult) -> None:
    for scheme_result in result.scheme_results.values():
        format_scheme_result(console, scheme_result)

    style = theme.ERROR_BOLD if result.has_failures else theme.SUCCESS_BOLD
    console.print(f"\n[{style}]{escape(result.summary)}[/]")


def format_release_result(console: Console, result: ReleaseResult) -> None:
    table = Table(title=f"Release {escape(result.environment)} ({escape(result.scheme)})")
    table.add_column("Stage", style=theme.INFO)
    table.add_column("Status")
    table.add_column("Details", style=theme.DIM)

    for stage in RELEASE_STAGE_ORDER:
        label, style = STATUS_LABELS[result.status_of(stage)]
        table.add_row(
            stage.value,
            f"[{style}]{label}[/]",
            escape("\n".join(_error_lines(result.error_of(stage)))),
        )

    console.print(table)
    style = theme.SUCCESS_BOLD if result.is_complete else theme.ERROR_BOLD
    console.print(f"\n[{style}]{escape(result.summary)}[/]")


def format_clean_result(console: Console, result: CleanResult, dry_run: bool = False) -> None:
    if result.nothing_to_clean:
        console.print(f"[{theme.DIM}]Nothing to clean[/]")
        return

    verb = "Would remove" if dry_run else "Removed"
    for path, removed in (
        (result.build_path, result.build_removed),
        (result.reports_path, result.reports_removed),
    ):
        if removed:
            console.print(f"[{theme.SUCCESS}]🗑  {verb} {escape(path)}[/]")
