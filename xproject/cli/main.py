import sys
from pathlib import Path

import typer
from loguru import logger

from xproject.cli.commands import clean, release, test
from xproject.cli.context import CliContext


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure loguru logging."""
    logger.remove()

    file_path = log_file or Path("xproject.log")
    logger.add(
        file_path,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG",
        rotation="10 MB",
        encoding="utf-8",
    )

    if verbose:
        logger.add(
            sys.stderr,
            format="{time:HH:mm:ss} | {level: <8} | {message}",
            level="DEBUG",
        )


app = typer.Typer(
    name="xp",
    help="xp - build, test and release automation for Xcode projects",
    no_args_is_help=True,
)

# Register commands
app.command(name="test")(test.run_tests)
app.command(name="release")(release.create_release)
app.command(name="clean")(clean.clean_artifacts)


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Configuration file (default: xproject.json)"
    ),
    working_directory: Path | None = typer.Option(
        None, "--working-directory", "-C", help="Project directory (default: current)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output", is_eager=True),
) -> None:
    """xp - build, test and release automation for Xcode projects."""
    setup_logging(verbose=verbose)
    ctx.obj = CliContext(
        working_directory=(working_directory or Path.cwd()).resolve(),
        config_file=config,
        verbose=verbose,
    )


if __name__ == "__main__":
    app()
