from pathlib import Path

from pydantic import BaseModel


class CliContext(BaseModel, frozen=True):
    """Global options, stored on typer.Context.obj by the app callback."""

    working_directory: Path
    config_file: Path | None = None
    verbose: bool = False
