import shlex
from pathlib import Path

from pydantic import BaseModel, Field


class CommandInvocation(BaseModel, frozen=True):
    program: str
    arguments: tuple[str, ...] = ()
    working_directory: Path
    environment: dict[str, str] = Field(default_factory=dict)
    timeout_s: float | None = None

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.arguments]

    @property
    def display(self) -> str:
        """Shell-quoted command line, for logs and dry-run output."""
        return shlex.join(self.argv)


class CommandOutcome(BaseModel, frozen=True):
    """Result of one command invocation. A non-zero exit code is data, not an
    error."""

    invocation: CommandInvocation
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    output: str = ""  # stdout and stderr lines in arrival order
    duration_ms: int = 0
    dry_run: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0
