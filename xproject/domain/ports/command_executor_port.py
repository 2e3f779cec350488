from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

from xproject.domain.errors import CommandFailedError
from xproject.domain.value_objects.command_types import CommandInvocation, CommandOutcome

# Called once per completed output line, as the line arrives
LineCallback = Callable[[str], None]


class CommandExecutorPort(ABC):
    """Port for running external programs inside one working directory."""

    working_directory: Path
    dry_run: bool

    @abstractmethod
    async def execute(self, invocation: CommandInvocation) -> CommandOutcome:
        """Run a command and capture its output.

        In dry-run mode nothing is spawned and a successful outcome is
        returned.
        """

    @abstractmethod
    async def execute_streaming(
        self,
        invocation: CommandInvocation,
        on_line: LineCallback,
    ) -> CommandOutcome:
        """Like execute, calling on_line for each output line as it
        arrives."""

    @abstractmethod
    async def execute_read_only(self, invocation: CommandInvocation) -> CommandOutcome:
        """Run a discovery command; always executes, even in dry-run mode."""

    async def execute_or_raise(self, invocation: CommandInvocation) -> CommandOutcome:
        outcome = await self.execute(invocation)
        if not outcome.succeeded:
            raise CommandFailedError(outcome)
        return outcome

    def invocation(
        self,
        program: str,
        *arguments: str,
        environment: dict[str, str] | None = None,
        timeout_s: float | None = None,
    ) -> CommandInvocation:
        """Build an invocation bound to this executor's working directory."""
        return CommandInvocation(
            program=program,
            arguments=tuple(arguments),
            working_directory=self.working_directory,
            environment=environment or {},
            timeout_s=timeout_s,
        )
