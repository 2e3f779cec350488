import asyncio
import codecs
import os
import signal
import time
from collections.abc import Callable
from pathlib import Path

from loguru import logger

from xproject.domain.errors import (
    CommandSpawnError,
    CommandTimedOutError,
    WorkingDirectoryMismatchError,
)
from xproject.domain.ports.command_executor_port import CommandExecutorPort, LineCallback
from xproject.domain.value_objects.command_types import CommandInvocation, CommandOutcome
from xproject.infrastructure.process.line_buffer import LineBuffer

READ_CHUNK_SIZE = 4096

# Environment variable names containing any of these are masked when echoed
SENSITIVE_ENV_PATTERNS = (
    "PASSWORD",
    "PASS",
    "SECRET",
    "TOKEN",
    "KEY",
    "API",
    "PRIVATE",
    "AUTH",
    "CREDENTIAL",
    "SIGNING",
    "CERT",
    "CERTIFICATE",
    "JWT",
    "OAUTH",
    "BEARER",
    "ACCESS",
)

MASK = "***"


def is_sensitive_env(name: str) -> bool:
    upper = name.upper()
    return any(pattern in upper for pattern in SENSITIVE_ENV_PATTERNS)


def mask_environment(environment: dict[str, str]) -> dict[str, str]:
    return {
        key: MASK if is_sensitive_env(key) else value
        for key, value in sorted(environment.items())
    }


STDOUT = "stdout"
STDERR = "stderr"


class _OutputCollector:
    """Keeps each line once, tagged with its stream, in arrival order."""

    def __init__(self, on_line: LineCallback | None) -> None:
        self.on_line = on_line
        self.lines: list[tuple[str, str]] = []

    def emit(self, line: str, stream_name: str) -> None:
        self.lines.append((stream_name, line))
        if self.on_line is not None:
            self.on_line(line)

    def text(self, stream_name: str | None = None) -> str:
        return "\n".join(
            line for name, line in self.lines if stream_name is None or name == stream_name
        )

    async def drain(self, stream: asyncio.StreamReader | None, stream_name: str) -> None:
        if stream is None:
            return
        buffer = LineBuffer()
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            for line in buffer.append(decoder.decode(chunk)):
                self.emit(line, stream_name)

        for line in buffer.append(decoder.decode(b"", final=True)):
            self.emit(line, stream_name)
        remaining = buffer.flush()
        if remaining is not None:
            self.emit(remaining, stream_name)



class CommandExecutor(CommandExecutorPort):
    """Runs external programs inside a single, fixed working directory.

    A command that exits non-zero is returned as data; only a failure to
    start the process (CommandSpawnError) or a timeout (CommandTimedOutError)
    raises.
    """

    def __init__(
        self,
        working_directory: Path,
        dry_run: bool = False,
        verbose: bool = False,
        echo: Callable[[str], None] | None = None,
    ) -> None:
        self.working_directory = Path(working_directory)
        self.dry_run = dry_run
        self.verbose = verbose
        self._echo = echo

    def for_directory(self, working_directory: Path) -> "CommandExecutor":
        return CommandExecutor(
            working_directory,
            dry_run=self.dry_run,
            verbose=self.verbose,
            echo=self._echo,
        )

    async def execute(self, invocation: CommandInvocation) -> CommandOutcome:
        self._check_directory(invocation)
        if self.dry_run:
            return self._dry_run_outcome(invocation)
        self._announce(invocation, force=self.verbose)
        return await self._run(invocation, on_line=None)

    async def execute_streaming(
        self,
        invocation: CommandInvocation,
        on_line: LineCallback,
    ) -> CommandOutcome:
        self._check_directory(invocation)
        if self.dry_run:
            return self._dry_run_outcome(invocation)
        self._announce(invocation, force=True)
        return await self._run(invocation, on_line=on_line)

    async def execute_read_only(self, invocation: CommandInvocation) -> CommandOutcome:
        self._check_directory(invocation)
        logger.debug("Read-only command: {}", invocation.display)
        return await self._run(invocation, on_line=None)

    # -------------------------------------------------------------------------

    def _check_directory(self, invocation: CommandInvocation) -> None:
        if invocation.working_directory != self.working_directory:
            raise WorkingDirectoryMismatchError(
                self.working_directory, invocation.working_directory
            )

    def _emit(self, text: str, force: bool) -> None:
        logger.debug(text)
        if force and self._echo is not None:
            self._echo(text)

    def _announce(self, invocation: CommandInvocation, force: bool, prefix: str = "$") -> None:
        if invocation.environment:
            self._emit("Environment:", force)
            for key, value in mask_environment(invocation.environment).items():
                self._emit(f"  {key}={value}", force)
        self._emit(f"{prefix} {invocation.display}", force)

    def _dry_run_outcome(self, invocation: CommandInvocation) -> CommandOutcome:
        self._announce(invocation, force=True, prefix="[DRY RUN] Would run:")
        return CommandOutcome(invocation=invocation, exit_code=0, dry_run=True)

    async def _run(
        self,
        invocation: CommandInvocation,
        on_line: LineCallback | None,
    ) -> CommandOutcome:
        start = time.monotonic()

        env = dict(os.environ)
        env.update(invocation.environment)

        try:
            proc = await asyncio.create_subprocess_exec(
                *invocation.argv,
                cwd=str(self.working_directory),
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,  # Own process group so a timeout kills children too
            )
        except OSError as e:
            logger.error("Could not start '{}': {}", invocation.display, e)
            raise CommandSpawnError(invocation, str(e)) from e

        collector = _OutputCollector(on_line)

        try:
            await asyncio.wait_for(
                asyncio.gather(
                    collector.drain(proc.stdout, STDOUT),
                    collector.drain(proc.stderr, STDERR),
                    proc.wait(),
                ),
                timeout=invocation.timeout_s,
            )
        except TimeoutError as e:
            try:
                os.killpg(os.getpgid(proc.pid), signal.SIGKILL)
            except (ProcessLookupError, OSError):
                # Process already terminated
                proc.kill()
            await proc.wait()
            logger.warning(
                "Command '{}' timed out after {}s", invocation.display, invocation.timeout_s
            )
            raise CommandTimedOutError(invocation, invocation.timeout_s or 0) from e

        duration_ms = int((time.monotonic() - start) * 1000)
        exit_code = proc.returncode if proc.returncode is not None else -1

        logger.debug(
            "Command '{}' exited with {} in {}ms", invocation.display, exit_code, duration_ms
        )

        return CommandOutcome(
            invocation=invocation,
            exit_code=exit_code,
            stdout=collector.text(STDOUT),
            stderr=collector.text(STDERR),
            output=collector.text(),
            duration_ms=duration_ms,
        )
