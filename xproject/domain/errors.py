from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from xproject.domain.value_objects.command_types import CommandInvocation, CommandOutcome


class XprojectError(Exception):
    """Base class for every error raised by xproject."""


def _file_info(config_file: Path | None) -> str:
    return f" (loaded from {config_file})" if config_file else ""


# -----------------------------------------------------------------------------
# Configuration errors: fatal, raised before any command executes
# -----------------------------------------------------------------------------


class ConfigurationError(XprojectError):
    pass


class ConfigurationNotFoundError(ConfigurationError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Configuration file not found: {path}")


class InvalidConfigurationError(ConfigurationError):
    def __init__(self, path: Path | None, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid configuration{_file_info(path)}: {reason}")


class NoXcodeConfigurationError(ConfigurationError):
    def __init__(self, config_file: Path | None = None) -> None:
        self.config_file = config_file
        super().__init__(
            f"No xcode configuration found{_file_info(config_file)}. "
            "Add an 'xcode' section to your configuration file."
        )


class NoTestConfigurationError(ConfigurationError):
    def __init__(self, config_file: Path | None = None) -> None:
        self.config_file = config_file
        super().__init__(
            f"No test configuration found in xcode.tests{_file_info(config_file)}. "
            "Add a 'tests' section under 'xcode' in your configuration file."
        )


class NoReleaseConfigurationError(ConfigurationError):
    def __init__(self, config_file: Path | None = None) -> None:
        self.config_file = config_file
        super().__init__(
            f"No release configuration found in xcode.release{_file_info(config_file)}. "
            "Add a 'release' section under 'xcode' in your configuration file."
        )


class SchemesNotFoundError(ConfigurationError):
    def __init__(self, schemes: list[str]) -> None:
        self.schemes = schemes
        super().__init__(f"Schemes not found in configuration: {', '.join(schemes)}")


class EnvironmentNotFoundError(ConfigurationError):
    def __init__(self, environment: str, available: list[str]) -> None:
        self.environment = environment
        self.available = available
        available_list = (
            f"Available environments: {', '.join(available)}"
            if available
            else "No release environments configured."
        )
        super().__init__(
            f"Release environment '{environment}' not found in configuration. {available_list}"
        )


class UnsafePathDeletionError(ConfigurationError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"Refusing to delete potentially unsafe path: '{path}'. "
            "Path must be non-empty and within the build directory."
        )


# -----------------------------------------------------------------------------
# Toolchain errors: fatal, raised before any command executes
# -----------------------------------------------------------------------------


class ToolchainError(XprojectError):
    pass


class ToolchainVersionNotFoundError(ToolchainError):
    def __init__(self, version: str, discovered: list[str] | None = None) -> None:
        self.version = version
        self.discovered = discovered or []
        detail = f" (installed: {', '.join(self.discovered)})" if self.discovered else ""
        super().__init__(f"Xcode version {version} not found{detail}")


class ToolchainVersionReadError(ToolchainError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Failed to fetch Xcode version from '{path}'")


# -----------------------------------------------------------------------------
# Command errors
# -----------------------------------------------------------------------------


class CommandError(XprojectError):
    pass


class CommandExecutionError(CommandError):
    """A command ran but did not succeed.

    Orchestrators capture these into their result objects instead of
    propagating them.
    """


# Bounds for the output excerpt carried in a CommandFailedError message
EXCERPT_MAX_LINES = 5
EXCERPT_MAX_LINE_LENGTH = 300


def _output_excerpt(text: str) -> list[str]:
    """Lines mentioning an error, else the tail of the output."""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    errors = [line for line in lines if "error" in line.lower()]
    chosen = (errors or lines)[-EXCERPT_MAX_LINES:]
    limit = EXCERPT_MAX_LINE_LENGTH
    return [line if len(line) <= limit else line[: limit - 3] + "..." for line in chosen]


class CommandFailedError(CommandExecutionError):
    """Full output stays on `outcome`; the message carries a short excerpt."""

    def __init__(self, outcome: CommandOutcome) -> None:
        self.outcome = outcome
        message = (
            f"Command '{outcome.invocation.display}' failed with exit code {outcome.exit_code}"
        )
        excerpt = _output_excerpt(outcome.stderr or outcome.stdout)
        if excerpt:
            message += "\n" + "\n".join(excerpt)
        super().__init__(message)



class CommandTimedOutError(CommandExecutionError):
    def __init__(self, invocation: CommandInvocation, timeout_s: float) -> None:
        self.invocation = invocation
        self.timeout_s = timeout_s
        super().__init__(f"Command '{invocation.display}' timed out after {timeout_s}s")


class CommandSpawnError(CommandError):
    """The process could not be started at all."""

    def __init__(self, invocation: CommandInvocation, reason: str) -> None:
        self.invocation = invocation
        self.reason = reason
        super().__init__(f"Could not run '{invocation.display}': {reason}")


class WorkingDirectoryMismatchError(CommandError):
    def __init__(self, expected: Path, actual: Path) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Executor is bound to '{expected}' but invocation targets '{actual}'"
        )


class CleanError(XprojectError):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to remove '{path}': {reason}")
