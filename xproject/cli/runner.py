import os
from pathlib import Path

from rich.console import Console

from xproject.application.use_cases.clean_artifacts import CleanArtifacts
from xproject.application.use_cases.create_release import CreateRelease
from xproject.application.use_cases.run_test_matrix import RunTestMatrix
from xproject.cli.context import CliContext
from xproject.cli.formatters.result_formatter import (
    format_clean_result,
    format_info_block,
    format_matrix_result,
    format_release_result,
)
from xproject.cli.theme import theme
from xproject.domain.entities.clean_result import CleanResult
from xproject.domain.entities.configuration import XprojectConfiguration
from xproject.domain.entities.matrix_result import MatrixResult
from xproject.domain.entities.release_result import ReleaseResult
from xproject.domain.services.command_builder import UPLOAD_PASSWORD_ENV
from xproject.infrastructure.config.config_loader import (
    DEFAULT_CONFIG_FILE,
    load_configuration,
    override_xcode,
    resolve_config_path,
)
from xproject.infrastructure.process.command_executor import CommandExecutor
from xproject.infrastructure.toolchain.xcode_locator import XcodeLocator
from xproject.infrastructure.xcode.xcode_client import XcodeClient

console = Console()


def echo_command(text: str) -> None:
    style = theme.DRY_RUN if text.startswith("[DRY RUN]") else theme.COMMAND
    console.print(text, style=style, markup=False, highlight=False)


def print_tool_output(line: str) -> None:
    console.print(line, markup=False, highlight=False)


def _load(
    options: CliContext, command_timeout_s: float | None = None
) -> tuple[XprojectConfiguration, Path]:
    config_path = resolve_config_path(options.working_directory, options.config_file)
    configuration = load_configuration(options.working_directory, options.config_file)
    if command_timeout_s is not None:
        configuration = override_xcode(configuration, command_timeout_s=command_timeout_s)

    non_default = (
        options.config_file not in (None, Path(DEFAULT_CONFIG_FILE))
        or options.working_directory != Path.cwd().resolve()
    )
    if options.verbose or non_default:
        format_info_block(
            console, options.working_directory, config_path, configuration.toolchain_version
        )
    return configuration, config_path


def _executor(options: CliContext, dry_run: bool) -> CommandExecutor:
    return CommandExecutor(
        options.working_directory,
        dry_run=dry_run,
        verbose=options.verbose,
        echo=echo_command,
    )


async def run_matrix_async(
    options: CliContext,
    schemes: list[str],
    destination: str | None,
    clean: bool,
    skip_build: bool,
    dry_run: bool,
    timeout: float | None = None,
) -> MatrixResult:
    configuration, config_path = _load(options, timeout)
    executor = _executor(options, dry_run)
    client = XcodeClient(
        executor,
        configuration,
        verbose=options.verbose,
        output=print_tool_output,
    )

    use_case = RunTestMatrix(
        configuration,
        client,
        locator=XcodeLocator(executor),
        config_file=config_path,
    )
    result = await use_case.execute(
        schemes=schemes or None,
        clean=clean,
        skip_build=skip_build,
        destination=destination,
    )
    format_matrix_result(console, result)
    return result


async def run_release_async(
    options: CliContext,
    environment: str,
    archive_only: bool,
    skip_upload: bool,
    upload_only: bool,
    dry_run: bool,
    timeout: float | None = None,
) -> ReleaseResult:
    configuration, config_path = _load(options, timeout)
    executor = _executor(options, dry_run)
    client = XcodeClient(
        executor,
        configuration,
        verbose=options.verbose,
        output=print_tool_output,
        upload_credential=os.environ.get(UPLOAD_PASSWORD_ENV),
    )

    use_case = CreateRelease(
        configuration,
        client,
        locator=XcodeLocator(executor),
        config_file=config_path,
    )
    result = await use_case.execute(
        environment,
        archive_only=archive_only,
        skip_upload=skip_upload,
        upload_only=upload_only,
    )
    format_release_result(console, result)
    return result


async def run_clean_async(options: CliContext, dry_run: bool) -> CleanResult:
    configuration, _ = _load(options)
    result = await CleanArtifacts(options.working_directory, configuration).execute(dry_run)
    format_clean_result(console, result, dry_run=dry_run)
    return result
