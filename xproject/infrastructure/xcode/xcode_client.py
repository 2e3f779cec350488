import plistlib
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from pathlib import Path
from typing import Any, TextIO

from loguru import logger
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from xproject.domain.entities.configuration import ReleaseConfiguration, XprojectConfiguration
from xproject.domain.errors import CommandExecutionError, CommandFailedError
from xproject.domain.ports.build_client_port import BuildClientPort
from xproject.domain.ports.command_executor_port import CommandExecutorPort, LineCallback
from xproject.domain.ports.line_formatter_port import LineFormatter
from xproject.domain.services import command_builder
from xproject.domain.services.command_builder import XcodebuildStep
from xproject.domain.value_objects.command_types import CommandInvocation
from xproject.domain.value_objects.toolchain import ToolchainDescriptor
from xproject.infrastructure.output.xcode_output_processor import XcodeOutputProcessor
from xproject.infrastructure.output.xcodebuild_formatter import XcodebuildFormatter
from xproject.infrastructure.persistence.atomic_io import atomic_write

OutputSink = Callable[[str], None]


def _log_output(line: str) -> None:
    logger.info(line)


def _log_upload_retry(retry_state: Any) -> None:
    exc = retry_state.outcome.exception()
    logger.warning("Upload attempt {} failed: {}", retry_state.attempt_number, str(exc)[:200])


class XcodeClient(BuildClientPort):
    """Runs xcodebuild/altool for the test matrix and the release pipeline.

    Command lines come from command_builder; this class only adds the
    side effects: directories, the export options plist, raw build logs
    written while the command runs, live output display and upload
    retries. Any failing command raises CommandExecutionError.
    """

    def __init__(
        self,
        executor: CommandExecutorPort,
        configuration: XprojectConfiguration,
        verbose: bool = False,
        output: OutputSink | None = None,
        formatter_factory: Callable[[], LineFormatter] = XcodebuildFormatter,
        preserve_unformatted: bool = False,
        upload_credential: str | None = None,
        upload_backoff_s: float = 30.0,
    ) -> None:
        self.executor = executor
        self.configuration = configuration
        self.verbose = verbose
        self.output = output or _log_output
        self.formatter_factory = formatter_factory
        self.preserve_unformatted = preserve_unformatted
        self.upload_credential = upload_credential
        self.upload_backoff_s = upload_backoff_s

    @property
    def working_directory(self) -> Path:
        return self.executor.working_directory

    # -------------------------------------------------------------------------
    # Test matrix
    # -------------------------------------------------------------------------

    async def build_for_testing(
        self,
        scheme: str,
        clean: bool,
        build_destination: str,
        toolchain: ToolchainDescriptor | None = None,
    ) -> None:
        self._ensure_directories()
        steps = command_builder.build_for_testing_steps(
            self.configuration,
            self.working_directory,
            scheme,
            build_destination,
            clean=clean,
            toolchain=toolchain,
        )
        for step in steps:
            await self._run_xcodebuild(step)

    async def run_tests(
        self,
        scheme: str,
        destination: str,
        toolchain: ToolchainDescriptor | None = None,
    ) -> None:
        self._ensure_directories()
        step = command_builder.run_tests_step(
            self.configuration, self.working_directory, scheme, destination, toolchain
        )
        await self._run_xcodebuild(step)

    # -------------------------------------------------------------------------
    # Release
    # -------------------------------------------------------------------------

    async def archive(
        self,
        environment: str,
        release: ReleaseConfiguration,
        toolchain: ToolchainDescriptor | None = None,
    ) -> None:
        self._ensure_directories()
        step = command_builder.archive_step(
            self.configuration, self.working_directory, environment, release, toolchain
        )
        await self._run_xcodebuild(step)

    async def export_archive(
        self,
        environment: str,
        release: ReleaseConfiguration,
        toolchain: ToolchainDescriptor | None = None,
    ) -> None:
        plan = command_builder.export_plan(
            self.configuration, self.working_directory, environment, release, toolchain
        )

        # A stale export directory makes xcodebuild fail
        await self.executor.execute_or_raise(plan.remove_previous_export)

        if not self.executor.dry_run:
            await atomic_write(
                self._absolute(plan.options_path),
                plistlib.dumps(plan.options, fmt=plistlib.FMT_XML),
            )
            logger.debug("Export options written to {}", plan.options_path)

        await self._run_xcodebuild(plan.step)

    async def upload(
        self,
        environment: str,
        release: ReleaseConfiguration,
        toolchain: ToolchainDescriptor | None = None,
    ) -> None:
        invocation = command_builder.upload_command(
            self.configuration,
            self.working_directory,
            release,
            toolchain,
            credential=self.upload_credential,
        )
        logger.info(
            "Uploading {} for '{}' (up to {} attempts)",
            command_builder.ipa_path(self.configuration, release),
            environment,
            release.upload_attempts,
        )

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(release.upload_attempts),
            wait=wait_exponential(multiplier=self.upload_backoff_s, max=600),
            retry=retry_if_exception_type(CommandExecutionError),
            before_sleep=_log_upload_retry,
            reraise=True,
        ):
            with attempt:
                await self._run_upload(invocation)

    # -------------------------------------------------------------------------

    async def _run_upload(self, invocation: CommandInvocation) -> None:
        if self.verbose:
            outcome = await self.executor.execute_streaming(invocation, self.output)
        else:
            outcome = await self.executor.execute(invocation)
        if not outcome.succeeded:
            raise CommandFailedError(outcome)

    async def _run_xcodebuild(self, step: XcodebuildStep) -> None:
        await self.executor.execute_or_raise(step.cleanup)

        processor = XcodeOutputProcessor(
            verbose=self.verbose,
            formatter=self.formatter_factory(),
            preserve_unformatted=self.preserve_unformatted,
        )
        # Lines reach the log as they arrive, so a timed-out run keeps its output
        with self._open_log(step) as log:
            outcome = await self.executor.execute_streaming(
                step.command, self._display_through(processor, log)
            )

        if not outcome.succeeded:
            logger.error(
                "xcodebuild '{}' failed with exit code {} (log: {})",
                step.report_name,
                outcome.exit_code,
                step.log_path,
            )
            raise CommandFailedError(outcome)

    def _open_log(self, step: XcodebuildStep) -> AbstractContextManager[TextIO | None]:
        if self.executor.dry_run:
            return nullcontext()
        path = self._absolute(step.log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path.open("w", encoding="utf-8")

    def _display_through(
        self, processor: XcodeOutputProcessor, log: TextIO | None = None
    ) -> LineCallback:
        def on_line(line: str) -> None:
            if log is not None:
                log.write(line + "\n")
            shown = processor.process_line(line)
            if shown is not None:
                self.output(shown)

        return on_line


    def _absolute(self, path: str) -> Path:
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return self.working_directory / candidate

    def _ensure_directories(self) -> None:
        if self.executor.dry_run:
            return
        for path in (self.configuration.build_path, self.configuration.reports_path):
            self._absolute(path).mkdir(parents=True, exist_ok=True)
