import plistlib
from pathlib import Path

import pytest

from xproject.domain.entities.configuration import XprojectConfiguration
from xproject.domain.errors import CommandFailedError, CommandTimedOutError
from xproject.domain.ports.command_executor_port import CommandExecutorPort, LineCallback
from xproject.domain.value_objects.command_types import CommandInvocation, CommandOutcome
from xproject.domain.value_objects.toolchain import ToolchainDescriptor
from xproject.infrastructure.xcode.xcode_client import XcodeClient

IPHONE = "platform=iOS Simulator,OS=17.5,name=iPhone 15"


class RecordingExecutor(CommandExecutorPort):
    """Records invocations; xcrun commands print `lines` and exit with the
    next queued exit code (0 once the queue is empty), or raise
    `error_after_lines` once the lines are printed."""

    def __init__(self, working_directory: Path, dry_run: bool = False) -> None:
        self.working_directory = working_directory
        self.dry_run = dry_run
        self.invocations: list[CommandInvocation] = []
        self.exit_codes: list[int] = []
        self.lines: list[str] = []
        self.error_after_lines: Exception | None = None

    def _outcome(self, invocation: CommandInvocation) -> CommandOutcome:
        self.invocations.append(invocation)
        if self.dry_run:
            return CommandOutcome(invocation=invocation, exit_code=0, dry_run=True)
        exit_code = 0
        if invocation.program == "xcrun" and self.exit_codes:
            exit_code = self.exit_codes.pop(0)
        output = "\n".join(self.lines) if invocation.program == "xcrun" else ""
        return CommandOutcome(
            invocation=invocation, exit_code=exit_code, stdout=output, output=output
        )

    async def execute(self, invocation: CommandInvocation) -> CommandOutcome:
        return self._outcome(invocation)

    async def execute_streaming(
        self, invocation: CommandInvocation, on_line: LineCallback
    ) -> CommandOutcome:
        outcome = self._outcome(invocation)
        if not self.dry_run and invocation.program == "xcrun":
            for line in self.lines:
                on_line(line)
            if self.error_after_lines is not None:
                raise self.error_after_lines
        return outcome

    async def execute_read_only(self, invocation: CommandInvocation) -> CommandOutcome:
        return self._outcome(invocation)

    @property
    def xcrun_calls(self) -> list[CommandInvocation]:
        return [i for i in self.invocations if i.program == "xcrun"]


@pytest.fixture
def executor(project_dir: Path) -> RecordingExecutor:
    return RecordingExecutor(project_dir)


@pytest.fixture
def shown() -> list[str]:
    return []


@pytest.fixture
def client(
    executor: RecordingExecutor, sample_config: XprojectConfiguration, shown: list[str]
) -> XcodeClient:
    return XcodeClient(executor, sample_config, output=shown.append, upload_backoff_s=0)


class TestXcodeClientTesting:
    async def test_build_for_testing_runs_cleanup_then_build(
        self, client: XcodeClient, executor: RecordingExecutor, project_dir: Path
    ) -> None:
        await client.build_for_testing("A", False, "generic/platform=iOS Simulator")

        programs = [i.program for i in executor.invocations]
        assert programs == ["rm", "xcrun"]
        assert "build-for-testing" in executor.xcrun_calls[0].arguments
        assert (project_dir / "build").is_dir()
        assert (project_dir / "reports").is_dir()

    async def test_clean_adds_a_clean_step(
        self, client: XcodeClient, executor: RecordingExecutor
    ) -> None:
        await client.build_for_testing("A", True, "generic/platform=iOS Simulator")

        assert [c.arguments[1] for c in executor.xcrun_calls] == ["clean", "analyze"]

    async def test_log_file_is_written(
        self, client: XcodeClient, executor: RecordingExecutor, project_dir: Path
    ) -> None:
        executor.lines = ["CompileSwift normal arm64 /src/View.swift", "** TEST SUCCEEDED **"]

        await client.run_tests("A", IPHONE)

        log = project_dir / "build" / "xcode-tests-A-17.5_iPhone15.log"
        assert log.read_text() == (
            "CompileSwift normal arm64 /src/View.swift\n** TEST SUCCEEDED **\n"
        )

    async def test_log_keeps_output_of_timed_out_command(
        self, client: XcodeClient, executor: RecordingExecutor, project_dir: Path
    ) -> None:
        executor.lines = ["Test Case '-[AppTests testSlow]' started."]
        invocation = CommandInvocation(program="xcrun", working_directory=project_dir)
        executor.error_after_lines = CommandTimedOutError(invocation, 60)

        with pytest.raises(CommandTimedOutError):
            await client.run_tests("A", IPHONE)

        log = project_dir / "build" / "xcode-tests-A-17.5_iPhone15.log"
        assert log.read_text() == "Test Case '-[AppTests testSlow]' started.\n"

    async def test_command_timeout_is_applied(
        self,
        executor: RecordingExecutor,
        config_data: dict,
    ) -> None:
        config_data["xcode"]["command_timeout_s"] = 1800
        config = XprojectConfiguration.model_validate(config_data)
        client = XcodeClient(executor, config)

        await client.run_tests("A", IPHONE)

        assert executor.xcrun_calls[0].timeout_s == 1800
        assert all(i.timeout_s is None for i in executor.invocations if i.program == "rm")

    async def test_quiet_output_shows_only_important_lines(
        self, client: XcodeClient, executor: RecordingExecutor, shown: list[str]
    ) -> None:
        executor.lines = [
            "CompileSwift normal arm64 /src/View.swift",
            "/src/View.swift:3:1: error: expected expression",
            "random noise",
        ]

        await client.run_tests("A", IPHONE)

        assert shown == ["❌ View.swift:3:1: expected expression"]

    async def test_verbose_output_shows_formatted_lines(
        self,
        executor: RecordingExecutor,
        sample_config: XprojectConfiguration,
        shown: list[str],
    ) -> None:
        client = XcodeClient(executor, sample_config, verbose=True, output=shown.append)
        executor.lines = ["CompileSwift normal arm64 /src/View.swift", "random noise"]

        await client.run_tests("A", IPHONE)

        assert shown == ["Compiling View.swift"]

    async def test_failure_raises_with_outcome(
        self, client: XcodeClient, executor: RecordingExecutor
    ) -> None:
        executor.exit_codes = [65]

        with pytest.raises(CommandFailedError) as exc_info:
            await client.run_tests("A", IPHONE)

        assert exc_info.value.outcome.exit_code == 65

    async def test_toolchain_is_forwarded(
        self, client: XcodeClient, executor: RecordingExecutor
    ) -> None:
        xcode = ToolchainDescriptor(path=Path("/Applications/Xcode.app"), version="16.0")

        await client.run_tests("A", IPHONE, xcode)

        assert executor.xcrun_calls[0].environment["DEVELOPER_DIR"] == (
            "/Applications/Xcode.app/Contents/Developer"
        )

    async def test_dry_run_touches_no_files(
        self, project_dir: Path, sample_config: XprojectConfiguration
    ) -> None:
        executor = RecordingExecutor(project_dir, dry_run=True)
        client = XcodeClient(executor, sample_config)

        await client.build_for_testing("A", True, "generic/platform=iOS Simulator")
        await client.run_tests("A", IPHONE)

        assert list(project_dir.iterdir()) == []
        assert len(executor.xcrun_calls) == 3


class TestXcodeClientRelease:
    async def test_archive(
        self,
        client: XcodeClient,
        executor: RecordingExecutor,
        sample_config: XprojectConfiguration,
    ) -> None:
        release = sample_config.xcode.release["production"]

        await client.archive("production", release)

        assert executor.xcrun_calls[0].arguments[-1] == "archive"

    async def test_export_writes_options_plist(
        self,
        client: XcodeClient,
        executor: RecordingExecutor,
        sample_config: XprojectConfiguration,
        project_dir: Path,
    ) -> None:
        (project_dir / "build").mkdir()
        release = sample_config.xcode.release["production"]

        await client.export_archive("production", release)

        assert executor.invocations[0].argv == ["rm", "-rf", "build/Sample-production-ipa"]
        with (project_dir / "build" / "export.plist").open("rb") as f:
            options = plistlib.load(f)
        assert options["method"] == "app-store-connect"
        assert options["teamID"] == "ABCDE12345"
        assert "-exportArchive" in executor.xcrun_calls[0].arguments

    async def test_export_dry_run_writes_nothing(
        self, project_dir: Path, sample_config: XprojectConfiguration
    ) -> None:
        executor = RecordingExecutor(project_dir, dry_run=True)
        client = XcodeClient(executor, sample_config)
        release = sample_config.xcode.release["production"]

        await client.export_archive("production", release)

        assert list(project_dir.iterdir()) == []

    async def test_upload_passes_credential_in_environment(
        self,
        executor: RecordingExecutor,
        sample_config: XprojectConfiguration,
    ) -> None:
        client = XcodeClient(executor, sample_config, upload_credential="s3cret")
        release = sample_config.xcode.release["production"]

        await client.upload("production", release)

        call = executor.xcrun_calls[0]
        assert call.arguments[0] == "altool"
        assert call.environment["APP_STORE_PASS"] == "s3cret"
        assert "s3cret" not in call.argv

    async def test_upload_fails_after_single_attempt_by_default(
        self,
        client: XcodeClient,
        executor: RecordingExecutor,
        sample_config: XprojectConfiguration,
    ) -> None:
        executor.exit_codes = [1, 0]
        release = sample_config.xcode.release["production"]

        with pytest.raises(CommandFailedError):
            await client.upload("production", release)

        assert len(executor.xcrun_calls) == 1

    async def test_upload_retries_up_to_configured_attempts(
        self,
        client: XcodeClient,
        executor: RecordingExecutor,
        sample_config: XprojectConfiguration,
    ) -> None:
        executor.exit_codes = [1, 1, 0]
        release = sample_config.xcode.release["production"].model_copy(
            update={"upload_attempts": 3}
        )

        await client.upload("production", release)

        assert len(executor.xcrun_calls) == 3

    async def test_upload_gives_up_after_configured_attempts(
        self,
        client: XcodeClient,
        executor: RecordingExecutor,
        sample_config: XprojectConfiguration,
    ) -> None:
        executor.exit_codes = [1, 1, 1]
        release = sample_config.xcode.release["production"].model_copy(
            update={"upload_attempts": 2}
        )

        with pytest.raises(CommandFailedError):
            await client.upload("production", release)

        assert len(executor.xcrun_calls) == 2
