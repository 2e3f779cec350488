import plistlib
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, call

import pytest

from xproject.application.use_cases.run_test_matrix import RunTestMatrix
from xproject.domain.entities.configuration import XprojectConfiguration
from xproject.domain.errors import (
    CommandTimedOutError,
    NoTestConfigurationError,
    NoXcodeConfigurationError,
    SchemesNotFoundError,
    ToolchainVersionNotFoundError,
    WorkingDirectoryMismatchError,
)
from xproject.domain.ports.command_executor_port import LineCallback
from xproject.domain.value_objects.command_types import CommandInvocation, CommandOutcome
from xproject.domain.value_objects.stage_status import StageStatus
from xproject.domain.value_objects.toolchain import ToolchainDescriptor
from xproject.infrastructure.config.config_loader import apply_environment_overrides
from xproject.infrastructure.process.command_executor import CommandExecutor
from xproject.infrastructure.toolchain.xcode_locator import XCODE_BUNDLE_ID, XcodeLocator
from xproject.infrastructure.xcode.xcode_client import XcodeClient

BUILD_DESTINATION = "generic/platform=iOS Simulator"


def timed_out() -> CommandTimedOutError:
    invocation = CommandInvocation(program="xcrun", working_directory=Path("/work"))
    return CommandTimedOutError(invocation, 10)


def install_xcode(applications: Path, version: str) -> Path:
    contents = applications / "Xcode.app" / "Contents"
    contents.mkdir(parents=True)
    with (contents / "Info.plist").open("wb") as f:
        plistlib.dump(
            {"CFBundleIdentifier": XCODE_BUNDLE_ID, "CFBundleShortVersionString": version}, f
        )
    return applications


class TimeoutOnDestinationExecutor(CommandExecutor):
    """Dry-run executor whose bounded test runs on one destination time out."""

    def __init__(self, working_directory: Path, destination: str) -> None:
        super().__init__(working_directory, dry_run=True)
        self.destination = destination
        self.streamed: list[CommandInvocation] = []

    async def execute_streaming(
        self, invocation: CommandInvocation, on_line: LineCallback
    ) -> CommandOutcome:
        self.streamed.append(invocation)
        if invocation.timeout_s is not None and self.destination in invocation.arguments:
            raise CommandTimedOutError(invocation, invocation.timeout_s)
        return await super().execute_streaming(invocation, on_line)


@pytest.fixture
def client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def destinations(sample_config: XprojectConfiguration) -> dict[str, list[str]]:
    return {p.scheme: p.test_destinations for p in sample_config.xcode.tests.schemes}


class TestRunTestMatrix:
    async def test_builds_then_tests_every_destination(
        self,
        sample_config: XprojectConfiguration,
        client: AsyncMock,
        destinations: dict[str, list[str]],
    ) -> None:
        result = await RunTestMatrix(sample_config, client).execute()

        assert not result.has_failures
        assert client.build_for_testing.await_args_list == [
            call("A", False, BUILD_DESTINATION, None),
            call("B", False, BUILD_DESTINATION, None),
        ]
        assert client.run_tests.await_args_list == [
            call("A", destinations["A"][0], None),
            call("A", destinations["A"][1], None),
            call("B", destinations["B"][0], None),
        ]
        assert result.scheme_results["A"].build_status == StageStatus.SUCCEEDED

    async def test_build_failure_skips_only_that_scheme(
        self,
        sample_config: XprojectConfiguration,
        client: AsyncMock,
        destinations: dict[str, list[str]],
    ) -> None:
        async def build(scheme: str, *args: object) -> None:
            if scheme == "A":
                raise timed_out()

        client.build_for_testing.side_effect = build

        result = await RunTestMatrix(sample_config, client).execute()

        a = result.scheme_results["A"]
        assert a.build_status == StageStatus.FAILED
        assert "timed out" in a.build_error
        assert a.destinations == []
        assert client.run_tests.await_args_list == [call("B", destinations["B"][0], None)]
        assert result.failed_schemes == 1
        assert result.total_schemes == 2
        assert not result.scheme_results["B"].has_failures

    async def test_destination_failure_does_not_stop_siblings(
        self,
        sample_config: XprojectConfiguration,
        client: AsyncMock,
        destinations: dict[str, list[str]],
    ) -> None:
        first, second = destinations["A"]

        async def run(scheme: str, destination: str, toolchain: object) -> None:
            if destination == first:
                raise timed_out()

        client.run_tests.side_effect = run

        result = await RunTestMatrix(sample_config, client).execute(schemes=["A"])

        outcomes = result.scheme_results["A"].destinations
        assert [(o.destination, o.succeeded) for o in outcomes] == [
            (first, False),
            (second, True),
        ]
        assert result.has_failures

    async def test_unknown_scheme_runs_nothing(
        self, sample_config: XprojectConfiguration, client: AsyncMock
    ) -> None:
        with pytest.raises(SchemesNotFoundError) as exc_info:
            await RunTestMatrix(sample_config, client).execute(schemes=["A", "Nope"])

        assert exc_info.value.schemes == ["Nope"]
        assert client.mock_calls == []

    async def test_requested_schemes_run_in_configuration_order(
        self, sample_config: XprojectConfiguration, client: AsyncMock
    ) -> None:
        result = await RunTestMatrix(sample_config, client).execute(schemes=["B", "A"])

        assert list(result.scheme_results) == ["A", "B"]

    async def test_skip_build(
        self, sample_config: XprojectConfiguration, client: AsyncMock
    ) -> None:
        result = await RunTestMatrix(sample_config, client).execute(skip_build=True)

        client.build_for_testing.assert_not_awaited()
        assert client.run_tests.await_count == 3
        assert result.scheme_results["A"].build_status == StageStatus.NOT_ATTEMPTED
        assert not result.has_failures

    async def test_clean_is_forwarded(
        self, sample_config: XprojectConfiguration, client: AsyncMock
    ) -> None:
        await RunTestMatrix(sample_config, client).execute(schemes=["B"], clean=True)

        client.build_for_testing.assert_awaited_once_with("B", True, BUILD_DESTINATION, None)

    async def test_destination_override(
        self, sample_config: XprojectConfiguration, client: AsyncMock
    ) -> None:
        override = "platform=iOS Simulator,name=iPhone SE"

        await RunTestMatrix(sample_config, client).execute(destination=override)

        assert client.run_tests.await_args_list == [
            call("A", override, None),
            call("B", override, None),
        ]

    async def test_missing_xcode_section(
        self, config_data: dict, client: AsyncMock
    ) -> None:
        del config_data["xcode"]
        config = XprojectConfiguration.model_validate(config_data)

        with pytest.raises(NoXcodeConfigurationError):
            await RunTestMatrix(config, client, config_file=Path("xproject.json")).execute()

    async def test_missing_tests_section(self, config_data: dict, client: AsyncMock) -> None:
        del config_data["xcode"]["tests"]
        config = XprojectConfiguration.model_validate(config_data)

        with pytest.raises(NoTestConfigurationError):
            await RunTestMatrix(config, client).execute()

    async def test_toolchain_resolved_once_and_forwarded(
        self, config_data: dict, client: AsyncMock
    ) -> None:
        config_data["xcode"]["version"] = "16.0"
        config = XprojectConfiguration.model_validate(config_data)
        xcode = ToolchainDescriptor(path=Path("/Applications/Xcode.app"), version="16.0")
        locator = MagicMock()
        locator.locate = AsyncMock(return_value=xcode)

        await RunTestMatrix(config, client, locator).execute()

        locator.locate.assert_awaited_once_with("16.0", allow_compatible=False)
        assert all(c.args[-1] == xcode for c in client.run_tests.await_args_list)

    async def test_missing_toolchain_is_fatal_before_any_command(
        self, config_data: dict, client: AsyncMock
    ) -> None:
        config_data["xcode"]["version"] = "99.0"
        config = XprojectConfiguration.model_validate(config_data)
        locator = MagicMock()
        locator.locate = AsyncMock(side_effect=ToolchainVersionNotFoundError("99.0"))

        with pytest.raises(ToolchainVersionNotFoundError):
            await RunTestMatrix(config, client, locator).execute()

        assert client.mock_calls == []

    async def test_infrastructure_errors_propagate(
        self, sample_config: XprojectConfiguration, client: AsyncMock
    ) -> None:
        client.build_for_testing.side_effect = WorkingDirectoryMismatchError(
            Path("/a"), Path("/b")
        )

        with pytest.raises(WorkingDirectoryMismatchError):
            await RunTestMatrix(sample_config, client).execute()


class TestRunTestMatrixWithXcodeClient:
    async def test_absolute_artifact_paths_in_home_directory(
        self, sample_config: XprojectConfiguration, project_dir: Path
    ) -> None:
        config = apply_environment_overrides(
            sample_config,
            {
                "ARTIFACTS_PATH": "/Users/ci/work/app/build",
                "TEST_REPORTS_PATH": "/Users/ci/work/app/reports",
            },
        )
        client = XcodeClient(CommandExecutor(project_dir, dry_run=True), config)

        result = await RunTestMatrix(config, client).execute()

        assert not result.has_failures
        assert result.total_schemes == 2

    async def test_timed_out_destination_is_recorded_and_siblings_run(
        self, config_data: dict, project_dir: Path, destinations: dict[str, list[str]]
    ) -> None:
        config_data["xcode"]["command_timeout_s"] = 900
        config = XprojectConfiguration.model_validate(config_data)
        first, second = destinations["A"]
        executor = TimeoutOnDestinationExecutor(project_dir, first)
        client = XcodeClient(executor, config)

        result = await RunTestMatrix(config, client).execute(schemes=["A"])

        outcomes = result.scheme_results["A"].destinations
        assert [(o.destination, o.succeeded) for o in outcomes] == [
            (first, False),
            (second, True),
        ]
        assert "timed out after 900.0s" in outcomes[0].error
        assert all(i.timeout_s == 900 for i in executor.streamed)

    async def test_compatible_toolchain_when_enabled(
        self, config_data: dict, project_dir: Path, tmp_path: Path
    ) -> None:
        applications = install_xcode(tmp_path / "Applications", "16.1")
        config_data["xcode"]["version"] = "16.0"
        config_data["xcode"]["allow_compatible_version"] = True
        config = XprojectConfiguration.model_validate(config_data)
        executor = CommandExecutor(project_dir, dry_run=True)
        locator = XcodeLocator(executor, applications_dir=applications, use_spotlight=False)
        client = AsyncMock()

        await RunTestMatrix(config, client, locator).execute(schemes=["B"])

        toolchain = client.run_tests.await_args.args[-1]
        assert toolchain == ToolchainDescriptor(path=applications / "Xcode.app", version="16.1")

    async def test_exact_toolchain_required_by_default(
        self, config_data: dict, project_dir: Path, tmp_path: Path
    ) -> None:
        applications = install_xcode(tmp_path / "Applications", "16.1")
        config_data["xcode"]["version"] = "16.0"
        config = XprojectConfiguration.model_validate(config_data)
        executor = CommandExecutor(project_dir, dry_run=True)
        locator = XcodeLocator(executor, applications_dir=applications, use_spotlight=False)
        client = AsyncMock()

        with pytest.raises(ToolchainVersionNotFoundError):
            await RunTestMatrix(config, client, locator).execute()

        assert client.mock_calls == []
