from pathlib import Path

from loguru import logger

from xproject.application.services.toolchain_resolution import resolve_toolchain
from xproject.domain.entities.configuration import ReleaseConfiguration, XprojectConfiguration
from xproject.domain.entities.release_result import (
    RELEASE_STAGE_ORDER,
    ReleaseResult,
    ReleaseStage,
)
from xproject.domain.errors import (
    CommandExecutionError,
    EnvironmentNotFoundError,
    NoReleaseConfigurationError,
    NoXcodeConfigurationError,
)
from xproject.domain.ports.build_client_port import BuildClientPort
from xproject.domain.ports.toolchain_locator_port import ToolchainLocatorPort
from xproject.domain.services import command_builder
from xproject.domain.value_objects.toolchain import ToolchainDescriptor


def select_stages(
    archive_only: bool = False,
    skip_upload: bool = False,
    upload_only: bool = False,
) -> list[ReleaseStage]:
    """upload_only wins over archive_only, which wins over skip_upload."""
    if upload_only:
        return [ReleaseStage.PUBLISH]
    if archive_only:
        return [ReleaseStage.PACKAGE]
    if skip_upload:
        return [ReleaseStage.PACKAGE, ReleaseStage.EXPORT]
    return list(RELEASE_STAGE_ORDER)


class CreateRelease:
    """Archives, exports and uploads one release environment.

    Stages run in order and the first failure stops the chain; later stages
    stay NOT_ATTEMPTED in the returned ReleaseResult. An unsafe export
    directory raises UnsafePathDeletionError before any stage runs.
    """

    def __init__(
        self,
        configuration: XprojectConfiguration,
        client: BuildClientPort,
        locator: ToolchainLocatorPort | None = None,
        config_file: Path | None = None,
    ):
        self.configuration = configuration
        self.client = client
        self.locator = locator
        self.config_file = config_file

    async def execute(
        self,
        environment: str,
        archive_only: bool = False,
        skip_upload: bool = False,
        upload_only: bool = False,
    ) -> ReleaseResult:
        release = self._release_for(environment)
        stages = select_stages(archive_only, skip_upload, upload_only)
        if ReleaseStage.EXPORT in stages:
            # Refuse an unsafe export directory before the archive is built
            command_builder.validated_export_path(self.configuration, release)
        toolchain = await resolve_toolchain(self.configuration, self.locator)

        result = ReleaseResult(environment=environment, scheme=release.scheme)
        for stage in stages:
            logger.info("Release '{}': {}", environment, stage.value)
            try:
                await self._run_stage(stage, environment, release, toolchain)
            except CommandExecutionError as e:
                logger.error("Release '{}' failed at {}: {}", environment, stage.value, e)
                result.record_failure(stage, str(e))
                break
            result.record_success(stage)

        logger.info(result.summary)
        return result

    def _release_for(self, environment: str) -> ReleaseConfiguration:
        xcode = self.configuration.xcode
        if xcode is None:
            raise NoXcodeConfigurationError(self.config_file)
        if not xcode.release:
            raise NoReleaseConfigurationError(self.config_file)

        release = xcode.release.get(environment)
        if release is None:
            raise EnvironmentNotFoundError(environment, sorted(xcode.release))
        return release

    async def _run_stage(
        self,
        stage: ReleaseStage,
        environment: str,
        release: ReleaseConfiguration,
        toolchain: ToolchainDescriptor | None,
    ) -> None:
        if stage == ReleaseStage.PACKAGE:
            await self.client.archive(environment, release, toolchain)
        elif stage == ReleaseStage.EXPORT:
            await self.client.export_archive(environment, release, toolchain)
        else:
            await self.client.upload(environment, release, toolchain)
