from pathlib import Path

from loguru import logger

from xproject.application.services.toolchain_resolution import resolve_toolchain
from xproject.domain.entities.configuration import SchemeTestPlan, XprojectConfiguration
from xproject.domain.entities.matrix_result import MatrixResult
from xproject.domain.errors import (
    CommandExecutionError,
    NoTestConfigurationError,
    NoXcodeConfigurationError,
    SchemesNotFoundError,
)
from xproject.domain.ports.build_client_port import BuildClientPort
from xproject.domain.ports.toolchain_locator_port import ToolchainLocatorPort
from xproject.domain.value_objects.toolchain import ToolchainDescriptor


class RunTestMatrix:
    """Builds and tests every configured scheme on its destinations.

    Command failures are recorded in the MatrixResult and never abort the
    run; configuration and toolchain errors are raised before the first
    command executes.
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
        schemes: list[str] | None = None,
        clean: bool = False,
        skip_build: bool = False,
        destination: str | None = None,
    ) -> MatrixResult:
        plans = self._select_plans(schemes)
        toolchain = await resolve_toolchain(self.configuration, self.locator)

        result = MatrixResult()
        for plan in plans:
            await self._run_scheme(plan, result, clean, skip_build, destination, toolchain)

        logger.info(result.summary)
        return result

    def _select_plans(self, schemes: list[str] | None) -> list[SchemeTestPlan]:
        xcode = self.configuration.xcode
        if xcode is None:
            raise NoXcodeConfigurationError(self.config_file)
        if xcode.tests is None:
            raise NoTestConfigurationError(self.config_file)

        configured = xcode.tests.schemes
        if not schemes:
            return list(configured)

        known = {plan.scheme for plan in configured}
        missing = [name for name in schemes if name not in known]
        if missing:
            raise SchemesNotFoundError(missing)

        # Configuration order, not request order
        requested = set(schemes)
        return [plan for plan in configured if plan.scheme in requested]

    async def _run_scheme(
        self,
        plan: SchemeTestPlan,
        result: MatrixResult,
        clean: bool,
        skip_build: bool,
        destination: str | None,
        toolchain: ToolchainDescriptor | None,
    ) -> None:
        scheme = plan.scheme

        if skip_build:
            result.record_build_skipped(scheme)
        else:
            logger.info("Building scheme '{}' for {}", scheme, plan.build_destination)
            try:
                await self.client.build_for_testing(
                    scheme, clean, plan.build_destination, toolchain
                )
            except CommandExecutionError as e:
                logger.error("Build failed for scheme '{}': {}", scheme, e)
                result.record_build_failure(scheme, str(e))
                return
            result.record_build_success(scheme)

        destinations = [destination] if destination else plan.test_destinations
        for target in destinations:
            logger.info("Testing scheme '{}' on {}", scheme, target)
            try:
                await self.client.run_tests(scheme, target, toolchain)
            except CommandExecutionError as e:
                logger.error("Tests failed for scheme '{}' on {}: {}", scheme, target, e)
                result.record_test_failure(scheme, target, str(e))
            else:
                result.record_test_success(scheme, target)
