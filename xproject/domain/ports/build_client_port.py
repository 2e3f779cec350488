from abc import ABC, abstractmethod

from xproject.domain.entities.configuration import ReleaseConfiguration
from xproject.domain.value_objects.toolchain import ToolchainDescriptor


class BuildClientPort(ABC):
    """Port for the toolchain operations the orchestrators drive.

    Every method raises CommandExecutionError when the underlying command
    fails.
    """

    @abstractmethod
    async def build_for_testing(
        self,
        scheme: str,
        clean: bool,
        build_destination: str,
        toolchain: ToolchainDescriptor | None = None,
    ) -> None: ...

    @abstractmethod
    async def run_tests(
        self,
        scheme: str,
        destination: str,
        toolchain: ToolchainDescriptor | None = None,
    ) -> None: ...

    @abstractmethod
    async def archive(
        self,
        environment: str,
        release: ReleaseConfiguration,
        toolchain: ToolchainDescriptor | None = None,
    ) -> None: ...

    @abstractmethod
    async def export_archive(
        self,
        environment: str,
        release: ReleaseConfiguration,
        toolchain: ToolchainDescriptor | None = None,
    ) -> None: ...

    @abstractmethod
    async def upload(
        self,
        environment: str,
        release: ReleaseConfiguration,
        toolchain: ToolchainDescriptor | None = None,
    ) -> None: ...
