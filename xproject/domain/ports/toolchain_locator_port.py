from abc import ABC, abstractmethod

from xproject.domain.value_objects.toolchain import ToolchainDescriptor


class ToolchainLocatorPort(ABC):
    """Port for discovering installed toolchains."""

    @abstractmethod
    async def locate(
        self,
        required_version: str,
        allow_compatible: bool = False,
    ) -> ToolchainDescriptor:
        """Return the installation matching required_version.

        Raises ToolchainVersionNotFoundError when nothing matches.
        """
