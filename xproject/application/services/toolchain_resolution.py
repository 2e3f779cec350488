from loguru import logger

from xproject.domain.entities.configuration import XprojectConfiguration
from xproject.domain.ports.toolchain_locator_port import ToolchainLocatorPort
from xproject.domain.value_objects.toolchain import ToolchainDescriptor


async def resolve_toolchain(
    configuration: XprojectConfiguration,
    locator: ToolchainLocatorPort | None,
) -> ToolchainDescriptor | None:
    """Locate the configured toolchain version, if one is pinned.

    Without a pinned version (or a locator) commands run against whatever
    toolchain is currently selected on the machine. With
    `allow_compatible_version` set, a newer patch release of the pinned
    version is accepted. Lookup failures propagate: they are fatal for the
    whole operation.
    """
    version = configuration.toolchain_version
    if not version:
        return None
    if locator is None:
        logger.warning("Xcode {} is pinned but no toolchain locator is available", version)
        return None
    return await locator.locate(
        version, allow_compatible=configuration.allow_compatible_version
    )
