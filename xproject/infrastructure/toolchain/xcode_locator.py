import asyncio
import plistlib
import shutil
from pathlib import Path
from typing import Any

from loguru import logger

from xproject.domain.errors import (
    CommandSpawnError,
    ToolchainVersionNotFoundError,
    ToolchainVersionReadError,
)
from xproject.domain.ports.command_executor_port import CommandExecutorPort
from xproject.domain.ports.toolchain_locator_port import ToolchainLocatorPort
from xproject.domain.value_objects.toolchain import ToolchainDescriptor

XCODE_BUNDLE_ID = "com.apple.dt.Xcode"
DEFAULT_APPLICATIONS_DIR = Path("/Applications")


def _read_info_plist(app: Path) -> dict[str, Any] | None:
    info = app / "Contents" / "Info.plist"
    try:
        with info.open("rb") as f:
            data = plistlib.load(f)
    except (OSError, plistlib.InvalidFileException, ValueError):
        return None
    return data if isinstance(data, dict) else None


def version_key(version: str) -> tuple[int, ...]:
    parts: list[int] = []
    for component in version.split("."):
        try:
            parts.append(int(component))
        except ValueError:
            break
    return tuple(parts)


def compatible_prefix(version: str) -> str:
    """Pessimistic version prefix.

    "26.1.1" -> "26.1.", "26.1" -> "26.", "26" -> "26."
    """
    components = version.split(".")
    if len(components) <= 1:
        return f"{components[0]}."
    return ".".join(components[:-1]) + "."


def select_toolchain(
    installed: list[ToolchainDescriptor],
    required_version: str,
    allow_compatible: bool = False,
) -> ToolchainDescriptor | None:
    """First exact version match; with allow_compatible, fall back to the
    highest installation sharing the pessimistic prefix."""
    for toolchain in installed:
        if toolchain.version == required_version:
            return toolchain

    if not allow_compatible:
        return None

    prefix = compatible_prefix(required_version)
    candidates = [t for t in installed if t.version.startswith(prefix)]
    if not candidates:
        return None
    return max(candidates, key=lambda t: version_key(t.version))


class XcodeLocator(ToolchainLocatorPort):
    """Finds installed Xcode bundles and picks the one matching a version.

    Installations are looked up with Spotlight when mdfind is available,
    otherwise by scanning the applications directory. Nothing is cached:
    every call sees the toolchains installed right now.
    """

    def __init__(
        self,
        executor: CommandExecutorPort,
        applications_dir: Path = DEFAULT_APPLICATIONS_DIR,
        use_spotlight: bool | None = None,
    ) -> None:
        self.executor = executor
        self.applications_dir = applications_dir
        self.use_spotlight = (
            shutil.which("mdfind") is not None if use_spotlight is None else use_spotlight
        )

    async def locate(
        self,
        required_version: str,
        allow_compatible: bool = False,
    ) -> ToolchainDescriptor:
        installations = await self.find_installations()
        if not installations:
            logger.warning("No Xcode installations found")
            raise ToolchainVersionNotFoundError(required_version)

        installed: list[ToolchainDescriptor] = []
        for path in installations:
            try:
                version = await self.read_version(path)
            except ToolchainVersionReadError as e:
                logger.debug("Skipping {}: {}", path, e)
                continue
            installed.append(ToolchainDescriptor(path=path, version=version))

        selected = select_toolchain(installed, required_version, allow_compatible)
        if selected is None:
            raise ToolchainVersionNotFoundError(
                required_version, [t.version for t in installed]
            )

        logger.info("Using Xcode {} at {}", selected.version, selected.path)
        return selected

    async def find_installations(self) -> list[Path]:
        if self.use_spotlight:
            paths = await self._spotlight_search()
            if paths:
                return paths
        return await asyncio.to_thread(self._scan_applications)

    async def read_version(self, path: Path) -> str:
        info = await asyncio.to_thread(_read_info_plist, path)
        version = info.get("CFBundleShortVersionString") if info else None
        if not version or not str(version).strip():
            raise ToolchainVersionReadError(path)
        return str(version).strip().splitlines()[0]

    async def _spotlight_search(self) -> list[Path]:
        invocation = self.executor.invocation(
            "mdfind", f"kMDItemCFBundleIdentifier == '{XCODE_BUNDLE_ID}'"
        )
        try:
            outcome = await self.executor.execute_read_only(invocation)
        except CommandSpawnError as e:
            logger.warning(
                "Spotlight lookup unavailable, scanning {}: {}", self.applications_dir, e
            )
            return []

        if not outcome.succeeded:
            return []
        return [Path(line.strip()) for line in outcome.stdout.splitlines() if line.strip()]

    def _scan_applications(self) -> list[Path]:
        if not self.applications_dir.is_dir():
            return []
        found: list[Path] = []
        for app in sorted(self.applications_dir.glob("*.app")):
            info = _read_info_plist(app)
            if info and info.get("CFBundleIdentifier") == XCODE_BUNDLE_ID:
                found.append(app)
        return found
