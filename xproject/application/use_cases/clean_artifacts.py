import asyncio
import shutil
from pathlib import Path

from loguru import logger

from xproject.domain.entities.clean_result import CleanResult
from xproject.domain.entities.configuration import XprojectConfiguration
from xproject.domain.errors import CleanError
from xproject.domain.services.command_builder import ensure_safe_to_delete


class CleanArtifacts:
    """Removes the build and reports directories."""

    def __init__(self, working_directory: Path, configuration: XprojectConfiguration):
        self.working_directory = working_directory
        self.configuration = configuration

    async def execute(self, dry_run: bool = False) -> CleanResult:
        build_path = self.configuration.build_path
        reports_path = self.configuration.reports_path

        build_removed = await self._remove(build_path, dry_run)
        reports_removed = await self._remove(reports_path, dry_run)

        return CleanResult(
            build_path=build_path,
            reports_path=reports_path,
            build_removed=build_removed,
            reports_removed=reports_removed,
        )

    async def _remove(self, path: str, dry_run: bool) -> bool:
        ensure_safe_to_delete(path)
        target = self.working_directory / path
        if not target.exists():
            return False

        if dry_run:
            logger.info("[DRY RUN] Would remove {}", target)
            return True

        try:
            await asyncio.to_thread(shutil.rmtree, target)
        except OSError as e:
            raise CleanError(path, str(e)) from e
        logger.info("Removed {}", target)
        return True
