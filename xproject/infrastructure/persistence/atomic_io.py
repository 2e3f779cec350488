from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

import aiofiles
from loguru import logger


async def atomic_write(path: Path, content: str | bytes) -> None:
    """Write a build artifact atomically (temp file in the same directory,
    then rename), so a reader never sees a half-written plist."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_path_str = tempfile.mkstemp(
        dir=str(path.parent),
        prefix=".tmp_",
        suffix=path.suffix,
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, bytes):
            async with aiofiles.open(fd, mode="wb", closefd=True) as f:
                await f.write(content)
        else:
            async with aiofiles.open(fd, mode="w", encoding="utf-8", closefd=True) as f:
                await f.write(content)
        await asyncio.to_thread(temp_path.replace, path)
        logger.debug("Wrote {}", path)
    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise
