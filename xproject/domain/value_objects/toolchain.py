from pathlib import Path

from pydantic import BaseModel


class ToolchainDescriptor(BaseModel, frozen=True):
    path: Path
    version: str

    @property
    def developer_dir(self) -> Path:
        return self.path / "Contents" / "Developer"
