from typing import Protocol


class LineFormatter(Protocol):
    def format_line(self, line: str) -> str | None:
        """Return a display form of a raw toolchain output line, or None if
        the line is not recognised."""
        ...
