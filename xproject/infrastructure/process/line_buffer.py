class LineBuffer:
    """Turns arbitrarily split text chunks into complete lines.

    Whatever follows the last newline is kept until the next append or
    flush, so the pending tail never contains a newline.
    """

    TERMINATOR = "\n"

    def __init__(self) -> None:
        self._pending = ""

    def append(self, chunk: str) -> list[str]:
        parts = (self._pending + chunk).split(self.TERMINATOR)
        self._pending = parts.pop()
        return parts

    def flush(self) -> str | None:
        """Return and clear the pending partial line; None when nothing is
        pending."""
        if not self._pending:
            return None
        remaining, self._pending = self._pending, ""
        return remaining

    @property
    def pending(self) -> str:
        return self._pending
