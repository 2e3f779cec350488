from xproject.domain.ports.line_formatter_port import LineFormatter
from xproject.infrastructure.output.xcodebuild_formatter import XcodebuildFormatter


class OutputSymbol:
    """Markers that make a formatted line worth showing in quiet mode."""

    ERROR = "❌"
    ASCII_ERROR = "[x]"
    WARNING = "⚠️"
    ASCII_WARNING = "[!]"
    TEST_FAIL = "✖"
    TEST_COMPLETION = "▸"


class XcodeOutputProcessor:
    """Formats toolchain output lines and decides which ones are shown.

    Verbose mode shows every formatted line. Quiet mode shows only errors,
    warnings, test failures and summaries, so a long build stays terse while
    every actionable line still appears live.

    A processor is created per command; the formatter may keep state across
    lines of that command.
    """

    def __init__(
        self,
        verbose: bool,
        formatter: LineFormatter | None = None,
        preserve_unformatted: bool = False,
    ) -> None:
        self.verbose = verbose
        self.formatter = formatter or XcodebuildFormatter()
        self.preserve_unformatted = preserve_unformatted

    def process_line(self, line: str) -> str | None:
        """Return the text to display for a raw line, or None to suppress
        it."""
        if not line:
            return None

        formatted = self.formatter.format_line(line)
        if formatted is None:
            if self.verbose and self.preserve_unformatted:
                return line
            return None

        if self.verbose:
            return formatted

        return formatted if is_important_output(formatted) else None


def is_important_output(output: str) -> bool:
    if OutputSymbol.ERROR in output or OutputSymbol.ASCII_ERROR in output:
        return True

    if OutputSymbol.WARNING in output or OutputSymbol.ASCII_WARNING in output:
        return True

    if OutputSymbol.TEST_FAIL in output:
        return True

    # Test summaries, e.g. "Executed 12 tests, with 0 failures"
    if OutputSymbol.TEST_COMPLETION in output:
        return True

    if "passed" in output and "failed" in output:
        return True

    return "BUILD FAILED" in output or "BUILD SUCCEEDED" in output
