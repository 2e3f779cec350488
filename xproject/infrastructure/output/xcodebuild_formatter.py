import re
from collections.abc import Callable
from pathlib import PurePath

# Symbols shared with XcodeOutputProcessor's importance check
ERROR = "❌"
WARNING = "⚠️ "
TEST_PASS = "✔"
TEST_FAIL = "✖"
TEST_SKIPPED = "⊘"
SUMMARY = "▸"


def _name(path: str) -> str:
    return PurePath(path).name


def _unescape(text: str) -> str:
    return text.replace("\\ ", " ")


def _location(file: str, line: str, column: str | None = None) -> str:
    location = f"{_name(file)}:{line}"
    return f"{location}:{column}" if column else location


Rule = tuple[re.Pattern[str], Callable[[re.Match[str]], str]]

# Order matters: test failures are reported as "error:" lines and must be
# matched before generic compiler errors.
_RULES: list[Rule] = [
    (
        re.compile(r"^(.+?):(\d+): error: -\[(\S+) (\S+)\] : (.*)$"),
        lambda m: f"    {TEST_FAIL} {m[4]}, {m[5]} ({_location(m[1], m[2])})",
    ),
    (
        re.compile(r"^Test Case '-\[(\S+) (\S+)\]' failed \((\d+\.\d+) seconds\)\.?$"),
        lambda m: f"    {TEST_FAIL} {m[2]} ({m[3]} seconds)",
    ),
    (
        re.compile(r"^Test Case '-\[(\S+) (\S+)\]' passed \((\d+\.\d+) seconds\)\.?$"),
        lambda m: f"    {TEST_PASS} {m[2]} ({m[3]} seconds)",
    ),
    (
        re.compile(r"^Test Case '-\[(\S+) (\S+)\]' skipped.*$"),
        lambda m: f"    {TEST_SKIPPED} {m[2]} skipped",
    ),
    (
        re.compile(r"^Test Suite '(.+)' started at .*$"),
        lambda m: f"{m[1]}",
    ),
    (
        re.compile(r"^\s*Executed (\d+) tests?, with (\d+) failures? .*$"),
        lambda m: f"{SUMMARY} Executed {m[1]} tests, with {m[2]} failures",
    ),
    (
        re.compile(r"^(.+?):(\d+):(\d+): (?:fatal )?error: (.*)$"),
        lambda m: f"{ERROR} {_location(m[1], m[2], m[3])}: {m[4]}",
    ),
    (
        re.compile(r"^(.+?):(\d+):(\d+): warning: (.*)$"),
        lambda m: f"{WARNING} {_location(m[1], m[2], m[3])}: {m[4]}",
    ),
    (
        re.compile(r"^(?:xcodebuild: )?(?:fatal )?error: (.*)$"),
        lambda m: f"{ERROR} {m[1]}",
    ),
    (
        re.compile(r"^(?:xcodebuild: )?warning: (.*)$"),
        lambda m: f"{WARNING} {m[1]}",
    ),
    (
        re.compile(r"^(Undefined symbols for architecture .+?):?$"),
        lambda m: f"{ERROR} {m[1]}",
    ),
    (
        re.compile(r"^ld: (.*)$"),
        lambda m: f"{ERROR} ld: {m[1]}",
    ),
    (
        re.compile(
            r"^\*\* ((?:BUILD|TEST|ANALYZE|ARCHIVE|EXPORT|CLEAN)(?: \S+)*) "
            r"(SUCCEEDED|FAILED) \*\*.*$"
        ),
        lambda m: f"{SUMMARY} {m[1]} {m[2]}",
    ),
    (
        re.compile(
            r"^(?:CompileC|CompileSwift|SwiftCompile) \S+ \S+ (\S+\.(?:swift|m|mm|c|cpp))\b.*$"
        ),
        lambda m: f"Compiling {_name(m[1])}",
    ),
    (
        re.compile(r"^Ld (\S+) .*$"),
        lambda m: f"Linking {_name(m[1])}",
    ),
    (
        re.compile(r"^CodeSign (\S+).*$"),
        lambda m: f"Signing {_name(m[1])}",
    ),
    (
        re.compile(r"^ProcessInfoPlistFile \S+ (\S+).*$"),
        lambda m: f"Processing {_name(m[1])}",
    ),
    (
        re.compile(r"^PhaseScriptExecution (.+?) /\S+.*$"),
        lambda m: f"Running script '{_unescape(m[1])}'",
    ),
]


class XcodebuildFormatter:
    """Condenses raw xcodebuild output into short, symbol-tagged lines.

    Lines it does not recognise are reported as None.
    """

    def format_line(self, line: str) -> str | None:
        stripped = line.rstrip("\r")
        for pattern, render in _RULES:
            match = pattern.match(stripped)
            if match:
                return render(match)
        return None


class PassthroughFormatter:
    """Returns every line unchanged."""

    def format_line(self, line: str) -> str | None:
        return line
