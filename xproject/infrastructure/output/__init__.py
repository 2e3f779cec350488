from xproject.infrastructure.output.xcode_output_processor import (
    XcodeOutputProcessor,
    is_important_output,
)
from xproject.infrastructure.output.xcodebuild_formatter import (
    PassthroughFormatter,
    XcodebuildFormatter,
)

__all__ = [
    "PassthroughFormatter",
    "XcodeOutputProcessor",
    "XcodebuildFormatter",
    "is_important_output",
]
