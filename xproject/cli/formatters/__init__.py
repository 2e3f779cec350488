from xproject.cli.formatters.result_formatter import (
    format_clean_result,
    format_info_block,
    format_matrix_result,
    format_release_result,
    format_scheme_result,
)

__all__ = [
    "format_clean_result",
    "format_info_block",
    "format_matrix_result",
    "format_release_result",
    "format_scheme_result",
]
