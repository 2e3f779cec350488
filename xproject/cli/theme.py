"""CLI theme configuration - all colors in one place.

Colors use Rich markup syntax (e.g., "green", "bold red", "dim italic").
"""


class Theme:
    """Terminal color theme for the xp CLI."""

    # -------------------------------------------------------------------------
    # Status colors
    # -------------------------------------------------------------------------
    SUCCESS = "green"
    SUCCESS_BOLD = "bold green"
    ERROR = "red"
    ERROR_BOLD = "bold red"
    WARNING = "yellow"
    WARNING_BOLD = "bold yellow"
    INFO = "cyan"
    INFO_BOLD = "bold cyan"

    # -------------------------------------------------------------------------
    # Text styles
    # -------------------------------------------------------------------------
    HEADER = "bold"
    DIM = "grey62"
    DIM_ITALIC = "grey62 italic"

    # -------------------------------------------------------------------------
    # Command echo and toolchain output
    # -------------------------------------------------------------------------
    COMMAND = "light_steel_blue"
    DRY_RUN = "bold yellow"
    TOOL_OUTPUT = "grey74"

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------
    TABLE_LABEL = "grey62"
    TABLE_VALUE = "bold"

    # -------------------------------------------------------------------------
    # Stage status
    # -------------------------------------------------------------------------
    STATUS_SUCCEEDED = "bold green"
    STATUS_FAILED = "bold red"
    STATUS_NOT_ATTEMPTED = "grey62"

    # -------------------------------------------------------------------------
    # Panel borders
    # -------------------------------------------------------------------------
    BORDER_INFO = "blue"
    BORDER_ERROR = "red"


# Default theme instance - import this in other modules
theme = Theme()
