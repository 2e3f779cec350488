from rich.console import Console
from rich.markup import escape

from xproject.cli.theme import theme
from xproject.domain.errors import XprojectError

error_console = Console(stderr=True)


def report_error(error: XprojectError) -> None:
    error_console.print(f"\n[{theme.ERROR_BOLD}]Error:[/] {escape(str(error))}")
