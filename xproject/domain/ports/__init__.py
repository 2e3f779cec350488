from xproject.domain.ports.build_client_port import BuildClientPort
from xproject.domain.ports.command_executor_port import CommandExecutorPort, LineCallback
from xproject.domain.ports.line_formatter_port import LineFormatter
from xproject.domain.ports.toolchain_locator_port import ToolchainLocatorPort

__all__ = [
    # Build client port
    "BuildClientPort",
    # Command executor port
    "CommandExecutorPort",
    "LineCallback",
    # Output formatting
    "LineFormatter",
    # Toolchain discovery
    "ToolchainLocatorPort",
]
