from xproject.infrastructure.process.command_executor import CommandExecutor, mask_environment
from xproject.infrastructure.process.line_buffer import LineBuffer

__all__ = ["CommandExecutor", "LineBuffer", "mask_environment"]
