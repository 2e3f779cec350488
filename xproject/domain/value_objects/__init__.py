from xproject.domain.value_objects.command_types import CommandInvocation, CommandOutcome
from xproject.domain.value_objects.stage_status import StageStatus
from xproject.domain.value_objects.toolchain import ToolchainDescriptor

__all__ = [
    "CommandInvocation",
    "CommandOutcome",
    "StageStatus",
    "ToolchainDescriptor",
]
