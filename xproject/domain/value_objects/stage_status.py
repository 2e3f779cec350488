from enum import Enum


class StageStatus(str, Enum):
    """Outcome of a build step, test destination or release stage.

    NOT_ATTEMPTED is distinct from FAILED: a stage that never ran because
    an earlier one failed stays NOT_ATTEMPTED.
    """

    NOT_ATTEMPTED = "not_attempted"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def attempted(self) -> bool:
        return self is not StageStatus.NOT_ATTEMPTED
