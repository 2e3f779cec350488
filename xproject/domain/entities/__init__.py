from xproject.domain.entities.clean_result import CleanResult
from xproject.domain.entities.configuration import (
    MatrixConfiguration,
    ReleaseConfiguration,
    SchemeTestPlan,
    SigningConfiguration,
    SigningStyle,
    XcodeConfiguration,
    XprojectConfiguration,
)
from xproject.domain.entities.matrix_result import DestinationOutcome, MatrixResult, SchemeResult
from xproject.domain.entities.release_result import (
    RELEASE_STAGE_ORDER,
    ReleaseResult,
    ReleaseStage,
)

__all__ = [
    "CleanResult",
    "DestinationOutcome",
    "MatrixConfiguration",
    "MatrixResult",
    "RELEASE_STAGE_ORDER",
    "ReleaseConfiguration",
    "ReleaseResult",
    "ReleaseStage",
    "SchemeResult",
    "SchemeTestPlan",
    "SigningConfiguration",
    "SigningStyle",
    "XcodeConfiguration",
    "XprojectConfiguration",
]
