from xproject.application.use_cases.clean_artifacts import CleanArtifacts
from xproject.application.use_cases.create_release import CreateRelease, select_stages
from xproject.application.use_cases.run_test_matrix import RunTestMatrix

__all__ = [
    "CleanArtifacts",
    "CreateRelease",
    "RunTestMatrix",
    "select_stages",
]
