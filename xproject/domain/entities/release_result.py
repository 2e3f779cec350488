from enum import Enum

from pydantic import BaseModel

from xproject.domain.value_objects.stage_status import StageStatus


class ReleaseStage(str, Enum):
    PACKAGE = "package"
    EXPORT = "export"
    PUBLISH = "publish"


# Each stage consumes the previous stage's filesystem output.
RELEASE_STAGE_ORDER: tuple[ReleaseStage, ...] = (
    ReleaseStage.PACKAGE,
    ReleaseStage.EXPORT,
    ReleaseStage.PUBLISH,
)


class ReleaseResult(BaseModel):
    environment: str
    scheme: str

    package_status: StageStatus = StageStatus.NOT_ATTEMPTED
    package_error: str | None = None

    export_status: StageStatus = StageStatus.NOT_ATTEMPTED
    export_error: str | None = None

    publish_status: StageStatus = StageStatus.NOT_ATTEMPTED
    publish_error: str | None = None

    def status_of(self, stage: ReleaseStage) -> StageStatus:
        return getattr(self, f"{stage.value}_status")

    def error_of(self, stage: ReleaseStage) -> str | None:
        return getattr(self, f"{stage.value}_error")

    @property
    def statuses(self) -> list[StageStatus]:
        return [self.status_of(stage) for stage in RELEASE_STAGE_ORDER]

    @property
    def has_failures(self) -> bool:
        return StageStatus.FAILED in self.statuses

    @property
    def is_complete(self) -> bool:
        """True iff at least one stage was attempted and none of the attempted
        stages failed."""
        attempted = [s for s in self.statuses if s.attempted]
        if not attempted:
            return False
        return all(s == StageStatus.SUCCEEDED for s in attempted)

    @property
    def summary(self) -> str:
        if self.is_complete:
            return f"✅ Release for '{self.environment}' completed"
        for stage in RELEASE_STAGE_ORDER:
            if self.status_of(stage) == StageStatus.FAILED:
                return f"❌ Release for '{self.environment}' failed at {stage.value}"
        return f"⚠️  Release for '{self.environment}' did not run any stage"

    def record_success(self, stage: ReleaseStage) -> None:
        setattr(self, f"{stage.value}_status", StageStatus.SUCCEEDED)
        setattr(self, f"{stage.value}_error", None)

    def record_failure(self, stage: ReleaseStage, error: str) -> None:
        setattr(self, f"{stage.value}_status", StageStatus.FAILED)
        setattr(self, f"{stage.value}_error", error)
