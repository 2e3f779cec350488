from enum import Enum

from pydantic import BaseModel, Field, field_validator

DEFAULT_BUILD_PATH = "build"
DEFAULT_REPORTS_PATH = "reports"


class SigningStyle(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class SigningConfiguration(BaseModel, frozen=True, populate_by_name=True):
    signing_certificate: str | None = Field(default=None, alias="signingCertificate")
    team_id: str | None = Field(default=None, alias="teamID")
    signing_style: SigningStyle | None = Field(default=None, alias="signingStyle")
    provisioning_profiles: dict[str, str] | None = Field(
        default=None, alias="provisioningProfiles"
    )

    @property
    def is_automatic(self) -> bool:
        return self.signing_style == SigningStyle.AUTOMATIC


class ReleaseConfiguration(BaseModel, frozen=True, populate_by_name=True):
    scheme: str
    configuration: str | None = None
    output: str
    destination: str
    type: str = "ios"
    app_store_account: str | None = None
    upload_attempts: int = Field(default=1, ge=1)
    signing: SigningConfiguration | None = Field(default=None, alias="sign")


class SchemeTestPlan(BaseModel, frozen=True):
    scheme: str
    build_destination: str
    test_destinations: list[str]

    @field_validator("test_destinations")
    @classmethod
    def _destinations_unique(cls, value: list[str]) -> list[str]:
        duplicates = sorted({d for d in value if value.count(d) > 1})
        if duplicates:
            raise ValueError(f"duplicate test destinations: {', '.join(duplicates)}")
        return value


class MatrixConfiguration(BaseModel, frozen=True):
    schemes: list[SchemeTestPlan]

    @field_validator("schemes")
    @classmethod
    def _schemes_unique(cls, value: list[SchemeTestPlan]) -> list[SchemeTestPlan]:
        names = [plan.scheme for plan in value]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate schemes: {', '.join(duplicates)}")
        return value


class XcodeConfiguration(BaseModel, frozen=True):
    version: str | None = None
    build_path: str | None = None
    reports_path: str | None = None
    command_timeout_s: float | None = Field(default=None, gt=0)
    allow_compatible_version: bool = False
    tests: MatrixConfiguration | None = None
    release: dict[str, ReleaseConfiguration] | None = None


class XprojectConfiguration(BaseModel, frozen=True, populate_by_name=True):
    app_name: str
    workspace_path: str | None = None
    project_paths: dict[str, str] = Field(alias="project_path")
    xcode: XcodeConfiguration | None = None

    @field_validator("app_name")
    @classmethod
    def _app_name_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("app_name cannot be empty")
        return value

    @field_validator("project_paths")
    @classmethod
    def _has_project_path(cls, value: dict[str, str]) -> dict[str, str]:
        if not value:
            raise ValueError("at least one project_path must be specified")
        return value

    @property
    def build_path(self) -> str:
        return (self.xcode.build_path if self.xcode else None) or DEFAULT_BUILD_PATH

    @property
    def reports_path(self) -> str:
        return (self.xcode.reports_path if self.xcode else None) or DEFAULT_REPORTS_PATH

    @property
    def toolchain_version(self) -> str | None:
        return self.xcode.version if self.xcode else None

    @property
    def command_timeout_s(self) -> float | None:
        return self.xcode.command_timeout_s if self.xcode else None

    @property
    def allow_compatible_version(self) -> bool:
        return self.xcode.allow_compatible_version if self.xcode else False

    def project_path(self, target: str) -> str | None:
        return self.project_paths.get(target)

    def project_locator(self) -> list[str]:
        """Workspace takes precedence over the first project path."""
        if self.workspace_path:
            return ["-workspace", self.workspace_path]
        first = next(iter(self.project_paths.values()), None)
        if first:
            return ["-project", first]
        return []
