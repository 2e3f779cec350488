from pydantic import BaseModel, Field

from xproject.domain.value_objects.stage_status import StageStatus


class DestinationOutcome(BaseModel, frozen=True):
    destination: str
    succeeded: bool
    error: str | None = None


class SchemeResult(BaseModel):
    scheme: str
    build_status: StageStatus = StageStatus.NOT_ATTEMPTED
    build_error: str | None = None
    destinations: list[DestinationOutcome] = Field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        if self.build_status == StageStatus.FAILED:
            return True
        return any(not d.succeeded for d in self.destinations)

    @property
    def failed_destinations(self) -> list[DestinationOutcome]:
        return [d for d in self.destinations if not d.succeeded]


class MatrixResult(BaseModel):
    """Aggregated outcome of a test-matrix run, keyed by scheme name.

    Schemes appear in the order they were processed. A scheme whose build
    failed has no destination entries: those destinations were never
    attempted.
    """

    scheme_results: dict[str, SchemeResult] = Field(default_factory=dict)

    @property
    def total_schemes(self) -> int:
        return len(self.scheme_results)

    @property
    def failed_schemes(self) -> int:
        return sum(1 for r in self.scheme_results.values() if r.has_failures)

    @property
    def has_failures(self) -> bool:
        return self.failed_schemes > 0

    @property
    def summary(self) -> str:
        if self.has_failures:
            return (
                f"❌ Tests failed: {self.failed_schemes} of {self.total_schemes} "
                "schemes had failures"
            )
        return f"✅ All tests passed: {self.total_schemes} schemes tested successfully"

    def _scheme(self, scheme: str) -> SchemeResult:
        if scheme not in self.scheme_results:
            self.scheme_results[scheme] = SchemeResult(scheme=scheme)
        return self.scheme_results[scheme]

    def record_build_skipped(self, scheme: str) -> None:
        self._scheme(scheme)

    def record_build_success(self, scheme: str) -> None:
        result = self._scheme(scheme)
        result.build_status = StageStatus.SUCCEEDED
        result.build_error = None

    def record_build_failure(self, scheme: str, error: str) -> None:
        result = self._scheme(scheme)
        result.build_status = StageStatus.FAILED
        result.build_error = error

    def record_test_success(self, scheme: str, destination: str) -> None:
        self._scheme(scheme).destinations.append(
            DestinationOutcome(destination=destination, succeeded=True)
        )

    def record_test_failure(self, scheme: str, destination: str, error: str) -> None:
        self._scheme(scheme).destinations.append(
            DestinationOutcome(destination=destination, succeeded=False, error=error)
        )
