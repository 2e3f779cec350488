from pydantic import BaseModel


class CleanResult(BaseModel, frozen=True):
    build_path: str
    reports_path: str
    build_removed: bool
    reports_removed: bool

    @property
    def nothing_to_clean(self) -> bool:
        return not self.build_removed and not self.reports_removed
