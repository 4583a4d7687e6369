from __future__ import annotations

import dataclasses
import enum
import pathlib

from runpack.core.platform import Platform


class Status(enum.StrEnum):
    CACHED = "cached"
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclasses.dataclass
class TargetResult:
    platform: Platform
    status: Status
    path: pathlib.Path | None = None
    error: str | None = None

    def __str__(self) -> str:
        detail = self.error or (str(self.path) if self.path else "")
        return f"{self.platform}: {self.status}" + (f" ({detail})" if detail else "")


@dataclasses.dataclass
class PipelineReport:
    step: str
    results: list[TargetResult] = dataclasses.field(default_factory=list)

    def add(self, result: TargetResult) -> TargetResult:
        self.results.append(result)
        return result

    def _with(self, *statuses: Status) -> list[TargetResult]:
        return [result for result in self.results if result.status in statuses]

    @property
    def succeeded(self) -> list[TargetResult]:
        return self._with(Status.CACHED, Status.DONE)

    @property
    def skipped(self) -> list[TargetResult]:
        return self._with(Status.SKIPPED)

    @property
    def failed(self) -> list[TargetResult]:
        return self._with(Status.FAILED)

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        return (
            f"{self.step}: {len(self.succeeded)} ok, "
            f"{len(self.skipped)} skipped, {len(self.failed)} failed"
        )
