"""Models for the deploy pipeline."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field

from latitude_sync.api.errors import LatitudeError
from latitude_sync.api.models import Version
from latitude_sync.diff.models import ChangeSummary, DocumentChange
from latitude_sync.validation.models import Location, ValidationReport


class FailedDocument(BaseModel):
    """A document identified as the cause of a publish rejection."""

    path: str
    error: str
    code: str
    root_cause: str
    suggestion: str
    location: Location | None = None
    code_frame: str | None = None


class DeployResult(BaseModel):
    """Outcome of a full draft -> push -> publish cycle."""

    version: Version
    documents_processed: int = 0
    added: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)

    @classmethod
    def no_op(cls, skipped: list[str] | None = None) -> DeployResult:
        return cls(version=Version.live_placeholder(), skipped=skipped or [])


class DeployPlan(BaseModel):
    """What a deploy would do, computed without mutating anything."""

    changes: list[DocumentChange] = Field(default_factory=list)
    summary: ChangeSummary = Field(default_factory=ChangeSummary)
    skipped: list[str] = Field(default_factory=list)
    report: ValidationReport = Field(default_factory=ValidationReport)

    @property
    def has_changes(self) -> bool:
        return self.summary.total > 0


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of trial-publishing a batch in a throwaway draft."""

    ok: bool
    error: LatitudeError | None = None
