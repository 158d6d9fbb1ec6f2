"""Models for static prompt validation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, Field

Severity = Literal["error", "warning"]


class Location(BaseModel):
    """Line/column position as reported by the PromptL compiler."""

    line: int
    column: int


@dataclass(frozen=True)
class CompileDiagnostic:
    """A single finding reported by a prompt checker."""

    code: str
    message: str
    start: Location | None = None
    frame: str | None = None
    severity: Severity = "error"


class CompileError(Exception):
    """Fatal parse error; the checker could not finish scanning."""

    def __init__(
        self,
        code: str,
        message: str,
        start: Location | None = None,
        frame: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.start = start
        self.frame = frame


class ValidationIssue(BaseModel):
    """Structured diagnostic with a human root cause and a fix suggestion."""

    type: Severity = "error"
    code: str
    message: str
    root_cause: str
    suggestion: str
    location: Location | None = None
    code_frame: str | None = None


class DocumentIssues(BaseModel):
    """Issues found in one document of a batch."""

    name: str
    issues: list[ValidationIssue] = Field(default_factory=list)


class ValidationReport(BaseModel):
    """All-or-nothing verdict over a batch of documents."""

    valid: bool = True
    errors: list[DocumentIssues] = Field(default_factory=list)
    warnings: list[DocumentIssues] = Field(default_factory=list)
    checked: int = 0

    @property
    def failed_paths(self) -> list[str]:
        return [entry.name for entry in self.errors]
