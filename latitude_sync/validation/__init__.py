"""Static validation of PromptL documents."""

from latitude_sync.validation.checker import PromptChecker, PromptLChecker
from latitude_sync.validation.models import (
    CompileDiagnostic,
    CompileError,
    DocumentIssues,
    Location,
    ValidationIssue,
    ValidationReport,
)
from latitude_sync.validation.suggestions import ERROR_SUGGESTIONS
from latitude_sync.validation.validator import PromptValidator, format_report

__all__ = [
    "CompileDiagnostic",
    "CompileError",
    "DocumentIssues",
    "ERROR_SUGGESTIONS",
    "Location",
    "PromptChecker",
    "PromptLChecker",
    "PromptValidator",
    "ValidationIssue",
    "ValidationReport",
    "format_report",
]
