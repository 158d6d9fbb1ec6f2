"""Local, side-effect-free validation of prompt documents."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from latitude_sync.diff.differ import IncomingDocument, as_pair
from latitude_sync.validation.checker import PromptChecker, PromptLChecker
from latitude_sync.validation.models import (
    CompileDiagnostic,
    CompileError,
    DocumentIssues,
    ValidationIssue,
    ValidationReport,
)
from latitude_sync.validation.suggestions import lookup

logger = logging.getLogger(__name__)


class PromptValidator:
    """Runs documents through a static checker and explains each diagnostic.

    Never touches the network; safe to call before any mutation.
    """

    def __init__(self, checker: PromptChecker | None = None, *, require_config: bool = False) -> None:
        self.checker = checker or PromptLChecker(require_config=require_config)

    def validate(self, content: str, path: str) -> list[ValidationIssue]:
        """Return every issue found in *content*."""
        try:
            diagnostics = self.checker.scan(content, path)
        except CompileError as err:
            hint = lookup(err.code, err.message, "Fix the syntax error at the indicated location.")
            return [
                ValidationIssue(
                    type="error",
                    code=err.code,
                    message=err.message,
                    root_cause=hint.root_cause,
                    suggestion=hint.suggestion,
                    location=err.start,
                    code_frame=err.frame,
                )
            ]
        except Exception as err:
            logger.warning("checker failed on %s: %s", path, err)
            return [
                ValidationIssue(
                    type="error",
                    code="unknown-error",
                    message=str(err) or "Unknown validation error",
                    root_cause="An unexpected error occurred during validation.",
                    suggestion="Check the prompt content for syntax errors.",
                )
            ]
        return [self._to_issue(d) for d in diagnostics]

    def validate_all(self, docs: Iterable[IncomingDocument]) -> ValidationReport:
        """Validate a batch; it is valid only if no document has an error.

        Every document is checked before the verdict so the report lists all
        failing documents at once.
        """
        collected: list[tuple[str, list[ValidationIssue]]] = []
        for item in docs:
            path, content = as_pair(item)
            collected.append((path, self.validate(content, path)))

        report = ValidationReport(checked=len(collected))
        for path, issues in collected:
            errors = [i for i in issues if i.type == "error"]
            warnings = [i for i in issues if i.type == "warning"]
            if errors:
                report.errors.append(DocumentIssues(name=path, issues=issues))
            elif warnings:
                report.warnings.append(DocumentIssues(name=path, issues=warnings))
        report.valid = not report.errors

        if report.valid:
            logger.debug("validated %d document(s): ok", report.checked)
        else:
            logger.info(
                "validation failed for %d of %d document(s)", len(report.errors), report.checked
            )
        return report

    @staticmethod
    def _to_issue(diag: CompileDiagnostic) -> ValidationIssue:
        hint = lookup(diag.code, diag.message)
        return ValidationIssue(
            type=diag.severity,
            code=diag.code,
            message=diag.message,
            root_cause=hint.root_cause,
            suggestion=hint.suggestion,
            location=diag.start,
            code_frame=diag.frame,
        )


def format_report(report: ValidationReport) -> str:
    """Render failing documents as markdown lines for error messages."""
    lines = [f"{len(report.errors)} document(s) failed local validation:"]
    for entry in report.errors:
        lines.append(f"\n## {entry.name}")
        for issue in entry.issues:
            if issue.type != "error":
                continue
            where = f" (line {issue.location.line}, column {issue.location.column})" if issue.location else ""
            lines.append(f"- `{issue.code}`{where}: {issue.message}")
            lines.append(f"  Root cause: {issue.root_cause}")
            lines.append(f"  Fix: {issue.suggestion}")
    return "\n".join(lines)
