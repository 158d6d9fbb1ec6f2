"""Draft -> push -> publish deploy pipeline."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Literal

from latitude_sync.api.base import VersionService
from latitude_sync.api.errors import DocumentValidationError, LatitudeError, LocalValidationError
from latitude_sync.deploy.localizer import INDIVIDUAL_PROBE_THRESHOLD, FailureLocalizer, RemoteProbe
from latitude_sync.deploy.models import DeployPlan, DeployResult, FailedDocument
from latitude_sync.diff.differ import DocumentDiffer, IncomingDocument, summarize
from latitude_sync.diff.models import DocumentChange
from latitude_sync.validation.validator import PromptValidator, format_report

logger = logging.getLogger(__name__)

DeployMode = Literal["push", "append"]


def build_failure_error(failed: list[FailedDocument]) -> DocumentValidationError:
    """Aggregate per-document diagnostics into one actionable error."""
    lines: list[str] = []
    for doc in failed:
        lines.append(f"\n## {doc.path}")
        lines.append(f"**Error Code:** `{doc.code}`")
        lines.append(f"**Error:** {doc.error}")
        lines.append(f"**Root Cause:** {doc.root_cause}")
        if doc.location:
            lines.append(f"**Location:** Line {doc.location.line}, Column {doc.location.column}")
        if doc.code_frame:
            lines.append(f"**Code Context:**\n```\n{doc.code_frame}\n```")
        lines.append(f"**Fix:** {doc.suggestion}")

    message = f"{len(failed)} document(s) failed validation:" + "\n".join(lines)
    return DocumentValidationError(
        message,
        details={
            "failedDocuments": [d.model_dump(mode="json") for d in failed],
            "totalFailed": len(failed),
            "failedPaths": [d.path for d in failed],
        },
        name="DocumentValidationError",
    )


class DeployOrchestrator:
    """Validates, diffs and promotes prompt documents to the live version.

    Stateless apart from its collaborators; every call takes explicit inputs
    and returns an explicit result.
    """

    def __init__(
        self,
        service: VersionService,
        validator: PromptValidator | None = None,
        localizer: FailureLocalizer | None = None,
        *,
        draft_prefix: str = "deploy",
        individual_threshold: int = INDIVIDUAL_PROBE_THRESHOLD,
    ) -> None:
        self.service = service
        self.validator = validator or PromptValidator()
        self.localizer = localizer or FailureLocalizer(
            RemoteProbe(service), self.validator, individual_threshold
        )
        self.draft_prefix = draft_prefix

    # ------------------------------------------------------------------
    # Full pipeline
    # ------------------------------------------------------------------

    async def plan(
        self,
        incoming: Iterable[IncomingDocument],
        *,
        mode: DeployMode = "push",
        overwrite: bool = False,
        allow_empty: bool = False,
    ) -> DeployPlan:
        """Validate *incoming* and diff it against live without mutating anything.

        Raises LocalValidationError before any network call if any document
        has a static error, or if *incoming* is empty and *allow_empty* is
        not set (an empty push would delete every live prompt).
        """
        docs = list(incoming)
        if not docs and not allow_empty:
            raise LocalValidationError(
                "No prompts provided. Pass at least one prompt; an empty deploy "
                "is only accepted with allow_empty.",
                code="NO_PROMPTS",
            )
        report = self.validator.validate_all(docs)
        if not report.valid:
            raise LocalValidationError(
                format_report(report),
                details={
                    "failedPaths": report.failed_paths,
                    "errors": [e.model_dump(mode="json") for e in report.errors],
                },
            )

        existing = await self.service.list_documents("live")
        skipped: list[str] = []
        if mode == "append":
            append_plan = DocumentDiffer.append(docs, existing, overwrite=overwrite)
            changes, skipped = append_plan.changes, append_plan.skipped
        else:
            changes = DocumentDiffer.diff(docs, existing)

        return DeployPlan(
            changes=changes, summary=summarize(changes), skipped=skipped, report=report
        )

    async def deploy(
        self,
        incoming: Iterable[IncomingDocument],
        name: str | None = None,
        *,
        mode: DeployMode = "push",
        overwrite: bool = False,
        allow_empty: bool = False,
    ) -> DeployResult:
        """Validate, diff against live, then deploy the resulting changes.

        ``mode="push"`` makes live match *incoming* exactly (deleting prompts
        that are not in it); ``mode="append"`` only adds, and updates
        existing prompts when *overwrite* is set.
        """
        plan = await self.plan(incoming, mode=mode, overwrite=overwrite, allow_empty=allow_empty)
        result = await self.deploy_to_live(plan.changes, name)
        if plan.skipped:
            result = result.model_copy(update={"skipped": plan.skipped})
        return result

    # ------------------------------------------------------------------
    # Deploy
    # ------------------------------------------------------------------

    async def deploy_to_live(
        self, changes: list[DocumentChange], name: str | None = None
    ) -> DeployResult:
        """Create a draft, push *changes* in one batch, and publish it.

        On publish failure the offending documents are localized and a
        DocumentValidationError describing them replaces the original
        error; if none can be identified the original error is re-raised.
        """
        actual = [c for c in changes if c.status != "unchanged"]
        if not actual:
            logger.info("No changes to deploy")
            return DeployResult.no_op()

        summary = summarize(actual)
        logger.info(
            "Deploying to LIVE: %d added, %d modified, %d deleted",
            len(summary.added),
            len(summary.modified),
            len(summary.deleted),
        )

        draft_name = name or f"{self.draft_prefix} {datetime.now(timezone.utc).isoformat()}"
        logger.info("Creating draft version: %s", draft_name)
        draft = await self.service.create_draft(draft_name)

        push_result = await self.service.push(draft.uuid, actual)
        processed = push_result.documents_processed
        if processed is None:
            processed = len(actual)
        logger.info("Push complete: %d document(s) processed", processed)

        version_ref = push_result.commit_ref or draft.uuid
        try:
            published = await self.service.publish(version_ref, title=draft_name)
        except LatitudeError as publish_error:
            logger.warning("Batch publish failed, identifying problematic documents...")
            failed = await self.localizer.identify_failing_documents(actual)
            if failed:
                raise build_failure_error(failed) from publish_error
            raise

        logger.info("Published successfully, version is now LIVE: %s", published.uuid)
        return DeployResult(
            version=published,
            documents_processed=processed,
            added=summary.added,
            modified=summary.modified,
            deleted=summary.deleted,
        )
