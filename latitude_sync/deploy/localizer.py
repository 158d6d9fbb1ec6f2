"""Pinpoint which documents of a rejected batch the service refuses to publish."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Union

from latitude_sync.api.base import VersionService
from latitude_sync.api.errors import LatitudeError
from latitude_sync.deploy.models import FailedDocument, ProbeOutcome
from latitude_sync.diff.models import DocumentChange
from latitude_sync.validation.validator import PromptValidator

logger = logging.getLogger(__name__)

Probe = Callable[[list[DocumentChange]], Awaitable[Union[ProbeOutcome, bool]]]

INDIVIDUAL_PROBE_THRESHOLD = 5

_SERVER_ROOT_CAUSE = "The prompt service rejected this document during publish validation."
_SERVER_SUGGESTION = "Review the document content for syntax errors or invalid configuration."
_SERVER_SYNTAX_ROOT_CAUSE = (
    "The document has PromptL syntax or configuration errors that passed local "
    "validation but failed server-side validation."
)
_SERVER_SYNTAX_SUGGESTION = (
    "Check for: 1) Invalid model/provider combination, 2) Malformed schema definition, "
    "3) Invalid template syntax ({{ }})."
)


class RemoteProbe:
    """Trial-publishes a batch through a throwaway draft.

    Drafts created here are left behind in the project; their only purpose
    is to surface the service's validation error for the batch.
    """

    def __init__(self, service: VersionService) -> None:
        self.service = service

    @staticmethod
    def draft_name(batch: list[DocumentChange]) -> str:
        stamp = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"
        if len(batch) == 1:
            return f"val-{stamp}-{batch[0].path[:20]}"
        return f"batch-val-{stamp}"

    async def __call__(self, batch: list[DocumentChange]) -> ProbeOutcome:
        try:
            draft = await self.service.create_draft(self.draft_name(batch))
            pushed = await self.service.push(draft.uuid, batch)
            await self.service.publish(pushed.commit_ref or draft.uuid)
        except LatitudeError as e:
            logger.debug("probe of %d document(s) failed: %s", len(batch), e.message)
            return ProbeOutcome(ok=False, error=e)
        return ProbeOutcome(ok=True)


class FailureLocalizer:
    """Finds the documents responsible for a batch publish failure.

    Local checks run first and win outright when they find anything. Only a
    locally clean batch is probed remotely: one document at a time for small
    batches, otherwise by bisection with both halves probed concurrently.
    """

    def __init__(
        self,
        probe: Probe,
        validator: PromptValidator | None = None,
        individual_threshold: int = INDIVIDUAL_PROBE_THRESHOLD,
    ) -> None:
        self.probe = probe
        self.validator = validator or PromptValidator()
        self.individual_threshold = individual_threshold

    async def identify_failing_documents(
        self, changes: list[DocumentChange]
    ) -> list[FailedDocument]:
        """Return the failing documents among *changes*, in input order."""
        candidates = [c for c in changes if c.status not in ("deleted", "unchanged")]
        if not candidates:
            return []

        local = self.local_failures(candidates)
        if local:
            logger.info("Found %d document(s) with local validation errors", len(local))
            return local

        logger.info(
            "Local validation passed, probing %d document(s) against the service...",
            len(candidates),
        )
        if len(candidates) <= self.individual_threshold:
            return await self._probe_individually(candidates)
        return await self._bisect(candidates)

    def local_failures(self, changes: list[DocumentChange]) -> list[FailedDocument]:
        """Documents whose content fails the local static check (no network)."""
        failed: list[FailedDocument] = []
        for change in changes:
            if not change.content:
                continue
            errors = [
                i for i in self.validator.validate(change.content, change.path) if i.type == "error"
            ]
            if not errors:
                continue
            main = errors[0]
            failed.append(
                FailedDocument(
                    path=change.path,
                    error=main.message,
                    code=main.code,
                    root_cause=main.root_cause,
                    suggestion=main.suggestion,
                    location=main.location,
                    code_frame=main.code_frame,
                )
            )
        return failed

    async def _probe(self, batch: list[DocumentChange]) -> ProbeOutcome:
        outcome = await self.probe(batch)
        if isinstance(outcome, bool):
            return ProbeOutcome(ok=outcome)
        return outcome

    async def _probe_individually(self, changes: list[DocumentChange]) -> list[FailedDocument]:
        failed: list[FailedDocument] = []
        for change in changes:
            result = await self._probe_single(change)
            if result is not None:
                failed.append(result)
        return failed

    async def _probe_single(self, change: DocumentChange) -> FailedDocument | None:
        outcome = await self._probe([change])
        if outcome.ok:
            return None

        message = outcome.error.concise_message() if outcome.error else "Publish rejected"
        root_cause, suggestion = _SERVER_ROOT_CAUSE, _SERVER_SUGGESTION
        if "errors in the updated documents" in message:
            root_cause, suggestion = _SERVER_SYNTAX_ROOT_CAUSE, _SERVER_SYNTAX_SUGGESTION

        # Already passed the local check once; only warnings can add context here.
        if change.content:
            warnings = [
                i for i in self.validator.validate(change.content, change.path) if i.type == "warning"
            ]
            if warnings:
                notes = "\n".join(f"- {w.message}: {w.suggestion}" for w in warnings)
                suggestion += f"\n\nAdditional observations:\n{notes}"

        return FailedDocument(
            path=change.path,
            error=message,
            code="api-validation-error",
            root_cause=root_cause,
            suggestion=suggestion,
        )

    async def _bisect(self, changes: list[DocumentChange]) -> list[FailedDocument]:
        if len(changes) == 1:
            result = await self._probe_single(changes[0])
            return [result] if result is not None else []

        if (await self._probe(changes)).ok:
            return []

        mid = len(changes) // 2
        left, right = await asyncio.gather(
            self._bisect(changes[:mid]),
            self._bisect(changes[mid:]),
        )
        return [*left, *right]
