"""Tests for latitude_sync.deploy.localizer: local pass, linear probing and bisection."""

import random
import re

import pytest
from unittest.mock import AsyncMock

from latitude_sync.api.errors import RemoteServiceError
from latitude_sync.api.models import PushResult
from latitude_sync.deploy.localizer import FailureLocalizer, RemoteProbe
from latitude_sync.deploy.models import ProbeOutcome
from latitude_sync.diff.models import DocumentChange
from latitude_sync.validation import PromptChecker, PromptValidator


class PoisonProbe:
    """Rejects any batch that contains a poisoned path; records every batch probed."""

    def __init__(self, poisoned=(), error=None):
        self.poisoned = set(poisoned)
        self.error = error
        self.batches: list[list[str]] = []

    async def __call__(self, batch):
        paths = [c.path for c in batch]
        self.batches.append(paths)
        if self.poisoned.intersection(paths):
            if self.error is None:
                return False
            return ProbeOutcome(ok=False, error=self.error)
        return True


def _changes(n, status="added"):
    return [DocumentChange(path=f"doc-{i}", content=f"Prompt number {i}", status=status) for i in range(n)]


class CleanChecker(PromptChecker):
    def scan(self, content, path):
        return []


def _localizer(probe, **kwargs):
    return FailureLocalizer(probe, PromptValidator(CleanChecker()), **kwargs)


# ── Correctness over many batch shapes ──────────────────────────────


class TestLocalizationProperty:
    @pytest.mark.asyncio
    async def test_finds_exactly_the_poisoned_documents(self):
        rng = random.Random(1234)
        for n in range(1, 17):
            changes = _changes(n)
            paths = [c.path for c in changes]
            poison_sets = [set(), set(paths)]
            for _ in range(6):
                k = rng.randint(1, n)
                poison_sets.append(set(rng.sample(paths, k)))

            for poisoned in poison_sets:
                localizer = _localizer(PoisonProbe(poisoned))
                failed = await localizer.identify_failing_documents(changes)
                assert [f.path for f in failed] == [p for p in paths if p in poisoned], (n, poisoned)

    @pytest.mark.asyncio
    async def test_result_in_input_order(self):
        changes = _changes(12)
        probe = PoisonProbe({"doc-11", "doc-0", "doc-6"})
        failed = await _localizer(probe).identify_failing_documents(changes)
        assert [f.path for f in failed] == ["doc-0", "doc-6", "doc-11"]


# ── Strategy selection ──────────────────────────────────────────────


class TestStrategy:
    @pytest.mark.asyncio
    async def test_small_batch_probed_one_by_one(self):
        probe = PoisonProbe({"doc-2"})
        failed = await _localizer(probe).identify_failing_documents(_changes(5))
        assert probe.batches == [["doc-0"], ["doc-1"], ["doc-2"], ["doc-3"], ["doc-4"]]
        assert [f.path for f in failed] == ["doc-2"]

    @pytest.mark.asyncio
    async def test_large_batch_bisected(self):
        probe = PoisonProbe({"doc-13"})
        failed = await _localizer(probe).identify_failing_documents(_changes(16))
        assert [f.path for f in failed] == ["doc-13"]
        # whole batch, then one pair of halves per level down to single documents
        assert len(probe.batches) == 9
        assert probe.batches[0] == [f"doc-{i}" for i in range(16)]
        assert ["doc-13"] in probe.batches

    @pytest.mark.asyncio
    async def test_bisect_skips_clean_halves(self):
        probe = PoisonProbe()
        failed = await _localizer(probe).identify_failing_documents(_changes(10))
        assert failed == []
        assert len(probe.batches) == 1

    @pytest.mark.asyncio
    async def test_threshold_configurable(self):
        probe = PoisonProbe({"doc-1"})
        localizer = _localizer(probe, individual_threshold=1)
        await localizer.identify_failing_documents(_changes(3))
        assert probe.batches[0] == ["doc-0", "doc-1", "doc-2"]


# ── Local pass and filtering ────────────────────────────────────────


class TestLocalPass:
    @pytest.mark.asyncio
    async def test_local_errors_win(self, broken_prompt):
        probe = AsyncMock(return_value=True)
        changes = _changes(3) + [DocumentChange(path="bad", content=broken_prompt, status="modified")]
        failed = await FailureLocalizer(probe).identify_failing_documents(changes)
        assert [f.path for f in failed] == ["bad"]
        assert failed[0].code == "parse-error"
        probe.assert_not_called()

    @pytest.mark.asyncio
    async def test_deletions_never_probed(self):
        probe = AsyncMock(return_value=False)
        failed = await FailureLocalizer(probe).identify_failing_documents(_changes(4, status="deleted"))
        assert failed == []
        probe.assert_not_called()

    @pytest.mark.asyncio
    async def test_deletions_filtered_from_mixed_batch(self):
        probe = PoisonProbe({"doc-0"})
        changes = _changes(2) + [DocumentChange(path="gone", status="deleted")]
        failed = await FailureLocalizer(probe).identify_failing_documents(changes)
        assert [f.path for f in failed] == ["doc-0"]
        assert ["gone"] not in probe.batches

    @pytest.mark.asyncio
    async def test_empty_input(self):
        probe = AsyncMock()
        assert await FailureLocalizer(probe).identify_failing_documents([]) == []
        probe.assert_not_called()

    def test_local_failures_skip_empty_content(self):
        localizer = FailureLocalizer(AsyncMock())
        assert localizer.local_failures([DocumentChange(path="x", content="")]) == []


# ── Probe diagnostics ───────────────────────────────────────────────


class TestProbeDiagnostics:
    @pytest.mark.asyncio
    async def test_generic_server_rejection(self):
        err = RemoteServiceError("Invalid model", status=422)
        failed = await FailureLocalizer(PoisonProbe({"doc-0"}, err)).identify_failing_documents(_changes(1))
        assert failed[0].code == "api-validation-error"
        assert failed[0].error == "Invalid model"
        assert "rejected this document" in failed[0].root_cause

    @pytest.mark.asyncio
    async def test_document_errors_root_cause(self):
        err = RemoteServiceError("There are errors in the updated documents", status=422)
        failed = await FailureLocalizer(PoisonProbe({"doc-0"}, err)).identify_failing_documents(_changes(1))
        assert "server-side validation" in failed[0].root_cause
        assert "Invalid model/provider combination" in failed[0].suggestion

    @pytest.mark.asyncio
    async def test_bool_probe_message(self):
        failed = await FailureLocalizer(PoisonProbe({"doc-0"})).identify_failing_documents(_changes(1))
        assert failed[0].error == "Publish rejected"

    @pytest.mark.asyncio
    async def test_warnings_added_as_observations(self):
        change = DocumentChange(path="w", content="---\nprovider: x\n---\nHi", status="added")
        failed = await FailureLocalizer(PoisonProbe({"w"})).identify_failing_documents([change])
        assert "Additional observations:" in failed[0].suggestion
        assert "Configuration does not declare a model" in failed[0].suggestion


# ── RemoteProbe ─────────────────────────────────────────────────────


class TestRemoteProbe:
    def test_single_document_draft_name(self):
        change = DocumentChange(path="support/very-long-prompt-name", content="x")
        name = RemoteProbe.draft_name([change])
        assert re.fullmatch(r"val-\d+-[0-9a-f]{6}-support/very-long-pr", name)

    def test_batch_draft_name(self):
        assert re.fullmatch(r"batch-val-\d+-[0-9a-f]{6}", RemoteProbe.draft_name(_changes(2)))

    @pytest.mark.asyncio
    async def test_successful_probe(self, mock_service):
        batch = _changes(2)
        outcome = await RemoteProbe(mock_service)(batch)
        assert outcome == ProbeOutcome(ok=True)
        mock_service.push.assert_awaited_once_with("draft-1", batch)
        mock_service.publish.assert_awaited_once_with("draft-1")

    @pytest.mark.asyncio
    async def test_rejected_probe(self, mock_service):
        err = RemoteServiceError("bad", status=422)
        mock_service.publish.side_effect = err
        outcome = await RemoteProbe(mock_service)(_changes(1))
        assert outcome.ok is False
        assert outcome.error is err

    @pytest.mark.asyncio
    async def test_draft_creation_failure_counts_as_rejection(self, mock_service):
        mock_service.create_draft.side_effect = RemoteServiceError("quota", status=429)
        outcome = await RemoteProbe(mock_service)(_changes(1))
        assert outcome.ok is False
        mock_service.push.assert_not_called()

    @pytest.mark.asyncio
    async def test_publishes_pushed_commit_ref(self, mock_service):
        mock_service.push.return_value = PushResult(commitRef="commit-9", documentsProcessed=1)
        outcome = await RemoteProbe(mock_service)(_changes(1))
        assert outcome.ok is True
        mock_service.publish.assert_awaited_once_with("commit-9")

    @pytest.mark.asyncio
    async def test_publish_falls_back_to_draft_uuid(self, mock_service):
        mock_service.push.return_value = PushResult()
        await RemoteProbe(mock_service)(_changes(1))
        mock_service.publish.assert_awaited_once_with("draft-1")
