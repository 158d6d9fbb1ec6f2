"""Shared test fixtures for latitude-sync."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from latitude_sync.api.base import VersionService
from latitude_sync.api.models import PushResult, Version
from latitude_sync.config.models import AppConfig
from latitude_sync.diff.hashing import compute_hash
from latitude_sync.diff.models import Document


VALID_PROMPT = """---
provider: openai
model: gpt-4o-mini
---

<system>You are a helpful support agent.</system>
<user>{{ question }}</user>
"""

BROKEN_PROMPT = """---
model: gpt-4o-mini
---

<user>
  {{ 1 + }}
</user>
"""


@pytest.fixture
def sample_config():
    return AppConfig()


@pytest.fixture
def live_documents():
    """Three prompts as the service reports them for the live version."""
    return [
        Document(path="greeting", content="Hello {{ name }}", content_hash=compute_hash("Hello {{ name }}")),
        Document(path="support/triage", content=VALID_PROMPT, content_hash=compute_hash(VALID_PROMPT)),
        Document(path="legacy", content="old prompt", content_hash=compute_hash("old prompt")),
    ]


@pytest.fixture
def draft_version():
    return Version(uuid="draft-1", id=11, title="deploy test", status="draft")


@pytest.fixture
def published_version():
    return Version(uuid="draft-1", id=11, title="deploy test", status="live", mergedAt="2026-01-01T00:00:00Z")


@pytest.fixture
def mock_service(live_documents, draft_version, published_version):
    service = MagicMock(spec=VersionService)
    service.list_documents = AsyncMock(return_value=live_documents)
    service.get_document = AsyncMock(return_value=live_documents[0])
    service.create_draft = AsyncMock(return_value=draft_version)
    service.push = AsyncMock(return_value=PushResult(commitRef="draft-1", documentsProcessed=2))
    service.publish = AsyncMock(return_value=published_version)
    return service


@pytest.fixture
def prompts_dir(tmp_path):
    """A prompt directory with one nested prompt and one non-prompt file."""
    root = tmp_path / "prompts"
    (root / "support").mkdir(parents=True)
    (root / "greeting.promptl").write_text("Hello {{ name }}")
    (root / "support" / "triage.promptl").write_text(VALID_PROMPT)
    (root / "notes.json").write_text("{}")
    return root


@pytest.fixture
def valid_prompt():
    return VALID_PROMPT


@pytest.fixture
def broken_prompt():
    return BROKEN_PROMPT
