"""Pydantic models for prompt service payloads."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Version(BaseModel):
    """A draft or published snapshot of a project's documents."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    uuid: str
    id: int = 0
    title: str | None = None
    message: str | None = None
    description: str | None = None
    status: str | None = None
    project_id: int | None = Field(default=None, alias="projectId")
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")
    merged_at: str | None = Field(default=None, alias="mergedAt")

    @property
    def is_draft(self) -> bool:
        return self.merged_at is None and self.status not in ("live", "merged")

    @classmethod
    def live_placeholder(cls, message: str = "No changes to deploy") -> Version:
        """Synthetic version returned when a deploy has nothing to do."""
        now = datetime.now(timezone.utc).isoformat()
        return cls(
            uuid="live",
            id=0,
            project_id=0,
            message=message,
            status="live",
            created_at=now,
            updated_at=now,
        )


class PushResult(BaseModel):
    """Response of a batch push to a draft."""

    model_config = ConfigDict(extra="ignore")

    commit_ref: str | None = Field(
        default=None,
        validation_alias=AliasChoices("commitRef", "commit_ref", "versionUuid"),
    )
    documents_processed: int | None = Field(
        default=None,
        validation_alias=AliasChoices("documentsProcessed", "documents_processed"),
    )


class RunResult(BaseModel):
    """Result of executing a prompt."""

    model_config = ConfigDict(extra="allow")

    uuid: str | None = None
    response: dict[str, Any] | None = None

    @property
    def text(self) -> str | None:
        if not self.response:
            return None
        return self.response.get("text")
