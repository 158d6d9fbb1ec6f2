"""Document and change models shared by the differ and the API client."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from latitude_sync.diff.hashing import compute_hash

ChangeStatus = Literal["added", "modified", "deleted", "unchanged"]


class Document(BaseModel):
    """A named unit of prompt content living in a version."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    path: str
    content: str = ""
    content_hash: str | None = Field(default=None, alias="contentHash")
    uuid: str | None = None
    version_uuid: str | None = Field(default=None, alias="versionUuid")

    @property
    def hash(self) -> str:
        """Stored content hash, or one computed from the content."""
        return self.content_hash or compute_hash(self.content)


class DocumentChange(BaseModel):
    """A pending mutation to apply to a draft version."""

    model_config = ConfigDict(populate_by_name=True)

    path: str
    content: str = ""
    status: ChangeStatus = "modified"
    content_hash: str | None = Field(default=None, alias="contentHash")

    def to_wire(self) -> dict:
        return {
            "path": self.path,
            "content": self.content,
            "status": self.status,
            "contentHash": self.content_hash or compute_hash(self.content),
        }


class ChangeSummary(BaseModel):
    """Paths grouped by change status."""

    added: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.added) + len(self.modified) + len(self.deleted)


class AppendPlan(BaseModel):
    """Changes for an additive deploy, plus the paths it left alone."""

    changes: list[DocumentChange] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
