"""Abstract interface over the remote version store."""

from __future__ import annotations

from abc import ABC, abstractmethod

from latitude_sync.api.models import PushResult, Version
from latitude_sync.diff.models import Document, DocumentChange


class VersionService(ABC):
    """Stateless operations on a project's versions and documents.

    The deploy pipeline only depends on this interface, so tests can
    substitute an in-memory or mocked implementation for the HTTP client.
    """

    @abstractmethod
    async def create_draft(self, name: str) -> Version:
        """Create a new draft version."""
        ...

    @abstractmethod
    async def push(self, version_uuid: str, changes: list[DocumentChange]) -> PushResult:
        """Submit the whole change batch to a draft in a single call."""
        ...

    @abstractmethod
    async def publish(self, version_ref: str, title: str | None = None) -> Version:
        """Promote a draft to live."""
        ...

    @abstractmethod
    async def list_documents(self, version_ref: str = "live") -> list[Document]:
        """List the documents of a version."""
        ...

    @abstractmethod
    async def get_document(self, path: str, version_ref: str = "live") -> Document:
        """Fetch a single document by path."""
        ...
