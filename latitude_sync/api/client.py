"""Latitude prompt service client over httpx."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, TypeVar
from urllib.parse import quote, urlparse

import httpx
from pydantic import BaseModel, ValidationError

from latitude_sync.api.base import VersionService
from latitude_sync.api.errors import (
    ConfigurationError,
    NetworkError,
    RemoteServiceError,
    RequestTimeoutError,
    error_from_response,
)
from latitude_sync.api.models import PushResult, RunResult, Version
from latitude_sync.diff.models import Document, DocumentChange

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://gateway.latitude.so"
API_VERSION = "v3"
API_TIMEOUT = 60.0

# Provenance tag the service expects on every mutating request.
_INTERNAL_SOURCE = {"source": "api"}

_M = TypeVar("_M", bound=BaseModel)


def _validate_base_url(url: str) -> str:
    """Reject non-http(s) URLs and header injection attempts."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise ConfigurationError(f"base_url must be http(s), got {parsed.scheme!r}")
    if "\r" in url or "\n" in url:
        raise ConfigurationError("CRLF injection detected in base_url")
    return url.rstrip("/")


def _parse(model: type[_M], data: Any) -> _M:
    """Validate a response payload as *model*; mismatches raise INVALID_RESPONSE."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise RemoteServiceError(
            f"Unexpected {model.__name__} payload: {e.error_count()} invalid field(s)",
            code="INVALID_RESPONSE",
            raw_response=repr(data),
        ) from e


def _parse_list(model: type[_M], data: Any) -> list[_M]:
    if not isinstance(data, list):
        raise RemoteServiceError(
            f"Expected a list of {model.__name__} objects, got {type(data).__name__}",
            code="INVALID_RESPONSE",
            raw_response=repr(data),
        )
    return [_parse(model, item) for item in data]


class LatitudeClient(VersionService):
    """Stateless client for one project of the prompt service.

    A fresh ``httpx.AsyncClient`` is opened per request. Transport failures,
    timeouts and non-2xx responses all surface as ``LatitudeError``
    subclasses.
    """

    def __init__(
        self,
        api_key: str | None,
        project_id: str | None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = API_VERSION,
        timeout: float = API_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self.project_id = project_id
        self._base_url = _validate_base_url(base_url)
        self._api_version = api_version
        self.timeout = timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _check_credentials(self) -> None:
        if not self._api_key:
            raise ConfigurationError(
                "LATITUDE_API_KEY is required. Set it in your environment: "
                "export LATITUDE_API_KEY=your-api-key"
            )
        if not self.project_id:
            raise ConfigurationError(
                "LATITUDE_PROJECT_ID is required. Set it in your environment: "
                "export LATITUDE_PROJECT_ID=your-project-id"
            )

    def _project_url(self, endpoint: str) -> str:
        return f"{self._base_url}/api/{self._api_version}/projects/{self.project_id}{endpoint}"

    async def _send(
        self,
        method: str,
        url: str,
        body: dict[str, Any] | None,
        headers: dict[str, str],
        timeout: float,
    ) -> httpx.Response:
        async with httpx.AsyncClient(transport=self._transport, timeout=timeout) as client:
            return await client.request(method, url, json=body, headers=headers)

    async def _request(
        self,
        method: str,
        endpoint: str,
        body: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        self._check_credentials()
        url = self._project_url(endpoint)
        timeout = timeout or self.timeout
        if method == "POST":
            body = {**(body or {}), "__internal": _INTERNAL_SOURCE}

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }
        logger.debug("API %s %s", method, endpoint)

        try:
            resp = await asyncio.wait_for(self._send(method, url, body, headers, timeout), timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise RequestTimeoutError(f"Request timed out after {timeout:g}s") from e
        except httpx.TransportError as e:
            raise NetworkError(str(e) or "Network error") from e

        if resp.is_error:
            logger.debug("API error response: %s", resp.text)
            raise error_from_response(resp.status_code, resp.text)

        if resp.status_code == 204 or not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise RemoteServiceError(
                "Response body is not valid JSON",
                code="INVALID_RESPONSE",
                status=resp.status_code,
                raw_response=resp.text,
            ) from e

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    async def list_versions(self) -> list[Version]:
        data = await self._request("GET", "/versions")
        return _parse_list(Version, data)

    async def get_version(self, version_uuid: str) -> Version:
        data = await self._request("GET", f"/versions/{version_uuid}")
        return _parse(Version, data)

    async def create_draft(self, name: str) -> Version:
        data = await self._request("POST", "/versions", {"name": name})
        return _parse(Version, data)

    async def push(self, version_uuid: str, changes: list[DocumentChange]) -> PushResult:
        wire = [c.to_wire() for c in changes if c.status != "unchanged"]
        logger.info("Pushing %d change(s) to version %s", len(wire), version_uuid)
        data = await self._request("POST", f"/versions/{version_uuid}/push", {"changes": wire})
        return _parse(PushResult, data)

    async def publish(self, version_ref: str, title: str | None = None) -> Version:
        logger.debug("Publishing version %s with title: %s", version_ref, title or "(none)")
        body = {"title": title} if title else {}
        data = await self._request("POST", f"/versions/{version_ref}/publish", body)
        return _parse(Version, data)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def list_documents(self, version_ref: str = "live") -> list[Document]:
        try:
            data = await self._request("GET", f"/versions/{version_ref}/documents")
        except RemoteServiceError as e:
            if e.status == 404 and version_ref == "live":
                logger.info("Project %s has no live version yet", self.project_id)
                return []
            raise
        return _parse_list(Document, data)

    async def get_document(self, path: str, version_ref: str = "live") -> Document:
        encoded = quote(path.lstrip("/"), safe="/")
        data = await self._request("GET", f"/versions/{version_ref}/documents/{encoded}")
        return _parse(Document, data)

    async def run_document(
        self,
        path: str,
        parameters: dict[str, Any] | None = None,
        version_ref: str = "live",
    ) -> RunResult:
        body = {"path": path, "parameters": parameters or {}, "stream": False}
        data = await self._request("POST", f"/versions/{version_ref}/documents/run", body)
        return _parse(RunResult, data)
