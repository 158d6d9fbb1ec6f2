"""Error taxonomy for the prompt service integration.

Every failure that leaves this package is a :class:`LatitudeError`, so
callers branch on ``code`` / ``status`` instead of on transport exceptions.
"""

from __future__ import annotations

import json
from typing import Any


class LatitudeError(Exception):
    """Base error carrying a machine code, an HTTP-like status and optional details."""

    default_code = "LATITUDE_ERROR"
    default_status = 0

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
        details: dict[str, Any] | None = None,
        raw_response: str | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.status = self.default_status if status is None else status
        self.details = details
        self.raw_response = raw_response
        self.name = name or type(self).__name__

    def detailed_errors(self) -> list[str]:
        """Flatten nested per-document error structures in ``details`` into lines."""
        if not self.details:
            return []
        lines: list[str] = []
        details = self.details

        errors = details.get("errors")
        if isinstance(errors, list):
            for err in errors:
                if isinstance(err, str):
                    lines.append(err)
                elif isinstance(err, dict):
                    msg = err.get("message") or err.get("error") or err.get("detail") or json.dumps(err)
                    where = err.get("path") or err.get("document") or err.get("name") or ""
                    lines.append(f"{where}: {msg}" if where else str(msg))

        documents = details.get("documents")
        if isinstance(documents, dict):
            for doc_path, info in documents.items():
                if not isinstance(info, dict):
                    continue
                doc_errors = info.get("errors") or info.get("error")
                if not doc_errors:
                    continue
                if not isinstance(doc_errors, list):
                    doc_errors = [doc_errors]
                for e in doc_errors:
                    lines.append(f"{doc_path}: {e if isinstance(e, str) else json.dumps(e)}")

        validation_errors = details.get("validationErrors")
        if isinstance(validation_errors, dict):
            for field, field_errors in validation_errors.items():
                if not isinstance(field_errors, list):
                    field_errors = [field_errors]
                for fe in field_errors:
                    lines.append(f"{field}: {fe if isinstance(fe, str) else json.dumps(fe)}")

        cause = details.get("cause")
        if isinstance(cause, str):
            lines.append(cause)
        elif isinstance(cause, dict):
            lines.append(str(cause["message"]) if cause.get("message") else json.dumps(cause))

        return lines

    def concise_message(self) -> str:
        """One-line summary suitable for per-document error tracking."""
        detailed = self.detailed_errors()
        if detailed:
            return "; ".join(detailed)
        if self.details:
            return f"{self.message} | Details: {json.dumps(self.details)}"
        if self.raw_response:
            snippet = self.raw_response
            if len(snippet) > 200:
                snippet = snippet[:200] + "..."
            return f"{self.message} | Raw: {snippet}"
        return self.message

    def to_markdown(self) -> str:
        md = f"## Error: {self.name}\n\n"
        md += f"**Code:** `{self.code}`\n\n"
        md += f"**Message:** {self.message}\n"
        if self.status:
            md += f"\n**HTTP Status:** {self.status}\n"

        detailed = self.detailed_errors()
        if detailed:
            md += f"\n**Detailed Errors ({len(detailed)}):**\n"
            md += "".join(f"- {line}\n" for line in detailed)

        if self.details:
            md += f"\n**Details:**\n```json\n{json.dumps(self.details, indent=2, default=str)}\n```\n"
        if self.raw_response and self.raw_response != json.dumps(self.details):
            md += f"\n**Raw Response:**\n```\n{self.raw_response}\n```\n"
        return md

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "code": self.code,
            "message": self.message,
            "status": self.status,
            "details": self.details,
        }


class ConfigurationError(LatitudeError):
    """Missing credential or project identifier. Raised before any network call."""

    default_code = "CONFIGURATION_ERROR"


class LocalValidationError(LatitudeError):
    """One or more documents failed the local static check; nothing was pushed."""

    default_code = "LOCAL_VALIDATION_FAILED"
    default_status = 400


class NetworkError(LatitudeError):
    """Connection, DNS or transport failure. Carries no HTTP status."""

    default_code = "NETWORK_ERROR"


class RequestTimeoutError(LatitudeError):
    """The request exceeded the configured timeout ceiling."""

    default_code = "TIMEOUT"
    default_status = 408


class RemoteServiceError(LatitudeError):
    """Non-2xx response from the prompt service."""

    default_code = "REMOTE_ERROR"


class DocumentValidationError(LatitudeError):
    """Publish rejection attributed to specific documents after localization."""

    default_code = "DOCUMENT_VALIDATION_FAILED"
    default_status = 422


def error_from_response(status: int, body: str) -> RemoteServiceError:
    """Build a RemoteServiceError from a non-2xx response body.

    The body is parsed best-effort as JSON; every field other than the
    name/code/message triple is kept as ``details``.
    """
    try:
        parsed = json.loads(body) if body else None
    except ValueError:
        parsed = None

    if not isinstance(parsed, dict):
        return RemoteServiceError(
            body or f"HTTP {status}",
            code=f"HTTP_{status}",
            status=status,
            raw_response=body or None,
            name="HTTPError",
        )

    rest = {k: v for k, v in parsed.items() if k not in ("name", "errorCode", "code", "message")}
    return RemoteServiceError(
        parsed.get("message") or f"HTTP {status}",
        code=parsed.get("errorCode") or parsed.get("code") or f"HTTP_{status}",
        status=status,
        details=rest or None,
        raw_response=body,
        name=parsed.get("name") or "APIError",
    )
