"""Prompt service client and error taxonomy."""

import os

import httpx

from latitude_sync.api.base import VersionService
from latitude_sync.api.client import LatitudeClient
from latitude_sync.api.errors import (
    ConfigurationError,
    DocumentValidationError,
    LatitudeError,
    LocalValidationError,
    NetworkError,
    RemoteServiceError,
    RequestTimeoutError,
)
from latitude_sync.api.models import PushResult, RunResult, Version
from latitude_sync.config.models import LatitudeConfig


def create_client(
    config: LatitudeConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> LatitudeClient:
    """Create a client from app-level config.

    Resolves the API key from the env var named in config.api_key_env, the
    project id from config.project_id or config.project_id_env, and the base
    URL from config.base_url_env when set, else config.base_url.
    Raises ConfigurationError if either is missing.
    """
    api_key = os.environ.get(config.api_key_env)
    if not api_key:
        raise ConfigurationError(
            f"Missing API key: set environment variable {config.api_key_env!r}"
        )
    project_id = config.project_id or os.environ.get(config.project_id_env)
    if not project_id:
        raise ConfigurationError(
            f"Missing project id: set latitude.project_id or {config.project_id_env!r}"
        )
    return LatitudeClient(
        api_key,
        project_id,
        base_url=os.environ.get(config.base_url_env) or config.base_url,
        api_version=config.api_version,
        timeout=config.timeout,
        transport=transport,
    )


__all__ = [
    "ConfigurationError",
    "DocumentValidationError",
    "LatitudeClient",
    "LatitudeError",
    "LocalValidationError",
    "NetworkError",
    "PushResult",
    "RemoteServiceError",
    "RequestTimeoutError",
    "RunResult",
    "Version",
    "VersionService",
    "create_client",
]
