"""Configuration loading for latitude-sync.

Settings come from the first non-empty YAML file among the ``--config``
path, ``./latitude-sync.yaml`` and ``~/.latitude-sync/config.yaml``.
``${VAR}`` references in that file are expanded, then ``LATITUDE_SYNC_*``
environment overrides are applied on top. Credentials and the base URL are
resolved later, by ``create_client``, from the env var names configured
under ``latitude``.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import AppConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "latitude-sync.yaml"

# env var -> dotted config key
ENV_OVERRIDES = {
    "LATITUDE_SYNC_LOG_LEVEL": "log_level",
    "LATITUDE_SYNC_PROMPTS_DIR": "deploy.prompts_dir",
    "LATITUDE_SYNC_DRAFT_PREFIX": "deploy.draft_prefix",
    "LATITUDE_SYNC_TIMEOUT": "latitude.timeout",
}

_ENV_REF = re.compile(r"\$\{(\w+)\}")


def candidate_paths(cli_path: str | None = None) -> list[Path]:
    """Config files in lookup order."""
    paths = [Path(CONFIG_FILENAME), Path.home() / ".latitude-sync" / "config.yaml"]
    if cli_path:
        paths.insert(0, Path(cli_path))
    return paths


def load_config(cli_path: str | None = None) -> AppConfig:
    """Build the effective config; raises ValueError on unreadable or invalid settings."""
    if cli_path and not Path(cli_path).is_file():
        raise ValueError(f"Config file not found: {cli_path}")

    raw: dict[str, Any] = {}
    source: Path | None = None
    for path in candidate_paths(cli_path):
        data = _read_yaml(path)
        if data:
            raw, source = data, path
            break

    raw = _apply_env_overrides(_expand_env_vars(raw))
    try:
        cfg = AppConfig(**raw)
    except ValidationError as e:
        raise ValueError(f"Invalid config in {source or 'environment'}: {e}") from e

    logger.debug("config loaded from %s", source or "defaults")
    return cfg


def _read_yaml(path: Path) -> dict[str, Any] | None:
    if not path.is_file():
        return None
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValueError(f"Invalid config in {path}: top level must be a mapping")
    return data


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand ${VAR} references in strings; unset vars become empty."""
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), ""), obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    merged = dict(raw)
    for var, dotted in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if not value:
            continue
        *parents, leaf = dotted.split(".")
        node = merged
        for key in parents:
            node[key] = dict(node.get(key) or {})
            node = node[key]
        node[leaf] = value
        logger.debug("%s overrides %s", var, dotted)
    return merged


# Written by `latitude-sync config init`
DEFAULT_CONFIG_TEMPLATE = """\
# latitude-sync.yaml
#
# Any value may reference the environment as ${VAR}. These variables
# override the file: LATITUDE_SYNC_LOG_LEVEL, LATITUDE_SYNC_PROMPTS_DIR,
# LATITUDE_SYNC_DRAFT_PREFIX, LATITUDE_SYNC_TIMEOUT.

# Remote prompt service
latitude:
  base_url: "https://gateway.latitude.so"
  base_url_env: "LATITUDE_BASE_URL"    # when set, overrides base_url
  api_version: "v3"
  api_key_env: "LATITUDE_API_KEY"
  # project_id: "12345"                # overrides $LATITUDE_PROJECT_ID
  project_id_env: "LATITUDE_PROJECT_ID"
  timeout: 60                          # seconds, whole request

# Deploy pipeline
deploy:
  draft_prefix: "deploy"
  individual_probe_threshold: 5  # batches this small are probed one document at a time
  prompts_dir: "prompts"
  extensions: [".promptl", ".md", ".txt"]

# Local PromptL checks
validation:
  require_config: false

# Logging
log_level: "info"              # debug | info | warn | error
"""
