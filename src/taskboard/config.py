"""Load client configuration from ``~/.taskboard/config.yaml`` and the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from .constants import (
    CONFIG_DIR_NAME,
    CONFIG_FILE,
    DEFAULT_API_URL,
    DEFAULT_LOG_LEVEL,
    DEFAULT_TIMEOUT_SECONDS,
    ENV_API_URL,
    ENV_LOG_LEVEL,
    ENV_TIMEOUT,
)


@dataclass
class ClientConfig:
    """Settings for the remote service connection and logging."""

    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        self.api_url = self.api_url.rstrip("/")


def default_config_path() -> Path:
    return Path.home() / CONFIG_DIR_NAME / CONFIG_FILE


def _load_yaml(path: Path) -> tuple[dict[str, Any], Optional[str]]:
    if not path.exists():
        return {}, None
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        return {}, f"Unable to read {path}: {exc}"
    if data is None:
        return {}, None
    if not isinstance(data, dict):
        return {}, f"{path} must contain a mapping"
    return data, None


def _coerce_timeout(raw: Any, default: float) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def load_client_config(path: Optional[Path] = None) -> tuple[ClientConfig, Optional[str]]:
    """Build a :class:`ClientConfig` from the optional YAML file and env vars.

    Environment variables take precedence over the file.

    Args:
        path: Config file location; defaults to ``~/.taskboard/config.yaml``.

    Returns:
        A tuple of ``(config, error_message)``.  A missing file is not an
        error; an unreadable one yields defaults plus the error message.
    """
    path = path or default_config_path()
    data, err = _load_yaml(path)

    api_url = str(data.get("api_url") or DEFAULT_API_URL)
    timeout = _coerce_timeout(data.get("timeout"), DEFAULT_TIMEOUT_SECONDS)
    log_level = str(data.get("log_level") or DEFAULT_LOG_LEVEL)

    env_url = os.getenv(ENV_API_URL, "").strip()
    if env_url:
        api_url = env_url
    env_timeout = os.getenv(ENV_TIMEOUT, "").strip()
    if env_timeout:
        timeout = _coerce_timeout(env_timeout, timeout)
    env_level = os.getenv(ENV_LOG_LEVEL, "").strip()
    if env_level:
        log_level = env_level

    return ClientConfig(api_url=api_url, timeout=timeout, log_level=log_level.upper()), err
