"""
Request Context and Configuration State for Logging.

The request id lives in a ContextVar so every line logged while a render
request is in flight carries the same id, whether the handler runs in the
event loop or in FastAPI's thread pool.

Environment Variables:
    - SPOT_MS_LOG_LEVEL: Override log level (1-4 or name)
    - SPOT_MS_LOG_DIR: Enable JSONL file logging into this directory
    - SPOT_MS_JSONL_FILE: JSONL filename (default spot-ms.jsonl)
    - SPOT_MS_LOG_ROTATE_BYTES: Max log file size
    - SPOT_MS_LOG_ROTATE_BACKUP: Number of backup files
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from typing import Any, Dict

import yaml

from .levels import LEVEL_NAMES, LogLevel

_request_id: ContextVar[str] = ContextVar("request_id", default="-")

_configured: bool = False
_log_config: Dict[str, Any] = {}
_current_level: LogLevel = LogLevel.NORMAL


def get_request_id() -> str:
    """Request id for the current context, or "-" outside a request."""
    return _request_id.get()


def set_request_id(rid: str) -> None:
    """Bind a request id to the current context."""
    _request_id.set(rid)


def get_level() -> LogLevel:
    return _current_level


def set_level(level: LogLevel) -> None:
    global _current_level
    _current_level = level


def get_level_name() -> str:
    return LEVEL_NAMES.get(int(_current_level), "NORMAL")


def is_configured() -> bool:
    return _configured


def set_configured(value: bool) -> None:
    global _configured
    _configured = value


def get_log_config() -> Dict[str, Any]:
    return _log_config


def set_log_config(config: Dict[str, Any]) -> None:
    global _log_config
    _log_config = config


def _int_env(cfg: Dict[str, Any], env_name: str, key: str) -> None:
    value = os.getenv(env_name)
    if not value:
        return
    try:
        cfg[key] = int(value)
    except ValueError:
        pass  # keep the settings-file value


def read_logging_config() -> Dict[str, Any]:
    """
    Read logging configuration from the settings file and environment.

    Priority (highest first): environment variables, the ``logging``
    section of the settings file (SPOT_MS_SETTINGS, default
    config/settings.yaml), defaults.
    """
    from spot_ms.core.config import load_settings

    cfg: Dict[str, Any] = {}
    try:
        settings = load_settings(os.getenv("SPOT_MS_SETTINGS", "config/settings.yaml"), quiet=True)
        cfg.update(settings.raw.get("logging", {}) or {})
    except (OSError, yaml.YAMLError):
        pass  # unreadable settings file: environment and defaults still apply

    if os.getenv("SPOT_MS_LOG_LEVEL"):
        cfg["level"] = os.environ["SPOT_MS_LOG_LEVEL"]
    if os.getenv("SPOT_MS_LOG_DIR"):
        cfg["log_dir"] = os.environ["SPOT_MS_LOG_DIR"]
    if os.getenv("SPOT_MS_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["SPOT_MS_JSONL_FILE"]
    _int_env(cfg, "SPOT_MS_LOG_ROTATE_BYTES", "rotate_max_bytes")
    _int_env(cfg, "SPOT_MS_LOG_ROTATE_BACKUP", "rotate_backup_count")

    return cfg
