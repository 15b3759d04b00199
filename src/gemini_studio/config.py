"""Configuration loading utilities for Gemini Studio.

This module handles layered configuration:
1. Explicit path argument (highest precedence)
2. Environment variable GEMINI_STUDIO_CONFIG
3. Fallback to "config/default.yaml"

Missing keys are filled from :data:`DEFAULTS`. It also supports overrides from
environment variables with prefix ``GEMINI_STUDIO__`` (e.g.,
GEMINI_STUDIO__CHAT__MODEL=gemini-2.5-pro).

The Google credential itself is never stored in the config; only the name of
the environment variable that holds it (``google.api_key_env``).
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "GEMINI_STUDIO__"
ENV_CONFIG_PATH = "GEMINI_STUDIO_CONFIG"
DEFAULT_CONFIG_PATH = "config/default.yaml"

DEFAULTS: Dict[str, Any] = {
    "server": {"host": "127.0.0.1", "port": 8000, "cors_origins": ["*"]},
    "google": {"api_key_env": "GOOGLE_AI_API_KEY"},
    "chat": {"model": "gemini-2.5-flash"},
    "image": {"model": "gemini-2.5-flash-image"},
    "video": {"model": "veo-3-fast", "duration": 4, "aspect_ratio": "16:9"},
    "ui": {
        "base_url": "http://127.0.0.1:8000",
        "timeout": 120.0,
        "greeting": "Hello! I'm your Gemini AI assistant. How can I help you today?",
    },
    "logging": {"level": "INFO"},
}


def _merge(base: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``extra`` into a copy of ``base``."""
    out = copy.deepcopy(base)
    for key, value in extra.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def _coerce(value: str) -> Any:
    if value.lower() in {"true", "false"}:
        return value.lower() == "true"
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides with prefix GEMINI_STUDIO__."""
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        # e.g., GEMINI_STUDIO__VIDEO__DURATION -> cfg["video"]["duration"]
        parts = key[len(ENV_PREFIX):].lower().split("__")
        sub = cfg
        for p in parts[:-1]:
            if p not in sub or not isinstance(sub[p], dict):
                sub[p] = {}
            sub = sub[p]
        sub[parts[-1]] = _coerce(value)
    return cfg


def load_config(path: str | None = None) -> Dict[str, Any]:
    """Load YAML configuration for Gemini Studio.

    Parameters
    ----------
    path : str | None
        Optional path to a configuration file. If not provided, the
        environment variable ``GEMINI_STUDIO_CONFIG`` is consulted. As a
        last resort ``config/default.yaml`` is used.

    Returns
    -------
    Dict[str, Any]
        Configuration merged over :data:`DEFAULTS`, with environment
        overrides applied.
    """
    if path is None:
        path = os.environ.get(ENV_CONFIG_PATH, DEFAULT_CONFIG_PATH)

    path_obj = Path(path)
    if not path_obj.exists():
        logger.warning("Config file not found at %s. Using defaults.", path_obj)
        return _apply_env_overrides(copy.deepcopy(DEFAULTS))

    with path_obj.open("r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise RuntimeError(f"Failed to parse config file {path_obj}: {e}") from e

    if not isinstance(raw, dict):
        raise RuntimeError(f"Invalid config format in {path_obj}, expected dict.")

    return _apply_env_overrides(_merge(DEFAULTS, raw))


def get_api_key(cfg: Dict[str, Any]) -> Optional[str]:
    """Return the Google AI credential from the environment, or None.

    Read on every call so a newly exported key is picked up without a restart.
    """
    env_name = cfg.get("google", {}).get("api_key_env") or "GOOGLE_AI_API_KEY"
    value = os.environ.get(str(env_name), "").strip()
    return value or None


def configure_logging(cfg: Dict[str, Any]) -> None:
    """Configure root logging from the ``logging.level`` setting."""
    level = str(cfg.get("logging", {}).get("level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
