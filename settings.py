# settings.py
from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from kubernetes import config

from cancellation import Cancellation
from retry_policy import DEFAULT_BACKOFF, Backoff

logger = logging.getLogger(__name__)

# env var -> (Backoff field, type)
_RETRY_ENV = {
    "CONFIRM_RETRY_STEPS": ("steps", int),
    "CONFIRM_RETRY_DURATION": ("duration", float),
    "CONFIRM_RETRY_FACTOR": ("factor", float),
    "CONFIRM_RETRY_JITTER": ("jitter", float),
    "CONFIRM_RETRY_CAP": ("cap", float),
}
_RETRY_FIELDS = {field: typ for field, typ in _RETRY_ENV.values()}


@dataclass(frozen=True)
class Settings:
    backoff: Backoff = DEFAULT_BACKOFF
    timeout: Optional[float] = None  # seconds for one confirm_deletion call


def _convert(name: str, raw: Any, typ: type) -> Any:
    try:
        return typ(raw)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name}: expected {typ.__name__}, got {raw!r}") from e


def _load_file(path: str) -> Dict[str, Any]:
    data = yaml.safe_load(Path(path).read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data


def load_settings(environ: Mapping[str, str] = os.environ) -> Settings:
    """
    Build Settings.
    Priority (highest first):
      1) CONFIRM_RETRY_* / CONFIRM_TIMEOUT environment variables
      2) YAML file named by CONFIRM_SETTINGS_FILE (keys: retry.{steps,...}, timeout)
      3) Defaults (client-go DefaultBackoff, no timeout)
    """
    overrides: Dict[str, Any] = {}
    timeout: Optional[float] = None

    path = environ.get("CONFIRM_SETTINGS_FILE")
    if path:
        data = _load_file(path)
        retry = data.get("retry", {}) or {}
        if not isinstance(retry, dict):
            raise ValueError(f"{path}: retry must be a mapping")
        for field, raw in retry.items():
            if field not in _RETRY_FIELDS:
                raise ValueError(f"{path}: unknown retry setting {field!r}")
            overrides[field] = _convert(f"retry.{field}", raw, _RETRY_FIELDS[field])
        if data.get("timeout") is not None:
            timeout = _convert("timeout", data["timeout"], float)
        logger.debug("loaded settings file %s", path)

    for name, (field, typ) in _RETRY_ENV.items():
        raw = environ.get(name)
        if raw:
            overrides[field] = _convert(name, raw, typ)

    raw_timeout = environ.get("CONFIRM_TIMEOUT")
    if raw_timeout:
        timeout = _convert("CONFIRM_TIMEOUT", raw_timeout, float)
    if timeout is not None and timeout <= 0:
        raise ValueError(f"timeout must be > 0, got {timeout}")

    return Settings(backoff=replace(DEFAULT_BACKOFF, **overrides), timeout=timeout)


def cancellation(settings: Settings, event: Optional[threading.Event] = None) -> Cancellation:
    return Cancellation(event, timeout=settings.timeout)


def load_kube() -> None:
    try:
        config.load_incluster_config()
        logger.info("using in-cluster config")
    except config.ConfigException:
        config.load_kube_config()
        logger.info("using kubeconfig (local)")
