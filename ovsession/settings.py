"""
Client configuration loaded from a YAML file and the environment.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .errors import SettingsError

ENV_PREFIX = "OPENVIDU_"
ENV_CONFIG_VAR = "OPENVIDU_CONFIG"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ClientSettings:
    url: str
    secret: str
    timeout: float = 10.0
    verify_tls: bool = True
    log_level: str = "INFO"

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ClientSettings":
        url = str(payload.get("url") or "").strip()
        secret = str(payload.get("secret") or "")
        if not url:
            raise SettingsError("media server url is not configured")
        if not secret:
            raise SettingsError("media server secret is not configured")
        try:
            timeout = float(payload.get("timeout", 10.0))
        except (TypeError, ValueError):
            raise SettingsError(f"invalid timeout {payload.get('timeout')!r}") from None
        if timeout <= 0:
            raise SettingsError("timeout must be positive")
        log_level = str(payload.get("log_level") or "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise SettingsError(f"unknown log level {log_level!r}")
        return cls(
            url=url,
            secret=secret,
            timeout=timeout,
            verify_tls=_as_bool(payload.get("verify_tls", True)),
            log_level=log_level,
        )


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise SettingsError(f"invalid boolean {value!r}")


def _read_file(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except FileNotFoundError:
        raise SettingsError(f"config file {path} does not exist") from None
    except yaml.YAMLError as exc:
        raise SettingsError(f"config file {path} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"config file {path} must contain a mapping")
    # Allow the settings to live under a top level ``openvidu`` key.
    nested = data.get("openvidu")
    return dict(nested) if isinstance(nested, dict) else data


def load_settings(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ClientSettings:
    """
    Resolve settings from ``path`` (or ``$OPENVIDU_CONFIG``) then apply
    ``OPENVIDU_*`` environment overrides.
    """

    env = os.environ if environ is None else environ
    payload: Dict[str, Any] = {}
    config_path = path or env.get(ENV_CONFIG_VAR)
    if config_path:
        payload.update(_read_file(Path(config_path).expanduser()))

    for key in ("url", "secret", "timeout", "verify_tls", "log_level"):
        value = env.get(ENV_PREFIX + key.upper())
        if value is not None and value != "":
            payload[key] = value

    return ClientSettings.from_mapping(payload)


__all__ = ["ClientSettings", "load_settings"]
