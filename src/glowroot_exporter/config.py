"""
Loads the exporter's YAML config file.

    server:
      glowroot_url: http://glowroot:4000
      exporter_port: 9101
      glowroot_time_interval_minutes: 5
      metrics_update_interval_seconds: 60
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from glowroot_exporter.errors import ConfigError

DEFAULT_CONFIG_PATH = "config.yaml"


@dataclass(frozen=True)
class ExporterConfig:
    glowroot_url: str
    exporter_port: int = 9101
    time_interval_minutes: int = 5
    update_interval_seconds: int = 60
    listen_address: str = "0.0.0.0"
    request_timeout_seconds: float = 10.0
    metric_prefix: str = "glowroot"


def _positive_int(section: Dict[str, Any], key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"server.{key} must be an integer, got {value!r}")
    if value <= 0:
        raise ConfigError(f"server.{key} must be positive, got {value}")
    return value


def _string(section: Dict[str, Any], key: str, default: str) -> str:
    value = section.get(key, default)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ConfigError(f"server.{key} must be a string, got {value!r}")
    return value.strip()


def parse_config(raw: Any, require_url: bool = True) -> ExporterConfig:
    if not isinstance(raw, dict) or not isinstance(raw.get("server"), dict):
        raise ConfigError("config must contain a 'server' mapping")
    server = raw["server"]

    url = _string(server, "glowroot_url", "")
    if require_url and not url:
        raise ConfigError("server.glowroot_url is required")

    port = _positive_int(server, "exporter_port", ExporterConfig.exporter_port)
    if port > 65535:
        raise ConfigError(f"server.exporter_port out of range: {port}")

    timeout = server.get("request_timeout_seconds", ExporterConfig.request_timeout_seconds)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError(f"server.request_timeout_seconds must be a positive number, got {timeout!r}")

    return ExporterConfig(
        glowroot_url=url.rstrip("/"),
        exporter_port=port,
        time_interval_minutes=_positive_int(
            server, "glowroot_time_interval_minutes", ExporterConfig.time_interval_minutes
        ),
        update_interval_seconds=_positive_int(
            server, "metrics_update_interval_seconds", ExporterConfig.update_interval_seconds
        ),
        listen_address=_string(server, "listen_address", ExporterConfig.listen_address),
        request_timeout_seconds=float(timeout),
        metric_prefix=_string(server, "metric_prefix", ExporterConfig.metric_prefix),
    )


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_PATH, require_url: bool = True) -> ExporterConfig:
    try:
        text = Path(path).read_text()
    except OSError as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    return parse_config(raw, require_url=require_url)
