from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8125


def load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config must be a mapping/dict. Got: {type(data)}")
    return data


def validate_port(port: Any) -> int:
    if isinstance(port, bool):
        raise ValueError(f"port must be an integer, got {port!r}")
    try:
        value = int(port)
    except (TypeError, ValueError):
        raise ValueError(f"port must be an integer, got {port!r}") from None
    if not 1 <= value <= 65535:
        raise ValueError(f"port must be in 1-65535, got {value}")
    return value


@dataclass(frozen=True)
class StatsdCfg:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    enabled: bool = True
    reuse_socket: bool = False
    namespace: str = ""


def parse_config(raw: Dict[str, Any]) -> StatsdCfg:
    sd_raw = (raw or {}).get("statsd") or {}
    if not isinstance(sd_raw, dict):
        raise ValueError("Config 'statsd:' must be a mapping")

    host = sd_raw.get("host", DEFAULT_HOST)
    if not host:
        raise ValueError("statsd.host must be a non-empty string")

    return StatsdCfg(
        host=str(host),
        port=validate_port(sd_raw.get("port", DEFAULT_PORT)),
        enabled=bool(sd_raw.get("enabled", True)),
        reuse_socket=bool(sd_raw.get("reuse_socket", False)),
        namespace=str(sd_raw.get("namespace") or ""),
    )


def load_config(path: Path) -> StatsdCfg:
    return parse_config(load_yaml(path))
