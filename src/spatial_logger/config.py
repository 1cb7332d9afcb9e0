from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from .sensors.channel_init import ChannelSelectors

ATTACH_TIMEOUT_MS = 5000
GATHER_INTERVAL_S = 10
LOG_FILE_PATH = "file.txt"


@dataclass
class SessionConfig:
    attach_timeout_ms: int = ATTACH_TIMEOUT_MS
    gather_interval_s: float = GATHER_INTERVAL_S
    log_file_path: str = LOG_FILE_PATH


@dataclass
class SdkLogConfig:
    enable: bool = False
    level: str = "INFO"  # CRITICAL | ERROR | WARNING | INFO | DEBUG | VERBOSE
    path: Optional[str] = None  # None -> SDK default destination


@dataclass
class MockConfig:
    rate_hz: float = 50.0
    hub_port: Optional[int] = None


@dataclass
class ProjectConfig:
    session: SessionConfig = field(default_factory=SessionConfig)
    selectors: ChannelSelectors = field(default_factory=ChannelSelectors)
    sdk_log: SdkLogConfig = field(default_factory=SdkLogConfig)
    mock: MockConfig = field(default_factory=MockConfig)


def default_config() -> ProjectConfig:
    return ProjectConfig()


def _opt_int(x: Any) -> Optional[int]:
    if x is None:
        return None
    if isinstance(x, str):
        return int(x, 0)
    return int(x)


_TRUE = ("true", "yes", "on", "1")
_FALSE = ("false", "no", "off", "0")


def _opt_bool(x: Any) -> Optional[bool]:
    if x is None or isinstance(x, bool):
        return x
    if isinstance(x, int):
        return bool(x)
    if isinstance(x, str):
        s = x.strip().lower()
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
    raise ValueError(f"config.yaml: expected a boolean, got {x!r}")


def _block(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    b = raw.get(name, {}) or {}
    if not isinstance(b, dict):
        raise ValueError(f"config.yaml: {name} block must be a mapping")
    return b


def load_config(path: Optional[str]) -> ProjectConfig:
    """
    Read config.yaml. A missing path gives the built-in defaults;
    every block and key is optional.
    """
    if path is None or not os.path.exists(path):
        return default_config()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: top level must be a mapping")

    ss = _block(raw, "session")
    session = SessionConfig(
        attach_timeout_ms=int(ss.get("attach_timeout_ms", ATTACH_TIMEOUT_MS)),
        gather_interval_s=float(ss.get("gather_interval_s", GATHER_INTERVAL_S)),
        log_file_path=str(ss.get("log_file_path", LOG_FILE_PATH)),
    )
    if session.attach_timeout_ms < 0:
        raise ValueError("config.yaml: session.attach_timeout_ms must be >= 0")
    if session.gather_interval_s < 0:
        raise ValueError("config.yaml: session.gather_interval_s must be >= 0")

    # selectors left out mean "any"
    sel = _block(raw, "selectors")
    selectors = ChannelSelectors(
        serial=_opt_int(sel.get("serial")),
        hub_port=_opt_int(sel.get("hub_port")),
        channel=_opt_int(sel.get("channel")),
        is_remote=_opt_bool(sel.get("is_remote")),
    )

    lg = _block(raw, "sdk_log")
    sdk_log = SdkLogConfig(
        enable=bool(_opt_bool(lg.get("enable", False))),
        level=str(lg.get("level", "INFO")).upper(),
        path=(str(lg["path"]) if lg.get("path") else None),
    )

    mk = _block(raw, "mock")
    mock = MockConfig(
        rate_hz=float(mk.get("rate_hz", 50.0)),
        hub_port=_opt_int(mk.get("hub_port")),
    )
    if mock.rate_hz <= 0:
        raise ValueError("config.yaml: mock.rate_hz must be > 0")

    return ProjectConfig(session=session, selectors=selectors, sdk_log=sdk_log, mock=mock)
