# settings for the core and its entry points, read from the environment
# a local .env is honoured for development; in production the variables are injected by the runtime

from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError

ENV_PREFIX = "TEMPAVG_"
DEFAULT_SOURCE_FILE = "data/measurements.csv"
DEFAULT_POLL_INTERVAL = 5.0

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}

@dataclass(frozen=True)
class Settings:
    source_file: Path = Path(DEFAULT_SOURCE_FILE)
    poll_interval: float = DEFAULT_POLL_INTERVAL
    skip_malformed: bool = False
    atomic_swap: bool = False
    watch_idle_only: bool = True
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8080

def _bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(ENV_PREFIX + name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{ENV_PREFIX}{name} must be a boolean (got {raw!r})")

def _number(env: Mapping[str, str], name: str, default, kind=float):
    raw = env.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return kind(raw)
    except ValueError as exc:
        raise ConfigError(f"{ENV_PREFIX}{name} must be a {kind.__name__} (got {raw!r})") from exc

def load_settings(env: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> Settings:
    # explicit env mapping is for tests, otherwise read os.environ after .env
    if env is None:
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))
        env = os.environ

    poll_interval = _number(env, "POLL_INTERVAL", DEFAULT_POLL_INTERVAL)
    if poll_interval <= 0:
        raise ConfigError(f"{ENV_PREFIX}POLL_INTERVAL must be positive (got {poll_interval})")

    port = _number(env, "PORT", Settings.port, kind=int)
    if not (0 < port < 65536):
        raise ConfigError(f"{ENV_PREFIX}PORT out of range (got {port})")

    return Settings(
        source_file=Path(env.get(ENV_PREFIX + "SOURCE_FILE") or DEFAULT_SOURCE_FILE),
        poll_interval=poll_interval,
        skip_malformed=_bool(env, "SKIP_MALFORMED", False),
        atomic_swap=_bool(env, "ATOMIC_SWAP", False),
        watch_idle_only=_bool(env, "WATCH_IDLE_ONLY", True),
        log_level=(env.get(ENV_PREFIX + "LOG_LEVEL") or "INFO").upper(),
        host=env.get(ENV_PREFIX + "HOST") or Settings.host,
        port=port,
    )
