"""Runtime configuration from the environment.

A `.env` file is loaded first (current dir, then home). Every setting has a
default, so an empty environment is valid.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .models import TraceOptions

log = logging.getLogger(__name__)

ENV_PREFIX = "REDIRECT_TRACE_"
_DEFAULTS = TraceOptions()


def load_env_file() -> Optional[Path]:
    """Load the first .env file found. Returns its path, if any."""
    for env_path in [Path(".env"), Path.home() / ".env", Path.home() / ".redirecttrace.env"]:
        if env_path.exists():
            load_dotenv(env_path)
            return env_path
    return None


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring %s%s=%r: not an integer", ENV_PREFIX, name, raw)
        return default


@dataclass(frozen=True)
class Settings:
    user_agent: str = _DEFAULTS.user_agent
    timeout_ms: int = _DEFAULTS.timeout_ms
    max_redirects: int = _DEFAULTS.max_redirects
    log_level: str = "WARNING"
    host: str = "127.0.0.1"
    port: int = 8000

    def trace_options(self) -> TraceOptions:
        return TraceOptions(
            user_agent=self.user_agent,
            timeout_ms=self.timeout_ms,
            max_redirects=self.max_redirects,
        )


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    if env is None:
        load_env_file()
        env = os.environ

    return Settings(
        user_agent=env.get(ENV_PREFIX + "USER_AGENT") or _DEFAULTS.user_agent,
        timeout_ms=_int_env(env, "TIMEOUT_MS", _DEFAULTS.timeout_ms),
        max_redirects=_int_env(env, "MAX_REDIRECTS", _DEFAULTS.max_redirects),
        log_level=(env.get(ENV_PREFIX + "LOG_LEVEL") or "WARNING").upper(),
        host=env.get(ENV_PREFIX + "HOST") or "127.0.0.1",
        port=_int_env(env, "PORT", 8000),
    )
