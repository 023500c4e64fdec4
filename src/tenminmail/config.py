#!/usr/bin/env python
import os
from dataclasses import dataclass

BASE_URL = "https://10minutemail.com"
DEFAULT_TIMEOUT = 10.0
DEFAULT_POLL_INTERVAL = 2.0


def _float_from_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass
class ClientConfig:
    """Settings shared by sessions and monitors"""

    base_url: str = BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build a config from TENMINMAIL_* environment variables"""
        return cls(
            base_url=os.getenv("TENMINMAIL_BASE_URL", BASE_URL).rstrip("/")
            or BASE_URL,
            timeout=_float_from_env("TENMINMAIL_TIMEOUT", DEFAULT_TIMEOUT),
            poll_interval=_float_from_env(
                "TENMINMAIL_POLL_INTERVAL", DEFAULT_POLL_INTERVAL
            ),
        )
