from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlparse

from obs_delay.constants import (
    DEFAULT_CALL_TIMEOUT_S,
    DEFAULT_FILTER_NAME,
    DEFAULT_OBS_HOST,
    DEFAULT_OBS_PORT,
    DEFAULT_SOURCES,
    TRUTHY,
)


def parse_obs_url(url: str) -> tuple[str, int]:
    """Split an obs-websocket URL such as ``ws://studio.lan:4456`` into (host, port)."""
    parsed = urlparse(url if "://" in url else f"ws://{url}")
    if parsed.scheme not in ("ws", "wss") or not parsed.hostname:
        raise ValueError(f"Invalid OBS websocket URL: {url!r}")
    return parsed.hostname, parsed.port or DEFAULT_OBS_PORT


def parse_sources(value: str) -> list[str]:
    """Comma separated source names, blanks dropped, order kept."""
    return [name.strip() for name in value.split(",") if name.strip()]


@dataclass
class Config:
    """Runtime configuration for the delay control server and the OBS connection."""
    OBS_HOST: str = DEFAULT_OBS_HOST
    OBS_PORT: int = DEFAULT_OBS_PORT
    OBS_PASSWORD: Optional[str] = None
    FILTER_NAME: str = DEFAULT_FILTER_NAME
    SOURCES: list[str] = field(default_factory=lambda: list(DEFAULT_SOURCES))
    CALL_TIMEOUT_S: float = DEFAULT_CALL_TIMEOUT_S
    AUTO_CONNECT: bool = True
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 3000  # HTTP listener
    PANEL_REFRESH_S: float = 2.0  # 0 disables the panel's auto refresh

    @property
    def obs_url(self) -> str:
        return f"ws://{self.OBS_HOST}:{self.OBS_PORT}"

    @classmethod
    def from_env(cls) -> "Config":
        host = os.getenv("OBS_DELAY_OBS_HOST", DEFAULT_OBS_HOST)
        port = int(os.getenv("OBS_DELAY_OBS_PORT", str(DEFAULT_OBS_PORT)))
        url = os.getenv("OBS_DELAY_OBS_URL")
        if url:
            host, port = parse_obs_url(url)
        sources_env = os.getenv("OBS_DELAY_SOURCES")
        sources = parse_sources(sources_env) if sources_env else list(DEFAULT_SOURCES)
        return cls(
            OBS_HOST=host,
            OBS_PORT=port,
            OBS_PASSWORD=os.getenv("OBS_DELAY_OBS_PASSWORD") or None,
            FILTER_NAME=os.getenv("OBS_DELAY_FILTER_NAME", DEFAULT_FILTER_NAME),
            SOURCES=sources,
            CALL_TIMEOUT_S=float(
                os.getenv("OBS_DELAY_CALL_TIMEOUT", str(DEFAULT_CALL_TIMEOUT_S))
            ),
            AUTO_CONNECT=os.getenv("OBS_DELAY_AUTO_CONNECT", "1") in TRUTHY,
            SERVER_HOST=os.getenv("OBS_DELAY_SERVER_HOST", "0.0.0.0"),
            SERVER_PORT=int(os.getenv("OBS_DELAY_SERVER_PORT", "3000")),
            PANEL_REFRESH_S=float(os.getenv("OBS_DELAY_PANEL_REFRESH", "2.0")),
        )
