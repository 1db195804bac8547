from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable

import pytest

from obs_delay.errors import ObsCallError

pytest_plugins = ["nicegui.testing.user_plugin"]

SOURCES = ["01 input", "02 input", "03 input"]


class FakeObsClient:
    """
    In-memory stand-in for ObsClient.

    - ``delays``: source name -> delay_ms held by the fake OBS
    - ``failing``: sources whose reads and writes raise ObsCallError
    - ``latency``: per-source seconds to wait before answering a read
    Records every read and write, and the peak number of reads in flight.
    """

    def __init__(
        self,
        delays: dict[str, float] | None = None,
        failing: Iterable[str] = (),
        latency: dict[str, float] | None = None,
    ) -> None:
        self.settings = {name: {"delay_ms": v} for name, v in (delays or {}).items()}
        self.failing = set(failing)
        self.latency = latency or {}
        self.reads: list[str] = []
        self.writes: list[tuple[str, str, dict]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_filter_settings(self, source_name: str, filter_name: str) -> dict:
        self.reads.append(source_name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.latency.get(source_name, 0))
        finally:
            self.in_flight -= 1
        if source_name in self.failing or source_name not in self.settings:
            raise ObsCallError(f"No source was found by the name of {source_name}")
        return dict(self.settings[source_name])

    async def set_filter_settings(
        self, source_name: str, filter_name: str, settings: dict
    ) -> None:
        self.writes.append((source_name, filter_name, dict(settings)))
        if source_name in self.failing:
            raise ObsCallError(f"No source was found by the name of {source_name}")
        self.settings.setdefault(source_name, {}).update(settings)


@pytest.fixture
def fake_obs() -> FakeObsClient:
    """The scenario device: 02 input is broken, the others report 120 and 80 ms."""
    return FakeObsClient({"01 input": 120, "03 input": 80}, failing={"02 input"})


@pytest.fixture(scope="session", autouse=True)
def obs_delay_env_session() -> None:
    """
    Test defaults for the server (set at session start via os.environ):
      - Never reach for a real OBS instance at startup
      - Keep the default log level regardless of the developer's shell
    These can still be overridden per-test with monkeypatch.setenv if needed.
    """
    os.environ["OBS_DELAY_AUTO_CONNECT"] = "0"
    os.environ.pop("OBS_DELAY_LOG_LEVEL", None)
