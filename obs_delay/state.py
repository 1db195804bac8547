from __future__ import annotations

from dataclasses import dataclass

from nicegui import binding

from obs_delay.constants import DELAY_UNAVAILABLE


@dataclass(frozen=True)
class DelayReading:
    source_name: str
    delay_ms: int | float  # DELAY_UNAVAILABLE when the read failed

    @property
    def available(self) -> bool:
        return self.delay_ms != DELAY_UNAVAILABLE

    def to_json(self) -> dict:
        return {"cameraName": self.source_name, "delay": self.delay_ms}


# Lifecycle of the OBS session, bound by the live panel
@binding.bindable_dataclass
class ConnectionState:
    url: str = ""
    connected: bool = False
    obs_version: str = ""
    last_error: str = ""
