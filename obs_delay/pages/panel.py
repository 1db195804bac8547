from __future__ import annotations

import logging
import time
from functools import partial

from nicegui import ui

from obs_delay.common.logging_config import attach_ui_log, detach_ui_log
from obs_delay.errors import DelayControlError, MutationError
from obs_delay.pages.list_view import display_delay
from obs_delay.services.delay_service import DelayService
from obs_delay.state import ConnectionState, DelayReading


class DelayPanelPage:
    """Live control panel: one card per source with its delay and an update input."""

    def __init__(
        self,
        service: DelayService,
        connection: ConnectionState | None = None,
        refresh_interval: float = 0.0,
    ) -> None:
        self.service = service
        self.connection = connection
        self.refresh_interval = refresh_interval
        self.delay_labels: dict[str, ui.label] = {}
        self.delay_inputs: dict[str, ui.number] = {}
        self.updated_label: ui.label | None = None
        self.log: ui.log | None = None
        self.refresh_timer: ui.timer | None = None

    # ---- Actions ----

    async def refresh(self) -> list[DelayReading]:
        readings = await self.service.list_delays()
        for reading in readings:
            label = self.delay_labels.get(reading.source_name)
            if label is None:
                continue
            label.text = display_delay(reading)
            if reading.available:
                label.classes(remove="text-negative")
            else:
                label.classes(add="text-negative")
        if self.updated_label:
            self.updated_label.text = f"Updated {time.strftime('%H:%M:%S')}"
        return readings

    async def apply(self, source_name: str) -> None:
        field = self.delay_inputs.get(source_name)
        value = field.value if field is not None else None
        try:
            delay = await self.service.update_delay(source_name, value)
        except MutationError:
            ui.notify(f"Failed to set delay on {source_name}", color="negative")
            return
        except DelayControlError as e:
            ui.notify(str(e), color="warning")
            return
        ui.notify(f"{source_name}: {delay} ms", color="positive")
        await self.refresh()

    # ---- Layout ----

    def _build_status(self) -> None:
        with ui.row().classes("items-center gap-4"):
            if self.connection is not None:
                ui.label().bind_text_from(
                    self.connection,
                    "connected",
                    backward=lambda ok: "OBS connected" if ok else "OBS disconnected",
                ).classes("text-sm")
                ui.label().bind_text_from(self.connection, "url").classes(
                    "text-sm text-grey"
                )
            self.updated_label = ui.label("").classes("text-sm text-grey")
            ui.button("Refresh", on_click=self.refresh).props("unelevated")

    def _build_card(self, index: int, source_name: str) -> None:
        with ui.card().classes("w-full"):
            ui.label(source_name).classes("text-md font-medium")
            self.delay_labels[source_name] = ui.label("-").classes("text-sm")
            with ui.row().classes("items-center gap-2"):
                self.delay_inputs[source_name] = (
                    ui.number(label="New Delay (ms)", value=0, format="%d")
                    .props("dense")
                    .mark(f"delay-{index}")
                )
                ui.button(
                    "Update", on_click=partial(self.apply, source_name)
                ).mark(f"update-{index}")

    async def build(self) -> None:
        ui.label("OBS Render Delay Control").classes("text-lg font-medium")
        self._build_status()
        with ui.grid(columns=2).classes("w-full gap-4"):
            for index, source_name in enumerate(self.service.sources):
                self._build_card(index, source_name)
        self.log = ui.log(max_lines=200).classes("w-full h-40")
        attach_ui_log(self.log)
        ui.context.client.on_disconnect(lambda: detach_ui_log(self.log))

        for reading in await self.refresh():
            field = self.delay_inputs.get(reading.source_name)
            if field is not None and reading.available:
                field.value = reading.delay_ms
        if self.refresh_interval > 0:
            self.refresh_timer = ui.timer(self.refresh_interval, self.refresh)
        logging.debug("Panel opened with %d sources", len(self.service.sources))


def register_panel(
    service: DelayService,
    connection: ConnectionState | None = None,
    refresh_interval: float = 0.0,
    path: str = "/",
) -> None:
    """Register the panel page on NiceGUI's app at ``path``."""

    @ui.page(path, title="OBS Render Delay Control")
    async def _panel() -> None:
        await DelayPanelPage(service, connection, refresh_interval).build()
