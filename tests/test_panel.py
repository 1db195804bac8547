from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from nicegui import ui

from obs_delay.pages.panel import DelayPanelPage, register_panel
from obs_delay.services.delay_service import DelayService
from obs_delay.state import ConnectionState

from conftest import SOURCES, FakeObsClient

if TYPE_CHECKING:
    from nicegui.testing import User


@pytest.mark.unit
async def test_panel_shows_every_source(user: User, fake_obs: FakeObsClient):
    """Broken sources show the error marker, the rest their delay."""
    state = ConnectionState(url="ws://localhost:4455", connected=False)
    register_panel(DelayService(fake_obs, SOURCES), state)

    await user.open("/")

    for name in SOURCES:
        await user.should_see(name)
    await user.should_see("120 ms")
    await user.should_see("80 ms")
    await user.should_see("(Error)")
    await user.should_see("OBS disconnected")


@pytest.mark.unit
async def test_panel_update_writes_and_refreshes(user: User, fake_obs: FakeObsClient):
    panels: list[DelayPanelPage] = []

    @ui.page("/")
    async def page() -> None:
        panel = DelayPanelPage(DelayService(fake_obs, SOURCES))
        panels.append(panel)
        await panel.build()

    await user.open("/")
    await user.should_see("80 ms")
    assert panels[0].delay_inputs["03 input"].value == 80

    panels[0].delay_inputs["03 input"].value = 250
    user.find("update-2").click()

    await user.should_see("250 ms")
    assert fake_obs.writes == [("03 input", "Render Delay", {"delay_ms": 250})]


@pytest.mark.unit
async def test_panel_update_failure_notifies(user: User, fake_obs: FakeObsClient):
    register_panel(DelayService(fake_obs, SOURCES))

    await user.open("/")
    user.find("update-1").click()

    await user.should_see("Failed to set delay on 02 input")
