from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Iterable, Sequence
from typing import Protocol, cast

from obs_delay.constants import (
    DEFAULT_FILTER_NAME,
    DELAY_SETTING_KEY,
    DELAY_UNAVAILABLE,
)
from obs_delay.errors import (
    InvalidDelayError,
    MissingFieldError,
    MutationError,
    ObsCallError,
)
from obs_delay.state import DelayReading


class FilterSettingsClient(Protocol):
    async def get_filter_settings(self, source_name: str, filter_name: str) -> dict: ...

    async def set_filter_settings(
        self, source_name: str, filter_name: str, settings: dict
    ) -> None: ...


def parse_delay(value: object) -> int | float:
    """
    Coerce a request value to a delay in milliseconds.

    Numbers and numeric strings are accepted; integral values become int.
    No range check: negative or large values are returned unchanged.
    """
    if isinstance(value, bool):
        raise InvalidDelayError(f"Invalid delay: {value!r}")
    if isinstance(value, int):
        return value
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise InvalidDelayError(f"Invalid delay: {value!r}") from e
    if not math.isfinite(number):
        raise InvalidDelayError(f"Invalid delay: {value!r}")
    return int(number) if number.is_integer() else number


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class DelayService:
    """Reads and writes the render delay filter of a fixed list of OBS sources."""

    def __init__(
        self,
        client: FilterSettingsClient,
        sources: Iterable[str],
        filter_name: str = DEFAULT_FILTER_NAME,
    ) -> None:
        self.client = client
        self.sources: tuple[str, ...] = tuple(sources)
        self.filter_name = filter_name

    async def _read_delay(self, source_name: str) -> DelayReading:
        try:
            settings = await self.client.get_filter_settings(
                source_name, self.filter_name
            )
            # OBS leaves settings at their default out of the payload
            delay = parse_delay(settings.get(DELAY_SETTING_KEY, 0))
        except Exception as e:
            logging.warning(
                "Could not get filter %r for %s: %s", self.filter_name, source_name, e
            )
            return DelayReading(source_name, DELAY_UNAVAILABLE)
        return DelayReading(source_name, delay)

    async def list_delays(
        self, sources: Sequence[str] | None = None
    ) -> list[DelayReading]:
        """
        Current delay of every source, in the given (default: configured) order.

        All reads are in flight together. A source that cannot be read is
        reported as DELAY_UNAVAILABLE; this never raises for per-source failures.
        """
        names = self.sources if sources is None else tuple(sources)
        readings = await asyncio.gather(*(self._read_delay(name) for name in names))
        return list(readings)

    async def update_delay(
        self, source_name: str | None, new_delay: object
    ) -> int | float:
        """
        Forward a new delay for ``source_name`` to OBS and return the value sent.

        Raises:
            MissingFieldError: source name or delay absent (nothing is sent)
            InvalidDelayError: delay is not a finite number (nothing is sent)
            MutationError: OBS did not accept the write
        """
        if _is_blank(source_name):
            raise MissingFieldError("cameraName")
        if _is_blank(new_delay):
            raise MissingFieldError("delay")
        delay = parse_delay(new_delay)
        name = cast(str, source_name)

        try:
            await self.client.set_filter_settings(
                name, self.filter_name, {DELAY_SETTING_KEY: delay}
            )
        except ObsCallError as e:
            logging.error("Failed to set delay on %s: %s", name, e)
            raise MutationError(name, delay) from e

        logging.info("Set %s %r -> %s ms", name, self.filter_name, delay)
        return delay
