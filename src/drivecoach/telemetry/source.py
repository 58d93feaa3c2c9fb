"""
Location sources - Boundary to the device geolocation sensor.

Provides:
- LocationSource protocol
- ListLocationSource for replays and tests
"""

import asyncio
import logging
from typing import AsyncIterator, Iterable, List, Protocol

from drivecoach.errors import SensorUnavailable
from drivecoach.telemetry.fix import GeoFix


logger = logging.getLogger(__name__)


class LocationSource(Protocol):
    """Live geolocation feed.

    ``open`` and iteration of ``fixes`` may raise SensorUnavailable
    (permission denied, timeout, missing hardware).
    """

    def open(self) -> None: ...

    def fixes(self) -> AsyncIterator[GeoFix]: ...

    def close(self) -> None: ...


class ListLocationSource:
    """Location source replaying a fixed list of fixes.

    Args:
        fixes: Fixes to deliver, in order
        interval_s: Delay between deliveries (0 delivers back to back)
        available: When False, ``open`` raises SensorUnavailable
        fail_after: Raise SensorUnavailable after this many fixes
    """

    def __init__(
        self,
        fixes: Iterable[GeoFix],
        interval_s: float = 0.0,
        available: bool = True,
        fail_after: int | None = None,
    ):
        self._fixes: List[GeoFix] = list(fixes)
        self.interval_s = interval_s
        self.available = available
        self.fail_after = fail_after
        self.is_open = False

    def open(self) -> None:
        if not self.available:
            raise SensorUnavailable("Location permission denied")
        self.is_open = True
        logger.debug("Location source opened with %d fixes", len(self._fixes))

    async def fixes(self) -> AsyncIterator[GeoFix]:
        for index, fix in enumerate(self._fixes):
            if self.fail_after is not None and index >= self.fail_after:
                raise SensorUnavailable("Location fix timed out")
            if self.interval_s > 0:
                await asyncio.sleep(self.interval_s)
            yield fix

    def close(self) -> None:
        self.is_open = False
