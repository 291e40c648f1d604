"""Passive discovery of nearby sensors by advertised name prefix."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Set

from bleak import BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData

from .const import ADAPTER_CHECK_TIMEOUT, DEFAULT_NAME_PREFIX

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveredDevice:
    address: str
    rssi: Optional[int]
    name: str


MatchCallback = Callable[[DiscoveredDevice], None]


class DiscoveryScanner:
    """Reports each matching address once per scan session.

    Every address is remembered after its first advertisement, matching or
    not, so later advertisements from it are ignored without re-checking
    the name.
    """

    def __init__(
        self,
        prefix: str = DEFAULT_NAME_PREFIX,
        *,
        on_match: Optional[MatchCallback] = None,
        scanner_factory: Callable[..., Any] = BleakScanner,
    ) -> None:
        self.prefix = prefix
        self._on_match = on_match
        self._scanner_factory = scanner_factory
        self._seen: Set[str] = set()
        self._lock = threading.Lock()

    @property
    def seen(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._seen)

    def handle_advertisement(self, address: str, name: Optional[str], rssi: Optional[int]) -> bool:
        """Record *address* and return True when it is reported as a new match."""
        with self._lock:
            if address in self._seen:
                return False
            self._seen.add(address)

        name = name or ""
        if not name.startswith(self.prefix):
            LOGGER.debug("Ignoring %s (%r): name does not match %r", address, name, self.prefix)
            return False

        found = DiscoveredDevice(address=address, rssi=rssi, name=name)
        LOGGER.debug("Discovered %s", found)
        if self._on_match is not None:
            self._on_match(found)
        return True

    def _detection_callback(self, device: BLEDevice, advertisement_data: AdvertisementData) -> None:
        name = advertisement_data.local_name or device.name
        self.handle_advertisement(device.address, name, advertisement_data.rssi)

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Scan until *stop_event* is set or the task is cancelled."""
        stop_event = stop_event or asyncio.Event()
        LOGGER.info("Scanning for devices with names beginning %r", self.prefix)
        async with self._scanner_factory(detection_callback=self._detection_callback):
            await stop_event.wait()


async def ensure_adapter(
    scanner_factory: Callable[..., Any] = BleakScanner,
    timeout: float = ADAPTER_CHECK_TIMEOUT,
) -> None:
    """Start and stop a scanner so a missing or powered-off adapter fails early."""
    async with scanner_factory():
        await asyncio.sleep(timeout)
    LOGGER.debug("Bluetooth adapter is available")


__all__ = ["DiscoveredDevice", "DiscoveryScanner", "MatchCallback", "ensure_adapter"]
