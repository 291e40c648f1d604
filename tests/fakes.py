"""In-memory stand-ins for bleak clients used across the test-suite."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from bleak.exc import BleakError

from ble_sensor_exporter.uartsensor import (
    CMD_GET_BATTERY_VOLTAGE,
    CMD_GET_SENSOR_DATA,
    UART_RX_UUID,
    UART_SERVICE_UUID,
    UART_TX_UUID,
)

BATTERY_REPLY = b"Battery voltage (mV): 3300\n"
TEMPERATURE_REPLY = b"Temperature value (0.01 degC): 2500\n"


class FakeCharacteristic:
    def __init__(self, uuid: str, properties: Sequence[str]) -> None:
        self.uuid = uuid
        self.properties = list(properties)


class FakeService:
    def __init__(self, uuid: str, characteristics: Sequence[FakeCharacteristic], description: str = "") -> None:
        self.uuid = uuid
        self.description = description
        self.characteristics = list(characteristics)

    def get_characteristic(self, uuid: str) -> Optional[FakeCharacteristic]:
        for char in self.characteristics:
            if char.uuid == uuid:
                return char
        return None


class FakeServiceCollection:
    def __init__(self, services: Sequence[FakeService]) -> None:
        self._services = list(services)

    def __iter__(self):
        return iter(self._services)

    def get_service(self, uuid: str) -> Optional[FakeService]:
        for service in self._services:
            if service.uuid == uuid:
                return service
        return None


def uart_service() -> FakeService:
    return FakeService(
        UART_SERVICE_UUID,
        [
            FakeCharacteristic(UART_RX_UUID, ["write-without-response", "write"]),
            FakeCharacteristic(UART_TX_UUID, ["notify"]),
        ],
        description="Nordic UART Service",
    )


class FakeBleakClient:
    """Mimics the parts of ``BleakClient`` used by the UART client.

    ``replies`` maps a written command to ``(delay, payload)`` pairs that are
    delivered on the TX subscription after the write.
    """

    def __init__(
        self,
        replies: Optional[Dict[bytes, List[Tuple[float, bytes]]]] = None,
        *,
        services: Optional[Sequence[FakeService]] = None,
        fail_write_on: Optional[bytes] = None,
        fail_disconnect: bool = False,
        fail_notify: bool = False,
    ) -> None:
        self.replies = replies if replies is not None else default_replies()
        self.services = FakeServiceCollection(services if services is not None else [uart_service()])
        self.fail_write_on = fail_write_on
        self.fail_disconnect = fail_disconnect
        self.fail_notify = fail_notify
        self.writes: List[Tuple[str, bytes, bool]] = []
        self.notify_callback: Optional[Callable[[Any, bytearray], None]] = None
        self.notify_char: Any = None
        self.disconnect_calls = 0
        self.connected = True

    async def start_notify(self, char: Any, callback: Callable[[Any, bytearray], None]) -> None:
        if self.fail_notify:
            raise BleakError("notify refused")
        self.notify_char = char
        self.notify_callback = callback

    async def write_gatt_char(self, char: Any, data: bytes, response: bool = False) -> None:
        if self.fail_write_on is not None and data == self.fail_write_on:
            raise BleakError("write failed")
        self.writes.append((char.uuid, bytes(data), response))
        loop = asyncio.get_running_loop()
        for delay, payload in self.replies.get(bytes(data), []):
            loop.call_later(delay, self.notify, payload)

    def notify(self, payload: bytes) -> None:
        if self.notify_callback is not None and self.connected:
            self.notify_callback(self.notify_char, bytearray(payload))

    async def disconnect(self) -> bool:
        self.disconnect_calls += 1
        self.connected = False
        if self.fail_disconnect:
            raise BleakError("disconnect failed")
        return True


def default_replies(
    battery: bytes = BATTERY_REPLY,
    temperature: bytes = TEMPERATURE_REPLY,
    delay: float = 0.01,
) -> Dict[bytes, List[Tuple[float, bytes]]]:
    return {
        CMD_GET_BATTERY_VOLTAGE: [(delay, battery)],
        CMD_GET_SENSOR_DATA: [(delay, temperature)],
    }


class FakeConnector:
    """Connector returning prepared clients in order; the last one is reused."""

    def __init__(self, *clients: FakeBleakClient, error: Optional[BaseException] = None) -> None:
        self.clients = list(clients)
        self.error = error
        self.calls: List[Tuple[str, str, float]] = []
        self.handed_out: List[FakeBleakClient] = []

    async def __call__(self, address: str, name: str, timeout: float) -> FakeBleakClient:
        self.calls.append((address, name, timeout))
        if self.error is not None:
            raise self.error
        if len(self.clients) > 1:
            client = self.clients.pop(0)
        else:
            client = self.clients[0]
            client.connected = True
        self.handed_out.append(client)
        return client
