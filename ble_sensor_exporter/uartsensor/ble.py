"""BLE utilities for talking to sensors over the Nordic UART service."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Optional

from bleak import BleakClient, BleakScanner
from bleak.exc import BleakDeviceNotFoundError
from bleak_retry_connector import establish_connection

# Nordic UART service and its TX (notify) / RX (write) characteristics
UART_SERVICE_UUID = "6e400001-b5a3-f393-e0a9-e50e24dcca9e"
UART_RX_UUID = "6e400002-b5a3-f393-e0a9-e50e24dcca9e"
UART_TX_UUID = "6e400003-b5a3-f393-e0a9-e50e24dcca9e"

DEFAULT_CONNECT_TIMEOUT = 60.0

PayloadCallback = Callable[[bytes], None]
Connector = Callable[[str, str, float], Awaitable[Any]]

LOGGER = logging.getLogger(__name__)


async def establish_client(address: str, name: str, timeout: float) -> BleakClient:
    """Resolve *address* and open a single connection attempt within *timeout* seconds."""

    async def _connect() -> BleakClient:
        device = await BleakScanner.find_device_by_address(address, timeout=timeout)
        if device is None:
            raise BleakDeviceNotFoundError(address, f"Device {address} was not found")
        return await establish_connection(BleakClient, device, name, max_attempts=1)

    return await asyncio.wait_for(_connect(), timeout=timeout)


class UartSensorClient:
    """BLE client that resolves the UART characteristics and exchanges line commands."""

    def __init__(
        self,
        address: str,
        *,
        name: str | None = None,
        connector: Optional[Connector] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        self.address = address
        self.name = name or address
        self.connect_timeout = connect_timeout
        self._connector: Connector = connector or establish_client

        self._client: Any = None
        self._tx_char: Any = None
        self._rx_char: Any = None
        self._payload_callback: Optional[PayloadCallback] = None

    async def connect(self) -> None:
        """Establish the BLE link."""
        if self._client is not None:
            return
        LOGGER.debug("Connecting to %s (%s)", self.name, self.address)
        self._client = await self._connector(self.address, self.name, self.connect_timeout)
        LOGGER.debug("Connected to %s", self.address)

    async def discover(self) -> None:
        """Resolve the UART service and its TX/RX characteristics."""
        service = self._require_client().services.get_service(UART_SERVICE_UUID)
        if service is None:
            raise RuntimeError("UART service not found on device")

        tx_char = service.get_characteristic(UART_TX_UUID)
        rx_char = service.get_characteristic(UART_RX_UUID)
        if not tx_char or not rx_char:
            raise RuntimeError("UART TX/RX characteristics not found on device")
        self._tx_char = tx_char
        self._rx_char = rx_char

    def services(self) -> Iterable[Any]:
        """Return every GATT service discovered on the connected device."""
        return list(self._require_client().services)

    async def subscribe_notifications(self, callback: PayloadCallback) -> None:
        """Forward every TX notification payload to *callback*."""
        if self._tx_char is None:
            raise RuntimeError("UART characteristics must be discovered before subscribing")
        self._payload_callback = callback
        await self._require_client().start_notify(self._tx_char, self._handle_notification)

    async def send_command(self, command: bytes) -> None:
        """Write *command* to the RX characteristic without waiting for a response."""
        if self._rx_char is None:
            raise RuntimeError("UART characteristics must be discovered before writing")
        LOGGER.debug("Sending %r to %s", command, self.address)
        await self._require_client().write_gatt_char(self._rx_char, command, response=False)

    async def send_commands(self, commands: Iterable[bytes], pacing: float) -> None:
        """Write *commands* in order, sleeping *pacing* seconds between them."""
        for index, command in enumerate(commands):
            if index:
                await asyncio.sleep(pacing)
            await self.send_command(command)

    async def disconnect(self) -> None:
        """Close the BLE connection."""
        client = self._client
        if client is None:
            return
        try:
            await client.disconnect()
            LOGGER.debug("Disconnected from %s", self.address)
        finally:
            self._client = None
            self._tx_char = None
            self._rx_char = None
            self._payload_callback = None

    def _require_client(self) -> Any:
        client = self._client
        if client is None:
            raise RuntimeError("BLE client is not connected")
        return client

    def _handle_notification(self, _sender: Any, data: bytearray) -> None:
        callback = self._payload_callback
        if callback is None:
            return
        try:
            callback(bytes(data))
        except Exception as callback_error:  # pragma: no cover
            LOGGER.exception("Notification callback raised an exception: %s", callback_error)


__all__ = [
    "DEFAULT_CONNECT_TIMEOUT",
    "UART_RX_UUID",
    "UART_SERVICE_UUID",
    "UART_TX_UUID",
    "Connector",
    "PayloadCallback",
    "UartSensorClient",
    "establish_client",
]
