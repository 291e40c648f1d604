"""Interactive raw command console for a single sensor."""

from __future__ import annotations

import asyncio
import sys
import threading
from typing import Any, Awaitable, Callable, Optional, TextIO

from .uartsensor import DEFAULT_CONNECT_TIMEOUT, Connector, UartSensorClient

LineReader = Callable[[], Awaitable[Optional[str]]]


class StdinLineReader:
    """Feeds lines typed on *stream* to the event loop from a daemon thread.

    Returns ``None`` once the stream is exhausted.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdin
        self._queue: asyncio.Queue[Optional[str]] | None = None
        self._thread: threading.Thread | None = None

    async def __call__(self) -> Optional[str]:
        if self._queue is None:
            self._start()
        assert self._queue is not None
        return await self._queue.get()

    def _start(self) -> None:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[Optional[str]] = asyncio.Queue()
        self._queue = queue

        def _pump() -> None:
            for line in self._stream:
                loop.call_soon_threadsafe(queue.put_nowait, line)
            loop.call_soon_threadsafe(queue.put_nowait, None)

        self._thread = threading.Thread(target=_pump, name="stdin-reader", daemon=True)
        self._thread.start()


class InteractiveSession:
    """Connects to one device, echoes TX notifications and forwards typed lines to RX."""

    def __init__(
        self,
        address: str,
        *,
        connector: Optional[Connector] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        output: Callable[[str], Any] = print,
    ) -> None:
        self.address = address
        self._output = output
        self._client = UartSensorClient(
            address, connector=connector, connect_timeout=connect_timeout
        )
        self.sent: list[bytes] = []

    async def run(self, read_line: LineReader) -> None:
        self._output(f"cli connecting to {self.address}")
        client = self._client
        await client.connect()
        try:
            self._output("discovering services...")
            self._print_services()
            await client.discover()
            await client.subscribe_notifications(self._print_payload)

            self._output("Press ctrl+c to exit")
            while True:
                line = await read_line()
                if line is None:
                    break
                command = line.rstrip("\r\n")
                if not command:
                    continue
                payload = command.encode("utf-8") + b"\n"
                await client.send_command(payload)
                self.sent.append(payload)
        finally:
            await client.disconnect()

    def _print_services(self) -> None:
        for service in self._client.services():
            self._output(f"Discovered service: {service.uuid} {service.description}")
            for char in service.characteristics:
                properties = ",".join(char.properties)
                self._output(f"  Discovered char {char.uuid} [{properties}]")

    def _print_payload(self, payload: bytes) -> None:
        text = payload.decode("utf-8", errors="replace")
        self._output(f"Got bytes from tx: {text} {payload.hex().upper()}")


__all__ = ["InteractiveSession", "LineReader", "StdinLineReader"]
