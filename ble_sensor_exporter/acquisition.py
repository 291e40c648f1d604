"""Single connect/command/collect/disconnect transaction against one sensor."""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import partial
from typing import Iterator, Optional

from .config import DeviceConfig
from .const import COMMAND_PACING, RESPONSE_WINDOW
from .metrics import MetricsSink
from .uartsensor import (
    DEFAULT_CONNECT_TIMEOUT,
    REPLY_BATTERY,
    REPLY_TEMPERATURE,
    REQUEST_COMMANDS,
    Connector,
    UartSensorClient,
    decode_reply,
)

LOGGER = logging.getLogger(__name__)


class CycleStep(str, Enum):
    CONNECT = "connect"
    DISCOVER = "discover"
    SUBSCRIBE = "subscribe"
    WRITE = "write"
    DISCONNECT = "disconnect"


class AcquisitionError(RuntimeError):
    """A cycle step failed; ``step`` names it and ``cause`` holds the original error."""

    def __init__(self, step: CycleStep, cause: BaseException) -> None:
        self.step = step
        self.cause = cause
        detail = str(cause) or type(cause).__name__
        super().__init__(f"{step.value} failed: {detail}")


@dataclass(frozen=True)
class AcquisitionTiming:
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    command_pacing: float = COMMAND_PACING
    response_window: float = RESPONSE_WINDOW


@dataclass
class AcquisitionResult:
    """Outcome of one cycle. Failed results never carry decoded values."""

    battery_mv: Optional[int] = None
    temperature_f: Optional[float] = None
    connection_latency: Optional[float] = None
    error: Optional[str] = None
    step: Optional[CycleStep] = None
    completed_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@contextmanager
def _step(step: CycleStep) -> Iterator[None]:
    try:
        yield
    except AcquisitionError:
        raise
    except Exception as exc:
        raise AcquisitionError(step, exc) from exc


class AcquisitionCycle:
    """Runs the request/reply exchange for a device and publishes decoded values.

    Values are pushed to the sink as soon as a notification decodes, so a
    metric can advance even when a later step of the same cycle fails.
    """

    def __init__(
        self,
        sink: MetricsSink,
        *,
        timing: Optional[AcquisitionTiming] = None,
        connector: Optional[Connector] = None,
    ) -> None:
        self.sink = sink
        self.timing = timing or AcquisitionTiming()
        self._connector = connector

    async def run(self, device: DeviceConfig) -> AcquisitionResult:
        result = AcquisitionResult()
        client = UartSensorClient(
            device.address,
            name=device.name,
            connector=self._connector,
            connect_timeout=self.timing.connect_timeout,
        )

        started = time.monotonic()
        try:
            with _step(CycleStep.CONNECT):
                await client.connect()
        except AcquisitionError as exc:
            return self._fail(device, result, exc)
        result.connection_latency = time.monotonic() - started
        self.sink.set_connection_latency(device, result.connection_latency)
        LOGGER.debug(
            "Connected to %s (%s) in %.2fs", device.name, device.address, result.connection_latency
        )

        failure: Optional[AcquisitionError] = None
        try:
            await self._exchange(device, client, result)
        except AcquisitionError as exc:
            failure = exc
        finally:
            disconnect_failure = await self._disconnect(device, client)

        if failure is None:
            failure = disconnect_failure
        if failure is not None:
            self._fail(device, result, failure)
            if disconnect_failure is not None and disconnect_failure is not failure:
                result.error = f"{result.error}; {disconnect_failure}"
            return result
        result.completed_at = datetime.now()
        return result

    async def _exchange(
        self, device: DeviceConfig, client: UartSensorClient, result: AcquisitionResult
    ) -> None:
        with _step(CycleStep.DISCOVER):
            await client.discover()
        with _step(CycleStep.SUBSCRIBE):
            await client.subscribe_notifications(partial(self._handle_payload, device, result))
        with _step(CycleStep.WRITE):
            await client.send_commands(REQUEST_COMMANDS, self.timing.command_pacing)

        # No end-of-reply marker exists, so always wait the whole window.
        await asyncio.sleep(self.timing.response_window)

    async def _disconnect(
        self, device: DeviceConfig, client: UartSensorClient
    ) -> Optional[AcquisitionError]:
        try:
            with _step(CycleStep.DISCONNECT):
                await client.disconnect()
        except AcquisitionError as exc:
            LOGGER.debug("Disconnect from %s (%s) failed: %s", device.name, device.address, exc.cause)
            return exc
        return None

    def _handle_payload(self, device: DeviceConfig, result: AcquisitionResult, payload: bytes) -> None:
        reply = decode_reply(payload)
        if reply is None:
            LOGGER.debug("Ignoring payload from %s: %r", device.name, payload)
            return
        if reply.kind == REPLY_BATTERY:
            result.battery_mv = int(reply.value)
            self.sink.set_battery(device, result.battery_mv)
        elif reply.kind == REPLY_TEMPERATURE:
            result.temperature_f = float(reply.value)
            self.sink.set_temperature(device, result.temperature_f)

    def _fail(
        self, device: DeviceConfig, result: AcquisitionResult, error: AcquisitionError
    ) -> AcquisitionResult:
        LOGGER.debug("Poll of %s (%s) failed: %s", device.name, device.address, error)
        result.battery_mv = None
        result.temperature_f = None
        result.error = str(error)
        result.step = error.step
        result.completed_at = datetime.now()
        return result


__all__ = [
    "AcquisitionCycle",
    "AcquisitionError",
    "AcquisitionResult",
    "AcquisitionTiming",
    "CycleStep",
]
