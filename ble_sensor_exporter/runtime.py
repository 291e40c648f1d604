"""Per-device polling loops that drive acquisition cycles on a fixed timer."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Callable, Iterable, List, Optional

from .acquisition import AcquisitionCycle, AcquisitionResult
from .config import DeviceConfig

ResultCallback = Callable[[DeviceConfig, AcquisitionResult], None]

LOGGER = logging.getLogger(__name__)


class DeviceRuntime:
    """Polls one device immediately and then once per interval until stopped."""

    def __init__(
        self,
        device: DeviceConfig,
        cycle: AcquisitionCycle,
        *,
        on_result: Optional[ResultCallback] = None,
    ) -> None:
        self._device = device
        self._cycle = cycle
        self._on_result = on_result
        self._task: asyncio.Task | None = None
        self.cycles = 0

    @property
    def device(self) -> DeviceConfig:
        return self._device

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Begin the polling loop on the running event loop."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(
                self.run(), name=f"poll-{self._device.name}"
            )
        return self._task

    async def stop(self) -> None:
        """Cancel the polling loop and wait for the in-flight cycle to release its connection."""
        task = self._task
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        self._task = None

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        interval = self._device.interval
        deadline = loop.time()
        while True:
            await self.poll_once()
            deadline += interval
            now = loop.time()
            if deadline < now:
                # Ticks missed while the cycle ran are dropped, not queued.
                skipped = int((now - deadline) // interval) + 1
                deadline += skipped * interval
            await asyncio.sleep(deadline - now)

    async def poll_once(self) -> Optional[AcquisitionResult]:
        """Run a single cycle, reporting its outcome without letting failures escape."""
        self.cycles += 1
        try:
            result = await self._cycle.run(self._device)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # pragma: no cover
            LOGGER.warning("Poll loop error for %s (%s): %s", self._device.name, self._device.address, exc)
            return None

        if self._on_result is not None:
            try:
                self._on_result(self._device, result)
            except Exception:
                LOGGER.exception("Result callback failed for %s", self._device.name)
        return result


class DeviceFleet:
    """One independent :class:`DeviceRuntime` per configured device."""

    def __init__(
        self,
        devices: Iterable[DeviceConfig],
        cycle: AcquisitionCycle,
        *,
        on_result: Optional[ResultCallback] = None,
    ) -> None:
        self.runtimes: List[DeviceRuntime] = [
            DeviceRuntime(device, cycle, on_result=on_result) for device in devices
        ]

    def start(self) -> List[asyncio.Task]:
        for runtime in self.runtimes:
            LOGGER.info(
                "Polling %s (%s) every %gs", runtime.device.name, runtime.device.address, runtime.device.interval
            )
        return [runtime.start() for runtime in self.runtimes]

    async def stop(self) -> None:
        """Cancel every device loop together."""
        await asyncio.gather(*(runtime.stop() for runtime in self.runtimes))

    async def run_forever(self) -> None:
        tasks = self.start()
        try:
            await asyncio.gather(*tasks)
        finally:
            await self.stop()


__all__ = ["DeviceFleet", "DeviceRuntime", "ResultCallback"]
