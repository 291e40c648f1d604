"""Prometheus gauges fed by acquisition cycles."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from prometheus_client import CollectorRegistry, Gauge, start_http_server

from .const import (
    METRIC_BATTERY,
    METRIC_CONNECTION_TIME,
    METRIC_LABELS,
    METRIC_TEMPERATURE,
)

if TYPE_CHECKING:
    from .config import DeviceConfig

LOGGER = logging.getLogger(__name__)


class MetricsSink:
    """Owns the exporter's gauges, keyed by (address, name, display_name)."""

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self._connection_time = Gauge(
            METRIC_CONNECTION_TIME,
            "Seconds taken to establish the last BLE connection",
            METRIC_LABELS,
            registry=self.registry,
        )
        self._battery = Gauge(
            METRIC_BATTERY,
            "Last reported battery voltage in millivolts",
            METRIC_LABELS,
            registry=self.registry,
        )
        self._temperature = Gauge(
            METRIC_TEMPERATURE,
            "Last reported temperature in degrees Fahrenheit",
            METRIC_LABELS,
            registry=self.registry,
        )

    def set_connection_latency(self, device: DeviceConfig, seconds: float) -> None:
        self._connection_time.labels(*device.labels).set(seconds)

    def set_battery(self, device: DeviceConfig, millivolts: int) -> None:
        self._battery.labels(*device.labels).set(millivolts)

    def set_temperature(self, device: DeviceConfig, fahrenheit: float) -> None:
        self._temperature.labels(*device.labels).set(fahrenheit)

    def serve(self, port: int, addr: str = "0.0.0.0") -> None:
        """Expose the registry on ``http://<addr>:<port>/metrics`` from a daemon thread."""
        start_http_server(port, addr=addr, registry=self.registry)
        LOGGER.info("Serving metrics at %s:%s", addr, port)


__all__ = ["MetricsSink"]
