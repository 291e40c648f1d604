"""Poll BLE UART sensors and republish their telemetry as Prometheus metrics."""

from .acquisition import (
    AcquisitionCycle,
    AcquisitionError,
    AcquisitionResult,
    AcquisitionTiming,
    CycleStep,
)
from .config import AppConfig, ConfigError, DeviceConfig, load_config
from .metrics import MetricsSink
from .runtime import DeviceFleet, DeviceRuntime
from .scanner import DiscoveredDevice, DiscoveryScanner

__version__ = "0.1.0"

__all__ = [
    "AcquisitionCycle",
    "AcquisitionError",
    "AcquisitionResult",
    "AcquisitionTiming",
    "AppConfig",
    "ConfigError",
    "CycleStep",
    "DeviceConfig",
    "DeviceFleet",
    "DeviceRuntime",
    "DiscoveredDevice",
    "DiscoveryScanner",
    "MetricsSink",
    "load_config",
]
