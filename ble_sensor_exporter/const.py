"""Constants for the BLE UART sensor exporter."""

from __future__ import annotations

DEFAULT_CONFIG_PATH = "config.yaml"
DEFAULT_METRICS_PORT = 9090

# Scheduler
DEFAULT_POLL_INTERVAL = 60.0  # seconds between acquisition cycles

# Acquisition cycle timing
COMMAND_PACING = 0.1  # seconds between the two request commands
RESPONSE_WINDOW = 1.0  # seconds to collect replies after the last command

# Discovery
DEFAULT_NAME_PREFIX = "C T"
ADAPTER_CHECK_TIMEOUT = 1.0

# Metric names and their label set
METRIC_CONNECTION_TIME = "ble_sensor_last_connection_time_s"
METRIC_BATTERY = "battery_mv"
METRIC_TEMPERATURE = "temperature_f"
METRIC_LABELS: tuple[str, ...] = ("address", "name", "display_name")
