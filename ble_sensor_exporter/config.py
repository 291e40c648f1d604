"""Device configuration for the BLE sensor exporter."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import voluptuous as vol
import yaml

from .const import DEFAULT_CONFIG_PATH, DEFAULT_POLL_INTERVAL

_DURATION_UNITS = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 1e-3,
    "us": 1e-6,
    "µs": 1e-6,
    "ns": 1e-9,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|h|m|s)")


class ConfigError(ValueError):
    """Raised when the device configuration cannot be used."""


def parse_duration(value: Any) -> float:
    """Return *value* in seconds.

    Numbers are taken as seconds. Strings use Go-style durations such as
    ``"30s"``, ``"1m30s"`` or ``"500ms"``.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid duration {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        text = value.strip()
        try:
            seconds = float(text)
        except ValueError:
            seconds = _parse_duration_string(text)
    else:
        raise ValueError(f"invalid duration {value!r}")
    if seconds < 0:
        raise ValueError(f"duration must not be negative: {value!r}")
    return seconds


def _parse_duration_string(text: str) -> float:
    position = 0
    total = 0.0
    while position < len(text):
        match = _DURATION_PART.match(text, position)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if not text:
        raise ValueError("empty duration")
    return total


def _duration(value: Any) -> float:
    try:
        return parse_duration(value)
    except ValueError as exc:
        raise vol.Invalid(str(exc)) from exc


def _optional_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _address(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # YAML 1.1 reads unquoted all-digit addresses such as 12:34:56:11:22:33
        # as base-60 integers.
        raise vol.Invalid(
            f"address was read as the number {value!r}; quote the address in the YAML file"
        )
    raise vol.Invalid(f"address must be a string, got {value!r}")


DEVICE_SCHEMA = vol.Schema(
    {
        vol.Required("address"): vol.All(_address, vol.Strip, vol.Length(min=1)),
        vol.Required("name"): vol.All(
            vol.Any(str, int, float), vol.Coerce(str), vol.Strip, vol.Length(min=1)
        ),
        vol.Optional("display_name", default=""): _optional_text,
        vol.Optional("original_name", default=""): _optional_text,
        vol.Exclusive("frequency", "interval"): vol.Any(None, _duration),
        vol.Exclusive("poll_interval", "interval"): vol.Any(None, _duration),
    },
    extra=vol.REMOVE_EXTRA,
)

CONFIG_SCHEMA = vol.Schema(
    {vol.Optional("devices", default=list): vol.Any(None, [dict])},
    extra=vol.ALLOW_EXTRA,
)


@dataclass(frozen=True)
class DeviceConfig:
    """Identity and polling policy for one BLE sensor."""

    address: str
    name: str
    display_name: str = ""
    poll_interval: Optional[float] = None
    original_name: str = ""

    @property
    def interval(self) -> float:
        """Seconds between acquisition cycles, falling back to the default."""
        if not self.poll_interval:
            return DEFAULT_POLL_INTERVAL
        return self.poll_interval

    @property
    def labels(self) -> Tuple[str, str, str]:
        return (self.address, self.name, self.display_name)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "DeviceConfig":
        try:
            data = DEVICE_SCHEMA(payload)
        except vol.Invalid as exc:
            raise ConfigError(f"invalid device entry: {exc}") from exc
        interval = data.get("frequency")
        if interval is None:
            interval = data.get("poll_interval")
        return cls(
            address=data["address"],
            name=data["name"],
            display_name=data["display_name"],
            poll_interval=interval,
            original_name=data["original_name"],
        )


@dataclass(frozen=True)
class AppConfig:
    devices: Tuple[DeviceConfig, ...] = field(default_factory=tuple)
    source: Optional[Path] = None

    def require_devices(self) -> Tuple[DeviceConfig, ...]:
        """Return the configured devices, raising when there are none."""
        if not self.devices:
            where = f" in {self.source}" if self.source else ""
            raise ConfigError(f"Must configure at least one device{where}")
        return self.devices


def build_config(payload: Optional[Dict[str, Any]], source: Optional[Path] = None) -> AppConfig:
    """Validate a decoded configuration mapping."""
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ConfigError("configuration root must be a mapping")
    try:
        data = CONFIG_SCHEMA(payload)
    except vol.Invalid as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc

    devices = []
    seen: set[str] = set()
    for entry in data["devices"] or ():
        device = DeviceConfig.from_dict(entry)
        key = device.address.upper()
        if key in seen:
            raise ConfigError(f"duplicate device address {device.address}")
        seen.add(key)
        devices.append(device)
    return AppConfig(devices=tuple(devices), source=source)


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Load and validate the YAML configuration at *path*."""
    resolved = Path(path)
    if not resolved.exists():
        raise FileNotFoundError(f"Configuration file not found: {resolved}")
    return build_config(_load_yaml(resolved), source=resolved)


def _load_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        try:
            return yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ConfigError(f"{path}: {exc}") from exc


__all__ = [
    "AppConfig",
    "ConfigError",
    "DeviceConfig",
    "build_config",
    "load_config",
    "parse_duration",
]
