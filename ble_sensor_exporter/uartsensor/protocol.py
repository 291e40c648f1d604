"""Command and reply helpers for the sensor's line-oriented UART protocol."""

import re
from dataclasses import dataclass, field
from typing import Optional, Pattern

# Request commands written to the RX characteristic
CMD_GET_BATTERY_VOLTAGE = b"GET_BATT_VOLTAGE\n"
CMD_GET_SENSOR_DATA = b"GET_SENSOR_DATA\n"
REQUEST_COMMANDS = (CMD_GET_BATTERY_VOLTAGE, CMD_GET_SENSOR_DATA)

REPLY_BATTERY = "battery"
REPLY_TEMPERATURE = "temperature"

# 0.01 degC steps to degF: (raw / 100) * 9 / 5 + 32
CENTI_CELSIUS_TO_FAHRENHEIT = 0.018
FAHRENHEIT_OFFSET = 32


@dataclass(frozen=True)
class ReplyTemplate:
    """Fixed-format reply carrying a single integer after ``prefix``."""

    kind: str
    prefix: str
    pattern: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "pattern", re.compile(re.escape(self.prefix) + r"[ \t]*([+-]?\d+)")
        )


@dataclass(frozen=True)
class Reply:
    kind: str
    value: float | int


BATTERY_TEMPLATE = ReplyTemplate(REPLY_BATTERY, "Battery voltage (mV):")
TEMPERATURE_TEMPLATE = ReplyTemplate(REPLY_TEMPERATURE, "Temperature value (0.01 degC):")


def parse_reply(payload: bytes | str, template: ReplyTemplate) -> Optional[int]:
    """Return the integer carried by *payload*, or ``None`` when it does not match.

    The payload has to start with the template prefix. Spaces or tabs may precede
    the number and anything after it (line terminators, coalesced bytes) is
    ignored. Notification buffers can arrive truncated, so a mismatch is never
    treated as an error.
    """
    if isinstance(payload, (bytes, bytearray)):
        text = bytes(payload).decode("utf-8", errors="replace")
    else:
        text = payload
    match = template.pattern.match(text)
    if match is None:
        return None
    return int(match.group(1))


def centi_celsius_to_fahrenheit(raw: int) -> float:
    """Convert a reading in hundredths of a degree Celsius to Fahrenheit."""
    return raw * CENTI_CELSIUS_TO_FAHRENHEIT + FAHRENHEIT_OFFSET


def decode_reply(payload: bytes | str) -> Optional[Reply]:
    """Decode a notification payload into a battery or temperature reply."""
    millivolts = parse_reply(payload, BATTERY_TEMPLATE)
    if millivolts is not None:
        return Reply(REPLY_BATTERY, millivolts)

    centi_celsius = parse_reply(payload, TEMPERATURE_TEMPLATE)
    if centi_celsius is not None:
        return Reply(REPLY_TEMPERATURE, centi_celsius_to_fahrenheit(centi_celsius))
    return None
