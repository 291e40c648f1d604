"""Client-side helpers for BLE sensors that speak a line protocol over UART.

:mod:`.ble` wraps a bleak client around the Nordic UART service and
:mod:`.protocol` holds the request commands and the reply decoders.
"""

from .ble import (
    DEFAULT_CONNECT_TIMEOUT,
    UART_RX_UUID,
    UART_SERVICE_UUID,
    UART_TX_UUID,
    Connector,
    PayloadCallback,
    UartSensorClient,
    establish_client,
)
from .protocol import (  # noqa: F401
    BATTERY_TEMPLATE,
    CENTI_CELSIUS_TO_FAHRENHEIT,
    CMD_GET_BATTERY_VOLTAGE,
    CMD_GET_SENSOR_DATA,
    REPLY_BATTERY,
    REPLY_TEMPERATURE,
    REQUEST_COMMANDS,
    TEMPERATURE_TEMPLATE,
    Reply,
    ReplyTemplate,
    centi_celsius_to_fahrenheit,
    decode_reply,
    parse_reply,
)

__all__ = [
    "BATTERY_TEMPLATE",
    "CENTI_CELSIUS_TO_FAHRENHEIT",
    "CMD_GET_BATTERY_VOLTAGE",
    "CMD_GET_SENSOR_DATA",
    "DEFAULT_CONNECT_TIMEOUT",
    "REPLY_BATTERY",
    "REPLY_TEMPERATURE",
    "REQUEST_COMMANDS",
    "TEMPERATURE_TEMPLATE",
    "UART_RX_UUID",
    "UART_SERVICE_UUID",
    "UART_TX_UUID",
    "Connector",
    "PayloadCallback",
    "Reply",
    "ReplyTemplate",
    "UartSensorClient",
    "centi_celsius_to_fahrenheit",
    "decode_reply",
    "establish_client",
    "parse_reply",
]
