from __future__ import annotations

import pytest

from ble_sensor_exporter.uartsensor import (
    BATTERY_TEMPLATE,
    CENTI_CELSIUS_TO_FAHRENHEIT,
    REPLY_BATTERY,
    REPLY_TEMPERATURE,
    TEMPERATURE_TEMPLATE,
    centi_celsius_to_fahrenheit,
    decode_reply,
    parse_reply,
)


@pytest.mark.parametrize(
    "payload, expected",
    [
        (b"Battery voltage (mV): 3300", 3300),
        (b"Battery voltage (mV): 3300\n", 3300),
        (b"Battery voltage (mV): 4123\r\n", 4123),
        (b"Battery voltage (mV):2950", 2950),
        (b"Battery voltage (mV): -12", -12),
        ("Battery voltage (mV): 0", 0),
    ],
)
def test_parse_reply_extracts_battery_millivolts(payload, expected) -> None:
    assert parse_reply(payload, BATTERY_TEMPLATE) == expected


@pytest.mark.parametrize(
    "payload",
    [
        b"",
        b"Battery voltage (mV): ",
        b"Battery voltage (mV): abc",
        b"Battery voltage (m",
        b"battery voltage (mV): 3300",
        b" Battery voltage (mV): 3300",
        b"Temperature value (0.01 degC): 2500",
        b"\xff\xfe\x00",
        b"OK\n",
    ],
)
def test_parse_reply_rejects_other_shapes(payload) -> None:
    assert parse_reply(payload, BATTERY_TEMPLATE) is None


def test_parse_reply_extracts_temperature_raw_value() -> None:
    assert parse_reply(b"Temperature value (0.01 degC): 2500\n", TEMPERATURE_TEMPLATE) == 2500
    assert parse_reply(b"Battery voltage (mV): 3300", TEMPERATURE_TEMPLATE) is None


def test_temperature_conversion_fixed_points() -> None:
    assert CENTI_CELSIUS_TO_FAHRENHEIT == 0.018
    assert centi_celsius_to_fahrenheit(0) == 32.0
    assert centi_celsius_to_fahrenheit(10000) == pytest.approx(212.0)
    assert centi_celsius_to_fahrenheit(-4000) == pytest.approx(-40.0)


def test_decode_reply_dispatches_on_content() -> None:
    battery = decode_reply(b"Battery voltage (mV): 3300\n")
    assert battery is not None
    assert battery.kind == REPLY_BATTERY
    assert battery.value == 3300

    temperature = decode_reply(b"Temperature value (0.01 degC): 2500\n")
    assert temperature is not None
    assert temperature.kind == REPLY_TEMPERATURE
    assert temperature.value == pytest.approx(77.0)


def test_decode_reply_ignores_unknown_payloads() -> None:
    assert decode_reply(b"ERR unknown command\n") is None
    assert decode_reply(b"Temperature value (0.01 degC): --") is None


def test_parse_reply_allows_only_spaces_or_tabs_before_number() -> None:
    assert parse_reply(b"Battery voltage (mV):\t3300\n", BATTERY_TEMPLATE) == 3300
    assert parse_reply(b"Battery voltage (mV):\n3300", BATTERY_TEMPLATE) is None
    assert parse_reply(b"Temperature value (0.01 degC):\r\n2500", TEMPERATURE_TEMPLATE) is None
