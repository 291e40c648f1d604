from __future__ import annotations

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.parser import text_string_to_metric_families

from ble_sensor_exporter.config import DeviceConfig
from ble_sensor_exporter.metrics import MetricsSink


def test_gauges_are_keyed_by_device_labels() -> None:
    registry = CollectorRegistry()
    sink = MetricsSink(registry)
    first = DeviceConfig(address="AA:01", name="kitchen", display_name="Kitchen")
    second = DeviceConfig(address="AA:02", name="attic")

    sink.set_battery(first, 3300)
    sink.set_battery(second, 2900)
    sink.set_temperature(first, 77.0)
    sink.set_connection_latency(second, 1.25)

    assert registry.get_sample_value(
        "battery_mv", {"address": "AA:01", "name": "kitchen", "display_name": "Kitchen"}
    ) == 3300
    assert registry.get_sample_value(
        "battery_mv", {"address": "AA:02", "name": "attic", "display_name": ""}
    ) == 2900
    assert registry.get_sample_value(
        "temperature_f", {"address": "AA:02", "name": "attic", "display_name": ""}
    ) is None
    assert registry.get_sample_value(
        "ble_sensor_last_connection_time_s", {"address": "AA:02", "name": "attic", "display_name": ""}
    ) == 1.25


def test_updates_overwrite_previous_values() -> None:
    sink = MetricsSink()
    device = DeviceConfig(address="AA:01", name="kitchen")

    sink.set_temperature(device, 70.0)
    sink.set_temperature(device, 71.5)

    labels = {"address": "AA:01", "name": "kitchen", "display_name": ""}
    assert sink.registry.get_sample_value("temperature_f", labels) == 71.5


def test_sinks_do_not_share_state() -> None:
    device = DeviceConfig(address="AA:01", name="kitchen")
    one = MetricsSink()
    two = MetricsSink()

    one.set_battery(device, 3000)

    labels = {"address": "AA:01", "name": "kitchen", "display_name": ""}
    assert two.registry.get_sample_value("battery_mv", labels) is None
    exposition = generate_latest(one.registry).decode()
    samples = [
        (sample.name, sample.labels, sample.value)
        for family in text_string_to_metric_families(exposition)
        for sample in family.samples
    ]
    assert samples == [
        ("battery_mv", {"address": "AA:01", "name": "kitchen", "display_name": ""}, 3000.0)
    ]
