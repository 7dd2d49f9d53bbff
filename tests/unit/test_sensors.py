"""Unit tests for sensor fan-out."""

import pytest
from prometheus_client import REGISTRY
from dynakube.sensors import OperatorSensor, PrometheusMonitor, SensorDelegate


class RecordingSensor(OperatorSensor):
    def __init__(self):
        self.events = []

    def on_reconcile_start(self, dynakube_name, capability, namespace, generation, trigger_source):
        self.events.append(("start", capability))
        return {"sensor": self}

    def on_reconcile_complete(self, dynakube_name, capability, namespace, state, success, error=None):
        self.events.append(("complete", capability, state, success))

    def on_version_resolved(self, dynakube_name, namespace, image, version, changed):
        self.events.append(("version", version, changed))


class BrokenSensor(OperatorSensor):
    def on_reconcile_start(self, *args):
        raise RuntimeError("boom")

    def on_reconcile_complete(self, *args):
        raise RuntimeError("boom")

    def on_version_resolved(self, *args):
        raise RuntimeError("boom")

    def asdict(self):
        raise RuntimeError("boom")


class TestSensorDelegate:
    def test_without_sensors(self):
        delegate = SensorDelegate()
        assert delegate.on_reconcile_start("dk", "routing", "ns", 1, "timer") is None
        delegate.on_reconcile_complete("dk", "routing", "ns", None, True)

    def test_each_sensor_gets_its_own_state(self):
        first, second = RecordingSensor(), RecordingSensor()
        delegate = SensorDelegate()
        delegate.add(first)
        delegate.add(second)

        state = delegate.on_reconcile_start("dk", "routing", "ns", 1, "timer")
        delegate.on_reconcile_complete("dk", "routing", "ns", state, True)

        assert first.events[-1] == ("complete", "routing", {"sensor": first}, True)
        assert second.events[-1] == ("complete", "routing", {"sensor": second}, True)

    def test_failing_sensor_does_not_break_others(self):
        recording = RecordingSensor()
        delegate = SensorDelegate()
        delegate.add(BrokenSensor())
        delegate.add(recording)

        state = delegate.on_reconcile_start("dk", "kubemon", "ns", 1, "update")
        delegate.on_reconcile_complete("dk", "kubemon", "ns", state, False, ValueError())
        delegate.on_version_resolved("dk", "ns", "img", "1.2.3", True)

        assert recording.events == [
            ("start", "kubemon"),
            ("complete", "kubemon", {"sensor": recording}, False),
            ("version", "1.2.3", True),
        ]
        assert "RecordingSensor" in delegate.asdict()

    def test_remove_and_clear(self):
        sensor = RecordingSensor()
        delegate = SensorDelegate()
        delegate.add(sensor)
        delegate.remove(sensor)
        assert delegate.on_reconcile_start("dk", "routing", "ns", 1, "timer") is None
        delegate.add(sensor)
        delegate.clear()
        delegate.on_version_resolved("dk", "ns", "img", "1", False)
        assert sensor.events == []


@pytest.fixture(scope="module")
def monitor():
    # Metrics register in the global prometheus registry, so build one per module.
    return PrometheusMonitor()


class TestPrometheusMonitor:
    def sample(self, name, **labels):
        return REGISTRY.get_sample_value(name, labels)

    def test_reconcile_metrics(self, monitor):
        state = monitor.on_reconcile_start("dk", "routing", "ns", 1, "timer")
        monitor.on_reconcile_complete("dk", "routing", "ns", state, False, ValueError("x"))
        assert self.sample(
            "dkop_reconcile_total",
            dynakube_name="dk", capability="routing", namespace="ns",
            trigger_source="timer", result="failure",
        ) == 1.0
        assert self.sample(
            "dkop_reconcile_errors_total",
            dynakube_name="dk", capability="routing", namespace="ns", error_type="ValueError",
        ) == 1.0

    def test_drift_metrics(self, monitor):
        monitor.on_resource_drift_detected(
            "dk", "kubemon", "dk-kubemon", "ns", "stateful_set", ["spec", "metadata.labels"]
        )
        assert self.sample(
            "dkop_resource_drift_detected_total",
            dynakube_name="dk", capability="kubemon", namespace="ns",
            resource_type="stateful_set", drift_field="spec",
        ) == 1.0

    def test_version_metrics(self, monitor):
        monitor.on_version_resolved("dk", "ns", "img", "1.2.3", True)
        assert self.sample(
            "dkop_image_resolutions_total", dynakube_name="dk", namespace="ns", changed="true"
        ) == 1.0
