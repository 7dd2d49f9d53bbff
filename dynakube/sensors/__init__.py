"""DynaKube Operator Sensor Framework.

Non-invasive instrumentation of operator lifecycle events through a hook-based
pattern.

Key components:
- OperatorSensor: Base class defining lifecycle hooks for operator events
- SensorDelegate: Fan-out pattern for routing events to multiple sensor backends
- PrometheusMonitor: Prometheus metrics exporter
"""

from dynakube.sensors.base import OperatorSensor
from dynakube.sensors.delegate import SensorDelegate
from dynakube.sensors.prometheus import PrometheusMonitor
from dynakube.sensors.server import init_metrics_server

__all__ = [
    'OperatorSensor',
    'SensorDelegate',
    'PrometheusMonitor',
    'init_metrics_server',
]
