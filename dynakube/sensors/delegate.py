"""Sensor delegation for fan-out pattern.

SensorDelegate routes sensor events to multiple monitoring backends. Each backend
receives the same events and keeps its own state. A failing backend is logged and
never breaks the reconciliation that emitted the event.
"""

from typing import Set, Dict, Optional, Any
import logging

from dynakube.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class SensorDelegate(OperatorSensor):
    """Delegate sensor that fans out events to multiple backends.

    Example:
        delegate = SensorDelegate()
        delegate.add(PrometheusMonitor())

        state = delegate.on_reconcile_start("dynakube", "routing", "dynatrace", 5, "timer")
        delegate.on_reconcile_complete("dynakube", "routing", "dynatrace", state, True)
    """

    def __init__(self) -> None:
        self._sensors: Set[OperatorSensor] = set()

    def add(self, sensor: OperatorSensor) -> None:
        """Add a sensor to the delegate."""
        logger.info(f"Adding sensor: {sensor.__class__.__name__}")
        self._sensors.add(sensor)

    def remove(self, sensor: OperatorSensor) -> None:
        """Remove a sensor from the delegate."""
        logger.info(f"Removing sensor: {sensor.__class__.__name__}")
        self._sensors.discard(sensor)

    def clear(self) -> None:
        """Remove all sensors from the delegate."""
        logger.info(f"Clearing {len(self._sensors)} sensors")
        self._sensors.clear()

    def _dispatch(self, hook: str, *args: Any) -> None:
        for sensor in self._sensors:
            try:
                getattr(sensor, hook)(*args)
            except Exception as e:
                logger.error(
                    f"Error in {sensor.__class__.__name__}.{hook}: {e}",
                    exc_info=True,
                )

    def _dispatch_start(self, hook: str, *args: Any) -> Optional[Dict[OperatorSensor, Any]]:
        if not self._sensors:
            return None

        states = {}
        for sensor in self._sensors:
            try:
                state = getattr(sensor, hook)(*args)
                if state is not None:
                    states[sensor] = state
            except Exception as e:
                logger.error(
                    f"Error in {sensor.__class__.__name__}.{hook}: {e}",
                    exc_info=True,
                )
        return states if states else None

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        dynakube_name: str,
        capability: str,
        namespace: str,
        generation: int,
        trigger_source: str,
    ) -> Optional[Dict[OperatorSensor, Any]]:
        """Delegate reconcile_start to all sensors.

        Returns:
            Dict mapping each sensor to its returned state, or None if no sensors
        """
        return self._dispatch_start(
            "on_reconcile_start",
            dynakube_name,
            capability,
            namespace,
            generation,
            trigger_source,
        )

    def on_reconcile_complete(
        self,
        dynakube_name: str,
        capability: str,
        namespace: str,
        state: Optional[Dict[OperatorSensor, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Delegate reconcile_complete to all sensors with their specific state."""
        for sensor in self._sensors:
            try:
                sensor_state = state.get(sensor) if state else None
                sensor.on_reconcile_complete(
                    dynakube_name, capability, namespace, sensor_state, success, error
                )
            except Exception as e:
                logger.error(
                    f"Error in {sensor.__class__.__name__}.on_reconcile_complete: {e}",
                    exc_info=True,
                )

    # =============================================================================
    # Resource Operation Hooks
    # =============================================================================

    def on_resource_sync_start(
        self,
        dynakube_name: str,
        capability: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
    ) -> Optional[Dict[OperatorSensor, Any]]:
        return self._dispatch_start(
            "on_resource_sync_start",
            dynakube_name,
            capability,
            resource_name,
            namespace,
            resource_type,
        )

    def on_resource_sync_complete(
        self,
        dynakube_name: str,
        capability: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        state: Optional[Dict[OperatorSensor, Any]],
        operation: str,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        for sensor in self._sensors:
            try:
                sensor_state = state.get(sensor) if state else None
                sensor.on_resource_sync_complete(
                    dynakube_name,
                    capability,
                    resource_name,
                    namespace,
                    resource_type,
                    sensor_state,
                    operation,
                    success,
                    error,
                )
            except Exception as e:
                logger.error(
                    f"Error in {sensor.__class__.__name__}.on_resource_sync_complete: {e}",
                    exc_info=True,
                )

    def on_resource_drift_detected(
        self,
        dynakube_name: str,
        capability: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        drift_fields: list[str],
    ) -> None:
        self._dispatch(
            "on_resource_drift_detected",
            dynakube_name,
            capability,
            resource_name,
            namespace,
            resource_type,
            drift_fields,
        )

    # =============================================================================
    # Image Version Hooks
    # =============================================================================

    def on_version_resolved(
        self,
        dynakube_name: str,
        namespace: str,
        image: str,
        version: str,
        changed: bool,
    ) -> None:
        self._dispatch(
            "on_version_resolved", dynakube_name, namespace, image, version, changed
        )

    # =============================================================================
    # Status Update Hooks
    # =============================================================================

    def on_status_update(
        self,
        name: str,
        namespace: str,
        update_fields: list[str],
    ) -> None:
        self._dispatch("on_status_update", name, namespace, update_fields)

    def asdict(self) -> Dict[str, Any]:
        """Return combined state of all sensors."""
        result = {}
        for sensor in self._sensors:
            try:
                result[sensor.__class__.__name__] = sensor.asdict()
            except Exception as e:
                logger.error(
                    f"Error in {sensor.__class__.__name__}.asdict: {e}",
                    exc_info=True,
                )
        return result
