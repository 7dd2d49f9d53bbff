"""Prometheus monitoring backend for the DynaKube operator.

PrometheusMonitor collects operator lifecycle events and exposes them as
Prometheus metrics:

1. Reconciliation health - duration, throughput and errors per capability
2. Kubernetes resource sync - operation counts, latency and drift detection
3. Image versions - registry resolutions and version changes
"""

from typing import Dict, Optional, Any
import time
import logging

from prometheus_client import Counter, Histogram

from dynakube.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class PrometheusMonitor(OperatorSensor):
    """Prometheus metrics monitor for the DynaKube operator.

    Metrics are exposed via prometheus_client and scraped from the /metrics endpoint:
    - dkop_reconcile_* - Capability reconciliation metrics
    - dkop_resource_* - Kubernetes resource sync metrics
    - dkop_image_* - Image version resolution metrics
    """

    def __init__(self):
        super().__init__()

        # =============================================================================
        # Reconciliation Metrics
        # =============================================================================

        self.reconcile_duration = Histogram(
            'dkop_reconcile_duration_seconds',
            'Time spent reconciling a capability',
            labelnames=['dynakube_name', 'capability', 'namespace', 'trigger_source', 'result'],
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
        )

        self.reconcile_total = Counter(
            'dkop_reconcile_total',
            'Total number of capability reconciliations',
            labelnames=['dynakube_name', 'capability', 'namespace', 'trigger_source', 'result'],
        )

        self.reconcile_errors = Counter(
            'dkop_reconcile_errors_total',
            'Total number of capability reconciliation errors',
            labelnames=['dynakube_name', 'capability', 'namespace', 'error_type'],
        )

        # =============================================================================
        # Kubernetes Resource Sync Metrics
        # =============================================================================

        self.resource_sync_duration = Histogram(
            'dkop_resource_sync_duration_seconds',
            'Time spent writing Kubernetes resources',
            labelnames=['dynakube_name', 'capability', 'namespace', 'resource_type', 'operation', 'result'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
        )

        self.resource_sync_total = Counter(
            'dkop_resource_sync_total',
            'Total number of resource write operations',
            labelnames=['dynakube_name', 'capability', 'namespace', 'resource_type', 'operation', 'result'],
        )

        self.resource_sync_errors = Counter(
            'dkop_resource_sync_errors_total',
            'Total number of resource write errors',
            labelnames=['dynakube_name', 'capability', 'namespace', 'resource_type', 'error_type'],
        )

        self.resource_drift_detected = Counter(
            'dkop_resource_drift_detected_total',
            'Total number of fingerprint mismatches between live and desired resources',
            labelnames=['dynakube_name', 'capability', 'namespace', 'resource_type', 'drift_field'],
        )

        # =============================================================================
        # Image Version Metrics
        # =============================================================================

        self.image_resolutions = Counter(
            'dkop_image_resolutions_total',
            'Total number of successful image version resolutions',
            labelnames=['dynakube_name', 'namespace', 'changed'],
        )

        # =============================================================================
        # Status Update Metrics
        # =============================================================================

        self.status_updates = Counter(
            'dkop_status_updates_total',
            'Total number of status updates',
            labelnames=['dynakube_name', 'namespace', 'update_field'],
        )

        logger.info("PrometheusMonitor initialized with all metrics")

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
    ) -> Optional[Dict[str, Any]]:
        """Record reconciliation start time."""
        return {
            'start_time': time.time(),
            'trigger_source': trigger_source,
        }

    def on_reconcile_complete(
        self,
        dynakube_name: str,
        capability: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Record reconciliation duration and result."""
        if state:
            duration = time.time() - state['start_time']
            trigger_source = state['trigger_source']
            result = 'success' if success else 'failure'

            self.reconcile_duration.labels(
                dynakube_name=dynakube_name,
                capability=capability,
                namespace=namespace,
                trigger_source=trigger_source,
                result=result,
            ).observe(duration)

            self.reconcile_total.labels(
                dynakube_name=dynakube_name,
                capability=capability,
                namespace=namespace,
                trigger_source=trigger_source,
                result=result,
            ).inc()

        if error:
            self.reconcile_errors.labels(
                dynakube_name=dynakube_name,
                capability=capability,
                namespace=namespace,
                error_type=error.__class__.__name__,
            ).inc()

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
    ) -> Optional[Dict[str, Any]]:
        """Record resource sync start time."""
        return {
            'start_time': time.time(),
            'resource_type': resource_type,
            'resource_name': resource_name,
        }

    def on_resource_sync_complete(
        self,
        dynakube_name: str,
        capability: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        state: Optional[Dict[str, Any]],
        operation: str,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Record resource sync duration and result."""
        result = 'success' if success else 'failure'
        if state:
            duration = time.time() - state['start_time']
            self.resource_sync_duration.labels(
                dynakube_name=dynakube_name,
                capability=capability,
                namespace=namespace,
                resource_type=resource_type,
                operation=operation,
                result=result,
            ).observe(duration)

        self.resource_sync_total.labels(
            dynakube_name=dynakube_name,
            capability=capability,
            namespace=namespace,
            resource_type=resource_type,
            operation=operation,
            result=result,
        ).inc()

        if error:
            self.resource_sync_errors.labels(
                dynakube_name=dynakube_name,
                capability=capability,
                namespace=namespace,
                resource_type=resource_type,
                error_type=error.__class__.__name__,
            ).inc()

    def on_resource_drift_detected(
        self,
        dynakube_name: str,
        capability: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        drift_fields: list[str],
    ) -> None:
        """Record drift detection."""
        for field in drift_fields:
            self.resource_drift_detected.labels(
                dynakube_name=dynakube_name,
                capability=capability,
                namespace=namespace,
                resource_type=resource_type,
                drift_field=field,
            ).inc()

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
        self.image_resolutions.labels(
            dynakube_name=dynakube_name,
            namespace=namespace,
            changed=str(changed).lower(),
        ).inc()

    def on_status_update(
        self,
        name: str,
        namespace: str,
        update_fields: list[str],
    ) -> None:
        """Record status update."""
        for field in update_fields:
            self.status_updates.labels(
                dynakube_name=name,
                namespace=namespace,
                update_field=field,
            ).inc()
