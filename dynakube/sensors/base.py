"""Base sensor classes for operator monitoring.

This module defines the base OperatorSensor class that provides lifecycle hooks
for monitoring operator events. All hooks are no-ops by default, allowing
subclasses to override only the events they care about.

Hooks come in pairs: on_X_start() returns an optional state dict which is handed
back to the matching on_X_complete().
"""

from typing import Dict, Optional, Any
import logging

logger = logging.getLogger(__name__)


class OperatorSensor:
    """Base sensor class for DynaKube operator monitoring.

    This class defines lifecycle hooks for:
    1. Capability reconciliation (one full cycle of one capability)
    2. Resource operations (StatefulSet and Secret sync)
    3. Image version resolution
    4. Status updates

    All methods are no-ops by default.

    Example:
        class LoggingSensor(OperatorSensor):
            def on_reconcile_start(self, dynakube_name, capability, namespace, generation, trigger_source):
                return {'start_time': time.time()}

            def on_reconcile_complete(self, dynakube_name, capability, namespace, state, success, error=None):
                logger.info(f"Reconciled {capability} in {time.time() - state['start_time']}s")
    """

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
        """Called when a capability reconciliation cycle begins.

        Args:
            dynakube_name: DynaKube resource name
            capability: Capability module (routing, kubemon)
            namespace: Kubernetes namespace
            generation: Resource generation number
            trigger_source: What triggered reconciliation (resume, create, update, timer)

        Returns:
            Optional state dict passed to on_reconcile_complete
        """
        pass

    def on_reconcile_complete(
        self,
        dynakube_name: str,
        capability: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Called when a capability reconciliation cycle completes.

        Args:
            dynakube_name: DynaKube resource name
            capability: Capability module
            namespace: Kubernetes namespace
            state: State dict returned from on_reconcile_start
            success: Whether reconciliation succeeded
            error: Exception if reconciliation failed
        """
        pass

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
        """Called when a write to a K8s resource begins.

        Args:
            dynakube_name: DynaKube resource name
            capability: Capability module
            resource_name: Actual K8s resource name being synced
            namespace: Kubernetes namespace
            resource_type: Type of resource (stateful_set, secret)

        Returns:
            Optional state dict passed to on_resource_sync_complete
        """
        pass

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
        """Called when a write to a K8s resource completes.

        Args:
            dynakube_name: DynaKube resource name
            capability: Capability module
            resource_name: Actual K8s resource name being synced
            namespace: Kubernetes namespace
            resource_type: Type of resource
            state: State dict returned from on_resource_sync_start
            operation: Operation performed (create, update)
            success: Whether operation succeeded
            error: Exception if operation failed
        """
        pass

    def on_resource_drift_detected(
        self,
        dynakube_name: str,
        capability: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        drift_fields: list[str],
    ) -> None:
        """Called when the live fingerprint of a resource differs from the desired one.

        Args:
            dynakube_name: DynaKube resource name
            capability: Capability module
            resource_name: Actual K8s resource name with drift
            namespace: Kubernetes namespace
            resource_type: Type of resource with drift
            drift_fields: Fields that drifted from desired state
        """
        pass

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
        """Called after the ActiveGate image version was resolved from the registry.

        Args:
            dynakube_name: DynaKube resource name
            namespace: Kubernetes namespace
            image: Image reference that was resolved
            version: Resolved version
            changed: Whether the version or digest differ from the stored status
        """
        pass

    # =============================================================================
    # Status Update Hooks
    # =============================================================================

    def on_status_update(
        self,
        name: str,
        namespace: str,
        update_fields: list[str],
    ) -> None:
        """Called when status is updated.

        Args:
            name: DynaKube resource name
            namespace: Kubernetes namespace
            update_fields: List of status fields that were updated
        """
        pass

    # =============================================================================
    # Utility Methods
    # =============================================================================

    def asdict(self) -> Dict[str, Any]:
        """Return sensor state as dictionary."""
        return {}
