import logging
from logging import Logger
from typing import Dict, List, Optional
from kubernetes_asyncio.client import AppsV1Api, CoreV1Api, V1OwnerReference, V1StatefulSet
from dynakube.resources.base import BaseResource
from dynakube.resources.capability import Capability
from dynakube.resources.customproperties import CustomPropertiesSecret
from dynakube.resources.kubesystem import KubeSystem
from dynakube.resources.statefulset import build_stateful_set
from dynakube.resources.version import VersionResolver
from dynakube.sensors import OperatorSensor
from dynakube.types.models import ActiveGateStatus, DynaKubeSpec


class StatefulSetSync(BaseResource):
    """Converges the live StatefulSet of a capability onto a desired manifest.

    The live object is either absent (created), converged (left alone) or stale
    (replaced). At most one write happens per call.
    """

    logger: Logger
    sensor: OperatorSensor

    RESOURCE_TYPE = "stateful_set"

    ABSENT = "Absent"
    CONVERGED = "Converged"
    STALE = "Stale"

    def __init__(
        self,
        dynakube_name: str,
        module: str,
        apps_v1_api: AppsV1Api,
        owner_references: Optional[List[V1OwnerReference]] = None,
        sensor: Optional[OperatorSensor] = None,
        logger: Logger = None,
    ):
        self.dynakube_name = dynakube_name
        self.module = module
        self.apps_v1_api = apps_v1_api
        self.owner_references = owner_references
        self.sensor = sensor or OperatorSensor()
        self.logger = logger or logging.getLogger(__name__)

    def state_of(self, actual: Optional[V1StatefulSet], desired: V1StatefulSet) -> str:
        if actual is None:
            return self.ABSENT
        if self.get_template_hash(actual) == self.get_template_hash(desired):
            return self.CONVERGED
        return self.STALE

    async def synchronize(self, desired: V1StatefulSet) -> bool:
        """Returns True when the live object was created or updated."""
        name, namespace = desired.metadata.name, desired.metadata.namespace
        actual = await self.fetch_stateful_set(self.apps_v1_api, name, namespace)
        state = self.state_of(actual, desired)

        if state == self.CONVERGED:
            self.logger.debug(f"StatefulSet `{name}` is up to date.")
            return False

        if state == self.ABSENT:
            await self._write(name, namespace, "create", self.create, desired)
            self.logger.info(f"Created StatefulSet `{name}`.")
            return True

        self.sensor.on_resource_drift_detected(
            self.dynakube_name, self.module, name, namespace, self.RESOURCE_TYPE,
            ["spec", "metadata.labels", "metadata.annotations"],
        )
        await self._write(name, namespace, "update", self.update, actual, desired)
        self.logger.info(f"Updated StatefulSet `{name}`.")
        return True

    async def create(self, desired: V1StatefulSet) -> None:
        # The fingerprint is already stamped; owner references must not change it.
        desired.metadata.owner_references = self.owner_references
        created = await self.create_stateful_set(
            self.apps_v1_api, desired.metadata.namespace, desired
        )
        self.check_write_result("StatefulSet", desired.metadata.name, created)

    async def update(self, actual: V1StatefulSet, desired: V1StatefulSet) -> None:
        # Identity, resourceVersion and ownerReferences stay those of the live object.
        actual.spec = desired.spec
        actual.metadata.labels = desired.metadata.labels
        actual.metadata.annotations = desired.metadata.annotations
        replaced = await self.replace_stateful_set(
            self.apps_v1_api, actual.metadata.name, actual.metadata.namespace, actual
        )
        self.check_write_result("StatefulSet", actual.metadata.name, replaced)

    async def _write(self, name, namespace, operation, write, *args) -> None:
        sensor_state = self.sensor.on_resource_sync_start(
            self.dynakube_name, self.module, name, namespace, self.RESOURCE_TYPE
        )
        success, error = True, None
        try:
            await write(*args)
        except Exception as ex:
            success, error = False, ex
            raise
        finally:
            self.sensor.on_resource_sync_complete(
                self.dynakube_name, self.module, name, namespace, self.RESOURCE_TYPE,
                sensor_state, operation, success, error
            )


class CapabilityReconciler(BaseResource):
    """Runs one reconciliation cycle of a capability for a DynaKube.

    version resolution -> custom properties -> desired StatefulSet -> sync
    """

    logger: Logger
    sensor: OperatorSensor

    def __init__(
        self,
        capability: Capability,
        name: str,
        namespace: str,
        spec: DynaKubeSpec,
        status: ActiveGateStatus,
        apps_v1_api: AppsV1Api,
        core_v1_api: CoreV1Api,
        version_resolver: VersionResolver,
        uid: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
        kube_system_namespace: str = "kube-system",
        sensor: Optional[OperatorSensor] = None,
        logger: Logger = None,
    ):
        self.capability = capability
        self.name = name
        self.namespace = namespace
        self.spec = spec
        self.status = status
        self.apps_v1_api = apps_v1_api
        self.core_v1_api = core_v1_api
        self.version_resolver = version_resolver
        self.uid = uid
        self.labels = labels
        self.kube_system_namespace = kube_system_namespace
        self.sensor = sensor or OperatorSensor()
        self.logger = logger or logging.getLogger(__name__)

    @property
    def owner_references(self) -> Optional[List[V1OwnerReference]]:
        return self.prepare_owner_references(self.name, self.uid)

    async def reconcile(self) -> bool:
        """Converge the capability. Returns True when anything changed.

        Raises on any failure; nothing is written after the failing step.
        """
        version_changed = await self.version_resolver.update_image_version(
            self.name, self.namespace, self.spec, self.status
        )
        custom_properties_hash = await CustomPropertiesSecret(
            self.name,
            self.namespace,
            self.capability.service_account_owner,
            self.capability.module,
            self.capability.properties(self.spec).custom_properties,
            self.core_v1_api,
            owner_references=self.owner_references,
            sensor=self.sensor,
            logger=self.logger,
        ).synchronize()
        kube_system_uid = await KubeSystem(
            self.core_v1_api, self.kube_system_namespace
        ).get_uid()

        desired = build_stateful_set(
            self.name,
            self.namespace,
            self.capability,
            self.spec,
            kube_system_uid,
            custom_properties_hash=custom_properties_hash,
            image_version=self.status.image_version,
            image_hash=self.status.image_hash,
            labels=self.labels,
            logger=self.logger,
        )
        sync_changed = await StatefulSetSync(
            self.name,
            self.capability.module,
            self.apps_v1_api,
            owner_references=self.owner_references,
            sensor=self.sensor,
            logger=self.logger,
        ).synchronize(desired)
        return version_changed or sync_changed
