import kopf
from logging import Logger
from typing import Dict, List
from marshmallow import ValidationError
from kubernetes_asyncio.client import ApiException
from dynakube.types.settings import (
    RECONCILE_INTERVAL_SECONDS,
    RECONCILE_INITIAL_DELAY_SECONDS,
)
from dynakube.types.models import DynaKubeSpec, DynaKubeStatus
from dynakube.types.schemas import (
    ActiveGateStatusSchema,
    DynaKubeSpecSchema,
    DynaKubeStatusSchema,
)
from dynakube.resources import CAPABILITIES, CapabilityReconciler, VersionResolver
from dynakube.sensors import OperatorSensor
from dynakube.utils.errors import ReconcileError, convert_reconcile_error
from dynakube.utils.helpers import upsert_condition

GROUP = "dynatrace.com"
VERSION = "v1alpha1"
PLURAL = "dynakubes"
KIND = "DynaKube"


def get_sensor(memo) -> OperatorSensor:
    return getattr(memo, "sensor", None) or OperatorSensor()


def on_error(error, meta, status, patch, **_):
    """Record a failed cycle in the status conditions."""
    gen = meta.get("generation", 0)
    conds = (status or {}).get("conditions", [])
    conds = upsert_condition(
        conds,
        {
            "type": "Progressing",
            "status": "False",
            "reason": "Error",
            "message": str(error) if error else "Reconcile failed; see events/logs",
            "observedGeneration": gen,
        },
    )
    conds = upsert_condition(
        conds,
        {
            "type": "Ready",
            "status": "False",
            "reason": "Error",
            "message": "ActiveGate capabilities not ready",
            "observedGeneration": gen,
        },
    )
    patch.status["conditions"] = conds


def on_success(meta, status, patch, reconciled: List[str], **_):
    gen = meta.get("generation", 0)
    conds = (status or {}).get("conditions", [])
    conds = upsert_condition(
        conds,
        {
            "type": "Progressing",
            "status": "False",
            "reason": "ReconcileComplete",
            "message": "All capabilities are in desired state",
            "observedGeneration": gen,
        },
    )
    conds = upsert_condition(
        conds,
        {
            "type": "Ready",
            "status": "True",
            "reason": "ReconcileComplete",
            "message": f"Reconciled capabilities: {', '.join(reconciled) or 'none'}",
            "observedGeneration": gen,
        },
    )
    patch.status["conditions"] = conds


def load_spec(spec) -> DynaKubeSpec:
    try:
        return DynaKubeSpecSchema().load(dict(spec or {}))
    except ValidationError as ex:
        raise kopf.PermanentError(f"Invalid {KIND} spec: {ex.messages}") from ex


async def reconcile(
    name,
    namespace,
    spec,
    meta,
    status,
    patch,
    labels,
    memo,
    logger: Logger,
    trigger_source: str = "manual",
    **kwargs,
) -> Dict[str, bool]:
    """Reconcile every enabled capability of a DynaKube.

    Returns whether each reconciled capability changed anything.
    """
    sensor = get_sensor(memo)
    generation = meta.get("generation", 0)
    spec_model = load_spec(spec)
    status_model: DynaKubeStatus = DynaKubeStatusSchema().load(dict(status or {}))
    status_before = ActiveGateStatusSchema().dump(status_model.active_gate)

    version_resolver = VersionResolver(
        memo.registry_client,
        memo.core_v1_api,
        memo.conf.enable_updates,
        sensor=sensor,
        logger=logger,
    )
    results = {}
    try:
        for capability in CAPABILITIES:
            if not capability.enabled(spec_model):
                continue
            sensor_state = sensor.on_reconcile_start(
                name, capability.module, namespace, generation, trigger_source
            )
            try:
                results[capability.module] = await CapabilityReconciler(
                    capability,
                    name,
                    namespace,
                    spec_model,
                    status_model.active_gate,
                    memo.apps_v1_api,
                    memo.core_v1_api,
                    version_resolver,
                    uid=meta.get("uid"),
                    labels=dict(labels or {}),
                    kube_system_namespace=memo.conf.kube_system_namespace,
                    sensor=sensor,
                    logger=logger,
                ).reconcile()
            except Exception as ex:
                sensor.on_reconcile_complete(
                    name, capability.module, namespace, sensor_state, False, ex
                )
                raise
            sensor.on_reconcile_complete(
                name, capability.module, namespace, sensor_state, True
            )
    except (ReconcileError, ApiException) as ex:
        logger.error(f"Reconciliation of {KIND} `{name}` failed: {ex}")
        on_error(ex, meta, status, patch)
        convert_reconcile_error(ex)

    update_fields = ["conditions"]
    status_after = ActiveGateStatusSchema().dump(status_model.active_gate)
    if status_after != status_before:
        patch.status["activeGate"] = status_after
        update_fields.append("activeGate")
    on_success(meta, status, patch, list(results))
    sensor.on_status_update(name, namespace, update_fields)

    changed = [module for module, result in results.items() if result]
    if changed:
        logger.info(f"Reconciled {KIND} `{name}`; changed capabilities: {changed}.")
    return results


@kopf.on.resume(GROUP, VERSION, PLURAL)
@kopf.on.create(GROUP, VERSION, PLURAL)
@kopf.on.update(GROUP, VERSION, PLURAL)
async def on_change(reason, **kwargs):
    """Reconcile DynaKube capabilities on resume, create and spec changes."""
    await reconcile(trigger_source=str(reason), **kwargs)


@kopf.timer(
    GROUP,
    VERSION,
    PLURAL,
    initial_delay=RECONCILE_INITIAL_DELAY_SECONDS,
    interval=RECONCILE_INTERVAL_SECONDS,
)
async def periodic_reconciliation(**kwargs):
    """Full sync; picks up drift and new image versions."""
    await reconcile(trigger_source="timer", **kwargs)
