"""Unit tests for the DynaKube reconciliation handler."""

import asyncio
import logging
import kopf
import pytest
from types import SimpleNamespace
from unittest.mock import Mock
from dynakube.handlers.dynakube import reconcile
from dynakube.sensors import OperatorSensor
from dynakube.types.settings import Settings
from conftest import TEST_NAME, TEST_NAMESPACE, TEST_UID, api_exception, docker_config_json

logger = logging.getLogger(__name__)


@pytest.fixture
def memo(apps_v1_api, core_v1_api, registry_client):
    return SimpleNamespace(
        conf=Settings(enable_updates=False, kube_system_namespace="kube-system"),
        apps_v1_api=apps_v1_api,
        core_v1_api=core_v1_api,
        registry_client=registry_client,
        sensor=Mock(spec=OperatorSensor),
    )


@pytest.fixture
def patch():
    return SimpleNamespace(status={})


def run(raw_spec, memo, patch, status=None):
    return asyncio.run(
        reconcile(
            name=TEST_NAME,
            namespace=TEST_NAMESPACE,
            spec=raw_spec,
            meta={"uid": TEST_UID, "generation": 3},
            status=status or {},
            patch=patch,
            labels={"app": "dynakube"},
            memo=memo,
            logger=logger,
            trigger_source="create",
        )
    )


def conditions(patch):
    return {c["type"]: c for c in patch.status["conditions"]}


class TestReconcileHandler:
    def test_reconciles_enabled_capabilities(self, raw_spec, memo, patch, store):
        results = run(raw_spec, memo, patch)
        assert results == {"routing": True, "kubemon": True}
        assert set(store.stateful_sets) == {
            (TEST_NAMESPACE, "dynakube-routing"),
            (TEST_NAMESPACE, "dynakube-kubemon"),
        }
        ready = conditions(patch)["Ready"]
        assert ready["status"] == "True"
        assert ready["observedGeneration"] == 3
        assert "activeGate" not in patch.status

    def test_labels_reach_stateful_sets(self, raw_spec, memo, patch, store):
        run(raw_spec, memo, patch)
        live = store.stateful_sets[(TEST_NAMESPACE, "dynakube-routing")]
        assert live.metadata.labels["app"] == "dynakube"

    def test_disabled_capability_is_skipped(self, raw_spec, memo, patch, store):
        raw_spec["routing"]["enabled"] = False
        assert run(raw_spec, memo, patch) == {"kubemon": True}
        assert set(store.stateful_sets) == {(TEST_NAMESPACE, "dynakube-kubemon")}

    def test_second_cycle_reports_no_change(self, raw_spec, memo, patch, store):
        run(raw_spec, memo, patch)
        assert run(raw_spec, memo, patch) == {"routing": False, "kubemon": False}

    def test_resolved_version_is_patched_into_status(self, raw_spec, memo, patch, store):
        memo.conf.enable_updates = True
        store.add_secret(
            "dynakube-pull-secret",
            TEST_NAMESPACE,
            {".dockerconfigjson": docker_config_json("tenant.live.dynatrace.com")},
        )
        run(raw_spec, memo, patch)
        active_gate = patch.status["activeGate"]
        assert active_gate["imageVersion"] == "1.2.3"
        assert active_gate["imageHash"] == "sha256:abc"
        assert active_gate["lastUpdateProbeTimestamp"]
        memo.sensor.on_status_update.assert_called_with(
            TEST_NAME, TEST_NAMESPACE, ["conditions", "activeGate"]
        )

    def test_configuration_error_is_permanent(self, raw_spec, memo, patch, store):
        store.namespaces.clear()
        with pytest.raises(kopf.PermanentError):
            run(raw_spec, memo, patch)
        cond = conditions(patch)
        assert cond["Ready"]["status"] == "False"
        assert cond["Progressing"]["reason"] == "Error"
        assert "activeGate" not in patch.status

    def test_failed_cycle_does_not_patch_active_gate(self, raw_spec, memo, patch, store):
        memo.conf.enable_updates = True
        store.add_secret(
            "dynakube-pull-secret",
            TEST_NAMESPACE,
            {".dockerconfigjson": docker_config_json("tenant.live.dynatrace.com")},
        )
        store.namespaces.clear()
        with pytest.raises(kopf.PermanentError):
            run(raw_spec, memo, patch)
        assert "activeGate" not in patch.status

    def test_conflict_is_retried(self, raw_spec, memo, patch, apps_v1_api):
        async def create(namespace, body):
            raise api_exception(409, "AlreadyExists")

        apps_v1_api.create_namespaced_stateful_set = create
        with pytest.raises(kopf.TemporaryError):
            run(raw_spec, memo, patch)

    def test_api_error_is_converted(self, raw_spec, memo, patch, apps_v1_api):
        async def read(name, namespace):
            raise api_exception(503, "ServiceUnavailable")

        apps_v1_api.read_namespaced_stateful_set = read
        with pytest.raises(kopf.TemporaryError):
            run(raw_spec, memo, patch)

    def test_invalid_spec_is_permanent(self, memo, patch):
        with pytest.raises(kopf.PermanentError):
            run({"routing": {"enabled": True}}, memo, patch)

    def test_sensor_sees_each_capability(self, raw_spec, memo, patch):
        run(raw_spec, memo, patch)
        started = [c.args[1] for c in memo.sensor.on_reconcile_start.call_args_list]
        assert started == ["routing", "kubemon"]
        for call in memo.sensor.on_reconcile_complete.call_args_list:
            assert call.args[4] is True

    def test_failed_capability_reported_to_sensor(self, raw_spec, memo, patch, store):
        store.namespaces.clear()
        with pytest.raises(kopf.PermanentError):
            run(raw_spec, memo, patch)
        call = memo.sensor.on_reconcile_complete.call_args
        assert call.args[1] == "routing"
        assert call.args[4] is False

    def test_malformed_image_is_recorded_and_permanent(self, raw_spec, memo, patch, store):
        memo.conf.enable_updates = True
        store.add_secret(
            "dynakube-pull-secret",
            TEST_NAMESPACE,
            {".dockerconfigjson": docker_config_json("reg.example.com")},
        )
        raw_spec["activeGate"] = {"image": "reg.example.com/"}
        with pytest.raises(kopf.PermanentError):
            run(raw_spec, memo, patch)
        assert conditions(patch)["Ready"]["status"] == "False"
        assert store.writes == []
