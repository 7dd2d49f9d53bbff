"""Shared fixtures: an in-memory Kubernetes object store and DynaKube specs."""

import base64
import copy
import json
import uuid
import pytest
from unittest.mock import AsyncMock
from kubernetes_asyncio.client import ApiException, V1Namespace, V1ObjectMeta, V1Secret
from dynakube.types.models import ImageVersion
from dynakube.types.schemas import DynaKubeSpecSchema, DynaKubeStatusSchema

TEST_NAME = "dynakube"
TEST_NAMESPACE = "dynatrace"
TEST_UID = "dynakube-uid"
KUBE_SYSTEM_UID = "kube-system-uid"


def api_exception(status: int, reason: str) -> ApiException:
    ex = ApiException(status=status, reason=reason)
    ex.body = json.dumps({"kind": "Status", "reason": reason, "message": reason})
    return ex


class FakeKubeStore:
    """Objects keyed by (namespace, name), with resourceVersion checks on replace."""

    def __init__(self):
        self.stateful_sets = {}
        self.secrets = {}
        self.namespaces = {}
        self.writes = []

    def _read(self, objects, name, namespace):
        key = (namespace, name)
        if key not in objects:
            raise api_exception(404, "NotFound")
        return copy.deepcopy(objects[key])

    def _create(self, objects, kind, namespace, body):
        key = (namespace, body.metadata.name)
        if key in objects:
            raise api_exception(409, "AlreadyExists")
        stored = copy.deepcopy(body)
        stored.metadata.namespace = namespace
        stored.metadata.uid = str(uuid.uuid4())
        stored.metadata.resource_version = "1"
        objects[key] = stored
        self.writes.append(("create", kind, body.metadata.name))
        return copy.deepcopy(stored)

    def _replace(self, objects, kind, name, namespace, body):
        key = (namespace, name)
        if key not in objects:
            raise api_exception(404, "NotFound")
        current = objects[key]
        if body.metadata.resource_version != current.metadata.resource_version:
            raise api_exception(409, "Conflict")
        stored = copy.deepcopy(body)
        stored.metadata.resource_version = str(int(current.metadata.resource_version) + 1)
        objects[key] = stored
        self.writes.append(("replace", kind, name))
        return copy.deepcopy(stored)

    def add_secret(self, name, namespace, data):
        self.secrets[(namespace, name)] = V1Secret(
            metadata=V1ObjectMeta(name=name, namespace=namespace, uid=str(uuid.uuid4()), resource_version="1"),
            data={k: base64.b64encode(v.encode()).decode() for k, v in data.items()},
        )

    def add_namespace(self, name, uid):
        self.namespaces[name] = V1Namespace(metadata=V1ObjectMeta(name=name, uid=uid))


class FakeAppsV1Api:
    def __init__(self, store: FakeKubeStore):
        self.store = store

    async def read_namespaced_stateful_set(self, name, namespace):
        return self.store._read(self.store.stateful_sets, name, namespace)

    async def create_namespaced_stateful_set(self, namespace, body):
        return self.store._create(self.store.stateful_sets, "StatefulSet", namespace, body)

    async def replace_namespaced_stateful_set(self, name, namespace, body):
        return self.store._replace(
            self.store.stateful_sets, "StatefulSet", name, namespace, body
        )


class FakeCoreV1Api:
    def __init__(self, store: FakeKubeStore):
        self.store = store

    async def read_namespace(self, name):
        if name not in self.store.namespaces:
            raise api_exception(404, "NotFound")
        return copy.deepcopy(self.store.namespaces[name])

    async def read_namespaced_secret(self, name, namespace):
        return self.store._read(self.store.secrets, name, namespace)

    async def create_namespaced_secret(self, namespace, body):
        return self.store._create(self.store.secrets, "Secret", namespace, body)

    async def replace_namespaced_secret(self, name, namespace, body):
        return self.store._replace(self.store.secrets, "Secret", name, namespace, body)


def docker_config_json(registry: str, username: str = "user", password: str = "pass") -> str:
    return json.dumps({"auths": {registry: {"username": username, "password": password}}})


@pytest.fixture
def store():
    _store = FakeKubeStore()
    _store.add_namespace("kube-system", KUBE_SYSTEM_UID)
    return _store


@pytest.fixture
def apps_v1_api(store):
    return FakeAppsV1Api(store)


@pytest.fixture
def core_v1_api(store):
    return FakeCoreV1Api(store)


@pytest.fixture
def registry_client():
    client = AsyncMock()
    client.resolve.return_value = ImageVersion(version="1.2.3", digest="sha256:abc")
    return client


@pytest.fixture
def raw_spec():
    return {
        "apiUrl": "https://tenant.live.dynatrace.com/api",
        "routing": {"enabled": True},
        "kubernetesMonitoring": {"enabled": True},
    }


@pytest.fixture
def spec(raw_spec):
    return DynaKubeSpecSchema().load(raw_spec)


@pytest.fixture
def status():
    return DynaKubeStatusSchema().load({}).active_gate
