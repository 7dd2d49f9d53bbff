from kubernetes_asyncio.client import CoreV1Api
from dynakube.resources.base import BaseResource
from dynakube.utils.errors import ConfigurationError

KUBE_SYSTEM_NAMESPACE = "kube-system"


class KubeSystem(BaseResource):
    """Cluster identity, taken from the UID of the `kube-system` namespace."""

    def __init__(self, core_v1_api: CoreV1Api, namespace: str = KUBE_SYSTEM_NAMESPACE):
        self.core_v1_api = core_v1_api
        self.namespace = namespace

    async def get_uid(self) -> str:
        namespace = await self.read_namespace(self.core_v1_api, self.namespace)
        if namespace is None:
            raise ConfigurationError(f"Namespace `{self.namespace}` not found.")
        uid = namespace.metadata.uid if namespace.metadata else None
        if not uid:
            raise ConfigurationError(f"Namespace `{self.namespace}` has no uid.")
        return uid
