import mmh3
from typing import Any, Dict, Optional, Union
from dynakube.utils.helpers import canonicalize_dict
from dynakube.utils.errors import (
    ConflictError,
    IncompleteWriteError,
    already_exists_error,
    conflict_error,
    not_found_error,
)
from kubernetes_asyncio.client import (
    ApiException,
    AppsV1Api,
    CoreV1Api,
    V1Namespace,
    V1OwnerReference,
    V1Secret,
    V1StatefulSet,
)


class BaseResource:
    """Base resource model."""

    DYNATRACE_OPERATOR_NAME = "dynatrace-operator"
    DYNAKUBE_API_VERSION = "dynatrace.com/v1alpha1"
    DYNAKUBE_KIND = "DynaKube"

    ANNOTATION_TEMPLATE_HASH = "internal.operator.dynatrace.com/template-hash"
    ANNOTATION_IMAGE_HASH = "internal.operator.dynatrace.com/image-hash"
    ANNOTATION_IMAGE_VERSION = "internal.operator.dynatrace.com/image-version"
    ANNOTATION_CUSTOM_PROPERTIES_HASH = (
        "internal.operator.dynatrace.com/custom-properties-hash"
    )

    def compute_hash(self, data: Any) -> str:
        """Compute a 32-bit murmur3 hash rendered as an unsigned decimal string."""
        if isinstance(data, dict):
            _data = canonicalize_dict(data)
        elif isinstance(data, str):
            _data = data.encode()
        else:
            raise ValueError(f"Hash of {type(data)} is not supported.")
        return str(mmh3.hash(_data, signed=False))

    def prepare_hash_annotation(self, hash: Union[str, int]) -> Dict[str, str]:
        """Prepare hash annotation for k8s resources."""
        return {self.ANNOTATION_TEMPLATE_HASH: str(hash)}

    def get_template_hash(self, obj: Any) -> str:
        """Return the stored fingerprint of a k8s object, or an empty string."""
        metadata = getattr(obj, "metadata", None)
        annotations = getattr(metadata, "annotations", None) or {}
        return annotations.get(self.ANNOTATION_TEMPLATE_HASH, "")

    def prepare_owner_references(
        self, name: str, uid: Optional[str]
    ) -> Optional[list]:
        """Owner reference pointing at the DynaKube that manages a resource."""
        if not uid:
            return None
        return [
            V1OwnerReference(
                api_version=self.DYNAKUBE_API_VERSION,
                kind=self.DYNAKUBE_KIND,
                name=name,
                uid=uid,
                controller=True,
                block_owner_deletion=True,
            )
        ]

    def check_write_result(self, kind: str, name: str, result: Any) -> None:
        """The object store must return the created object with its identity."""
        metadata = getattr(result, "metadata", None)
        if not metadata or not metadata.name or not metadata.uid:
            raise IncompleteWriteError(
                f"{kind} `{name}` was written but the response lacks name or uid."
            )

    async def read_namespace(self, core_v1_api: CoreV1Api, name: str) -> Optional[V1Namespace]:
        try:
            return await core_v1_api.read_namespace(name=name)
        except ApiException as ex:
            if not_found_error(ex):
                return None
            raise

    async def fetch_stateful_set(
        self, apps_v1_api: AppsV1Api, name: str, namespace: str
    ) -> Optional[V1StatefulSet]:
        """Retrieve the latest state of a stateful set"""
        try:
            return await apps_v1_api.read_namespaced_stateful_set(name=name, namespace=namespace)
        except ApiException as ex:
            if not_found_error(ex):
                return None
            raise

    async def create_stateful_set(
        self,
        apps_v1_api: AppsV1Api,
        namespace: str,
        stateful_set: V1StatefulSet,
    ) -> V1StatefulSet:
        try:
            return await apps_v1_api.create_namespaced_stateful_set(
                namespace=namespace, body=stateful_set
            )
        except ApiException as ex:
            if already_exists_error(ex):
                raise ConflictError(
                    f"StatefulSet `{stateful_set.metadata.name}` was created concurrently."
                ) from ex
            raise

    async def replace_stateful_set(
        self,
        apps_v1_api: AppsV1Api,
        name: str,
        namespace: str,
        stateful_set: V1StatefulSet,
    ) -> V1StatefulSet:
        try:
            return await apps_v1_api.replace_namespaced_stateful_set(
                name=name, namespace=namespace, body=stateful_set
            )
        except ApiException as ex:
            if conflict_error(ex):
                raise ConflictError(
                    f"StatefulSet `{name}` was modified concurrently."
                ) from ex
            raise

    async def fetch_secret(
        self, core_v1_api: CoreV1Api, name: str, namespace: str
    ) -> Optional[V1Secret]:
        try:
            return await core_v1_api.read_namespaced_secret(name=name, namespace=namespace)
        except ApiException as ex:
            if not_found_error(ex):
                return None
            raise

    async def create_secret(
        self, core_v1_api: CoreV1Api, namespace: str, secret: V1Secret
    ) -> V1Secret:
        try:
            return await core_v1_api.create_namespaced_secret(
                namespace=namespace, body=secret
            )
        except ApiException as ex:
            if already_exists_error(ex):
                raise ConflictError(
                    f"Secret `{secret.metadata.name}` was created concurrently."
                ) from ex
            raise

    async def replace_secret(
        self, core_v1_api: CoreV1Api, name: str, namespace: str, secret: V1Secret
    ) -> V1Secret:
        try:
            return await core_v1_api.replace_namespaced_secret(
                name=name, namespace=namespace, body=secret
            )
        except ApiException as ex:
            if conflict_error(ex):
                raise ConflictError(f"Secret `{name}` was modified concurrently.") from ex
            raise
