import logging
from logging import Logger
from typing import Dict, List, Optional
from yarl import URL
from kubernetes_asyncio.client import (
    V1Affinity,
    V1ConfigMapKeySelector,
    V1Container,
    V1EnvVar,
    V1EnvVarSource,
    V1HTTPGetAction,
    V1KeyToPath,
    V1LabelSelector,
    V1LocalObjectReference,
    V1NodeAffinity,
    V1NodeSelector,
    V1NodeSelectorRequirement,
    V1NodeSelectorTerm,
    V1ObjectFieldSelector,
    V1ObjectMeta,
    V1PodSpec,
    V1PodTemplateSpec,
    V1Probe,
    V1ResourceRequirements,
    V1SecretKeySelector,
    V1SecretVolumeSource,
    V1StatefulSet,
    V1StatefulSetSpec,
    V1Toleration,
    V1Volume,
    V1VolumeMount,
)
from dynakube.resources.base import BaseResource
from dynakube.resources.capability import Capability
from dynakube.types.models import (
    CapabilityProperties,
    DynaKubeResources,
    DynaKubeSpec,
    EnvVar,
    ValueSource,
)
from dynakube.utils.errors import ConfigurationError
from dynakube.utils.helpers import merge_labels

ACTIVEGATE_IMAGE_PATH = "/linux/activegate"
API_PATH_SUFFIX = "/api"


def activegate_image(spec: DynaKubeSpec) -> str:
    """Image override from the spec, otherwise the tenant's ActiveGate image.

    `https://<host>[/e/<env>]/api` maps to `<host>[/e/<env>]/linux/activegate`.
    """
    if spec.active_gate is not None and spec.active_gate.image:
        return spec.active_gate.image
    url = URL(spec.api_url or "")
    if not url.host:
        raise ConfigurationError(f"Cannot derive registry from apiUrl `{spec.api_url}`.")
    registry = url.host if url.explicit_port is None else f"{url.host}:{url.explicit_port}"
    # Managed environments live below `/e/<environment id>`
    path = url.path.rstrip("/")
    if path.endswith(API_PATH_SUFFIX):
        path = path[: -len(API_PATH_SUFFIX)]
    return f"{registry}{path}{ACTIVEGATE_IMAGE_PATH}"


def pinned_image(image: str, version: Optional[str]) -> str:
    """Append `:<version>` unless the reference already names a tag or digest."""
    if not version or "@" in image or ":" in image.rsplit("/", 1)[-1]:
        return image
    return f"{image}:{version}"


class ActiveGateStatefulSet(BaseResource):
    """Desired ActiveGate StatefulSet of one capability.

    Building is free of I/O: the same inputs always produce the same manifest and
    the same fingerprint.
    """

    logger: Logger

    CONTAINER_NAME = "dynatrace-operator"
    DEFAULT_REPLICAS = 1

    ENV_CAPABILITIES = "DT_CAPABILITIES"
    ENV_ID_SEED_NAMESPACE = "DT_ID_SEED_NAMESPACE"
    ENV_ID_SEED_CLUSTER_ID = "DT_ID_SEED_K8S_CLUSTER_ID"
    ENV_PROXY = "ACTIVE_GATE_PROXY"
    PROXY_SECRET_KEY = "ProxyKey"

    ARG_CAPABILITIES = "--enable=$(DT_CAPABILITIES)"
    ARG_PROXY = 'PROXY="${ACTIVE_GATE_PROXY}"'

    LABEL_DYNATRACE = "dynatrace"
    LABEL_ACTIVEGATE = "activegate"
    LABEL_MODULE = "module"

    ARCH_LABELS = ("beta.kubernetes.io/arch", "kubernetes.io/arch")
    OS_LABELS = ("beta.kubernetes.io/os", "kubernetes.io/os")
    SUPPORTED_ARCHS = ["amd64", "arm64"]
    SUPPORTED_OS = ["linux"]

    PROBE_PORT = 9999
    PROBE_SCHEME = "HTTPS"

    CUSTOM_PROPERTIES_VOLUME = "custom-properties"
    CUSTOM_PROPERTIES_KEY = "customProperties"
    CUSTOM_PROPERTIES_PATH = "custom.properties"
    CUSTOM_PROPERTIES_MOUNT_PATH = (
        "/var/lib/dynatrace/gateway/config_template/custom.properties"
    )

    name: str
    namespace: str
    capability: Capability
    spec: DynaKubeSpec
    properties: CapabilityProperties
    kube_system_uid: str
    custom_properties_hash: str
    image_version: str
    image_hash: str
    dynakube_labels: Dict[str, str]

    def __init__(
        self,
        name: str,
        namespace: str,
        capability: Capability,
        spec: DynaKubeSpec,
        kube_system_uid: str,
        custom_properties_hash: str = "",
        image_version: Optional[str] = None,
        image_hash: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
        logger: Logger = None,
    ):
        if not name or not namespace:
            raise ConfigurationError(
                "DynaKube name and namespace are required to build a StatefulSet."
            )
        self.name = name
        self.namespace = namespace
        self.capability = capability
        self.spec = spec
        self.properties = capability.properties(spec)
        self.kube_system_uid = kube_system_uid
        self.custom_properties_hash = custom_properties_hash or ""
        self.image_version = image_version or ""
        self.image_hash = image_hash or ""
        self.dynakube_labels = dict(labels or {})
        self.logger = logger or logging.getLogger(__name__)

    @property
    def stateful_set_name(self) -> str:
        return DynaKubeResources.stateful_set_name(self.name, self.capability.suffix)

    @property
    def custom_properties(self) -> Optional[ValueSource]:
        custom_properties = self.properties.custom_properties
        if custom_properties is None or custom_properties.is_empty():
            return None
        return custom_properties

    @property
    def proxy(self) -> Optional[ValueSource]:
        if self.spec.proxy is None or self.spec.proxy.is_empty():
            return None
        return self.spec.proxy

    def build(self) -> V1StatefulSet:
        """Build the manifest, run capability hooks and stamp its fingerprint."""
        stateful_set = self.prepare_stateful_set()
        self.capability.apply_hooks(stateful_set)
        stateful_set.metadata.annotations.update(
            self.prepare_hash_annotation(self.prepare_stateful_set_hash(stateful_set))
        )
        return stateful_set

    def prepare_stateful_set_hash(self, stateful_set: V1StatefulSet) -> str:
        """Compute hash for stateful set resource."""
        return self.compute_hash(stateful_set.to_dict())

    def prepare_selector_labels(self) -> Dict[str, str]:
        return {
            self.LABEL_DYNATRACE: self.LABEL_ACTIVEGATE,
            self.LABEL_ACTIVEGATE: self.name,
        }

    def prepare_pod_labels(self) -> Dict[str, str]:
        return merge_labels(
            self.dynakube_labels,
            self.prepare_selector_labels(),
            self.properties.labels,
        )

    def prepare_labels(self) -> Dict[str, str]:
        return merge_labels(
            self.prepare_pod_labels(), {self.LABEL_MODULE: self.capability.module}
        )

    def prepare_stateful_set(self) -> V1StatefulSet:
        """Build stateful set resource."""
        replicas = self.properties.replicas
        return V1StatefulSet(
            api_version="apps/v1",
            kind="StatefulSet",
            metadata=V1ObjectMeta(
                name=self.stateful_set_name,
                namespace=self.namespace,
                labels=self.prepare_labels(),
                annotations={},
            ),
            spec=V1StatefulSetSpec(
                replicas=replicas if replicas is not None else self.DEFAULT_REPLICAS,
                pod_management_policy="Parallel",
                service_name="",
                selector=V1LabelSelector(match_labels=self.prepare_selector_labels()),
                template=self.prepare_pod_template(),
            ),
        )

    def prepare_pod_template(self) -> V1PodTemplateSpec:
        return V1PodTemplateSpec(
            metadata=V1ObjectMeta(
                labels=self.prepare_pod_labels(),
                annotations={
                    self.ANNOTATION_IMAGE_HASH: self.image_hash,
                    self.ANNOTATION_IMAGE_VERSION: self.image_version,
                    self.ANNOTATION_CUSTOM_PROPERTIES_HASH: self.custom_properties_hash,
                },
            ),
            spec=self.prepare_pod_spec(),
        )

    def prepare_pod_spec(self) -> V1PodSpec:
        return V1PodSpec(
            containers=[self.prepare_container()],
            node_selector=self.properties.node_selector or None,
            service_account_name=self.prepare_service_account_name(),
            affinity=self.prepare_affinity(),
            tolerations=self.prepare_tolerations(),
            volumes=self.prepare_volumes(),
            image_pull_secrets=[
                V1LocalObjectReference(
                    name=DynaKubeResources.pull_secret_name(self.name)
                )
            ],
        )

    def prepare_service_account_name(self) -> str:
        return self.properties.service_account_name or (
            DynaKubeResources.default_service_account_name(
                self.capability.service_account_owner
            )
        )

    def prepare_affinity(self) -> V1Affinity:
        terms = [
            V1NodeSelectorTerm(
                match_expressions=[
                    V1NodeSelectorRequirement(
                        key=arch_label, operator="In", values=list(self.SUPPORTED_ARCHS)
                    ),
                    V1NodeSelectorRequirement(
                        key=os_label, operator="In", values=list(self.SUPPORTED_OS)
                    ),
                ]
            )
            for arch_label, os_label in zip(self.ARCH_LABELS, self.OS_LABELS)
        ]
        return V1Affinity(
            node_affinity=V1NodeAffinity(
                required_during_scheduling_ignored_during_execution=V1NodeSelector(
                    node_selector_terms=terms
                )
            )
        )

    def prepare_tolerations(self) -> Optional[List[V1Toleration]]:
        tolerations = [
            V1Toleration(
                key=t.key,
                operator=t.operator,
                value=t.value,
                effect=t.effect,
                toleration_seconds=t.toleration_seconds,
            )
            for t in self.properties.tolerations or []
        ]
        return tolerations or None

    def prepare_image(self) -> str:
        return pinned_image(activegate_image(self.spec), self.image_version)

    def prepare_container(self) -> V1Container:
        return V1Container(
            name=self.CONTAINER_NAME,
            image=self.prepare_image(),
            image_pull_policy="Always",
            resources=self.prepare_resource_requirements(),
            env=self.prepare_env_vars(),
            args=self.prepare_args(),
            volume_mounts=self.prepare_volume_mounts(),
            readiness_probe=V1Probe(
                http_get=V1HTTPGetAction(
                    path="/rest/health", port=self.PROBE_PORT, scheme=self.PROBE_SCHEME
                ),
                initial_delay_seconds=90,
                period_seconds=15,
                failure_threshold=3,
            ),
            liveness_probe=V1Probe(
                http_get=V1HTTPGetAction(
                    path="/rest/state", port=self.PROBE_PORT, scheme=self.PROBE_SCHEME
                ),
                initial_delay_seconds=90,
                period_seconds=30,
                failure_threshold=2,
            ),
        )

    def prepare_resource_requirements(self) -> Optional[V1ResourceRequirements]:
        resources = self.properties.resources
        if resources is None:
            return None
        return V1ResourceRequirements(
            requests=resources.requests, limits=resources.limits
        )

    def prepare_env_vars(self) -> List[V1EnvVar]:
        """Fixed identity variables first, then user env, then the proxy."""
        env_vars = [
            V1EnvVar(name=self.ENV_CAPABILITIES, value=self.capability.capability_name),
            V1EnvVar(name=self.ENV_ID_SEED_NAMESPACE, value=self.namespace),
            V1EnvVar(name=self.ENV_ID_SEED_CLUSTER_ID, value=self.kube_system_uid),
        ]
        env_vars.extend(
            self.prepare_env_var(env) for env in self.properties.env or []
        )
        if self.proxy is not None:
            env_vars.append(self.prepare_proxy_env_var())
        return env_vars

    def prepare_env_var(self, env: EnvVar) -> V1EnvVar:
        value_from = None
        if env.value_from is not None:
            source = env.value_from
            value_from = V1EnvVarSource(
                config_map_key_ref=V1ConfigMapKeySelector(
                    key=source.config_map_key_ref.key,
                    name=source.config_map_key_ref.name,
                    optional=source.config_map_key_ref.optional,
                )
                if source.config_map_key_ref
                else None,
                secret_key_ref=V1SecretKeySelector(
                    key=source.secret_key_ref.key,
                    name=source.secret_key_ref.name,
                    optional=source.secret_key_ref.optional,
                )
                if source.secret_key_ref
                else None,
                field_ref=V1ObjectFieldSelector(
                    field_path=source.field_ref.field_path,
                    api_version=source.field_ref.api_version,
                )
                if source.field_ref
                else None,
            )
        return V1EnvVar(name=env.name, value=env.value, value_from=value_from)

    def prepare_proxy_env_var(self) -> V1EnvVar:
        """A proxy secret reference takes precedence over an inline proxy value."""
        proxy = self.proxy
        if proxy.value_from:
            if proxy.value:
                self.logger.warning(
                    "Both proxy.value and proxy.valueFrom are set; "
                    f"using secret `{proxy.value_from}`."
                )
            return V1EnvVar(
                name=self.ENV_PROXY,
                value_from=V1EnvVarSource(
                    secret_key_ref=V1SecretKeySelector(
                        name=proxy.value_from, key=self.PROXY_SECRET_KEY
                    )
                ),
            )
        return V1EnvVar(name=self.ENV_PROXY, value=proxy.value)

    def prepare_args(self) -> List[str]:
        args = [self.ARG_CAPABILITIES]
        args.extend(self.properties.args or [])
        if self.spec.network_zone:
            args.append(f'--networkzone="{self.spec.network_zone}"')
        if self.proxy is not None:
            args.append(self.ARG_PROXY)
        if self.properties.group:
            args.append(f'--group="{self.properties.group}"')
        return args

    def prepare_custom_properties_secret_name(self) -> str:
        return self.custom_properties.value_from or (
            DynaKubeResources.custom_properties_secret_name(
                self.name, self.capability.service_account_owner
            )
        )

    def prepare_volumes(self) -> Optional[List[V1Volume]]:
        if self.custom_properties is None:
            return None
        return [
            V1Volume(
                name=self.CUSTOM_PROPERTIES_VOLUME,
                secret=V1SecretVolumeSource(
                    secret_name=self.prepare_custom_properties_secret_name(),
                    items=[
                        V1KeyToPath(
                            key=self.CUSTOM_PROPERTIES_KEY,
                            path=self.CUSTOM_PROPERTIES_PATH,
                        )
                    ],
                ),
            )
        ]

    def prepare_volume_mounts(self) -> Optional[List[V1VolumeMount]]:
        if self.custom_properties is None:
            return None
        return [
            V1VolumeMount(
                name=self.CUSTOM_PROPERTIES_VOLUME,
                mount_path=self.CUSTOM_PROPERTIES_MOUNT_PATH,
                sub_path=self.CUSTOM_PROPERTIES_PATH,
                read_only=True,
            )
        ]


def build_stateful_set(
    name: str,
    namespace: str,
    capability: Capability,
    spec: DynaKubeSpec,
    kube_system_uid: str,
    custom_properties_hash: str = "",
    image_version: Optional[str] = None,
    image_hash: Optional[str] = None,
    labels: Optional[Dict[str, str]] = None,
    logger: Logger = None,
) -> V1StatefulSet:
    """Desired ActiveGate StatefulSet of `capability` including its fingerprint."""
    return ActiveGateStatefulSet(
        name,
        namespace,
        capability,
        spec,
        kube_system_uid,
        custom_properties_hash=custom_properties_hash,
        image_version=image_version,
        image_hash=image_hash,
        labels=labels,
        logger=logger,
    ).build()
