from .value_source import ValueSource
from .container import (
    ConfigMapKeySelector,
    SecretKeySelector,
    ObjectFieldSelector,
    EnvVarSource,
    EnvVar,
    Toleration,
    ResourceRequirements,
)
from .capability import CapabilityProperties
from .dynakube_spec import ActiveGateSpec, DynaKubeSpec
from .dynakube_status import ActiveGateStatus, DynaKubeStatus
from .dynakube_resources import DynaKubeResources
from .image_version import ImageVersion, DockerAuth, DockerConfig

__all__ = [
    "ValueSource",
    "ConfigMapKeySelector",
    "SecretKeySelector",
    "ObjectFieldSelector",
    "EnvVarSource",
    "EnvVar",
    "Toleration",
    "ResourceRequirements",
    "CapabilityProperties",
    "ActiveGateSpec",
    "DynaKubeSpec",
    "ActiveGateStatus",
    "DynaKubeStatus",
    "DynaKubeResources",
    "ImageVersion",
    "DockerAuth",
    "DockerConfig",
]
