from .value_source import ValueSourceSchema
from .container import (
    ConfigMapKeySelectorSchema,
    SecretKeySelectorSchema,
    ObjectFieldSelectorSchema,
    EnvVarSourceSchema,
    EnvVarSchema,
    TolerationSchema,
    ResourceRequirementsSchema,
)
from .capability import CapabilityPropertiesSchema
from .dynakube_spec import ActiveGateSpecSchema, DynaKubeSpecSchema
from .dynakube_status import ActiveGateStatusSchema, DynaKubeStatusSchema
from .image_version import DockerAuthSchema, DockerConfigSchema

__all__ = [
    "ValueSourceSchema",
    "ConfigMapKeySelectorSchema",
    "SecretKeySelectorSchema",
    "ObjectFieldSelectorSchema",
    "EnvVarSourceSchema",
    "EnvVarSchema",
    "TolerationSchema",
    "ResourceRequirementsSchema",
    "CapabilityPropertiesSchema",
    "ActiveGateSpecSchema",
    "DynaKubeSpecSchema",
    "ActiveGateStatusSchema",
    "DynaKubeStatusSchema",
    "DockerAuthSchema",
    "DockerConfigSchema",
]
