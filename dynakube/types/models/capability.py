from typing import Optional, Dict, List
from dynakube.types.base import BaseModel
from dynakube.types.models.value_source import ValueSource
from dynakube.types.models.container import EnvVar, Toleration, ResourceRequirements


class CapabilityProperties(BaseModel):
    """Settings shared by every ActiveGate capability section of a DynaKube."""

    enabled: bool
    replicas: Optional[int]
    node_selector: Optional[Dict[str, str]]
    tolerations: List[Toleration]
    env: List[EnvVar]
    args: List[str]
    custom_properties: Optional[ValueSource]
    group: Optional[str]
    service_account_name: Optional[str]
    resources: Optional[ResourceRequirements]
    labels: Optional[Dict[str, str]]
