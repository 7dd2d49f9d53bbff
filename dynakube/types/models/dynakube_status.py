from typing import Optional
from dynakube.types.base import BaseModel


class ActiveGateStatus(BaseModel):
    """Last resolved ActiveGate image."""

    image_version: Optional[str]
    image_hash: Optional[str]
    last_update_probe_timestamp: Optional[str]


class DynaKubeStatus(BaseModel):
    """Subset of the DynaKube status owned by the capability reconcilers."""

    active_gate: ActiveGateStatus
