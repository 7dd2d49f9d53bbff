from marshmallow import fields
from dynakube.types.base import BaseSchema
from dynakube.types.models import ActiveGateSpec, DynaKubeSpec
from dynakube.types.schemas.value_source import ValueSourceSchema
from dynakube.types.schemas.capability import CapabilityPropertiesSchema


class ActiveGateSpecSchema(BaseSchema):
    __model__ = ActiveGateSpec

    image = fields.Str(data_key="image", allow_none=True, load_default=None)


class DynaKubeSpecSchema(BaseSchema):
    __model__ = DynaKubeSpec

    api_url = fields.Str(data_key="apiUrl", required=True)
    proxy = fields.Nested(
        ValueSourceSchema(), data_key="proxy", allow_none=True, load_default=None
    )
    network_zone = fields.Str(
        data_key="networkZone", allow_none=True, load_default=None
    )
    active_gate = fields.Nested(
        ActiveGateSpecSchema(),
        data_key="activeGate",
        load_default=lambda: ActiveGateSpecSchema().load({}),
    )
    kubernetes_monitoring = fields.Nested(
        CapabilityPropertiesSchema(),
        data_key="kubernetesMonitoring",
        load_default=lambda: CapabilityPropertiesSchema().load({}),
    )
    routing = fields.Nested(
        CapabilityPropertiesSchema(),
        data_key="routing",
        load_default=lambda: CapabilityPropertiesSchema().load({}),
    )
