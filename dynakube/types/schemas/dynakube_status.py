from marshmallow import fields
from dynakube.types.base import BaseSchema, EXCLUDE
from dynakube.types.models import ActiveGateStatus, DynaKubeStatus


class ActiveGateStatusSchema(BaseSchema):
    __model__ = ActiveGateStatus

    class Meta:
        unknown = EXCLUDE
        ordered = True

    image_version = fields.Str(
        data_key="imageVersion", allow_none=True, load_default=None
    )
    image_hash = fields.Str(data_key="imageHash", allow_none=True, load_default=None)
    last_update_probe_timestamp = fields.Str(
        data_key="lastUpdateProbeTimestamp", allow_none=True, load_default=None
    )


class DynaKubeStatusSchema(BaseSchema):
    __model__ = DynaKubeStatus

    class Meta:
        unknown = EXCLUDE
        ordered = True

    active_gate = fields.Nested(
        ActiveGateStatusSchema(),
        data_key="activeGate",
        load_default=lambda: ActiveGateStatusSchema().load({}),
    )
