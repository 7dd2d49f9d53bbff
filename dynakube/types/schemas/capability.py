from marshmallow import fields
from dynakube.types.base import BaseSchema, EXCLUDE
from dynakube.types.models import CapabilityProperties
from dynakube.types.schemas.value_source import ValueSourceSchema
from dynakube.types.schemas.container import (
    EnvVarSchema,
    TolerationSchema,
    ResourceRequirementsSchema,
)


class CapabilityPropertiesSchema(BaseSchema):
    __model__ = CapabilityProperties

    enabled = fields.Bool(data_key="enabled", load_default=False)
    replicas = fields.Int(data_key="replicas", allow_none=True, load_default=None)
    node_selector = fields.Dict(
        keys=fields.Str(),
        values=fields.Str(),
        data_key="nodeSelector",
        allow_none=True,
        load_default=None,
    )
    tolerations = fields.List(
        fields.Nested(TolerationSchema()),
        data_key="tolerations",
        allow_none=True,
        load_default=list,
    )
    env = fields.List(
        fields.Nested(EnvVarSchema()),
        data_key="env",
        allow_none=True,
        load_default=list,
    )
    args = fields.List(
        fields.Str(), data_key="args", allow_none=True, load_default=list
    )
    custom_properties = fields.Nested(
        ValueSourceSchema(),
        data_key="customProperties",
        allow_none=True,
        load_default=None,
    )
    group = fields.Str(data_key="group", allow_none=True, load_default=None)
    service_account_name = fields.Str(
        data_key="serviceAccountName", allow_none=True, load_default=None
    )
    resources = fields.Nested(
        ResourceRequirementsSchema(unknown=EXCLUDE),
        data_key="resources",
        allow_none=True,
        load_default=None,
    )
    labels = fields.Dict(
        keys=fields.Str(),
        values=fields.Str(),
        data_key="labels",
        allow_none=True,
        load_default=None,
    )
