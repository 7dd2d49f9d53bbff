from marshmallow import ValidationError, fields
from dynakube.types.base import BaseSchema
from dynakube.types.models import (
    ConfigMapKeySelector,
    SecretKeySelector,
    ObjectFieldSelector,
    EnvVarSource,
    EnvVar,
    Toleration,
    ResourceRequirements,
)


class ConfigMapKeySelectorSchema(BaseSchema):
    """Schema for ConfigMap Key Selector."""

    __model__ = ConfigMapKeySelector
    key = fields.Str(data_key="key", required=True, allow_none=False)
    name = fields.Str(data_key="name", required=True, allow_none=False)
    optional = fields.Bool(
        data_key="optional",
        required=False,
        allow_none=True,
        load_default=None,
    )


class SecretKeySelectorSchema(BaseSchema):
    """Schema for Secret Key Selector."""

    __model__ = SecretKeySelector
    key = fields.Str(data_key="key", required=True, allow_none=False)
    name = fields.Str(data_key="name", required=True, allow_none=False)
    optional = fields.Bool(
        data_key="optional",
        required=False,
        allow_none=True,
        load_default=None,
    )


class ObjectFieldSelectorSchema(BaseSchema):
    __model__ = ObjectFieldSelector
    field_path = fields.Str(data_key="fieldPath", required=True, allow_none=False)
    api_version = fields.Str(
        data_key="apiVersion", allow_none=True, load_default=None
    )


class EnvVarSourceSchema(BaseSchema):
    """Schema for Environment Variable Source."""

    __model__ = EnvVarSource
    config_map_key_ref = fields.Nested(
        ConfigMapKeySelectorSchema(),
        data_key="configMapKeyRef",
        required=False,
        allow_none=True,
        load_default=None,
    )
    secret_key_ref = fields.Nested(
        SecretKeySelectorSchema(),
        data_key="secretKeyRef",
        required=False,
        allow_none=True,
        load_default=None,
    )
    field_ref = fields.Nested(
        ObjectFieldSelectorSchema(),
        data_key="fieldRef",
        required=False,
        allow_none=True,
        load_default=None,
    )


class EnvVarSchema(BaseSchema):
    """Schema for Environment Variables."""

    __model__ = EnvVar
    name = fields.Str(data_key="name", required=True, allow_none=False)
    value = fields.Str(
        data_key="value",
        required=False,
        allow_none=True,
        load_default=None,
    )
    value_from = fields.Nested(
        EnvVarSourceSchema(),
        data_key="valueFrom",
        required=False,
        allow_none=True,
        load_default=None,
    )


class TolerationSchema(BaseSchema):
    __model__ = Toleration
    key = fields.Str(data_key="key", allow_none=True, load_default=None)
    operator = fields.Str(data_key="operator", allow_none=True, load_default=None)
    value = fields.Str(data_key="value", allow_none=True, load_default=None)
    effect = fields.Str(data_key="effect", allow_none=True, load_default=None)
    toleration_seconds = fields.Int(
        data_key="tolerationSeconds", allow_none=True, load_default=None
    )


class Quantity(fields.Field):
    """Kubernetes quantity given as a string (`500m`, `1Gi`) or a plain number."""

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise ValidationError("Not a valid quantity.")
        return str(value)


class ResourceRequirementsSchema(BaseSchema):
    __model__ = ResourceRequirements
    requests = fields.Dict(
        keys=fields.Str(), values=Quantity(), data_key="requests", load_default=None
    )
    limits = fields.Dict(
        keys=fields.Str(), values=Quantity(), data_key="limits", load_default=None
    )
