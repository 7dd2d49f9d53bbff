from marshmallow import fields
from dynakube.types.base import BaseSchema
from dynakube.types.models import ValueSource


class ValueSourceSchema(BaseSchema):
    __model__ = ValueSource

    value = fields.Str(data_key="value", allow_none=True, load_default=None)
    value_from = fields.Str(data_key="valueFrom", allow_none=True, load_default=None)
