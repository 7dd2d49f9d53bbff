from marshmallow import fields
from dynakube.types.base import BaseSchema, EXCLUDE
from dynakube.types.models import DockerAuth, DockerConfig


class DockerAuthSchema(BaseSchema):
    __model__ = DockerAuth

    class Meta:
        unknown = EXCLUDE
        ordered = True

    username = fields.Str(data_key="username", allow_none=True, load_default=None)
    password = fields.Str(data_key="password", allow_none=True, load_default=None)
    auth = fields.Str(data_key="auth", allow_none=True, load_default=None)


class DockerConfigSchema(BaseSchema):
    __model__ = DockerConfig

    class Meta:
        unknown = EXCLUDE
        ordered = True

    auths = fields.Dict(
        keys=fields.Str(),
        values=fields.Nested(DockerAuthSchema()),
        data_key="auths",
        required=True,
    )
