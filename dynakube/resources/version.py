import asyncio
import base64
import binascii
import json
import logging
import aiohttp
from logging import Logger
from typing import Optional
from marshmallow import ValidationError
from kubernetes_asyncio.client import CoreV1Api
from dynakube.resources.base import BaseResource
from dynakube.resources.statefulset import activegate_image
from dynakube.sensors import OperatorSensor
from dynakube.types.models import (
    ActiveGateStatus,
    DockerConfig,
    DynaKubeResources,
    DynaKubeSpec,
    ImageVersion,
)
from dynakube.types.schemas import DockerConfigSchema
from dynakube.utils.errors import ConfigurationError, ResolutionError
from dynakube.utils.helpers import now
from dynakube.web import RegistryClient, RegistryError
from dynakube.web.client import parse_image_reference


class VersionResolver(BaseResource):
    """Keeps `status.activeGate` in line with the image published in the registry."""

    logger: Logger
    sensor: OperatorSensor

    PULL_SECRET_KEY = ".dockerconfigjson"

    def __init__(
        self,
        registry_client: RegistryClient,
        core_v1_api: CoreV1Api,
        enable_updates: bool,
        sensor: Optional[OperatorSensor] = None,
        logger: Logger = None,
    ):
        self.registry_client = registry_client
        self.core_v1_api = core_v1_api
        self.enable_updates = enable_updates
        self.sensor = sensor or OperatorSensor()
        self.logger = logger or logging.getLogger(__name__)

    async def update_image_version(
        self,
        name: str,
        namespace: str,
        spec: DynaKubeSpec,
        status: ActiveGateStatus,
    ) -> bool:
        """Resolve the current image and store it in `status`.

        Returns True when version or digest differ from what `status` held. With
        updates disabled this is a no-op. `status` is left untouched on any error.
        """
        if not self.enable_updates:
            return False

        image = activegate_image(spec)
        docker_config = await self.read_pull_secret(name, namespace)
        try:
            registry = parse_image_reference(image).registry
        except ValueError as ex:
            raise ConfigurationError(f"Invalid ActiveGate image `{image}`: {ex}") from ex
        credentials = docker_config.credentials_for(registry)

        try:
            resolved: ImageVersion = await self.registry_client.resolve(image, credentials)
        except (RegistryError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as ex:
            raise ResolutionError(f"Failed to resolve version of `{image}`: {ex}") from ex

        changed = (resolved.version, resolved.digest) != (
            status.image_version,
            status.image_hash,
        )
        status.last_update_probe_timestamp = now()
        if changed:
            self.logger.info(
                f"ActiveGate image `{image}` moved from version "
                f"`{status.image_version}` to `{resolved.version}`."
            )
            status.image_version = resolved.version
            status.image_hash = resolved.digest
        self.sensor.on_version_resolved(name, namespace, image, resolved.version, changed)
        return changed

    async def read_pull_secret(self, name: str, namespace: str) -> DockerConfig:
        secret_name = DynaKubeResources.pull_secret_name(name)
        secret = await self.fetch_secret(self.core_v1_api, secret_name, namespace)
        if secret is None:
            raise ConfigurationError(
                f"Pull secret `{secret_name}` not found in `{namespace}` namespace."
            )
        data = (secret.data or {}).get(self.PULL_SECRET_KEY)
        if not data:
            raise ConfigurationError(
                f"Pull secret `{secret_name}` has no `{self.PULL_SECRET_KEY}` key."
            )
        return parse_docker_config(data, secret_name)


def parse_docker_config(data: str, secret_name: str = "") -> DockerConfig:
    """Decode a base64 `.dockerconfigjson` document."""
    try:
        document = json.loads(base64.b64decode(data).decode())
        return DockerConfigSchema().load(document)
    except (binascii.Error, UnicodeDecodeError, ValueError, ValidationError) as ex:
        raise ConfigurationError(
            f"Pull secret `{secret_name}` holds a malformed docker config: {ex}"
        ) from ex
