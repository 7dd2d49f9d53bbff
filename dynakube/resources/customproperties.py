import base64
import binascii
import logging
from logging import Logger
from typing import Dict, List, Optional
from kubernetes_asyncio.client import CoreV1Api, V1ObjectMeta, V1OwnerReference, V1Secret
from dynakube.resources.base import BaseResource
from dynakube.sensors import OperatorSensor
from dynakube.types.models import DynaKubeResources, ValueSource
from dynakube.utils.errors import ConfigurationError, NotFoundError


class CustomPropertiesSecret(BaseResource):
    """Custom properties of one capability, materialized as a Secret.

    An inline value is written into an operator-managed secret. A reference to a
    user secret is only read. Either way the content hash is returned so the
    workload fingerprint follows the content.
    """

    logger: Logger
    sensor: OperatorSensor

    DATA_KEY = "customProperties"
    RESOURCE_TYPE = "secret"

    def __init__(
        self,
        name: str,
        namespace: str,
        owner: str,
        module: str,
        custom_properties: Optional[ValueSource],
        core_v1_api: CoreV1Api,
        owner_references: Optional[List[V1OwnerReference]] = None,
        labels: Optional[Dict[str, str]] = None,
        sensor: Optional[OperatorSensor] = None,
        logger: Logger = None,
    ):
        self.name = name
        self.namespace = namespace
        self.owner = owner
        self.module = module
        self.custom_properties = custom_properties
        self.core_v1_api = core_v1_api
        self.owner_references = owner_references
        self.labels = labels
        self.sensor = sensor or OperatorSensor()
        self.logger = logger or logging.getLogger(__name__)

    @property
    def secret_name(self) -> str:
        return DynaKubeResources.custom_properties_secret_name(self.name, self.owner)

    async def synchronize(self) -> str:
        """Materialize the custom properties and return their content hash.

        Returns an empty string when no custom properties are configured.
        """
        if self.custom_properties is None or self.custom_properties.is_empty():
            return ""
        if self.custom_properties.value_from:
            if self.custom_properties.value:
                self.logger.warning(
                    "Both customProperties.value and customProperties.valueFrom are set; "
                    f"using secret `{self.custom_properties.value_from}`."
                )
            content = await self.read_referenced_content(self.custom_properties.value_from)
            return self.compute_hash(content)

        await self.sync_secret(self.prepare_secret(self.custom_properties.value))
        return self.compute_hash(self.custom_properties.value)

    async def read_referenced_content(self, secret_name: str) -> str:
        secret = await self.fetch_secret(self.core_v1_api, secret_name, self.namespace)
        if secret is None:
            raise NotFoundError("Secret", secret_name, self.namespace)
        data = secret.data or {}
        if self.DATA_KEY not in data:
            raise ConfigurationError(
                f"Secret `{secret_name}` has no `{self.DATA_KEY}` key."
            )
        try:
            return base64.b64decode(data[self.DATA_KEY]).decode()
        except (binascii.Error, UnicodeDecodeError) as ex:
            raise ConfigurationError(
                f"Secret `{secret_name}` key `{self.DATA_KEY}` is not valid base64 text."
            ) from ex

    def prepare_secret(self, value: str) -> V1Secret:
        secret = V1Secret(
            api_version="v1",
            kind="Secret",
            type="Opaque",
            metadata=V1ObjectMeta(
                name=self.secret_name,
                namespace=self.namespace,
                labels=self.labels,
                annotations={},
            ),
            data={self.DATA_KEY: base64.b64encode(value.encode()).decode()},
        )
        secret.metadata.annotations.update(
            self.prepare_hash_annotation(self.compute_hash(secret.to_dict()))
        )
        return secret

    async def sync_secret(self, secret: V1Secret) -> bool:
        """Create the secret or bring it in line with `secret`. Returns True on a write."""
        actual = await self.fetch_secret(self.core_v1_api, secret.metadata.name, self.namespace)
        if actual is None:
            secret.metadata.owner_references = self.owner_references
            sensor_state = self.sensor.on_resource_sync_start(
                self.name, self.module, secret.metadata.name, self.namespace, self.RESOURCE_TYPE
            )
            success, error = True, None
            try:
                created = await self.create_secret(self.core_v1_api, self.namespace, secret)
                self.check_write_result("Secret", secret.metadata.name, created)
            except Exception as ex:
                success, error = False, ex
                raise
            finally:
                self.sensor.on_resource_sync_complete(
                    self.name, self.module, secret.metadata.name, self.namespace,
                    self.RESOURCE_TYPE, sensor_state, "create", success, error
                )
            self.logger.info(f"Created custom properties secret `{secret.metadata.name}`.")
            return True

        if self.get_template_hash(actual) == self.get_template_hash(secret):
            return False

        self.sensor.on_resource_drift_detected(
            self.name, self.module, secret.metadata.name, self.namespace,
            self.RESOURCE_TYPE, ["data"]
        )
        actual.data = secret.data
        actual.type = secret.type
        actual.metadata.labels = secret.metadata.labels
        actual.metadata.annotations = secret.metadata.annotations
        sensor_state = self.sensor.on_resource_sync_start(
            self.name, self.module, secret.metadata.name, self.namespace, self.RESOURCE_TYPE
        )
        success, error = True, None
        try:
            await self.replace_secret(
                self.core_v1_api, secret.metadata.name, self.namespace, actual
            )
        except Exception as ex:
            success, error = False, ex
            raise
        finally:
            self.sensor.on_resource_sync_complete(
                self.name, self.module, secret.metadata.name, self.namespace,
                self.RESOURCE_TYPE, sensor_state, "update", success, error
            )
        self.logger.info(f"Updated custom properties secret `{secret.metadata.name}`.")
        return True
