"""Unit tests for the custom properties secret."""

import asyncio
import base64
import pytest
from dynakube.resources import CustomPropertiesSecret
from dynakube.resources.base import BaseResource
from dynakube.sensors import OperatorSensor
from dynakube.types.models import ValueSource
from dynakube.utils.errors import ConfigurationError, NotFoundError
from unittest.mock import Mock
from conftest import TEST_NAME, TEST_NAMESPACE, TEST_UID

SECRET_NAME = "dynakube-routing-custom-properties"


def custom_properties_secret(core_v1_api, value=None, value_from=None, sensor=None):
    return CustomPropertiesSecret(
        TEST_NAME,
        TEST_NAMESPACE,
        "routing",
        "routing",
        ValueSource(value=value, value_from=value_from),
        core_v1_api,
        owner_references=BaseResource().prepare_owner_references(TEST_NAME, TEST_UID),
        sensor=sensor,
    )


def stored_value(store):
    secret = store.secrets[(TEST_NAMESPACE, SECRET_NAME)]
    return base64.b64decode(secret.data["customProperties"]).decode()


class TestCustomPropertiesSecret:
    def test_empty_returns_empty_hash(self, store, core_v1_api):
        secret = custom_properties_secret(core_v1_api)
        assert asyncio.run(secret.synchronize()) == ""
        assert store.writes == []

    def test_none_returns_empty_hash(self, store, core_v1_api):
        secret = CustomPropertiesSecret(
            TEST_NAME, TEST_NAMESPACE, "routing", "routing", None, core_v1_api
        )
        assert asyncio.run(secret.synchronize()) == ""

    def test_inline_value_creates_secret(self, store, core_v1_api):
        result = asyncio.run(custom_properties_secret(core_v1_api, value="a=b").synchronize())
        assert result == BaseResource().compute_hash("a=b")
        assert stored_value(store) == "a=b"
        live = store.secrets[(TEST_NAMESPACE, SECRET_NAME)]
        assert live.metadata.owner_references[0].uid == TEST_UID

    def test_unchanged_value_is_not_rewritten(self, store, core_v1_api):
        asyncio.run(custom_properties_secret(core_v1_api, value="a=b").synchronize())
        asyncio.run(custom_properties_secret(core_v1_api, value="a=b").synchronize())
        assert store.writes == [("create", "Secret", SECRET_NAME)]

    def test_changed_value_updates_secret(self, store, core_v1_api):
        asyncio.run(custom_properties_secret(core_v1_api, value="a=b").synchronize())
        result = asyncio.run(custom_properties_secret(core_v1_api, value="a=c").synchronize())
        assert result == BaseResource().compute_hash("a=c")
        assert store.writes[-1] == ("replace", "Secret", SECRET_NAME)
        assert stored_value(store) == "a=c"

    def test_referenced_secret_content_is_hashed(self, store, core_v1_api):
        store.add_secret("user-props", TEST_NAMESPACE, {"customProperties": "x=y"})
        result = asyncio.run(
            custom_properties_secret(core_v1_api, value_from="user-props").synchronize()
        )
        assert result == BaseResource().compute_hash("x=y")
        assert store.writes == []

    def test_reference_wins_over_inline_value(self, store, core_v1_api):
        store.add_secret("user-props", TEST_NAMESPACE, {"customProperties": "x=y"})
        result = asyncio.run(
            custom_properties_secret(
                core_v1_api, value="a=b", value_from="user-props"
            ).synchronize()
        )
        assert result == BaseResource().compute_hash("x=y")
        assert (TEST_NAMESPACE, SECRET_NAME) not in store.secrets

    def test_missing_referenced_secret(self, core_v1_api):
        with pytest.raises(NotFoundError):
            asyncio.run(
                custom_properties_secret(core_v1_api, value_from="missing").synchronize()
            )

    def test_referenced_secret_without_key(self, store, core_v1_api):
        store.add_secret("user-props", TEST_NAMESPACE, {"other": "x=y"})
        with pytest.raises(ConfigurationError):
            asyncio.run(
                custom_properties_secret(core_v1_api, value_from="user-props").synchronize()
            )

    def test_sensor_sees_create(self, core_v1_api):
        sensor = Mock(spec=OperatorSensor)
        asyncio.run(
            custom_properties_secret(core_v1_api, value="a=b", sensor=sensor).synchronize()
        )
        sensor.on_resource_sync_start.assert_called_once()
        args = sensor.on_resource_sync_complete.call_args.args
        assert args[6:8] == ("create", True)
