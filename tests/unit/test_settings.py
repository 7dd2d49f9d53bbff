"""Unit tests for operator settings."""

from dynakube.types import settings
from dynakube.types.settings import Settings


def test_defaults():
    conf = Settings()
    assert conf.kube_system_namespace == settings.KUBE_SYSTEM_NAMESPACE
    assert conf.reconcile_interval_seconds == settings.RECONCILE_INTERVAL_SECONDS
    assert conf.metrics_port == settings.METRICS_PORT


def test_overrides():
    conf = Settings(enable_updates=True, kube_system_namespace="other", metrics_port=9000)
    assert conf.enable_updates is True
    assert conf.kube_system_namespace == "other"
    assert conf.metrics_port == 9000


def test_getenv_parses_booleans(monkeypatch):
    monkeypatch.setenv("DYNAKUBE_TEST_FLAG", "true")
    assert settings._getenv("DYNAKUBE_TEST_FLAG") is True
    monkeypatch.setenv("DYNAKUBE_TEST_FLAG", "0")
    assert settings._getenv("DYNAKUBE_TEST_FLAG") is False
    monkeypatch.setenv("DYNAKUBE_TEST_FLAG", "value")
    assert settings._getenv("DYNAKUBE_TEST_FLAG") == "value"


def test_getenv_default(monkeypatch):
    monkeypatch.delenv("DYNAKUBE_TEST_FLAG", raising=False)
    assert settings._getenv("DYNAKUBE_TEST_FLAG", 5) == 5
