import os
from typing import Any

_TRUE, _FALSE = {"True", "true", "yes", "1"}, {"False", "false", "no", "0"}


def _getenv(name: str, *default: Any) -> Any:
    try:
        v = os.environ[name]
        if v in _TRUE:
            return True
        elif v in _FALSE:
            return False
        else:
            return v
    except KeyError:
        pass
    if default:
        return default[0]
    raise KeyError(name)


# ------------------------------------------------
# ---- Defaults and environment variables ----
# ------------------------------------------------

#: Resolve ActiveGate image versions from the registry and roll out new ones
ENABLE_UPDATES = bool(_getenv("ENABLE_UPDATES", False))

#: Namespace whose UID seeds the cluster identity of every ActiveGate
KUBE_SYSTEM_NAMESPACE = str(_getenv("KUBE_SYSTEM_NAMESPACE", "kube-system"))

#: Seconds between periodic full reconciliations of a DynaKube
RECONCILE_INTERVAL_SECONDS = float(_getenv("RECONCILE_INTERVAL_SECONDS", 60.0))

#: Seconds to wait after operator start before the first periodic reconciliation
RECONCILE_INITIAL_DELAY_SECONDS = float(
    _getenv("RECONCILE_INITIAL_DELAY_SECONDS", 5.0)
)

#: Timeout in seconds for a single container registry request
REGISTRY_TIMEOUT_SECONDS = float(_getenv("REGISTRY_TIMEOUT_SECONDS", 15.0))

#: Port of the Prometheus metrics endpoint
METRICS_PORT = int(_getenv("METRICS_PORT", 8000))


class Settings:
    """Operator settings"""

    enable_updates: bool = ENABLE_UPDATES
    kube_system_namespace: str = KUBE_SYSTEM_NAMESPACE
    reconcile_interval_seconds: float = RECONCILE_INTERVAL_SECONDS
    reconcile_initial_delay_seconds: float = RECONCILE_INITIAL_DELAY_SECONDS
    registry_timeout_seconds: float = REGISTRY_TIMEOUT_SECONDS
    metrics_port: int = METRICS_PORT

    def __init__(
        self,
        *args,
        enable_updates: bool = None,
        kube_system_namespace: str = None,
        reconcile_interval_seconds: float = None,
        reconcile_initial_delay_seconds: float = None,
        registry_timeout_seconds: float = None,
        metrics_port: int = None,
        **kwargs,
    ):
        if enable_updates is not None:
            self.enable_updates = enable_updates

        if kube_system_namespace is not None:
            self.kube_system_namespace = kube_system_namespace

        if reconcile_interval_seconds is not None:
            self.reconcile_interval_seconds = reconcile_interval_seconds

        if reconcile_initial_delay_seconds is not None:
            self.reconcile_initial_delay_seconds = reconcile_initial_delay_seconds

        if registry_timeout_seconds is not None:
            self.registry_timeout_seconds = registry_timeout_seconds

        if metrics_port is not None:
            self.metrics_port = metrics_port
