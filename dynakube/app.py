import kopf
import logging
import dynakube.handlers.dynakube as dynakube
import dynakube.handlers.probes as probes
from dynakube.types.settings import Settings
from dynakube.web import RegistryClient
from dynakube.sensors import init_metrics_server, SensorDelegate, PrometheusMonitor
from kubernetes_asyncio import config
from kubernetes_asyncio.client import AppsV1Api, CoreV1Api
from kubernetes_asyncio.client.api_client import ApiClient


@kopf.on.startup()
async def setup(
    settings: kopf.OperatorSettings, memo: kopf.Memo, logger: logging.Logger, **kwargs
):
    # Load Kubernetes config - try in-cluster first (for production), then local kubeconfig (for dev)
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        logger.info("In-cluster config not found, trying local kubeconfig")
        try:
            await config.load_kube_config()
            logger.info("Loaded local Kubernetes configuration")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    memo.conf = Settings()

    # One ApiClient shared by all DynaKubes to prevent connection leaks
    memo.api_client = ApiClient()
    memo.apps_v1_api = AppsV1Api(memo.api_client)
    memo.core_v1_api = CoreV1Api(memo.api_client)
    logger.info("Shared Kubernetes API client initialized")

    memo.registry_client = RegistryClient(timeout=memo.conf.registry_timeout_seconds)
    if not memo.conf.enable_updates:
        logger.warning(
            "Image updates are disabled; ActiveGate versions are not resolved "
            "from the registry."
        )

    sensor_delegate = SensorDelegate()
    sensor_delegate.add(PrometheusMonitor())
    memo.sensor = sensor_delegate
    logger.info("Sensor infrastructure initialized with PrometheusMonitor")

    try:
        init_metrics_server(memo.conf.metrics_port)
    except Exception as e:
        logger.error(f"Failed to start metrics server: {e}")
        # Metrics are optional for reconciliation
        logger.warning("Continuing without metrics server")

    # Limit the number of concurrent workers to prevent flooding the API
    settings.batching.worker_limit = 2

    settings.posting.enabled = True
    settings.posting.level = logging.WARNING


@kopf.on.cleanup()
async def cleanup(memo: kopf.Memo, logger: logging.Logger, **kwargs):
    """Cleanup handler for operator shutdown."""
    logger.info("Shutting down operator...")

    api_client = getattr(memo, "api_client", None)
    if api_client:
        await api_client.close()
        logger.info("Shared API client closed")

    registry_client = getattr(memo, "registry_client", None)
    if registry_client:
        await registry_client.close()
        logger.info("Registry client closed")

    logger.info("Operator shutdown complete")


__all__ = [
    "dynakube",
    "probes",
]
