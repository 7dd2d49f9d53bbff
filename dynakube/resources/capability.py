from typing import Callable, Optional, Sequence
from kubernetes_asyncio.client import V1StatefulSet
from dynakube.types.models import CapabilityProperties, DynaKubeSpec

#: Post-build hook. Mutates the generic manifest before it is fingerprinted.
StatefulSetHook = Callable[[V1StatefulSet], None]


class Capability:
    """Static description of an ActiveGate capability.

    Capabilities share one build and sync pipeline and differ only in the values
    held here.
    """

    def __init__(
        self,
        module: str,
        capability_name: str,
        spec_field: str,
        suffix: Optional[str] = None,
        service_account_owner: Optional[str] = None,
        hooks: Sequence[StatefulSetHook] = (),
    ):
        self.module = module
        self.capability_name = capability_name
        self.spec_field = spec_field
        self.suffix = suffix or module
        self.service_account_owner = service_account_owner or module
        self.hooks = tuple(hooks)

    def properties(self, spec: DynaKubeSpec) -> CapabilityProperties:
        """Return this capability's section of the DynaKube spec."""
        return getattr(spec, self.spec_field)

    def enabled(self, spec: DynaKubeSpec) -> bool:
        properties = self.properties(spec)
        return bool(properties is not None and properties.enabled)

    def apply_hooks(self, stateful_set: V1StatefulSet) -> None:
        for hook in self.hooks:
            hook(stateful_set)

    def __repr__(self) -> str:
        return f"Capability<{self.module}>"


def enable_service_account_token_automount(stateful_set: V1StatefulSet) -> None:
    """Kubernetes monitoring talks to the API server with its service account token."""
    stateful_set.spec.template.spec.automount_service_account_token = True


ROUTING = Capability(
    module="routing",
    capability_name="MSGrouter",
    spec_field="routing",
)

KUBERNETES_MONITORING = Capability(
    module="kubemon",
    capability_name="kubernetes_monitoring",
    spec_field="kubernetes_monitoring",
    service_account_owner="kubernetes-monitoring",
    hooks=[enable_service_account_token_automount],
)

CAPABILITIES = (ROUTING, KUBERNETES_MONITORING)
