from .base import BaseResource
from .capability import Capability, ROUTING, KUBERNETES_MONITORING, CAPABILITIES
from .statefulset import ActiveGateStatefulSet, build_stateful_set
from .customproperties import CustomPropertiesSecret
from .kubesystem import KubeSystem
from .version import VersionResolver
from .reconciler import StatefulSetSync, CapabilityReconciler

__all__ = [
    "BaseResource",
    "Capability",
    "ROUTING",
    "KUBERNETES_MONITORING",
    "CAPABILITIES",
    "ActiveGateStatefulSet",
    "build_stateful_set",
    "CustomPropertiesSecret",
    "KubeSystem",
    "VersionResolver",
    "StatefulSetSync",
    "CapabilityReconciler",
]
