class DynaKubeResources:
    """Encapsulates the naming scheme used for the resources which the operator manages
    for a DynaKube."""

    PULL_SECRET_SUFFIX = "-pull-secret"
    CUSTOM_PROPERTIES_SUFFIX = "custom-properties"
    SERVICE_ACCOUNT_PREFIX = "dynatrace-"

    @classmethod
    def stateful_set_name(self, dynakube_name: str, suffix: str):
        """Returns the name of the ActiveGate `StatefulSet` of a capability."""
        return f"{dynakube_name}-{suffix}"

    @classmethod
    def pull_secret_name(self, dynakube_name: str):
        """Returns the name of the image pull secret of a DynaKube."""
        return f"{dynakube_name}{self.PULL_SECRET_SUFFIX}"

    @classmethod
    def custom_properties_secret_name(self, dynakube_name: str, owner: str):
        """Returns the name of the custom properties `Secret` managed for a capability."""
        return f"{dynakube_name}-{owner}-{self.CUSTOM_PROPERTIES_SUFFIX}"

    @classmethod
    def default_service_account_name(self, owner: str):
        return f"{self.SERVICE_ACCOUNT_PREFIX}{owner}"
