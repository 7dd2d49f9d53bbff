from typing import Dict, NamedTuple, Optional
from dynakube.types.base import BaseModel


class ImageVersion(NamedTuple):
    version: str
    digest: str


class DockerAuth(BaseModel):
    """Credentials of a single registry in a docker config document."""

    username: Optional[str]
    password: Optional[str]
    auth: Optional[str]


class DockerConfig(BaseModel):
    """Multi-registry docker config document (`.dockerconfigjson`)."""

    auths: Dict[str, DockerAuth]

    def credentials_for(self, registry: str) -> Optional[DockerAuth]:
        """Return credentials of `registry`, tolerating scheme prefixes in the document keys."""
        for host, auth in self.auths.items():
            if host == registry or host.split("://", 1)[-1].rstrip("/") == registry:
                return auth
        return None
