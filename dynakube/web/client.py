"""Docker Registry HTTP API v2 client."""
import base64
import re
import aiohttp
from typing import Any, Dict, NamedTuple, Optional
from yarl import URL

from dynakube.types.models import DockerAuth, ImageVersion
from .session import SessionManager
from .error import AuthenticationError, InvalidResponse, RegistryError

MANIFEST_URL = "/v2/{repository}/manifests/{reference}"
BLOB_URL = "/v2/{repository}/blobs/{digest}"

DOCKER_MANIFEST_V2 = "application/vnd.docker.distribution.manifest.v2+json"
DOCKER_MANIFEST_LIST_V2 = "application/vnd.docker.distribution.manifest.list.v2+json"
OCI_MANIFEST_V1 = "application/vnd.oci.image.manifest.v1+json"
OCI_INDEX_V1 = "application/vnd.oci.image.index.v1+json"
MANIFEST_ACCEPT = ", ".join(
    [DOCKER_MANIFEST_V2, DOCKER_MANIFEST_LIST_V2, OCI_MANIFEST_V1, OCI_INDEX_V1]
)
INDEX_MEDIA_TYPES = (DOCKER_MANIFEST_LIST_V2, OCI_INDEX_V1)

DIGEST_HEADER = "Docker-Content-Digest"
VERSION_LABEL = "com.dynatrace.build-version"

DEFAULT_REGISTRY = "registry-1.docker.io"
DEFAULT_TAG = "latest"
DEFAULT_PLATFORM = {"os": "linux", "architecture": "amd64"}

_CHALLENGE_PARAM = re.compile(r'(\w+)="([^"]*)"')


class ImageReference(NamedTuple):
    registry: str
    repository: str
    tag: str
    digest: Optional[str] = None

    @property
    def reference(self) -> str:
        return self.digest or self.tag


def parse_image_reference(image: str) -> ImageReference:
    """Split `registry/repository[:tag][@digest]` into its parts."""
    name, _, digest = image.partition("@")
    registry, sep, remainder = name.partition("/")
    if not sep or not ("." in registry or ":" in registry or registry == "localhost"):
        registry, remainder = DEFAULT_REGISTRY, name
        if "/" not in remainder:
            remainder = f"library/{remainder}"
    elif registry == "docker.io":
        registry = DEFAULT_REGISTRY
    repository, tag = remainder, DEFAULT_TAG
    last = remainder.rsplit("/", 1)[-1]
    if ":" in last:
        repository, tag = remainder.rsplit(":", 1)
    if not repository:
        raise ValueError(f"Invalid image reference `{image}`")
    return ImageReference(registry, repository, tag, digest or None)


def parse_bearer_challenge(header: str) -> Optional[Dict[str, str]]:
    """Parse a `WWW-Authenticate: Bearer realm=...,service=...,scope=...` header."""
    if not header or not header.lower().startswith("bearer "):
        return None
    return dict(_CHALLENGE_PARAM.findall(header))


def basic_auth(credentials: Optional[DockerAuth]) -> Optional[aiohttp.BasicAuth]:
    """Build basic auth from docker config credentials (`username`/`password` or `auth`)."""
    if credentials is None:
        return None
    if credentials.username:
        return aiohttp.BasicAuth(credentials.username, credentials.password or "")
    if credentials.auth:
        try:
            decoded = base64.b64decode(credentials.auth).decode()
        except (ValueError, UnicodeDecodeError) as ex:
            raise RegistryError("Malformed `auth` entry in docker config") from ex
        username, _, password = decoded.partition(":")
        return aiohttp.BasicAuth(username, password)
    return None


class RegistryClient(SessionManager):
    """Resolves version and digest of container images from a Docker v2 registry."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)

    def registry_url(self, registry: str, path: str) -> URL:
        return URL(f"https://{registry}").with_path(path)

    async def resolve(
        self, image: str, credentials: Optional[DockerAuth] = None
    ) -> ImageVersion:
        """Resolve the build version and manifest digest of `image`.

        The version is taken from the `com.dynatrace.build-version` label of the image
        config and falls back to the tag when the label is missing.
        """
        ref = parse_image_reference(image)
        auth = basic_auth(credentials)
        headers = {"Accept": MANIFEST_ACCEPT}

        manifest_url = self.registry_url(
            ref.registry,
            MANIFEST_URL.format(repository=ref.repository, reference=ref.reference),
        )
        manifest, res = await self._get_authorized(
            manifest_url, headers, auth, ref.repository, return_response=True
        )
        digest = res.headers.get(DIGEST_HEADER) or ref.digest
        if not digest:
            raise InvalidResponse(f"Registry returned no digest for `{image}`")

        if manifest.get("mediaType") in INDEX_MEDIA_TYPES or "manifests" in manifest:
            platform_digest = self.select_platform_manifest(manifest)
            manifest = await self._get_authorized(
                self.registry_url(
                    ref.registry,
                    MANIFEST_URL.format(
                        repository=ref.repository, reference=platform_digest
                    ),
                ),
                headers,
                auth,
                ref.repository,
            )

        config_digest = (manifest.get("config") or {}).get("digest")
        if not config_digest:
            raise InvalidResponse(f"Manifest of `{image}` has no config blob")
        config = await self._get_authorized(
            self.registry_url(
                ref.registry,
                BLOB_URL.format(repository=ref.repository, digest=config_digest),
            ),
            {},
            auth,
            ref.repository,
        )
        labels = (config.get("config") or {}).get("Labels") or {}
        version = labels.get(VERSION_LABEL) or ref.tag
        return ImageVersion(version=version, digest=digest)

    def select_platform_manifest(self, index: Dict) -> str:
        for entry in index.get("manifests") or []:
            platform = entry.get("platform") or {}
            if all(platform.get(k) == v for k, v in DEFAULT_PLATFORM.items()):
                return entry["digest"]
        raise InvalidResponse("Image index has no linux/amd64 manifest")

    async def fetch_token(
        self, challenge: Dict[str, str], auth: Optional[aiohttp.BasicAuth], repository: str
    ) -> str:
        """Exchange credentials for a bearer token at the challenge realm."""
        realm = challenge.get("realm")
        if not realm:
            raise InvalidResponse("Bearer challenge without realm")
        params = {"scope": challenge.get("scope") or f"repository:{repository}:pull"}
        if challenge.get("service"):
            params["service"] = challenge["service"]
        data = await self.get(realm, params=params, auth=auth)
        token = data.get("token") or data.get("access_token")
        if not token:
            raise InvalidResponse("Token endpoint returned no token")
        return token

    async def _get_authorized(
        self,
        url: URL,
        headers: Dict[str, str],
        auth: Optional[aiohttp.BasicAuth],
        repository: str,
        return_response: bool = False,
    ) -> Any:
        try:
            return await self.get(
                url, headers=headers, auth=auth, return_response=return_response
            )
        except AuthenticationError as ex:
            challenge = parse_bearer_challenge(ex.headers.get("WWW-Authenticate", ""))
            if ex.status != 401 or challenge is None:
                raise
        token = await self.fetch_token(challenge, auth, repository)
        return await self.get(
            url,
            headers={**headers, "Authorization": f"Bearer {token}"},
            return_response=return_response,
        )
