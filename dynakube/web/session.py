import aiohttp
from typing import Any, Dict, Mapping, Optional, Union

from yarl import URL

from dynakube.types.base import BaseModel

from .error import AuthenticationError, NotFoundError, RegistryError

HEADERS = {
    "Accept": "*/*",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
}

"""Default timeout in seconds"""
TIMEOUT: float = 10


class SessionManager(BaseModel):
    """Thin wrapper around `aiohttp.ClientSession`.

    The underlying session is opened on first use so that the manager can be built
    outside of a running event loop.
    """

    def __init__(self, headers: Optional[Mapping] = None, **kwargs: Any) -> None:
        merged_headers = dict(**HEADERS)
        merged_headers.update(headers or {})
        self.headers = merged_headers
        self.timeout = kwargs.pop("timeout", TIMEOUT)
        self._session: Optional[aiohttp.ClientSession] = None
        super().__init__(**kwargs)

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self.headers)
        return self._session

    async def get(
        self,
        url: Union[str, URL],
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Mapping] = None,
        auth: Optional[aiohttp.BasicAuth] = None,
        raise_errors: bool = True,
        return_response: bool = False,
    ) -> Any:
        """Run a wrapped session HTTP GET request.

        Args:
            url: The url to get from.
            params: query string parameters
            headers: A dict adding to and overriding the session headers.
            auth: Basic auth credentials for this request.
            raise_errors: Whether or not raise errors on GET request result.
            return_response: Whether or not return the response object alongside the
                decoded JSON body.
        Returns:
            A JSON dictionary. If `return_response` is set then a tuple of
            (data, response) is returned.
        Raises:
            AuthenticationError: On 401 and 403 responses. Carries the response
                headers so callers can inspect `WWW-Authenticate`.
            NotFoundError: On 404 responses.
        """
        params = {} if params is None else params
        headers = {} if headers is None else headers

        async with self.session.get(
            str(url),
            params=params,
            headers=headers,
            auth=auth,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as res:
            if res.status == 401:
                raise AuthenticationError("Unauthorized", res.status, res.headers)
            if res.status == 403:
                raise AuthenticationError("Forbidden", res.status, res.headers)
            if res.status == 404:
                raise NotFoundError(f"Not found: {url}", res.status, res.headers)
            if raise_errors and res.status >= 400:
                raise RegistryError(
                    f"GET {url} failed with status {res.status}", res.status, res.headers
                )

            # Registries answer with vendor media types, e.g. application/vnd.oci.image.manifest.v1+json
            data = await res.json(content_type=None)

            return (data, res) if return_response else data

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}<timeout={self.timeout}>"

    async def close(self) -> None:
        """Close the underlying session"""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
