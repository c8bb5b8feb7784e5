import aiohttp
from typing import Mapping, Optional, Union

from yarl import URL

from apptest.utils.objects import cached_property

from .error import AuthenticationError, NotFoundError

HEADERS = {
    "Accept": "*/*",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
}

"""Default timeout in seconds"""
TIMEOUT: float = 10


class SessionManager:
    """Thin wrapper around an aiohttp session.

    The session is created on first use so a manager can be built outside
    of a running event loop.
    """

    def __init__(
        self,
        headers: Optional[Mapping] = None,
        timeout: float = TIMEOUT,
    ) -> None:
        self.headers = dict(**HEADERS)
        self.headers.update(headers or {})
        self.timeout = timeout

    @cached_property
    def session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(headers=self.headers)

    async def get(
        self,
        url: Union[str, URL],
        headers: Optional[Mapping] = None,
        raise_errors: bool = True,
    ) -> str:
        """Run a wrapped session HTTP GET request.
        Args:
            url: The url to get from.
            headers: A dict adding to and overriding the session headers.
            raise_errors: Whether or not raise errors on GET request result.
        Returns:
            The body text.
        """
        headers = {} if headers is None else headers

        async with self.session.get(
            str(url),
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers=headers,
        ) as res:
            if res.status == 401:
                raise AuthenticationError("Unauthorized")
            if res.status == 403:
                raise AuthenticationError("Forbidden")
            if res.status == 404:
                raise NotFoundError(f"Not found: {url}")
            if raise_errors:
                res.raise_for_status()
            return await res.text()

    def __repr__(self) -> str:
        return f"{type(self).__name__}<timeout={self.timeout}>"

    async def close(self) -> None:
        """Close the underlying session if one was opened."""
        if SessionManager.session.is_set(self):
            await self.session.close()
            del self.session

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
