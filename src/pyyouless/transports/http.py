"""HTTP session to a single Youless device.

The session is a small state machine:

- ``UNAUTHENTICATED`` (initial): if a password is configured the raw login
  handshake runs first, the granted cookie is stored and the session moves to
  ``AUTHENTICATED``.
- ``AUTHENTICATED``: requests carry the cookie. A 403 response invalidates the
  session and the request is retried once after authenticating again. A second
  403 is final.

Without a password requests are always sent without a cookie and a 403 is
final straight away.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any

import aiohttp
from aiohttp import ClientTimeout

from pyyouless.config import YoulessConfig
from pyyouless.constants import (
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    FORMAT_JSON,
    FORMAT_PARAM,
    HTTP_FORBIDDEN,
)
from pyyouless.exceptions import (
    YoulessDisposedError,
    YoulessOperationError,
    YoulessRequestError,
)

from .auth import AuthCookie, authenticate

_LOGGER = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Authentication state of a YoulessSession."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class YoulessSession:
    """Executes requests against one device, authenticating when needed.

    A session is meant to be used by one logical caller at a time. Requests
    issued concurrently (as the composite measurement calls do) share one
    login: the handshake runs under a lock, and a 403 only discards the cookie
    it was sent with.

    Example:
        async with YoulessSession("192.168.1.50", password="secret") as session:
            body = await session.invoke("a")
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        password: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            host: IP address or hostname of the device
            port: HTTP port (default 80)
            password: Optional device password
            timeout: Connect and request timeout in seconds
            session: Optional aiohttp ClientSession for session injection

        Raises:
            ValueError: If host, port or timeout are invalid
        """
        self._config = YoulessConfig(host=host, port=port, password=password, timeout=timeout)
        self._config.validate()

        self._session: aiohttp.ClientSession | None = session
        self._owns_session: bool = session is None
        self._timeout = ClientTimeout(total=timeout)

        self._state = SessionState.UNAUTHENTICATED
        self._cookie: AuthCookie | None = None
        self._auth_lock = asyncio.Lock()
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: YoulessConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> YoulessSession:
        """Create a session from a YoulessConfig."""
        return cls(
            config.host,
            config.port,
            config.password,
            timeout=config.timeout,
            session=session,
        )

    async def __aenter__(self) -> YoulessSession:
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    @property
    def host(self) -> str:
        """Get the device host."""
        return self._config.host

    @property
    def port(self) -> int:
        """Get the device port."""
        return self._config.port

    @property
    def base_url(self) -> str:
        """Get the base URL of the device."""
        return self._config.base_url

    @property
    def state(self) -> SessionState:
        """Get the current authentication state."""
        return self._state

    @property
    def cookie(self) -> AuthCookie | None:
        """Get the current session cookie, if authenticated."""
        return self._cookie

    @property
    def requires_authentication(self) -> bool:
        """Whether a password is configured."""
        return self._config.requires_authentication

    @property
    def closed(self) -> bool:
        """Whether the session was closed."""
        return self._closed

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is not None and not self._owns_session:
            return self._session

        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True

        return self._session

    async def close(self) -> None:
        """Close the session.

        Only closes the aiohttp session if it was created by this instance,
        not if it was injected. Further requests raise YoulessDisposedError.
        """
        if self._closed:
            return

        self._closed = True
        self._invalidate()
        if self._session and not self._session.closed and self._owns_session:
            await self._session.close()
        self._session = None

    def _ensure_not_closed(self) -> None:
        if self._closed:
            raise YoulessDisposedError(f"Session to {self.base_url} is closed")

    def _invalidate(self, stale_cookie: AuthCookie | None = None) -> None:
        """Return to UNAUTHENTICATED unless the cookie was already replaced."""
        if stale_cookie is not None and stale_cookie is not self._cookie:
            return
        self._state = SessionState.UNAUTHENTICATED
        self._cookie = None

    async def authenticate(self) -> AuthCookie:
        """Run the login handshake and store the granted cookie.

        Returns:
            The session cookie

        Raises:
            YoulessDisposedError: If the session is closed
            YoulessOperationError: If no password is configured
            YoulessConnectionError: If the device cannot be reached
            YoulessAuthError: If the device rejected the password
        """
        self._ensure_not_closed()
        if not self._config.password:
            raise YoulessOperationError("No password configured, cannot authenticate")

        cookie = await authenticate(
            self._config.host,
            self._config.port,
            self._config.password,
            timeout=self._config.timeout,
        )
        self._cookie = cookie
        self._state = SessionState.AUTHENTICATED
        _LOGGER.info("Authenticated to Youless at %s", self.base_url)
        return cookie

    async def _ensure_authenticated(self) -> AuthCookie | None:
        """Authenticate if a password is configured and no cookie is held."""
        if not self._config.password:
            return None

        async with self._auth_lock:
            # Another request may have logged in while we waited for the lock
            if self._state is SessionState.AUTHENTICATED and self._cookie is not None:
                return self._cookie
            return await self.authenticate()

    async def _send(
        self,
        method: str,
        params: dict[str, Any],
        cookie: AuthCookie | None,
    ) -> tuple[int, bytes]:
        """Issue the GET request and return status and body.

        Raises:
            YoulessRequestError: If the request fails at network level
        """
        session = await self._get_session()
        url = f"{self.base_url}/{method}"
        headers = {"Accept": "application/json"}
        if cookie is not None:
            headers["Cookie"] = cookie.header_value()

        _LOGGER.debug(
            "Executing %s '%s' request to %s",
            "authenticated" if cookie else "unauthenticated",
            method,
            url,
        )

        try:
            async with session.get(
                url,
                params=params,
                headers=headers,
                allow_redirects=False,
                timeout=self._timeout,
            ) as response:
                body = await response.read()
                return response.status, body
        except aiohttp.ClientError as err:
            raise YoulessRequestError(f"Connection error: {err}") from err
        except TimeoutError as err:
            raise YoulessRequestError(f"Timeout requesting {url}") from err

    async def invoke(self, method: str, params: dict[str, Any] | None = None) -> bytes:
        """Invoke a method on the device and return the raw response body.

        ``f=j`` is added to the query so the device answers with JSON.

        Args:
            method: Method page, e.g. "a" for status
            params: Optional query parameters

        Returns:
            Response body bytes

        Raises:
            YoulessDisposedError: If the session is closed
            YoulessRequestError: On a non-success status after the single
                403 retry, or on a network failure
            YoulessConnectionError: If the login connection fails
            YoulessAuthError: If the device rejected the password
        """
        self._ensure_not_closed()

        query: dict[str, Any] = {key: str(value) for key, value in (params or {}).items()}
        query[FORMAT_PARAM] = FORMAT_JSON

        retried = False
        while True:
            cookie = await self._ensure_authenticated()
            status, body = await self._send(method, query, cookie)

            if status == HTTP_FORBIDDEN and cookie is not None and not retried:
                _LOGGER.warning(
                    "Got 403 Forbidden from %s, re-authenticating and retrying",
                    self.base_url,
                )
                self._invalidate(cookie)
                retried = True
                continue

            if not 200 <= status < 300:
                if status == HTTP_FORBIDDEN:
                    self._invalidate(cookie)
                raise YoulessRequestError(
                    f"HTTP {status} while invoking '{method}' on {self.base_url}",
                    status=status,
                )

            return body
