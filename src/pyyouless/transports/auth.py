"""Raw socket authentication handshake.

The Youless answers a successful ``GET /L?w=<password>`` with a response that
breaks HTTP framing, which aiohttp refuses to parse. The handshake is
therefore written by hand over a dedicated TCP connection: send the request
line and headers, read until the device closes the connection, then scan the
header lines for the status and the session cookie.

This connection is separate from the one used for data requests.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from urllib.parse import quote, unquote

from pyyouless.constants import (
    AUTH_ACCEPTED_STATUS_CODES,
    DEFAULT_TIMEOUT,
    LOGIN_PASSWORD_PARAM,
    METHOD_LOGIN,
)
from pyyouless.exceptions import YoulessAuthError, YoulessConnectionError

_LOGGER = logging.getLogger(__name__)

CRLF = "\r\n"
SET_COOKIE_HEADER = "set-cookie"


@dataclass(frozen=True)
class AuthCookie:
    """Session cookie granted by the device."""

    name: str
    value: str

    def header_value(self) -> str:
        """Value for the ``Cookie`` request header."""
        return f"{self.name}={self.value}"


def build_auth_request(host: str, password: str) -> bytes:
    """Build the login request sent over the raw connection.

    Args:
        host: Host name sent in the Host header
        password: Plain password, percent-encoded into the query

    Returns:
        Request bytes, CRLF terminated
    """
    path = f"/{METHOD_LOGIN}?{LOGIN_PASSWORD_PARAM}={quote(password, safe='')}"
    lines = [
        f"GET {path} HTTP/1.1",
        f"Host: {host}",
        "Connection: close",
        "",
        "",
    ]
    return CRLF.join(lines).encode("utf-8")


def _parse_cookie(header_value: str) -> AuthCookie:
    """Split ``name=value[; attributes]`` into an AuthCookie."""
    pair = header_value.split(";", 1)[0]
    name, sep, value = pair.partition("=")
    name = name.strip(" ")
    value = value.strip(" ")

    if not sep or not name or not value:
        raise YoulessConnectionError(f"Unexpected cookie response '{header_value}' from Youless")

    return AuthCookie(name=name, value=unquote(value))


def parse_auth_response(response: str) -> AuthCookie:
    """Extract the session cookie from the raw login response.

    Lines are scanned in order. Any line containing ``HTTP/`` is a status line,
    possibly behind stray bytes, and must carry 200, 302 or 307; the
    first ``Set-Cookie`` header is returned.

    Args:
        response: Complete response text as read from the socket

    Returns:
        The granted session cookie

    Raises:
        YoulessAuthError: If the status was rejected or no cookie was granted
        YoulessConnectionError: If the cookie header is malformed
    """
    for line in response.split(CRLF):
        if not line:
            continue

        if "HTTP/" in line:
            if not any(code in line for code in AUTH_ACCEPTED_STATUS_CODES):
                raise YoulessAuthError(f"Could not perform authentication: device returned '{line}'")
            continue

        name, sep, value = line.partition(":")
        if sep and name.strip().lower() == SET_COOKIE_HEADER:
            return _parse_cookie(value)

    raise YoulessAuthError("Youless did not provide authentication information")


async def authenticate(
    host: str,
    port: int,
    password: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
) -> AuthCookie:
    """Perform the login handshake and return the session cookie.

    Task cancellation propagates unchanged; the connection is closed on
    every exit path.

    Args:
        host: IP address or hostname of the device
        port: HTTP port of the device
        password: Device password
        timeout: Timeout in seconds for connecting and for reading the response

    Returns:
        The granted session cookie

    Raises:
        YoulessConnectionError: If the device cannot be reached or the
            response is malformed
        YoulessAuthError: If the device rejected the password
    """
    _LOGGER.debug("Authenticating to Youless at %s:%s", host, port)

    try:
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port),
            timeout=timeout,
        )
    except TimeoutError as err:
        raise YoulessConnectionError(
            f"Timeout connecting to {host}:{port} to perform authentication"
        ) from err
    except OSError as err:
        raise YoulessConnectionError(
            f"Could not connect to {host}:{port} to perform authentication: {err}"
        ) from err

    try:
        writer.write(build_auth_request(host, password))
        await writer.drain()

        # The device does not frame its response, read until it hangs up
        raw = await asyncio.wait_for(reader.read(), timeout=timeout)
    except TimeoutError as err:
        raise YoulessConnectionError(
            f"Timeout reading authentication response from {host}:{port}"
        ) from err
    except OSError as err:
        raise YoulessConnectionError(
            f"Error exchanging authentication data with {host}:{port}: {err}"
        ) from err
    finally:
        writer.close()
        with contextlib.suppress(OSError):
            await writer.wait_closed()

    _LOGGER.debug("Received %d bytes of authentication response", len(raw))

    cookie = parse_auth_response(raw.decode("utf-8", errors="replace"))
    _LOGGER.debug("Youless granted session cookie '%s'", cookie.name)
    return cookie
