"""Transport layer for pyyouless.

Two channels reach the device:

- ``auth``: the raw socket login handshake, driven by hand because the
  device's success response is not valid HTTP.
- ``http``: the aiohttp session executing data requests, which runs the
  handshake when it needs a cookie.

Usage:
    from pyyouless.transports import YoulessSession

    async with YoulessSession("192.168.1.50", password="secret") as session:
        body = await session.invoke("a")
"""

from __future__ import annotations

from .auth import AuthCookie, authenticate, build_auth_request, parse_auth_response
from .http import SessionState, YoulessSession

__all__ = [
    "AuthCookie",
    "SessionState",
    "YoulessSession",
    "authenticate",
    "build_auth_request",
    "parse_auth_response",
]
