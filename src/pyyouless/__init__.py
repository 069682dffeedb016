"""Python client library for the Youless energy meter local API.

Usage:
    from pyyouless import YoulessClient

    async with YoulessClient("192.168.1.50", password="secret") as client:
        status = await client.get_status()
        usage = await client.get_daily_measurements()
"""

from __future__ import annotations

from .client import YoulessClient
from .config import YoulessConfig
from .exceptions import (
    YoulessAuthError,
    YoulessConnectionError,
    YoulessDataFormatError,
    YoulessDisposedError,
    YoulessError,
    YoulessOperationError,
    YoulessRequestError,
)
from .models import ConnectionStatus, Measurement, Status, UsageData, UsageUnit
from .timeseries import merge_usage_data
from .translate import translate_status, translate_usage
from .transports import AuthCookie, SessionState, YoulessSession

__version__ = "0.1.0"
__all__ = [
    "YoulessClient",
    "YoulessConfig",
    "YoulessSession",
    "SessionState",
    "AuthCookie",
    "YoulessError",
    "YoulessAuthError",
    "YoulessConnectionError",
    "YoulessDataFormatError",
    "YoulessDisposedError",
    "YoulessOperationError",
    "YoulessRequestError",
    # Models
    "ConnectionStatus",
    "Measurement",
    "Status",
    "UsageData",
    "UsageUnit",
    # Translation
    "merge_usage_data",
    "translate_status",
    "translate_usage",
]
