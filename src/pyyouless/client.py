"""Youless energy meter client.

This module provides the async client for the Youless local HTTP/JSON API.

Key Features:
- Async/await support with aiohttp
- Cookie session management with transparent re-authentication on 403
- Translation of the device's comma-decimal wire format into typed values
- Composite measurement windows fetched concurrently and merged
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, TypeVar

import aiohttp
from pydantic import BaseModel, ValidationError

from .config import YoulessConfig
from .constants import (
    CURRENT_DAY,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    HOURS_PER_WINDOW,
    MAX_DAY_OFFSET,
    MAX_HOURS_BACK,
    METHOD_MEASUREMENTS,
    METHOD_STATUS,
    WINDOW_DAY,
    WINDOW_EIGHT_HOURS,
    WINDOW_HOUR_HALF,
    WINDOW_MONTH,
)
from .exceptions import YoulessDataFormatError, YoulessDisposedError
from .models import RawStatus, RawUsageData, Status, UsageData
from .timeseries import merge_usage_data
from .translate import translate_status, translate_usage
from .transports.http import YoulessSession

_LOGGER = logging.getLogger(__name__)

_RawModelT = TypeVar("_RawModelT", bound=BaseModel)


class YoulessClient:
    """Youless Energy Meter Client.

    Example:
        ```python
        async with YoulessClient("192.168.1.50", password="secret") as client:
            status = await client.get_status()
            print(f"Power: {status.current_power}W, total: {status.total_counter}kWh")

            usage = await client.get_last_hour_measurements()
            for measurement in usage.measurements:
                print(measurement)
        ```
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        password: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
        session_client: YoulessSession | None = None,
    ) -> None:
        """Initialize the Youless client.

        Args:
            host: IP address or hostname of the device
            port: HTTP port (default 80)
            password: Optional device password. Without one requests are
                never authenticated.
            timeout: Connect and request timeout in seconds
            session: Optional aiohttp ClientSession for session injection
            session_client: Optional pre-built YoulessSession. The client takes
                ownership of it and closes it on close().

        Raises:
            ValueError: If host, port or timeout are invalid
        """
        if session_client is None:
            session_client = YoulessSession(
                host,
                port,
                password,
                timeout=timeout,
                session=session,
            )
        self._session_client: YoulessSession = session_client

    @classmethod
    def from_config(
        cls,
        config: YoulessConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> YoulessClient:
        """Create a client from a YoulessConfig."""
        return cls(
            config.host,
            config.port,
            config.password,
            timeout=config.timeout,
            session=session,
        )

    async def __aenter__(self) -> YoulessClient:
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
    def session(self) -> YoulessSession:
        """Access the underlying request session."""
        return self._session_client

    @property
    def closed(self) -> bool:
        """Whether the client was closed."""
        return self._session_client.closed

    async def close(self) -> None:
        """Close the client and its session."""
        await self._session_client.close()

    def _ensure_not_closed(self) -> None:
        if self.closed:
            raise YoulessDisposedError("Youless client is closed")

    async def _invoke(
        self,
        method: str,
        model: type[_RawModelT],
        params: dict[str, Any] | None = None,
    ) -> _RawModelT:
        """Invoke a method and validate the JSON body into a raw model.

        Raises:
            YoulessDataFormatError: If the body is not valid JSON of the expected shape
        """
        body = await self._session_client.invoke(method, params)

        try:
            return model.model_validate_json(body)
        except ValidationError as err:
            raise YoulessDataFormatError(
                "response",
                body[:200],
                f"could not decode {model.__name__}: {err.error_count()} validation error(s)",
            ) from err

    # Status

    async def get_status(self) -> Status:
        """Get the current status of the energy meter.

        Returns:
            Status: Current power, total counter and connection state

        Raises:
            YoulessError: If the request fails or the response cannot be parsed
        """
        self._ensure_not_closed()
        raw = await self._invoke(METHOD_STATUS, RawStatus)
        return translate_status(raw)

    # Measurements

    async def _get_measurements(self, window: str, index: int) -> UsageData:
        """Get one block of measurements for a window selector."""
        raw = await self._invoke(METHOD_MEASUREMENTS, RawUsageData, {window: index})
        return translate_usage(raw)

    async def _get_merged_measurements(self, window: str, indices: list[int]) -> UsageData:
        """Fetch several blocks concurrently and merge them in order."""
        blocks = await asyncio.gather(
            *(self._get_measurements(window, index) for index in indices)
        )

        _LOGGER.debug(
            "Merging %d blocks for window '%s' (%s)",
            len(blocks),
            window,
            ", ".join(str(len(block)) for block in blocks),
        )

        merged = blocks[0]
        for block in blocks[1:]:
            merged = merge_usage_data(merged, block)
        return merged

    async def get_last_hour_measurements(self) -> UsageData:
        """Get the measurements of the last hour at a 60 second interval.

        The device exposes the hour as two 30 minute halves, which are
        requested concurrently and merged.

        Returns:
            UsageData: Measurements of the last hour
        """
        self._ensure_not_closed()
        return await self._get_merged_measurements(WINDOW_HOUR_HALF, [1, 2])

    async def get_hour_measurements(self, hours: int) -> UsageData:
        """Get an 8 hour block of measurements at a 10 minute interval.

        Args:
            hours: 8, 16 or 24, selecting 0-8, 8-16 or 16-24 hours back

        Returns:
            UsageData: Measurements of the selected block

        Raises:
            ValueError: If hours is not 8, 16 or 24
        """
        self._ensure_not_closed()
        if hours % HOURS_PER_WINDOW != 0 or not HOURS_PER_WINDOW <= hours <= MAX_HOURS_BACK:
            raise ValueError(f"hours must be 8, 16 or 24, got {hours}")

        return await self._get_measurements(WINDOW_EIGHT_HOURS, hours // HOURS_PER_WINDOW)

    async def get_daily_measurements(self) -> UsageData:
        """Get the measurements of the last 24 hours at a 10 minute interval.

        The three 8 hour blocks are requested concurrently and merged.

        Returns:
            UsageData: Measurements of the last 24 hours
        """
        self._ensure_not_closed()
        return await self._get_merged_measurements(WINDOW_EIGHT_HOURS, [1, 2, 3])

    async def get_day_measurements(self, day: int = CURRENT_DAY) -> UsageData:
        """Get the measurements of a day, up to 6 days back.

        Args:
            day: 0 (today) through 6

        Returns:
            UsageData: Measurements of the selected day

        Raises:
            ValueError: If day is outside 0-6
        """
        self._ensure_not_closed()
        if not CURRENT_DAY <= day <= MAX_DAY_OFFSET:
            raise ValueError(f"day must be in range 0-{MAX_DAY_OFFSET}, got {day}")

        return await self._get_measurements(WINDOW_DAY, day)

    async def get_month_measurements(self, month: int) -> UsageData:
        """Get the measurements of a month of the year.

        Args:
            month: 1 (January) through 12 (December)

        Returns:
            UsageData: Measurements of the selected month

        Raises:
            ValueError: If month is outside 1-12
        """
        self._ensure_not_closed()
        if not 1 <= month <= 12:
            raise ValueError(f"month must be in range 1-12, got {month}")

        return await self._get_measurements(WINDOW_MONTH, month)
