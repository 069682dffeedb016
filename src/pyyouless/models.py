"""Wire and domain models for the Youless API.

Two kinds of models live here:

- ``RawStatus`` / ``RawUsageData`` are Pydantic models shaped exactly like the
  JSON the device sends. Numbers and timestamps stay strings, the decimal
  separator is a comma and history arrays end with a ``null`` sentinel.
- ``Status`` / ``UsageData`` / ``Measurement`` are immutable domain values
  produced by :mod:`pyyouless.translate`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class ConnectionStatus(str, Enum):
    """Connection state of the device to the online service."""

    UNKNOWN = "unknown"
    SUCCESS = "success"
    FAILURE = "failure"


class UsageUnit(str, Enum):
    """Unit of a block of usage measurements."""

    UNKNOWN = "unknown"
    KILOWATT_HOUR = "kwh"
    WATT = "watt"


class RawStatus(BaseModel):
    """Status page (``/a``) as sent by the device.

    Example payload::

        {"cnt": " 12345,678", "pwr": 460, "lvl": 0, "dev": "",
         "conn": "OK", "sts": "(33)"}
    """

    model_config = ConfigDict(extra="ignore")

    conn: str | None = None
    cnt: str | None = None
    # Empty or HTML decorated, e.g. "(&plusmn;1%)"
    dev: str | None = None
    # Seconds to next online update, surrounded by parentheses
    sts: str | None = None
    pwr: int = 0
    lvl: int | None = None


class RawUsageData(BaseModel):
    """Measurement page (``/V``) as sent by the device."""

    model_config = ConfigDict(extra="ignore")

    un: str | None = None
    tm: str | None = None
    dt: int = 0
    val: list[str | None] = []


@dataclass(frozen=True)
class Status:
    """Current status of the energy meter.

    Attributes:
        connection_status: Whether the device reaches its online service
        current_power: Current power usage (W)
        level: Reflection level, None for digital meters
        deviation: Deviation of the reflection level (%), if reported
        total_counter: Total energy counter (kWh)
        next_online_update: Seconds until the next online update, if reported
    """

    connection_status: ConnectionStatus
    current_power: int
    level: int | None
    deviation: int | None
    total_counter: float
    next_online_update: int | None


@dataclass(frozen=True)
class Measurement:
    """A single point in a block of usage data."""

    timestamp: datetime
    value: int

    def __str__(self) -> str:
        return f"{self.value} @ {self.timestamp.isoformat()}"


@dataclass(frozen=True)
class UsageData:
    """A block of evenly spaced measurements.

    Attributes:
        unit: Unit the values are measured in
        start_timestamp: Local time of the first measurement
        interval: Seconds between consecutive measurements
        measurements: Time-ordered measurements
    """

    unit: UsageUnit
    start_timestamp: datetime
    interval: int
    measurements: tuple[Measurement, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.measurements)
