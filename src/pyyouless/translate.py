"""Translation of raw Youless records into domain values.

The device formats numbers with a comma as decimal separator regardless of
where it is installed, so parsing never goes through the host locale. Every
parse failure raises :class:`~pyyouless.exceptions.YoulessDataFormatError`
naming the field and the offending raw value.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta

from .constants import CONNECTION_OK, PLUS_MINUS_MARKERS, TIMESTAMP_FORMAT
from .exceptions import YoulessDataFormatError
from .models import (
    ConnectionStatus,
    Measurement,
    RawStatus,
    RawUsageData,
    Status,
    UsageData,
    UsageUnit,
)

_LOGGER = logging.getLogger(__name__)

# Digits with an optional comma decimal part: "123", "123,45", ",5", "123,"
_DECIMAL_RE = re.compile(r"(?:\d+(?:,\d*)?|,\d+)")
# Digits optionally grouped with commas: "1234", "1,234". Group sizes are not checked.
_INTEGER_RE = re.compile(r"\d+(?:,\d+)*")
_TIMESTAMP_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")
_SIGNED_INTEGER_RE = re.compile(r"[+-]?\d+")


def parse_unit(raw: str | None) -> UsageUnit:
    """Map the raw unit string to a UsageUnit (case-insensitive)."""
    if not raw:
        return UsageUnit.UNKNOWN

    value = raw.strip().lower()
    if value == "kwh":
        return UsageUnit.KILOWATT_HOUR
    if value == "watt":
        return UsageUnit.WATT
    return UsageUnit.UNKNOWN


def parse_connection_status(raw: str | None) -> ConnectionStatus:
    """Map the raw connection field: empty is unknown, "OK" is success."""
    if not raw:
        return ConnectionStatus.UNKNOWN
    if raw.strip().upper() == CONNECTION_OK:
        return ConnectionStatus.SUCCESS
    return ConnectionStatus.FAILURE


def parse_decimal(raw: str | None, field: str) -> float:
    """Parse a comma-decimal number such as ``" 12345,678"``.

    Args:
        raw: Raw value from the device
        field: Field name used in the error message

    Returns:
        Parsed value

    Raises:
        YoulessDataFormatError: If the value is missing or malformed
    """
    if raw is None:
        raise YoulessDataFormatError(field, raw, "value missing")

    value = raw.strip()
    if not _DECIMAL_RE.fullmatch(value):
        raise YoulessDataFormatError(field, raw, "expected a comma-decimal number")

    return float(value.replace(",", "."))


def parse_integer(raw: str | None, field: str) -> int:
    """Parse an integer that may carry whitespace and thousands separators.

    Commas group thousands (``" 1,015"``). A dot is not accepted, so a
    fractional value is rejected.

    Raises:
        YoulessDataFormatError: If the value is missing or malformed
    """
    if raw is None:
        raise YoulessDataFormatError(field, raw, "value missing")

    value = raw.strip()
    if not _INTEGER_RE.fullmatch(value):
        raise YoulessDataFormatError(field, raw, "expected an integer")

    return int(value.replace(",", ""))


def parse_timestamp(raw: str | None, field: str) -> datetime:
    """Parse a ``yyyy-MM-ddTHH:mm:ss`` timestamp as naive local time.

    Raises:
        YoulessDataFormatError: If the value does not match the pattern
    """
    if raw is None or not _TIMESTAMP_RE.fullmatch(raw):
        raise YoulessDataFormatError(field, raw, "expected yyyy-MM-ddTHH:mm:ss")

    try:
        return datetime.strptime(raw, TIMESTAMP_FORMAT)
    except ValueError as err:
        raise YoulessDataFormatError(field, raw, str(err)) from err


def parse_decorated_integer(raw: str | None, field: str) -> int | None:
    """Parse a status extra such as ``"(&plusmn;1%)"`` or ``"(33)"``.

    Surrounding parentheses, the plus-minus marker and a trailing percent
    sign are stripped before parsing.

    Returns:
        Parsed value, or None when the device sent an empty field

    Raises:
        YoulessDataFormatError: If what remains is not an integer
    """
    if raw is None or not raw.strip():
        return None

    value = raw.strip().strip("()")
    for marker in PLUS_MINUS_MARKERS:
        value = value.replace(marker, "")
    value = value.strip().rstrip("%").strip()

    if not _SIGNED_INTEGER_RE.fullmatch(value):
        raise YoulessDataFormatError(field, raw, "expected an integer")

    return int(value)


def translate_status(raw: RawStatus) -> Status:
    """Translate a raw status record into a Status.

    Args:
        raw: Validated wire record from the ``/a`` page

    Returns:
        Status with parsed counter, deviation and next update

    Raises:
        YoulessDataFormatError: If any field cannot be parsed
    """
    # A zero level means the sensor reads a digital meter
    level = raw.lvl if raw.lvl else None

    return Status(
        connection_status=parse_connection_status(raw.conn),
        current_power=raw.pwr,
        level=level,
        deviation=parse_decorated_integer(raw.dev, "deviation"),
        total_counter=parse_decimal(raw.cnt, "total_counter"),
        next_online_update=parse_decorated_integer(raw.sts, "next_online_update"),
    )


def translate_usage(raw: RawUsageData) -> UsageData:
    """Translate a raw measurement block into UsageData.

    The last entry of ``val`` is the device's sentinel and is dropped. Each
    measurement ``i`` is stamped ``start + i * dt``.

    Args:
        raw: Validated wire record from the ``/V`` page

    Returns:
        UsageData with evenly spaced measurements

    Raises:
        YoulessDataFormatError: If the block is malformed
    """
    unit = parse_unit(raw.un)
    start = parse_timestamp(raw.tm, "start_timestamp")

    if raw.dt <= 0:
        raise YoulessDataFormatError("interval", raw.dt, "interval must be positive")
    if not raw.val:
        raise YoulessDataFormatError("measurements", raw.val, "missing sentinel entry")

    values = raw.val[:-1]
    interval = timedelta(seconds=raw.dt)
    measurements: list[Measurement] = []

    for index, raw_value in enumerate(values):
        value = parse_integer(raw_value, f"measurements[{index}]")
        measurements.append(Measurement(timestamp=start + index * interval, value=value))

    _LOGGER.debug(
        "Translated %d measurements (%s) starting %s every %ds",
        len(measurements),
        unit.value,
        start.isoformat(),
        raw.dt,
    )

    return UsageData(
        unit=unit,
        start_timestamp=start,
        interval=raw.dt,
        measurements=tuple(measurements),
    )
