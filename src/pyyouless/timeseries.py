"""Combining measurement blocks fetched for adjacent or overlapping windows."""

from __future__ import annotations

import logging

from .exceptions import YoulessOperationError
from .models import UsageData

_LOGGER = logging.getLogger(__name__)


def merge_usage_data(first: UsageData, second: UsageData) -> UsageData:
    """Merge two blocks of usage data into a new block.

    The block starting earlier is placed first (``first`` wins a tie), followed
    by all measurements of the other block. Measurements are concatenated as
    is: overlapping windows are not de-duplicated.

    Args:
        first: A block of usage data
        second: Another block in the same unit

    Returns:
        New UsageData starting at the earlier start timestamp

    Raises:
        YoulessOperationError: If the units of both blocks differ
    """
    if first.unit != second.unit:
        raise YoulessOperationError(
            f"Cannot merge usage data with different units "
            f"({first.unit.value} and {second.unit.value})"
        )

    if second.start_timestamp < first.start_timestamp:
        first, second = second, first

    if first.measurements and second.measurements:
        end_of_first = first.measurements[-1].timestamp
        if second.measurements[0].timestamp <= end_of_first:
            _LOGGER.debug(
                "Merging overlapping blocks: %s starts before %s",
                second.start_timestamp.isoformat(),
                end_of_first.isoformat(),
            )

    return UsageData(
        unit=first.unit,
        start_timestamp=first.start_timestamp,
        interval=first.interval,
        measurements=first.measurements + second.measurements,
    )
