#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""A light wrapper around the `datetime` library: the clock used by the
booking core, instant parsing and the interval arithmetic behind conflict
detection.

All instants handled by the core are naive datetimes expressed in UTC."""

import datetime
from collections.abc import Callable
from typing import NamedTuple, Self

from dateutil.parser import isoparse

Clock = Callable[[], datetime.datetime]
"""A zero-argument callable returning the current instant, injected for testability."""


def utc_now() -> datetime.datetime:
    """Return the current wall-clock time as a naive UTC datetime."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def as_naive_utc(instant: datetime.datetime) -> datetime.datetime:
    """Convert an aware datetime to naive UTC. Naive datetimes are assumed
    to be UTC already and are returned unchanged."""
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(datetime.timezone.utc).replace(tzinfo=None)


def parse_instant(value: datetime.datetime | str) -> datetime.datetime:
    """Parse an ISO-8601 string (or pass through a datetime) into a naive
    UTC instant.

    Raises
    ------
    ValueError
        If `value` is a string that is not valid ISO-8601.
    """
    if isinstance(value, str):
        value = isoparse(value)
    return as_naive_utc(value)


def minutes(number: int | float) -> datetime.timedelta:
    return datetime.timedelta(minutes=number)


class TimeInterval(NamedTuple):
    """Represents the half-open time interval `[start, end)`."""

    start: datetime.datetime
    end: datetime.datetime

    @property
    def is_valid(self) -> bool:
        """Degenerate and inverted intervals are not valid."""
        return self.start < self.end

    def contains(self, dt: datetime.datetime) -> bool:
        """Check if a given datetime is contained within this time interval."""
        return self.start <= dt < self.end

    def expand(self, buffer: datetime.timedelta) -> Self:
        """Widen the interval by `buffer` on both sides."""
        return type(self)(start=self.start - buffer, end=self.end + buffer)

    def overlaps(self, other: Self) -> bool:
        """Strict overlap test: intervals that merely abut do not overlap."""
        return self.start < other.end and self.end > other.start


def overlaps_with_buffer(
    existing: TimeInterval,
    candidate: TimeInterval,
    buffer: datetime.timedelta,
) -> bool:
    """Check whether `candidate` intersects `existing` once the buffer is applied
    to the bounds of the `existing` interval.

    A candidate starting exactly at `existing.end + buffer` (or ending exactly at
    `existing.start - buffer`) abuts the expanded interval and is accepted.
    """
    return existing.overlaps(candidate.expand(buffer))


def day_bounds(date: datetime.date) -> TimeInterval:
    """The interval covering the whole of `date`."""
    start = datetime.datetime.combine(date, datetime.time.min)
    return TimeInterval(start=start, end=start + datetime.timedelta(days=1))
