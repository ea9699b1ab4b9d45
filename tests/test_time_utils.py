#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime

import pytest

from roombook.time_utils import (
    TimeInterval,
    day_bounds,
    minutes,
    overlaps_with_buffer,
    parse_instant,
)
from tests.booking_utils import at


def test_parse_instant_naive_string():
    assert parse_instant("2025-03-10T10:30:00") == at(10, 30)


def test_parse_instant_converts_aware_to_utc():
    assert parse_instant("2025-03-10T17:00:00+07:00") == at(10)
    aware = datetime.datetime(2025, 3, 10, 12, 0, tzinfo=datetime.timezone.utc)
    assert parse_instant(aware) == at(12)


def test_parse_instant_rejects_garbage():
    with pytest.raises(ValueError):
        parse_instant("next tuesday")


@pytest.mark.parametrize(
    "start,end,valid",
    [
        (at(10), at(11), True),
        (at(10), at(10), False),
        (at(11), at(10), False),
    ],
)
def test_interval_validity(start, end, valid):
    assert TimeInterval(start, end).is_valid is valid


def test_abutting_intervals_do_not_overlap():
    assert not TimeInterval(at(10), at(11)).overlaps(TimeInterval(at(11), at(12)))
    assert TimeInterval(at(10), at(11)).overlaps(TimeInterval(at(10, 59), at(12)))


@pytest.mark.parametrize(
    "candidate,expected",
    [
        # starts inside the buffer after the existing reservation
        (TimeInterval(at(11, 10), at(12)), True),
        # starts exactly when the buffer ends
        (TimeInterval(at(11, 15), at(12)), False),
        # ends inside the buffer before the existing reservation
        (TimeInterval(at(9), at(9, 50)), True),
        # ends exactly when the buffer before the existing reservation starts
        (TimeInterval(at(9), at(9, 45)), False),
        # contains the existing reservation
        (TimeInterval(at(9), at(12)), True),
    ],
)
def test_overlaps_with_buffer(candidate, expected):
    existing = TimeInterval(at(10), at(11))
    assert overlaps_with_buffer(existing, candidate, minutes(15)) is expected


def test_day_bounds():
    bounds = day_bounds(datetime.date(2025, 3, 10))
    assert bounds == TimeInterval(at(0), at(0, day=11))
    assert bounds.contains(at(23, 59))
    assert not bounds.contains(at(0, day=11))
