"""Tests for RepeatedInterval."""

from datetime import date
from itertools import islice

import pytest

from calspan import (
    CalendarDuration,
    DurationEndInterval,
    DurationStartInterval,
    PureDurationInterval,
    RepeatedInterval,
    TwoPointInterval,
    Unit,
)
from calspan.errors import InfiniteRepetitionError, InvalidValueError, NoAnchorError

DAY = CalendarDuration(days=1)
MONTH = CalendarDuration(months=1)


def daily(repetition: int) -> RepeatedInterval:
    base = DurationStartInterval(start=date(2024, 1, 1), duration=DAY)
    return RepeatedInterval(base=base, repetition=repetition)


def test_start_anchored_chains_forward():
    """Three one-day occurrences from Jan 1 end on Jan 4."""
    iv = daily(3)
    assert iv.end_with_repetition == date(2024, 1, 4)
    assert iv.start_with_repetition == date(2024, 1, 1)
    assert iv.duration_with_repetition == CalendarDuration(days=3)


def test_end_anchored_chains_backward():
    base = DurationEndInterval(duration=DAY, end=date(2024, 1, 3))
    iv = RepeatedInterval(base=base, repetition=2)
    assert iv.start_with_repetition == date(2024, 1, 1)
    assert iv.end_with_repetition == date(2024, 1, 3)
    assert iv.duration_with_repetition == CalendarDuration(days=2)


def test_two_point_base_is_start_anchored():
    base = TwoPointInterval(start=date(2024, 1, 1), end=date(2024, 1, 8))
    iv = RepeatedInterval(base=base, repetition=2)
    assert iv.end_with_repetition == date(2024, 1, 15)


def test_monthly_chaining_follows_the_calendar():
    """Each step re-clamps: Jan 31 -> Feb 29 -> Mar 29."""
    base = DurationStartInterval(start=date(2024, 1, 31), duration=MONTH)
    iv = RepeatedInterval(base=base, repetition=2)
    assert iv.end_with_repetition == date(2024, 3, 29)
    assert iv.duration_with_repetition == CalendarDuration(months=1, days=29)


def test_zero_and_single_repetition():
    assert daily(0).duration_with_repetition == CalendarDuration.ZERO
    assert daily(0).end_with_repetition == date(2024, 1, 1)
    assert daily(0).to_two_point() == TwoPointInterval(start=date(2024, 1, 1), end=date(2024, 1, 1))
    assert daily(1).duration_with_repetition == DAY
    assert daily(1).end_with_repetition == date(2024, 1, 2)


def test_pure_duration_base_multiplies():
    iv = RepeatedInterval(base=PureDurationInterval(duration=DAY), repetition=3)
    assert iv.duration_with_repetition == CalendarDuration(days=3)
    with pytest.raises(NoAnchorError):
        iv.start_with_repetition
    with pytest.raises(NoAnchorError):
        iv.end_with_repetition
    with pytest.raises(NoAnchorError, match="no anchor to chain from"):
        iv.occurrences()


def test_infinite_repetition_keeps_owned_anchor():
    iv = daily(-1)
    assert iv.is_infinite
    assert iv.start_with_repetition == date(2024, 1, 1)
    with pytest.raises(InfiniteRepetitionError, match="infinitely repeating"):
        iv.end_with_repetition
    with pytest.raises(InfiniteRepetitionError):
        iv.duration_with_repetition
    with pytest.raises(InfiniteRepetitionError):
        iv.to_two_point()
    with pytest.raises(InfiniteRepetitionError):
        iv.get(Unit.DAYS)
    with pytest.raises(InfiniteRepetitionError):
        iv.add_to(date(2024, 2, 1))
    with pytest.raises(InfiniteRepetitionError):
        iv.subtract_from(date(2024, 2, 1))
    # the base alone stays usable
    assert iv.get(Unit.DAYS, consider_repetition=False) == 1
    assert iv.add_to(date(2024, 2, 1), consider_repetition=False) == date(2024, 2, 2)


def test_infinite_end_anchored():
    base = DurationEndInterval(duration=DAY, end=date(2024, 1, 3))
    iv = RepeatedInterval(base=base, repetition=-1)
    assert iv.end_with_repetition == date(2024, 1, 3)
    with pytest.raises(InfiniteRepetitionError):
        iv.start_with_repetition
    assert date(1900, 1, 1) in iv
    assert date(2024, 1, 4) not in iv


def test_contains_with_repetition():
    iv = daily(3)
    assert date(2024, 1, 1) in iv
    assert date(2024, 1, 4) in iv
    assert date(2024, 1, 5) not in iv
    assert date(2023, 12, 31) not in iv
    assert not iv.contains(date(2024, 1, 3), consider_repetition=False)
    assert iv.contains(date(2024, 1, 2), consider_repetition=False)


def test_infinite_contains_is_unbounded_forward():
    iv = daily(-1)
    assert date(2999, 12, 31) in iv
    assert date(2023, 12, 31) not in iv


def test_get_with_repetition():
    iv = daily(3)
    assert iv.get(Unit.DAYS) == 3
    assert iv.get(Unit.DAYS, consider_repetition=False) == 1
    assert iv.units == DAY.units


def test_add_and_subtract_with_repetition():
    iv = daily(3)
    assert iv.add_to(date(2024, 2, 1)) == date(2024, 2, 4)
    assert iv.add_to(date(2024, 2, 1), consider_repetition=False) == date(2024, 2, 2)
    assert iv.subtract_from(date(2024, 2, 4)) == date(2024, 2, 1)
    assert iv.subtract_from(date(2024, 2, 4), consider_repetition=False) == date(2024, 2, 3)


def test_occurrences_forward():
    assert [str(o) for o in daily(3).occurrences()] == [
        "2024-01-01/2024-01-02",
        "2024-01-02/2024-01-03",
        "2024-01-03/2024-01-04",
    ]
    assert list(daily(0).occurrences()) == []


def test_occurrences_backward_from_end():
    base = DurationEndInterval(duration=DAY, end=date(2024, 1, 3))
    occurrences = list(RepeatedInterval(base=base, repetition=2).occurrences())
    assert occurrences == [
        TwoPointInterval(start=date(2024, 1, 2), end=date(2024, 1, 3)),
        TwoPointInterval(start=date(2024, 1, 1), end=date(2024, 1, 2)),
    ]


def test_infinite_occurrences_are_lazy():
    first = list(islice(daily(-1).occurrences(), 3))
    assert first[-1] == TwoPointInterval(start=date(2024, 1, 3), end=date(2024, 1, 4))


def test_transformations_keep_repetition():
    iv = daily(3)
    assert iv.with_repetition(5).repetition == 5
    moved = iv.with_start(date(2024, 2, 1))
    assert moved.repetition == 3
    assert moved.end_with_repetition == date(2024, 2, 4)
    assert iv.with_duration(CalendarDuration(days=2)).end_with_repetition == date(2024, 1, 7)
    assert iv.with_end(date(2024, 1, 10)).base == TwoPointInterval(
        start=date(2024, 1, 1), end=date(2024, 1, 10)
    )

    pure = iv.to_pure_duration()
    assert pure == RepeatedInterval(base=PureDurationInterval(duration=DAY), repetition=3)
    assert iv.to_duration_start() == iv

    # an end-anchored base chains backward from its own end
    as_end = iv.to_duration_end()
    assert as_end.base == DurationEndInterval(duration=DAY, end=date(2024, 1, 2))
    assert as_end.start_with_repetition == date(2023, 12, 30)


def test_to_two_point_spans_all_occurrences():
    assert daily(3).to_two_point() == TwoPointInterval(start=date(2024, 1, 1), end=date(2024, 1, 4))


def test_delegates_base_values():
    iv = daily(3)
    assert iv.duration == DAY
    assert iv.start == date(2024, 1, 1)
    assert iv.end == date(2024, 1, 2)


def test_rejects_invalid_repetition():
    base = PureDurationInterval(duration=DAY)
    with pytest.raises(InvalidValueError, match="Got: -2"):
        RepeatedInterval(base=base, repetition=-2)
    with pytest.raises(InvalidValueError, match="must be an int"):
        RepeatedInterval(base=base, repetition=1.5)  # type: ignore[arg-type]
    with pytest.raises(InvalidValueError, match="must be an int"):
        RepeatedInterval(base=base, repetition=True)


def test_rejects_nested_repetition():
    with pytest.raises(InvalidValueError, match="cannot repeat another repeated interval"):
        RepeatedInterval(base=daily(2), repetition=2)


def test_parse_classmethod():
    assert RepeatedInterval.parse("2024-01-01/P1D") == daily(1)
    assert RepeatedInterval.parse("R3/2024-01-01/P1D") == daily(3)
