"""Tests for the duration, anchor and interval text codec."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from calspan import (
    CalendarDuration,
    DurationEndInterval,
    DurationStartInterval,
    PureDurationInterval,
    RepeatedInterval,
    TwoPointInterval,
    YearMonth,
    format_anchor,
    format_duration,
    format_interval,
    parse_anchor,
    parse_duration,
    parse_interval,
    parse_repeated_interval,
    try_parse_duration,
    try_parse_interval,
)
from calspan.errors import ErrorKind, MalformedInputError

# --- durations ------------------------------------------------------------


def test_parse_hours_and_minutes():
    d = parse_duration("PT1H30M")
    assert d.to_map() == {
        "years": 0,
        "months": 0,
        "days": 0,
        "hours": 1,
        "minutes": 30,
        "seconds": 0,
        "millis": 0,
        "micros": 0,
        "nanos": 0,
    }
    assert format_duration(d) == "PT1H30M"


def test_zero_formats_canonically():
    """An empty duration is written PT0S, whatever text it came from."""
    assert format_duration(parse_duration("P0D")) == "PT0S"
    assert str(CalendarDuration.ZERO) == "PT0S"


def test_parse_every_component():
    d = parse_duration("P1Y2M3W4DT5H6M7.5S")
    assert d == CalendarDuration(
        years=1, months=2, days=25, hours=5, minutes=6, seconds=7, nanos=500_000_000
    )


def test_parse_signs():
    assert parse_duration("-P1D") == CalendarDuration(days=-1)
    assert parse_duration("P-1D") == CalendarDuration(days=-1)
    assert parse_duration("+P1D") == CalendarDuration(days=1)
    assert parse_duration("-P1M-1D") == CalendarDuration(months=-1, days=1)


def test_parse_decimal_components_cascade():
    assert parse_duration("P1,5D") == CalendarDuration(days=1, hours=12)
    assert parse_duration("P0.5Y") == CalendarDuration(months=6)
    assert parse_duration("PT0.000000001S") == CalendarDuration(nanos=1)


def test_parse_is_case_insensitive():
    assert parse_duration("p1dt2h") == CalendarDuration(days=1, hours=2)


def test_parse_blank_is_zero():
    assert parse_duration("") == CalendarDuration.ZERO
    assert parse_duration("   ") == CalendarDuration.ZERO


def test_hours_need_t_designator():
    with pytest.raises(MalformedInputError, match="preceding 'T'"):
        parse_duration("P1H")
    with pytest.raises(MalformedInputError, match="preceding 'T'"):
        parse_duration("P1D5S")


def test_parse_rejects_malformed_text():
    with pytest.raises(MalformedInputError, match="At least one component"):
        parse_duration("P")
    with pytest.raises(MalformedInputError, match="At least one component"):
        parse_duration("PT")
    with pytest.raises(MalformedInputError, match="'T' must be followed"):
        parse_duration("P1DT")
    with pytest.raises(MalformedInputError, match="Invalid duration: '1D'"):
        parse_duration("1D")
    with pytest.raises(MalformedInputError):
        parse_duration("P1D2Y")


def test_parse_rejects_non_strings():
    with pytest.raises(TypeError, match="must be a str"):
        parse_duration(5)  # type: ignore[arg-type]


def test_format_folds_weeks():
    d = CalendarDuration(days=10)
    assert format_duration(d) == "P1W3D"
    assert format_duration(d, weeks=False) == "P10D"
    assert d.to_string(weeks=False) == "P10D"


def test_format_negative_duration_uses_leading_sign():
    assert format_duration(-CalendarDuration(days=1, hours=2)) == "-P1DT2H"
    assert format_duration(CalendarDuration(seconds=-1.5)) == "-PT1.5S"


def test_format_mixed_signs_per_field():
    assert format_duration(CalendarDuration(months=1, days=-1)) == "P1M-1D"
    assert format_duration(CalendarDuration(minutes=1, seconds=-30)) == "PT1M-30S"


def test_format_fractional_seconds_strip_zeros():
    assert format_duration(CalendarDuration(seconds=6, nanos=500_000_000)) == "PT6.5S"
    assert format_duration(CalendarDuration(nanos=1)) == "PT0.000000001S"
    assert format_duration(CalendarDuration(nanos=120_000)) == "PT0.00012S"


def test_duration_round_trip():
    for d in (
        CalendarDuration(years=2, months=2),
        CalendarDuration(days=10, hours=3, seconds=1, nanos=5),
        CalendarDuration(months=1, days=-1),
        CalendarDuration(minutes=1, seconds=-30),
        -CalendarDuration(years=1, days=8, nanos=999),
        CalendarDuration(seconds=-1.5),
        CalendarDuration.ZERO,
    ):
        assert parse_duration(format_duration(d)) == d
        assert parse_duration(format_duration(d, weeks=False)) == d


def test_try_parse_duration():
    ok = try_parse_duration("P1D")
    assert ok.success
    assert ok.value == CalendarDuration(days=1)
    assert ok.kind is None

    failed = try_parse_duration("one day")
    assert not failed.success
    assert failed.value is None
    assert failed.kind is ErrorKind.MALFORMED_INPUT
    with pytest.raises(MalformedInputError):
        failed.unwrap()


# --- anchors ----------------------------------------------------------------


def test_parse_anchor_detects_kind():
    assert parse_anchor("2024-01-15") == date(2024, 1, 15)
    assert parse_anchor("2024-01-15T09:30:00") == datetime(2024, 1, 15, 9, 30)
    assert parse_anchor("09:30:00") == time(9, 30)
    assert parse_anchor("2024-01") == YearMonth(2024, 1)


def test_parse_anchor_with_offsets():
    dt = parse_anchor("2024-01-15T09:30:00+01:00")
    assert dt == datetime(2024, 1, 15, 9, 30, tzinfo=timezone(timedelta(hours=1)))
    assert parse_anchor("2024-01-15T09:30:00Z").utcoffset() == timedelta(0)

    t = parse_anchor("09:30+02:00")
    assert isinstance(t, time)
    assert t.utcoffset() == timedelta(hours=2)


def test_parse_anchor_rejects_garbage():
    with pytest.raises(MalformedInputError, match="Invalid anchor: 'soon'") as exc_info:
        parse_anchor("soon")
    assert isinstance(exc_info.value.__cause__, ValueError)

    with pytest.raises(MalformedInputError, match="Invalid anchor"):
        parse_anchor("2024-01-15T25:00")


def test_format_anchor():
    assert format_anchor(date(2024, 1, 15)) == "2024-01-15"
    assert format_anchor(YearMonth(2024, 1)) == "2024-01"
    assert format_anchor(time(9, 30)) == "09:30:00"
    assert format_anchor(datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)) == (
        "2024-01-15T09:30:00+00:00"
    )
    with pytest.raises(TypeError, match="Expected an anchor"):
        format_anchor("2024-01-15")  # type: ignore[arg-type]


# --- intervals --------------------------------------------------------------


def test_parse_each_interval_shape():
    jan1, feb1 = date(2024, 1, 1), date(2024, 2, 1)
    month = CalendarDuration(months=1)
    assert parse_interval("2024-01-01/2024-02-01") == TwoPointInterval(start=jan1, end=feb1)
    assert parse_interval("P1M") == PureDurationInterval(duration=month)
    assert parse_interval("P1M/2024-02-01") == DurationEndInterval(duration=month, end=feb1)
    assert parse_interval("2024-01-01/P1M") == DurationStartInterval(start=jan1, duration=month)


def test_parse_interval_trims_around_slashes():
    """Whitespace around '/' is ignored on either side and after the R prefix."""
    jan1, day = date(2024, 1, 1), CalendarDuration(days=1)
    assert parse_interval("2024-01-01 / P1D") == DurationStartInterval(start=jan1, duration=day)
    assert parse_interval("P1D / 2024-01-01") == DurationEndInterval(duration=day, end=jan1)
    assert parse_interval(" 2024-01-01 /2024-01-02 ") == TwoPointInterval(
        start=jan1, end=date(2024, 1, 2)
    )
    repeated = parse_interval("R2 / 2024-01-01 / P1D")
    assert repeated == RepeatedInterval(
        base=DurationStartInterval(start=jan1, duration=day), repetition=2
    )
    assert parse_interval("R / P1D").is_infinite  # type: ignore[attr-defined]


def test_parse_interval_rejects_blank_parts():
    with pytest.raises(MalformedInputError, match="Empty interval part"):
        parse_interval("2024-01-01 /  ")


def test_parse_repeated_end_anchored():
    iv = parse_interval("R2/P1D/2024-01-03")
    assert isinstance(iv, RepeatedInterval)
    assert iv.repetition == 2
    assert iv.base == DurationEndInterval(duration=CalendarDuration(days=1), end=date(2024, 1, 3))
    assert iv.start_with_repetition == date(2024, 1, 1)


def test_parse_repeated_forms():
    infinite = parse_interval("R/2024-01-01/P1D")
    assert isinstance(infinite, RepeatedInterval)
    assert infinite.is_infinite

    pure = parse_interval("R3/P1D")
    assert isinstance(pure, RepeatedInterval)
    assert pure.base == PureDurationInterval(duration=CalendarDuration(days=1))

    assert parse_interval("r0/P1D").repetition == 0  # type: ignore[attr-defined]


def test_parse_repeated_interval_defaults_to_once():
    iv = parse_repeated_interval("2024-01-01/P1D")
    assert iv.repetition == 1
    assert isinstance(iv.base, DurationStartInterval)
    assert parse_repeated_interval("R5/P1D").repetition == 5


def test_parse_blank_interval_is_zero_pure_duration():
    assert parse_interval("") == PureDurationInterval(duration=CalendarDuration.ZERO)


def test_parse_interval_errors():
    with pytest.raises(MalformedInputError, match="Invalid repetition prefix 'Rx'"):
        parse_interval("Rx/P1D")
    with pytest.raises(MalformedInputError, match="Expected 1 or 2 '/'-separated parts, got 3"):
        parse_interval("2024-01-01/2024-01-02/2024-01-03")
    with pytest.raises(MalformedInputError, match="Invalid repeated interval"):
        parse_interval("R3/2024-01-01/P1D/2024-02-01")
    with pytest.raises(MalformedInputError, match="At most one side"):
        parse_interval("P1D/P2D")
    with pytest.raises(MalformedInputError, match="Empty interval part"):
        parse_interval("R3/")
    with pytest.raises(MalformedInputError, match="Invalid duration"):
        parse_interval("2024-01-01")


def test_try_parse_interval():
    assert try_parse_interval("R/P1D").success
    failed = try_parse_interval("2024-01-01/2024-01-02/2024-01-03")
    assert failed.kind is ErrorKind.MALFORMED_INPUT


def test_format_interval_shapes():
    jan1 = date(2024, 1, 1)
    day = CalendarDuration(days=1)
    assert format_interval(TwoPointInterval(start=jan1, end=date(2024, 1, 8))) == "2024-01-01/2024-01-08"
    assert format_interval(PureDurationInterval(duration=day)) == "P1D"
    assert format_interval(DurationEndInterval(duration=day, end=jan1)) == "P1D/2024-01-01"
    assert format_interval(DurationStartInterval(start=jan1, duration=day)) == "2024-01-01/P1D"


def test_format_repeated_interval():
    base = DurationStartInterval(start=date(2024, 1, 1), duration=CalendarDuration(days=1))
    assert format_interval(RepeatedInterval(base=base, repetition=3)) == "R3/2024-01-01/P1D"
    assert format_interval(RepeatedInterval(base=base, repetition=-1)) == "R/2024-01-01/P1D"

    once = RepeatedInterval(base=base)
    assert str(once) == "R1/2024-01-01/P1D"
    assert format_interval(once, omit_single_repetition=True) == "2024-01-01/P1D"
    assert once.to_string(omit_single_repetition=True) == "2024-01-01/P1D"


def test_interval_round_trip():
    jan1 = datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)
    d = CalendarDuration(months=1, hours=2, nanos=1000)
    for iv in (
        TwoPointInterval(start=date(2024, 1, 1), end=date(2024, 3, 15)),
        TwoPointInterval(start=time(9), end=time(17, 30)),
        TwoPointInterval(start=YearMonth(2024, 1), end=YearMonth(2025, 6)),
        PureDurationInterval(duration=d),
        DurationEndInterval(duration=d, end=jan1),
        DurationStartInterval(start=jan1, duration=d),
        RepeatedInterval(base=DurationStartInterval(start=jan1, duration=d), repetition=4),
        RepeatedInterval(base=PureDurationInterval(duration=d), repetition=-1),
        RepeatedInterval(base=DurationEndInterval(duration=d, end=jan1), repetition=0),
    ):
        assert parse_interval(format_interval(iv)) == iv
