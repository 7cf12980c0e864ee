"""Anchors: the points in time a duration is applied to and an interval is
pinned to.

An anchor is one of the stdlib ``date``, ``datetime`` and ``time`` types, or
the ``YearMonth`` defined here. Each anchor only understands the units its
granularity can express:

    - datetime: years down to nanoseconds (stored with microsecond precision)
    - date: years, months, weeks, days
    - time: hours down to nanoseconds (wraps around midnight)
    - YearMonth: years, months

Calendar units are applied with ``dateutil.relativedelta``, which clamps to
the end of the month (Jan 31 + 1 month = Feb 28/29).
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import TypeAlias

from dateutil.relativedelta import relativedelta

from calspan.errors import InvalidValueError, MalformedInputError, UnsupportedUnitError
from calspan.units import FIXED_UNIT_NANOS, Unit, as_unit
from calspan.util import DAY_NANOS, NANOS_PER_MICRO, trunc_div

_YEAR_MONTH_RE = re.compile(r"^(?P<year>[+-]?\d{4,})-(?P<month>\d{2})$")
_DAY_MICROS = DAY_NANOS // NANOS_PER_MICRO


@dataclass(frozen=True, order=True)
class YearMonth:
    """A month of a specific year, without a day or a time of day."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise InvalidValueError(
                f"YearMonth month must be in 1..12, got {self.month}"
            )

    @classmethod
    def from_anchor(cls, anchor: "Anchor") -> "YearMonth":
        if isinstance(anchor, YearMonth):
            return anchor
        if isinstance(anchor, date):
            return cls(anchor.year, anchor.month)
        raise TypeError(
            f"Cannot derive a YearMonth from {type(anchor).__name__!r}: {anchor!r}"
        )

    @classmethod
    def parse(cls, text: str) -> "YearMonth":
        match = _YEAR_MONTH_RE.match(text.strip())
        if match is None:
            raise MalformedInputError(
                f"Invalid year-month: {text!r}\n" f"Example: '2024-01'"
            )
        return cls(int(match["year"]), int(match["month"]))

    @property
    def length_of_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def plus_months(self, months: int) -> "YearMonth":
        year, index = divmod(self.year * 12 + self.month - 1 + months, 12)
        return YearMonth(year, index + 1)

    def _ordinal(self) -> int:
        return self.year * 12 + self.month - 1

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


Anchor: TypeAlias = date | datetime | time | YearMonth

_DATETIME_UNITS = frozenset(FIXED_UNIT_NANOS) | {Unit.MONTHS, Unit.YEARS}
_DATE_UNITS = frozenset(u for u in Unit if u.is_date_based)
_TIME_UNITS = frozenset(u for u in FIXED_UNIT_NANOS if u.is_time_based)
_YEAR_MONTH_UNITS = frozenset({Unit.MONTHS, Unit.YEARS})


def is_anchor(value: object) -> bool:
    return isinstance(value, (date, time, YearMonth))


def supported_units(anchor: Anchor) -> frozenset[Unit]:
    """Units that can be added to or measured from ``anchor``."""
    if isinstance(anchor, datetime):
        return _DATETIME_UNITS
    if isinstance(anchor, date):
        return _DATE_UNITS
    if isinstance(anchor, time):
        return _TIME_UNITS
    if isinstance(anchor, YearMonth):
        return _YEAR_MONTH_UNITS
    raise TypeError(
        f"Expected an anchor (date, datetime, time or YearMonth).\n"
        f"Got {type(anchor).__name__!r}: {anchor!r}"
    )


def has_date(anchor: Anchor) -> bool:
    """True if ``anchor`` carries a day (date or datetime)."""
    return isinstance(anchor, date)


def has_time(anchor: Anchor) -> bool:
    """True if ``anchor`` carries a time of day (time or datetime)."""
    return isinstance(anchor, (datetime, time))


def _require(anchor: Anchor, unit: Unit) -> None:
    if unit not in supported_units(anchor):
        raise UnsupportedUnitError(
            f"Unsupported unit for {type(anchor).__name__}: {unit.value}\n"
            f"Supported: {', '.join(sorted(u.value for u in supported_units(anchor)))}"
        )


def plus(anchor: Anchor, amount: int, unit: "Unit | str") -> Anchor:
    """Return ``anchor`` moved by ``amount`` units."""
    unit = as_unit(unit)
    _require(anchor, unit)
    if amount == 0:
        return anchor

    if isinstance(anchor, YearMonth):
        return anchor.plus_months(amount * 12 if unit is Unit.YEARS else amount)
    if unit is Unit.YEARS:
        return anchor + relativedelta(years=amount)
    if unit is Unit.MONTHS:
        return anchor + relativedelta(months=amount)

    nanos = FIXED_UNIT_NANOS[unit] * amount
    if isinstance(anchor, time):
        return _shift_time(anchor, nanos)
    if isinstance(anchor, datetime):
        return anchor + timedelta(microseconds=trunc_div(nanos, NANOS_PER_MICRO))
    return anchor + timedelta(days=trunc_div(nanos, DAY_NANOS))


def minus(anchor: Anchor, amount: int, unit: "Unit | str") -> Anchor:
    return plus(anchor, -amount, unit)


def until(start: Anchor, end: Anchor, unit: "Unit | str") -> int:
    """Count the whole ``unit``s from ``start`` to ``end``, truncated toward zero.

    Months and years are counted without overshooting ``end``: the result is
    the largest count ``n`` for which ``plus(start, n, unit)`` does not pass
    ``end``.
    """
    unit = as_unit(unit)
    start, end = promote(start, end)
    _require(start, unit)
    _require(end, unit)

    if isinstance(start, YearMonth):
        months = end._ordinal() - start._ordinal()  # type: ignore[union-attr]
    elif isinstance(start, time):
        nanos = _time_nanos(end) - _time_nanos(start)  # type: ignore[arg-type]
        return trunc_div(nanos, FIXED_UNIT_NANOS[unit])
    elif unit in (Unit.MONTHS, Unit.YEARS):
        delta = relativedelta(end, start)  # type: ignore[arg-type]
        months = delta.years * 12 + delta.months
    else:
        elapsed = end - start  # type: ignore[operator]
        nanos = (elapsed // timedelta(microseconds=1)) * NANOS_PER_MICRO
        return trunc_div(nanos, FIXED_UNIT_NANOS[unit])

    return trunc_div(months, 12) if unit is Unit.YEARS else months


def promote(start: Anchor, end: Anchor) -> tuple[Anchor, Anchor]:
    """Bring two anchors of different granularity to a common representation.

    - YearMonth paired with a date or datetime: the other side is reduced to
      its YearMonth.
    - date paired with a datetime: the date becomes midnight, carrying the
      datetime's tzinfo.
    """
    if isinstance(start, YearMonth) != isinstance(end, YearMonth):
        return YearMonth.from_anchor(start), YearMonth.from_anchor(end)
    if isinstance(start, datetime) and _is_plain_date(end):
        return start, datetime.combine(end, time.min, tzinfo=start.tzinfo)  # type: ignore[arg-type]
    if isinstance(end, datetime) and _is_plain_date(start):
        return datetime.combine(start, time.min, tzinfo=end.tzinfo), end  # type: ignore[arg-type]
    return start, end


def _is_plain_date(anchor: Anchor) -> bool:
    return isinstance(anchor, date) and not isinstance(anchor, datetime)


def _shift_time(value: time, nanos: int) -> time:
    micros = trunc_div(nanos, NANOS_PER_MICRO) % _DAY_MICROS
    shifted = datetime.combine(date(2000, 1, 1), value) + timedelta(microseconds=micros)
    return shifted.timetz()


def _time_nanos(value: time) -> int:
    """Nanoseconds since midnight, shifted to UTC when the time has an offset."""
    seconds = (value.hour * 60 + value.minute) * 60 + value.second
    nanos = seconds * 1_000_000_000 + value.microsecond * NANOS_PER_MICRO
    offset = value.utcoffset()
    if offset:
        nanos -= (offset // timedelta(microseconds=1)) * NANOS_PER_MICRO
    return nanos
