"""CalendarDuration: an amount of time in mixed calendar units.

A CalendarDuration stores seven signed integer components: years, months,
days, hours, minutes, seconds and nanoseconds. Unlike ``timedelta`` it keeps
calendar units symbolic, so "1 month" stays one month and only becomes a
concrete number of days once it is applied to an anchor.

Normalization happens once, at construction:

    - fractional components cascade downward with fixed ratios
      (1 year = 12 months, 1 month = 30 days, 1 week = 7 days, ...)
    - overflow carries upward, truncating toward zero: nanos into seconds,
      seconds into minutes, minutes into hours, hours into days and months
      into years. Days never carry into months: a month has no fixed number
      of days.

Examples:
    >>> CalendarDuration(years=1, months=14)
    CalendarDuration(years=2, months=2)
    >>> str(CalendarDuration(hours=1.5))
    'PT1H30M'
    >>> date(2024, 1, 31) + CalendarDuration(months=1)
    datetime.date(2024, 2, 29)
"""

import functools
import logging
import math
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from fractions import Fraction
from numbers import Real
from typing import Any, ClassVar

from dateutil.relativedelta import relativedelta

from calspan import anchors
from calspan.anchors import Anchor, YearMonth
from calspan.errors import (
    InvalidValueError,
    UnsupportedFieldError,
    UnsupportedUnitError,
)
from calspan.units import Field, Unit, as_field, as_unit
from calspan.util import (
    DAY_NANOS,
    DAYS_PER_MONTH,
    DAYS_PER_WEEK,
    HOUR_NANOS,
    HOURS_PER_DAY,
    MINUTE_NANOS,
    MINUTES_PER_HOUR,
    MONTH_NANOS,
    MONTHS_PER_YEAR,
    NANOS_PER_MICRO,
    NANOS_PER_MILLI,
    NANOS_PER_SECOND,
    SECOND_NANOS,
    SECONDS_PER_MINUTE,
    WEEK_NANOS,
    YEAR_NANOS,
    approximation,
    trunc_div,
    warn_approximation,
)

logger = logging.getLogger(__name__)

_FIELD_NAMES = ("years", "months", "days", "hours", "minutes", "seconds", "nanos")

# unit -> (stored field, multiplier) for plus/minus/of
_UNIT_FIELDS: dict[Unit, tuple[str, int]] = {
    Unit.YEARS: ("years", 1),
    Unit.MONTHS: ("months", 1),
    Unit.WEEKS: ("days", DAYS_PER_WEEK),
    Unit.DAYS: ("days", 1),
    Unit.HOURS: ("hours", 1),
    Unit.MINUTES: ("minutes", 1),
    Unit.SECONDS: ("seconds", 1),
    Unit.MILLIS: ("nanos", NANOS_PER_MILLI),
    Unit.MICROS: ("nanos", NANOS_PER_MICRO),
    Unit.NANOS: ("nanos", 1),
}

# unit -> (stored field, divisor) for get()
_UNIT_READS: dict[Unit, tuple[str, int]] = {
    Unit.YEARS: ("years", 1),
    Unit.MONTHS: ("months", 1),
    Unit.DAYS: ("days", 1),
    Unit.HOURS: ("hours", 1),
    Unit.MINUTES: ("minutes", 1),
    Unit.SECONDS: ("seconds", 1),
    Unit.MILLIS: ("nanos", NANOS_PER_MILLI),
    Unit.MICROS: ("nanos", NANOS_PER_MICRO),
    Unit.NANOS: ("nanos", 1),
}

# field -> (stored field, scale) for get()/with_field()
_FIELD_MAP: dict[Field, tuple[str, int]] = {
    Field.YEAR_OF_ERA: ("years", 1),
    Field.MONTH_OF_YEAR: ("months", 1),
    Field.DAY_OF_MONTH: ("days", 1),
    Field.HOUR_OF_DAY: ("hours", 1),
    Field.MINUTE_OF_HOUR: ("minutes", 1),
    Field.SECOND_OF_MINUTE: ("seconds", 1),
    Field.MILLI_OF_SECOND: ("nanos", NANOS_PER_MILLI),
    Field.MICRO_OF_SECOND: ("nanos", NANOS_PER_MICRO),
    Field.NANO_OF_SECOND: ("nanos", 1),
}

_TRUNCATION_ORDER = (
    Unit.YEARS,
    Unit.MONTHS,
    Unit.DAYS,
    Unit.HOURS,
    Unit.MINUTES,
    Unit.SECONDS,
)

_BETWEEN_UNITS = (
    Unit.YEARS,
    Unit.MONTHS,
    Unit.DAYS,
    Unit.HOURS,
    Unit.MINUTES,
    Unit.SECONDS,
    Unit.NANOS,
)
_BETWEEN_DATE_UNITS = (Unit.YEARS, Unit.MONTHS, Unit.DAYS)
_BETWEEN_YEAR_MONTH_UNITS = (Unit.YEARS, Unit.MONTHS)

# Denominators of the approximate totals, in nanoseconds
_APPROX_NANOS: dict[Unit, int] = {
    Unit.WEEKS: WEEK_NANOS,
    Unit.DAYS: DAY_NANOS,
    Unit.HOURS: HOUR_NANOS,
    Unit.MINUTES: MINUTE_NANOS,
    Unit.SECONDS: SECOND_NANOS,
    Unit.MILLIS: NANOS_PER_MILLI,
    Unit.MICROS: NANOS_PER_MICRO,
}


def _exact(value: Any, name: str) -> Fraction:
    """Convert a numeric component to an exact Fraction."""
    if isinstance(value, int):
        return Fraction(int(value))
    if isinstance(value, Fraction):
        return value
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidValueError(f"{name} must be finite, got {value}")
        return Fraction(value)
    if isinstance(value, Real):
        value = float(value)
        if not math.isfinite(value):
            raise InvalidValueError(f"{name} must be finite, got {value}")
        # repr() is the shortest text that round-trips, so 0.1 stays 1/10
        return Fraction(repr(value))
    raise TypeError(
        f"{name} must be a real number, got {type(value).__name__!r}: {value!r}\n"
        f"Hint: parse text with CalendarDuration.parse('P1Y2M')"
    )


def _carry(value: int, ratio: int) -> tuple[int, int]:
    """Split ``value`` into (carried, remainder), truncating toward zero."""
    carried = trunc_div(value, ratio)
    return carried, value - carried * ratio


def _normalize(
    years: Any,
    months: Any,
    weeks: Any,
    days: Any,
    hours: Any,
    minutes: Any,
    seconds: Any,
    nanos: Any,
) -> tuple[int, int, int, int, int, int, int]:
    y = _exact(years, "years")
    mo = _exact(months, "months")
    d = _exact(days, "days") + _exact(weeks, "weeks") * DAYS_PER_WEEK
    h = _exact(hours, "hours")
    mi = _exact(minutes, "minutes")
    s = _exact(seconds, "seconds")
    ns = _exact(nanos, "nanos")

    # Fractions flow downward
    whole_y = math.trunc(y)
    mo += (y - whole_y) * MONTHS_PER_YEAR
    whole_mo = math.trunc(mo)
    d += (mo - whole_mo) * DAYS_PER_MONTH
    whole_d = math.trunc(d)
    h += (d - whole_d) * HOURS_PER_DAY
    whole_h = math.trunc(h)
    mi += (h - whole_h) * MINUTES_PER_HOUR
    whole_mi = math.trunc(mi)
    s += (mi - whole_mi) * SECONDS_PER_MINUTE
    whole_s = math.trunc(s)
    ns += (s - whole_s) * NANOS_PER_SECOND

    # Overflow flows upward; seconds and nanos always end with the same sign
    carried, out_ns = _carry(whole_s * NANOS_PER_SECOND + math.trunc(ns), NANOS_PER_SECOND)
    carried, out_s = _carry(carried, SECONDS_PER_MINUTE)
    carried, out_mi = _carry(whole_mi + carried, MINUTES_PER_HOUR)
    carried, out_h = _carry(whole_h + carried, HOURS_PER_DAY)
    out_d = whole_d + carried
    carried, out_mo = _carry(whole_mo, MONTHS_PER_YEAR)
    out_y = whole_y + carried
    return out_y, out_mo, out_d, out_h, out_mi, out_s, out_ns


def _restore(*fields: int) -> "CalendarDuration":
    return CalendarDuration._of_fields(*fields)


@functools.total_ordering
class CalendarDuration:
    """A normalized, immutable amount of time in calendar units.

    Equality and ordering are field-wise: ``P1M`` and ``P30D`` are different
    and ``P1M > P40D`` because months are compared before days. Use
    compare_elapsed() to compare by elapsed time from a concrete anchor.
    """

    __slots__ = ("_years", "_months", "_days", "_hours", "_minutes", "_seconds", "_nanos")

    ZERO: ClassVar["CalendarDuration"]

    def __init__(
        self,
        years: Any = 0,
        months: Any = 0,
        weeks: Any = 0,
        days: Any = 0,
        hours: Any = 0,
        minutes: Any = 0,
        seconds: Any = 0,
        nanos: Any = 0,
    ) -> None:
        """Create a normalized duration.

        Any finite real number is accepted for every component, including
        fractions: ``CalendarDuration(years=1.5)`` is one year and six months.

        Raises:
            InvalidValueError: If a component is NaN or infinite.
            TypeError: If a component is not a real number.
        """
        values = _normalize(years, months, weeks, days, hours, minutes, seconds, nanos)
        for slot, value in zip(self.__slots__, values):
            object.__setattr__(self, slot, value)

    @classmethod
    def _of_fields(
        cls,
        years: int = 0,
        months: int = 0,
        days: int = 0,
        hours: int = 0,
        minutes: int = 0,
        seconds: int = 0,
        nanos: int = 0,
    ) -> "CalendarDuration":
        """Build a duration from stored fields as-is, skipping normalization."""
        self = object.__new__(cls)
        values = (years, months, days, hours, minutes, seconds, nanos)
        for slot, value in zip(cls.__slots__, values):
            object.__setattr__(self, slot, int(value))
        return self

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __reduce__(self) -> tuple[Any, ...]:
        return _restore, self._values()

    # ------------------------------------------------------------------
    # Alternate constructors

    @classmethod
    def between(cls, start: Anchor, end: Anchor) -> "CalendarDuration":
        """Measure the duration from ``start`` to ``end``.

        Units are extracted greedily, largest first, each time advancing a copy
        of ``start`` by the extracted amount: years, then months, then days,
        hours, minutes, seconds and nanoseconds. The result may be negative.

        Anchors of different granularity are first brought to a common form:
        a YearMonth paired with a date reduces the date to its month, and a
        date paired with a datetime becomes midnight. Two times are measured
        directly in nanoseconds.

        Example:
            >>> CalendarDuration.between(date(2024, 1, 31), date(2024, 3, 1))
            CalendarDuration(months=1, days=1)
        """
        if isinstance(start, time) and isinstance(end, time):
            return cls(nanos=anchors.until(start, end, Unit.NANOS))
        if isinstance(start, time) or isinstance(end, time):
            raise TypeError(
                f"Cannot measure between a time of day and a dated anchor.\n"
                f"Got: {start!r} -> {end!r}\n"
                f"Hint: combine the time with a date first: datetime.combine(day, t)"
            )

        start, end = anchors.promote(start, end)
        if isinstance(start, YearMonth):
            units = _BETWEEN_YEAR_MONTH_UNITS
        elif isinstance(start, datetime):
            units = _BETWEEN_UNITS
        else:
            units = _BETWEEN_DATE_UNITS

        cursor = start
        amounts: dict[str, int] = {}
        for unit in units:
            amount = anchors.until(cursor, end, unit)
            cursor = anchors.plus(cursor, amount, unit)
            amounts[unit.value] = amount
        return cls(**amounts)

    @classmethod
    def of(cls, amount: Any, unit: "Unit | str") -> "CalendarDuration":
        """Create a duration of ``amount`` units, e.g. ``of(90, "minutes")``."""
        unit = as_unit(unit)
        if unit not in _UNIT_FIELDS:
            raise UnsupportedUnitError(f"Unsupported unit: {unit.value}")
        if unit is Unit.WEEKS:
            return cls(weeks=amount)
        name, multiplier = _UNIT_FIELDS[unit]
        return cls(**{name: _exact(amount, unit.value) * multiplier})

    @classmethod
    def parse(cls, text: str) -> "CalendarDuration":
        """Parse ISO-8601-style text such as ``"P1Y2M3W4DT5H6M7.5S"``."""
        from calspan.codec import parse_duration

        return parse_duration(text)

    @classmethod
    def precise(
        cls,
        *,
        start: date,
        years: int = 0,
        months: int = 0,
        weeks: int = 0,
        days: int = 0,
        hours: int = 0,
        minutes: int = 0,
        seconds: int = 0,
        nanos: int = 0,
    ) -> "CalendarDuration":
        """Build a duration from calendar-valid components measured from ``start``.

        Each component must lie within its calendar range (months 0..11,
        days up to the length of ``start``'s month, hours 0..23, ...). The
        components are applied to ``start`` and the result is measured back
        with between(), so the stored fields reflect the actual calendar.

        Raises:
            InvalidValueError: If a component is outside its range.
        """
        if not isinstance(start, date):
            raise TypeError(
                f"precise() needs a date or datetime start, got {type(start).__name__!r}"
            )
        month_length = YearMonth.from_anchor(start).length_of_month
        checks = (
            ("nanos", nanos, 0, NANOS_PER_SECOND - 1),
            ("seconds", seconds, 0, 59),
            ("minutes", minutes, 0, 59),
            ("hours", hours, 0, 23),
            ("days", days, 0, month_length),
            ("months", months, 0, 11),
            ("years", years, 0, 2**31 - 1),
        )
        for name, value, low, high in checks:
            if not low <= value <= high:
                raise InvalidValueError(
                    f"{name.capitalize()} must be in the range {low}..{high}, got {value}"
                )
        if weeks < 0:
            raise InvalidValueError(f"Weeks must not be negative, got {weeks}")

        if not isinstance(start, datetime):
            start = datetime.combine(start, time.min)
        end = start + relativedelta(
            years=years,
            months=months,
            weeks=weeks,
            days=days,
            hours=hours,
            minutes=minutes,
            seconds=seconds,
            microseconds=nanos // NANOS_PER_MICRO,
        )
        measured = cls.between(start, end)
        return measured.plus(cls(nanos=nanos % NANOS_PER_MICRO))

    @classmethod
    def from_timedelta(cls, value: timedelta) -> "CalendarDuration":
        return cls(days=value.days, seconds=value.seconds, nanos=value.microseconds * NANOS_PER_MICRO)

    @classmethod
    def from_relativedelta(cls, value: relativedelta) -> "CalendarDuration":
        """Convert the relative part of a relativedelta.

        Raises:
            InvalidValueError: If the relativedelta sets absolute fields
                (year=, month=, weekday=, ...), which a duration cannot hold.
        """
        absolute = ("year", "month", "day", "weekday", "hour", "minute", "second", "microsecond")
        present = [name for name in absolute if getattr(value, name) is not None]
        if present or value.leapdays:
            raise InvalidValueError(
                f"Cannot convert a relativedelta with absolute fields: {', '.join(present) or 'leapdays'}\n"
                f"Hint: only relative fields (years=, months=, days=, ...) map to a duration"
            )
        return cls(
            years=value.years,
            months=value.months,
            days=value.days,
            hours=value.hours,
            minutes=value.minutes,
            seconds=value.seconds,
            nanos=value.microseconds * NANOS_PER_MICRO,
        )

    # ------------------------------------------------------------------
    # Stored fields

    @property
    def years(self) -> int:
        return self._years

    @property
    def months(self) -> int:
        return self._months

    @property
    def days(self) -> int:
        return self._days

    @property
    def hours(self) -> int:
        return self._hours

    @property
    def minutes(self) -> int:
        return self._minutes

    @property
    def seconds(self) -> int:
        return self._seconds

    @property
    def nanos(self) -> int:
        return self._nanos

    @property
    def is_zero(self) -> bool:
        return not any(self._values())

    @property
    def is_negative(self) -> bool:
        """True if any stored field is negative."""
        return any(value < 0 for value in self._values())

    @property
    def units(self) -> list[Unit]:
        """Units accepted by get()."""
        return list(_UNIT_READS)

    def _values(self) -> tuple[int, int, int, int, int, int, int]:
        return (
            self._years,
            self._months,
            self._days,
            self._hours,
            self._minutes,
            self._seconds,
            self._nanos,
        )

    def _fields(self) -> dict[str, int]:
        return dict(zip(_FIELD_NAMES, self._values()))

    def get(self, tag: "Unit | Field | str") -> int:
        """Return the stored value for a unit or field tag.

        This reads the raw component, not a converted total:
        ``CalendarDuration(hours=25).get(Unit.HOURS)`` is 1 (the extra day
        was carried into ``days``). MILLIS and MICROS read the nanos field.

        Raises:
            UnsupportedUnitError: For units without a stored field (WEEKS, ERAS, ...).
            UnsupportedFieldError: For fields without a stored value (DAY_OF_WEEK, ...).
        """
        if isinstance(tag, Field) or (isinstance(tag, str) and tag.lower() in _FIELD_VALUES):
            field = as_field(tag)
            if field not in _FIELD_MAP:
                raise UnsupportedFieldError(
                    f"Unsupported field: {field.value}\n"
                    f"Supported: {', '.join(f.value for f in _FIELD_MAP)}"
                )
            name, divisor = _FIELD_MAP[field]
        else:
            unit = as_unit(tag)
            if unit not in _UNIT_READS:
                raise UnsupportedUnitError(
                    f"Unsupported unit: {unit.value}\n"
                    f"Supported: {', '.join(u.value for u in _UNIT_READS)}"
                )
            name, divisor = _UNIT_READS[unit]
        return trunc_div(getattr(self, name), divisor)

    def __getitem__(self, tag: "Unit | Field | str") -> int:
        return self.get(tag)

    # ------------------------------------------------------------------
    # Single-field arithmetic (no renormalization)

    def _shift(self, unit: "Unit | str", amount: int) -> "CalendarDuration":
        unit = as_unit(unit)
        if unit not in _UNIT_FIELDS:
            raise UnsupportedUnitError(
                f"Unsupported unit: {unit.value}\n"
                f"Supported: {', '.join(u.value for u in _UNIT_FIELDS)}"
            )
        if not isinstance(amount, int):
            raise TypeError(
                f"Amount must be an int, got {type(amount).__name__!r}: {amount!r}\n"
                f"Hint: use CalendarDuration.of({amount!r}, {unit.value!r}) for fractional amounts"
            )
        name, multiplier = _UNIT_FIELDS[unit]
        fields = self._fields()
        fields[name] += amount * multiplier
        return self._of_fields(**fields)

    def plus_years(self, years: int) -> "CalendarDuration":
        return self._shift(Unit.YEARS, years)

    def plus_months(self, months: int) -> "CalendarDuration":
        return self._shift(Unit.MONTHS, months)

    def plus_weeks(self, weeks: int) -> "CalendarDuration":
        return self._shift(Unit.WEEKS, weeks)

    def plus_days(self, days: int) -> "CalendarDuration":
        return self._shift(Unit.DAYS, days)

    def plus_hours(self, hours: int) -> "CalendarDuration":
        return self._shift(Unit.HOURS, hours)

    def plus_minutes(self, minutes: int) -> "CalendarDuration":
        return self._shift(Unit.MINUTES, minutes)

    def plus_seconds(self, seconds: int) -> "CalendarDuration":
        return self._shift(Unit.SECONDS, seconds)

    def plus_millis(self, millis: int) -> "CalendarDuration":
        return self._shift(Unit.MILLIS, millis)

    def plus_micros(self, micros: int) -> "CalendarDuration":
        return self._shift(Unit.MICROS, micros)

    def plus_nanos(self, nanos: int) -> "CalendarDuration":
        return self._shift(Unit.NANOS, nanos)

    def minus_years(self, years: int) -> "CalendarDuration":
        return self._shift(Unit.YEARS, -years)

    def minus_months(self, months: int) -> "CalendarDuration":
        return self._shift(Unit.MONTHS, -months)

    def minus_weeks(self, weeks: int) -> "CalendarDuration":
        return self._shift(Unit.WEEKS, -weeks)

    def minus_days(self, days: int) -> "CalendarDuration":
        return self._shift(Unit.DAYS, -days)

    def minus_hours(self, hours: int) -> "CalendarDuration":
        return self._shift(Unit.HOURS, -hours)

    def minus_minutes(self, minutes: int) -> "CalendarDuration":
        return self._shift(Unit.MINUTES, -minutes)

    def minus_seconds(self, seconds: int) -> "CalendarDuration":
        return self._shift(Unit.SECONDS, -seconds)

    def minus_millis(self, millis: int) -> "CalendarDuration":
        return self._shift(Unit.MILLIS, -millis)

    def minus_micros(self, micros: int) -> "CalendarDuration":
        return self._shift(Unit.MICROS, -micros)

    def minus_nanos(self, nanos: int) -> "CalendarDuration":
        return self._shift(Unit.NANOS, -nanos)

    # ------------------------------------------------------------------
    # Whole-duration arithmetic

    def plus(self, amount: Any, unit: "Unit | str | None" = None) -> "CalendarDuration":
        """Add ``amount`` of ``unit``, or a whole duration when ``unit`` is omitted.

        Examples:
            >>> CalendarDuration(days=1).plus(2, Unit.HOURS)
            CalendarDuration(days=1, hours=2)
            >>> CalendarDuration(days=1).plus(CalendarDuration(hours=30))
            CalendarDuration(days=2, hours=6)
        """
        if unit is not None:
            return self._shift(unit, amount)
        return self._combine(_as_duration(amount), 1)

    def minus(self, amount: Any, unit: "Unit | str | None" = None) -> "CalendarDuration":
        """Subtract ``amount`` of ``unit``, or a whole duration when ``unit`` is omitted.

        When neither duration has years or months, the subtraction is done
        exactly in nanoseconds and renormalized (``P1D - PT1H == PT23H``).
        Otherwise it is component-wise (``P1M - P1D`` keeps both fields).
        """
        if unit is not None:
            return self._shift(unit, -amount)
        other = _as_duration(amount)
        if self._is_fixed_length() and other._is_fixed_length():
            logger.debug("Exact nanosecond subtraction: %s - %s", self, other)
            return CalendarDuration(nanos=self._fixed_nanos() - other._fixed_nanos())
        return self._combine(other, -1)

    def _combine(self, other: "CalendarDuration", sign: int) -> "CalendarDuration":
        return CalendarDuration(
            years=self._years + sign * other._years,
            months=self._months + sign * other._months,
            days=self._days + sign * other._days,
            hours=self._hours + sign * other._hours,
            minutes=self._minutes + sign * other._minutes,
            seconds=self._seconds + sign * other._seconds,
            nanos=self._nanos + sign * other._nanos,
        )

    def _is_fixed_length(self) -> bool:
        return self._years == 0 and self._months == 0

    def _fixed_nanos(self) -> int:
        return (
            self._days * DAY_NANOS
            + self._hours * HOUR_NANOS
            + self._minutes * MINUTE_NANOS
            + self._seconds * SECOND_NANOS
            + self._nanos
        )

    def times(self, scalar: int) -> "CalendarDuration":
        """Scale every field by ``scalar`` (renormalized)."""
        if not isinstance(scalar, int):
            raise TypeError(f"Scalar must be an int, got {type(scalar).__name__!r}")
        if self.is_zero or scalar == 1:
            return self
        return CalendarDuration(**{name: value * scalar for name, value in self._fields().items()})

    def negated(self) -> "CalendarDuration":
        return self._of_fields(*(-value for value in self._values()))

    def normalized(self) -> "CalendarDuration":
        """Re-run normalization, e.g. after single-field arithmetic."""
        return CalendarDuration(**self._fields())

    def truncated_to(self, unit: "Unit | str") -> "CalendarDuration":
        """Zero every field finer than ``unit``.

        This is field masking, not rounding: ``PT1H59M`` truncated to HOURS
        is ``PT1H``.
        """
        unit = as_unit(unit)
        values = list(self._values())
        if unit is Unit.NANOS:
            return self
        if unit is Unit.MICROS or unit is Unit.MILLIS:
            step = NANOS_PER_MICRO if unit is Unit.MICROS else NANOS_PER_MILLI
            values[6] = trunc_div(values[6], step) * step
            return self._of_fields(*values)
        if unit not in _TRUNCATION_ORDER:
            raise UnsupportedUnitError(
                f"Cannot truncate to {unit.value}\n"
                f"Supported: years, months, days, hours, minutes, seconds, millis, micros, nanos"
            )
        keep = _TRUNCATION_ORDER.index(unit) + 1
        return self._of_fields(*values[:keep], *([0] * (7 - keep)))

    # ------------------------------------------------------------------
    # Field replacement (no renormalization)

    def replace(self, **fields: int) -> "CalendarDuration":
        """Return a copy with some stored fields replaced."""
        unknown = set(fields) - set(_FIELD_NAMES)
        if unknown:
            raise TypeError(
                f"Unknown duration field(s): {', '.join(sorted(unknown))}\n"
                f"Valid fields: {', '.join(_FIELD_NAMES)}"
            )
        return self._of_fields(**{**self._fields(), **fields})

    def with_field(self, field: "Field | str", value: int) -> "CalendarDuration":
        field = as_field(field)
        if field not in _FIELD_MAP:
            raise UnsupportedFieldError(
                f"Unsupported field: {field.value}\n"
                f"Supported: {', '.join(f.value for f in _FIELD_MAP)}"
            )
        name, scale = _FIELD_MAP[field]
        return self.replace(**{name: value * scale})

    def with_years(self, years: int) -> "CalendarDuration":
        return self.replace(years=years)

    def with_months(self, months: int) -> "CalendarDuration":
        return self.replace(months=months)

    def with_days(self, days: int) -> "CalendarDuration":
        return self.replace(days=days)

    def with_hours(self, hours: int) -> "CalendarDuration":
        return self.replace(hours=hours)

    def with_minutes(self, minutes: int) -> "CalendarDuration":
        return self.replace(minutes=minutes)

    def with_seconds(self, seconds: int) -> "CalendarDuration":
        return self.replace(seconds=seconds)

    def with_millis(self, millis: int) -> "CalendarDuration":
        return self.with_field(Field.MILLI_OF_SECOND, millis)

    def with_micros(self, micros: int) -> "CalendarDuration":
        return self.with_field(Field.MICRO_OF_SECOND, micros)

    def with_nanos(self, nanos: int) -> "CalendarDuration":
        return self.replace(nanos=nanos)

    # ------------------------------------------------------------------
    # Totals

    def _rest_nanos(self) -> int:
        return self._fixed_nanos()

    def _approx_nanos(self) -> int:
        return self._years * YEAR_NANOS + self._months * MONTH_NANOS + self._fixed_nanos()

    def _approx_total(self, unit: Unit) -> float | int:
        if unit is Unit.YEARS:
            return self._years + self._months / MONTHS_PER_YEAR + self._rest_nanos() / YEAR_NANOS
        if unit is Unit.MONTHS:
            return self._years * MONTHS_PER_YEAR + self._months + self._rest_nanos() / MONTH_NANOS
        if unit is Unit.NANOS:
            return self._approx_nanos()
        if unit not in _APPROX_NANOS:
            raise UnsupportedUnitError(f"Unsupported unit: {unit.value}")
        return self._approx_nanos() / _APPROX_NANOS[unit]

    def _anchored_total(self, start: Anchor, unit: Unit) -> int:
        return anchors.until(start, self.add_to(start), unit)

    def to_unit(self, unit: "Unit | str", start: Anchor | None = None) -> float | int:
        """Total length in ``unit``.

        With a ``start`` anchor the result is exact: the duration is applied
        to ``start`` and the whole units elapsed are counted. Without one, the
        fixed ratios of calspan.util are used (365-day years, 30-day months)
        and an ApproximationWarning is emitted.
        """
        unit = as_unit(unit)
        if start is not None:
            return self._anchored_total(start, unit)
        warn_approximation(f"CalendarDuration.to_unit({unit.value!r})")
        return self._approx_total(unit)

    def _total(self, unit: Unit, start: Anchor | None) -> float | int:
        if start is not None:
            return self._anchored_total(start, unit)
        warn_approximation(f"CalendarDuration.to_{unit.value}", stacklevel=4)
        return self._approx_total(unit)

    def to_years(self, start: Anchor | None = None) -> float | int:
        return self._total(Unit.YEARS, start)

    def to_months(self, start: Anchor | None = None) -> float | int:
        return self._total(Unit.MONTHS, start)

    def to_weeks(self, start: Anchor | None = None) -> float | int:
        return self._total(Unit.WEEKS, start)

    def to_days(self, start: Anchor | None = None) -> float | int:
        return self._total(Unit.DAYS, start)

    def to_hours(self, start: Anchor | None = None) -> float | int:
        return self._total(Unit.HOURS, start)

    def to_minutes(self, start: Anchor | None = None) -> float | int:
        return self._total(Unit.MINUTES, start)

    def to_seconds(self, start: Anchor | None = None) -> float | int:
        return self._total(Unit.SECONDS, start)

    def to_millis(self, start: Anchor | None = None) -> float | int:
        return self._total(Unit.MILLIS, start)

    def to_micros(self, start: Anchor | None = None) -> float | int:
        return self._total(Unit.MICROS, start)

    def to_nanos(self, start: Anchor | None = None) -> int:
        return int(self._total(Unit.NANOS, start))

    @approximation
    def to_timedelta(self) -> timedelta:
        """Fixed-length equivalent using 365-day years and 30-day months."""
        return timedelta(microseconds=trunc_div(self._approx_nanos(), NANOS_PER_MICRO))

    def to_relativedelta(self) -> relativedelta:
        """Exact calendar equivalent (nanos truncated to microseconds)."""
        return relativedelta(
            years=self._years,
            months=self._months,
            days=self._days,
            hours=self._hours,
            minutes=self._minutes,
            seconds=self._seconds,
            microseconds=trunc_div(self._nanos, NANOS_PER_MICRO),
        )

    def to_map(self) -> dict[str, int]:
        """Stored fields, plus millis and micros read from the nanos field."""
        fields = self._fields()
        return {
            **{name: fields[name] for name in _FIELD_NAMES[:-1]},
            "millis": trunc_div(self._nanos, NANOS_PER_MILLI),
            "micros": trunc_div(self._nanos, NANOS_PER_MICRO),
            "nanos": self._nanos,
        }

    @approximation
    def to_totals_map(self) -> dict[str, float | int]:
        """Approximate totals in every unit."""
        units = (
            Unit.YEARS,
            Unit.MONTHS,
            Unit.WEEKS,
            Unit.DAYS,
            Unit.HOURS,
            Unit.MINUTES,
            Unit.SECONDS,
            Unit.MILLIS,
            Unit.MICROS,
            Unit.NANOS,
        )
        return {unit.value: self._approx_total(unit) for unit in units}

    # ------------------------------------------------------------------
    # Anchors

    def add_to(self, anchor: Anchor) -> Anchor:
        """Apply this duration to ``anchor``.

        Only the fields the anchor can express are applied: a ``time`` skips
        years, months and days, a ``date`` skips hours and finer, and a
        YearMonth only takes years and months.
        """
        result = anchor
        if not isinstance(anchor, time):
            result = anchors.plus(result, self._years, Unit.YEARS)
            result = anchors.plus(result, self._months, Unit.MONTHS)
        if anchors.has_date(anchor):
            result = anchors.plus(result, self._days, Unit.DAYS)
        if anchors.has_time(anchor):
            result = anchors.plus(result, self._hours, Unit.HOURS)
            result = anchors.plus(result, self._minutes, Unit.MINUTES)
            result = anchors.plus(result, self._seconds, Unit.SECONDS)
            result = anchors.plus(result, self._nanos, Unit.NANOS)
        return result

    def subtract_from(self, anchor: Anchor) -> Anchor:
        """Apply this duration backward from ``anchor`` (finest field first)."""
        result = anchor
        if anchors.has_time(anchor):
            result = anchors.minus(result, self._nanos, Unit.NANOS)
            result = anchors.minus(result, self._seconds, Unit.SECONDS)
            result = anchors.minus(result, self._minutes, Unit.MINUTES)
            result = anchors.minus(result, self._hours, Unit.HOURS)
        if anchors.has_date(anchor):
            result = anchors.minus(result, self._days, Unit.DAYS)
        if not isinstance(anchor, time):
            result = anchors.minus(result, self._months, Unit.MONTHS)
            result = anchors.minus(result, self._years, Unit.YEARS)
        return result

    # ------------------------------------------------------------------
    # Comparison

    def compare_to(self, other: "CalendarDuration") -> int:
        """Field-wise comparison: years first, then months, days, ... nanos.

        This is not a comparison of elapsed time: ``P1M`` compares greater
        than ``P40D``. See compare_elapsed().
        """
        mine, theirs = self._values(), other._values()
        return (mine > theirs) - (mine < theirs)

    def compare_elapsed(self, other: "CalendarDuration", start: Anchor) -> int:
        """Compare by the point each duration reaches from ``start``."""
        mine, theirs = self.add_to(start), other.add_to(start)
        return (mine > theirs) - (mine < theirs)  # type: ignore[operator]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CalendarDuration):
            return NotImplemented
        return self._values() == other._values()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CalendarDuration):
            return NotImplemented
        return self._values() < other._values()

    def __hash__(self) -> int:
        return hash(self._values())

    def __bool__(self) -> bool:
        return not self.is_zero

    # ------------------------------------------------------------------
    # Operators

    def __add__(self, other: Any) -> Any:
        if isinstance(other, CalendarDuration):
            return self.plus(other)
        if anchors.is_anchor(other):
            return self.add_to(other)
        return NotImplemented

    def __radd__(self, other: Any) -> Any:
        if anchors.is_anchor(other):
            return self.add_to(other)
        return NotImplemented

    def __sub__(self, other: Any) -> "CalendarDuration":
        if isinstance(other, CalendarDuration):
            return self.minus(other)
        return NotImplemented

    def __rsub__(self, other: Any) -> Any:
        if anchors.is_anchor(other):
            return self.subtract_from(other)
        return NotImplemented

    def __mul__(self, scalar: Any) -> "CalendarDuration":
        if isinstance(scalar, int):
            return self.times(scalar)
        return NotImplemented

    __rmul__ = __mul__

    def __neg__(self) -> "CalendarDuration":
        return self.negated()

    def __pos__(self) -> "CalendarDuration":
        return self

    # ------------------------------------------------------------------
    # Text

    def to_string(self, weeks: bool = True) -> str:
        """ISO-8601-style text; ``weeks`` folds every 7 days into ``W``."""
        from calspan.codec import format_duration

        return format_duration(self, weeks=weeks)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        parts = [f"{name}={value}" for name, value in self._fields().items() if value]
        return f"CalendarDuration({', '.join(parts)})"


CalendarDuration.ZERO = CalendarDuration()

_FIELD_VALUES = frozenset(field.value for field in Field)


def _as_duration(value: Any) -> CalendarDuration:
    if isinstance(value, CalendarDuration):
        return value
    if isinstance(value, timedelta):
        return CalendarDuration.from_timedelta(value)
    if isinstance(value, relativedelta):
        return CalendarDuration.from_relativedelta(value)
    raise TypeError(
        f"Expected a CalendarDuration, timedelta or relativedelta, "
        f"got {type(value).__name__!r}: {value!r}\n"
        f"Hint: pass a unit to add a plain number: duration.plus(3, Unit.DAYS)"
    )
