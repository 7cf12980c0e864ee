"""Unit and field tags.

Units name an amount of time (``Unit.DAYS``); fields name one stored
component of a duration (``Field.DAY_OF_MONTH``). Both enums list more tags
than CalendarDuration models so that asking for, say, ``Unit.ERAS`` fails
with a clear UnsupportedUnitError instead of an AttributeError.
"""

from enum import Enum

from calspan.errors import UnsupportedFieldError, UnsupportedUnitError
from calspan.util import (
    DAY_NANOS,
    HOUR_NANOS,
    MINUTE_NANOS,
    NANOS_PER_MICRO,
    NANOS_PER_MILLI,
    SECOND_NANOS,
    WEEK_NANOS,
)


class Unit(Enum):
    NANOS = "nanos"
    MICROS = "micros"
    MILLIS = "millis"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    HALF_DAYS = "half_days"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"
    DECADES = "decades"
    CENTURIES = "centuries"
    MILLENNIA = "millennia"
    ERAS = "eras"
    FOREVER = "forever"

    @property
    def is_date_based(self) -> bool:
        return self in _DATE_UNITS

    @property
    def is_time_based(self) -> bool:
        return self in _TIME_UNITS


class Field(Enum):
    NANO_OF_SECOND = "nano_of_second"
    MICRO_OF_SECOND = "micro_of_second"
    MILLI_OF_SECOND = "milli_of_second"
    SECOND_OF_MINUTE = "second_of_minute"
    MINUTE_OF_HOUR = "minute_of_hour"
    HOUR_OF_DAY = "hour_of_day"
    DAY_OF_WEEK = "day_of_week"
    DAY_OF_MONTH = "day_of_month"
    DAY_OF_YEAR = "day_of_year"
    MONTH_OF_YEAR = "month_of_year"
    YEAR_OF_ERA = "year_of_era"
    YEAR = "year"
    ERA = "era"
    EPOCH_DAY = "epoch_day"


_DATE_UNITS = frozenset({Unit.DAYS, Unit.WEEKS, Unit.MONTHS, Unit.YEARS})
_TIME_UNITS = frozenset(
    {Unit.NANOS, Unit.MICROS, Unit.MILLIS, Unit.SECONDS, Unit.MINUTES, Unit.HOURS}
)

# Exact lengths of the fixed-length units
FIXED_UNIT_NANOS: dict[Unit, int] = {
    Unit.NANOS: 1,
    Unit.MICROS: NANOS_PER_MICRO,
    Unit.MILLIS: NANOS_PER_MILLI,
    Unit.SECONDS: SECOND_NANOS,
    Unit.MINUTES: MINUTE_NANOS,
    Unit.HOURS: HOUR_NANOS,
    Unit.DAYS: DAY_NANOS,
    Unit.WEEKS: WEEK_NANOS,
}


def as_unit(unit: "Unit | str") -> Unit:
    """Coerce a Unit or its name (``"days"``, ``"DAYS"``) to a Unit."""
    if isinstance(unit, Unit):
        return unit
    if isinstance(unit, str):
        try:
            return Unit(unit.lower())
        except ValueError:
            pass
    valid = ", ".join(u.value for u in Unit)
    raise UnsupportedUnitError(f"Unknown unit: {unit!r}\nValid units: {valid}")


def as_field(field: "Field | str") -> Field:
    """Coerce a Field or its name (``"day_of_month"``) to a Field."""
    if isinstance(field, Field):
        return field
    if isinstance(field, str):
        try:
            return Field(field.lower())
        except ValueError:
            pass
    valid = ", ".join(f.value for f in Field)
    raise UnsupportedFieldError(f"Unknown field: {field!r}\nValid fields: {valid}")
