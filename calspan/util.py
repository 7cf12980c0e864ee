"""Utility constants and helpers for calspan.

Ratio constants fall in two groups. The fixed ratios (months per year, days
per month, hours per day, ...) drive the fractional cascade performed when a
CalendarDuration is constructed. The ``*_NANOS`` lengths are approximations:
a month is not always 30 days and a year is not always 365, so they are only
used by the approximate totals family (``to_days()``, ``to_seconds()``, ...)
and never by normalization or by anchored arithmetic.
"""

import functools
import warnings
from collections.abc import Callable
from typing import ParamSpec, TypeVar

from calspan.errors import ApproximationWarning

P = ParamSpec("P")
T = TypeVar("T")

# Fixed cascade ratios
NANOS_PER_SECOND = 1_000_000_000
NANOS_PER_MILLI = 1_000_000
NANOS_PER_MICRO = 1_000
SECONDS_PER_MINUTE = 60
MINUTES_PER_HOUR = 60
HOURS_PER_DAY = 24
DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30
MONTHS_PER_YEAR = 12

# Approximate lengths (all values in nanoseconds)
SECOND_NANOS = NANOS_PER_SECOND
MINUTE_NANOS = 60 * SECOND_NANOS
HOUR_NANOS = 60 * MINUTE_NANOS
DAY_NANOS = 24 * HOUR_NANOS
WEEK_NANOS = 7 * DAY_NANOS
MONTH_NANOS = 30 * DAY_NANOS
YEAR_NANOS = 365 * DAY_NANOS


def trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero (``//`` rounds toward -inf)."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def warn_approximation(name: str, stacklevel: int = 3) -> None:
    """Emit the ApproximationWarning for ``name`` on behalf of the caller."""
    warnings.warn(
        f"{name} uses fixed ratios (365-day years, 30-day months) "
        f"and is only an approximation.\n"
        f"Hint: pass a start anchor for an exact count, e.g. "
        f"duration.to_days(date(2024, 1, 1))",
        ApproximationWarning,
        stacklevel=stacklevel,
    )


def approximation(func: Callable[P, T]) -> Callable[P, T]:
    """Flag a conversion that relies on the approximate unit lengths.

    Each call emits an ApproximationWarning. Silence it with the warnings
    module once the approximation is acceptable:

        >>> import warnings
        >>> from calspan.errors import ApproximationWarning
        >>> warnings.simplefilter("ignore", ApproximationWarning)
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        warn_approximation(func.__qualname__)
        return func(*args, **kwargs)

    wrapper._approximation = True  # type: ignore[attr-defined]
    return wrapper
