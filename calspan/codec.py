"""Text encoding for durations, anchors and intervals.

Durations use an ISO-8601-style grammar::

    ["-"]"P"[nY][nM][nW][nD]["T"[nH][nM][nS]]

Each number may carry its own sign and a decimal fraction (``.`` or ``,``).
Fractions cascade into smaller units as described in calspan.duration.

Intervals join anchors and durations with ``/``:

    ===========================  ==========================
    Text                         Parsed as
    ===========================  ==========================
    ``2024-01-01/2024-02-01``    TwoPointInterval
    ``P1M``                      PureDurationInterval
    ``P1M/2024-02-01``           DurationEndInterval
    ``2024-01-01/P1M``           DurationStartInterval
    ``R3/2024-01-01/P1M``        RepeatedInterval (3 times)
    ``R/2024-01-01/P1M``         RepeatedInterval (infinite)
    ===========================  ==========================

Anchors are written with ``isoformat()``; year-months as ``YYYY-MM``.

Examples:
    >>> parse_interval("R2/2024-01-15/P1M").end_with_repetition
    datetime.date(2024, 3, 15)
    >>> format_duration(CalendarDuration(days=10))
    'P1W3D'
    >>> format_duration(CalendarDuration(days=10), weeks=False)
    'P10D'
"""

import logging
import re
from datetime import date, datetime, time
from decimal import Decimal

from calspan.anchors import Anchor, YearMonth, is_anchor
from calspan.duration import CalendarDuration
from calspan.errors import CalspanError, MalformedInputError
from calspan.interval import (
    DurationEndInterval,
    DurationStartInterval,
    Interval,
    PureDurationInterval,
    TwoPointInterval,
)
from calspan.repeated import INFINITE, RepeatedInterval
from calspan.result import ParseResult
from calspan.util import DAYS_PER_WEEK, NANOS_PER_SECOND, trunc_div

logger = logging.getLogger(__name__)

_NUMBER = r"[+-]?\d+(?:[.,]\d+)?"
_DURATION_RE = re.compile(
    rf"""
    ^(?P<sign>[+-])?P
    (?:(?P<years>{_NUMBER})Y)?
    (?:(?P<months>{_NUMBER})M)?
    (?:(?P<weeks>{_NUMBER})W)?
    (?:(?P<days>{_NUMBER})D)?
    (?P<time>T
        (?:(?P<hours>{_NUMBER})H)?
        (?:(?P<minutes>{_NUMBER})M)?
        (?:(?P<seconds>{_NUMBER})S)?
    )?$
    """,
    re.VERBOSE | re.IGNORECASE,
)
_COMPONENTS = ("years", "months", "weeks", "days", "hours", "minutes", "seconds")
_DURATION_PART_RE = re.compile(r"^[+-]?P", re.IGNORECASE)
_REPETITION_RE = re.compile(r"^R(?P<count>\d*)$", re.IGNORECASE)
_TIME_RE = re.compile(r"^\d{2}:\d{2}")


# ----------------------------------------------------------------------
# Durations


def format_duration(duration: CalendarDuration, weeks: bool = True) -> str:
    """Format ``duration`` as ISO-8601-style text.

    A duration whose non-zero fields are all negative is written with a
    single leading ``-``; a mixed-sign duration carries a sign on each
    negative field instead.

    Args:
        duration: The duration to format
        weeks: Fold every 7 days into a ``W`` component

    Returns:
        Text such as ``"P1Y2M3DT4H5M6.5S"``; the zero duration is ``"PT0S"``
    """
    if duration.is_zero:
        return "PT0S"

    years, months, days = duration.years, duration.months, duration.days
    hours, minutes = duration.hours, duration.minutes
    second_nanos = duration.seconds * NANOS_PER_SECOND + duration.nanos

    prefix = "P"
    if all(value <= 0 for value in (years, months, days, hours, minutes, second_nanos)):
        prefix = "-P"
        years, months, days = -years, -months, -days
        hours, minutes, second_nanos = -hours, -minutes, -second_nanos

    week_count = trunc_div(days, DAYS_PER_WEEK) if weeks else 0
    days -= week_count * DAYS_PER_WEEK

    text = prefix
    for value, designator in ((years, "Y"), (months, "M"), (week_count, "W"), (days, "D")):
        if value:
            text += f"{value}{designator}"
    if hours or minutes or second_nanos:
        text += "T"
        if hours:
            text += f"{hours}H"
        if minutes:
            text += f"{minutes}M"
        if second_nanos:
            text += f"{_format_seconds(second_nanos)}S"
    return text


def _format_seconds(total_nanos: int) -> str:
    sign = "-" if total_nanos < 0 else ""
    whole, fraction = divmod(abs(total_nanos), NANOS_PER_SECOND)
    if not fraction:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{fraction:09d}".rstrip("0")


def parse_duration(text: str) -> CalendarDuration:
    """Parse ISO-8601-style duration text.

    Blank text parses to the zero duration.

    Raises:
        MalformedInputError: If the text does not match the grammar
        TypeError: If ``text`` is not a string
    """
    if not isinstance(text, str):
        raise TypeError(
            f"Duration text must be a str, got {type(text).__name__!r}: {text!r}"
        )
    stripped = text.strip()
    if not stripped:
        return CalendarDuration.ZERO

    match = _DURATION_RE.match(stripped)
    if match is None:
        date_part = stripped.upper().split("T", 1)[0]
        if "H" in date_part or "S" in date_part:
            raise MalformedInputError(
                f"Invalid duration: {text!r}\n"
                f"Hours and seconds need a preceding 'T'.\n"
                f"Example: 'PT5H' or 'P1DT30S'"
            )
        raise MalformedInputError(
            f"Invalid duration: {text!r}\n"
            f"Expected [-]P[nY][nM][nW][nD][T[nH][nM][nS]]\n"
            f"Example: 'P1Y2M3DT4H5M6.5S'"
        )

    if all(match[name] is None for name in _COMPONENTS):
        raise MalformedInputError(
            f"Invalid duration: {text!r}\n"
            f"At least one component is required.\n"
            f"Example: 'P0D' or 'PT0S'"
        )
    if match["time"] is not None and len(match["time"]) == 1:
        raise MalformedInputError(
            f"Invalid duration: {text!r}\n"
            f"'T' must be followed by at least one of H, M or S.\n"
            f"Example: 'P1DT12H'"
        )

    sign = -1 if match["sign"] == "-" else 1
    components = {
        name: sign * Decimal(match[name].replace(",", "."))
        for name in _COMPONENTS
        if match[name] is not None
    }
    return CalendarDuration(**components)


def try_parse_duration(text: str) -> ParseResult[CalendarDuration]:
    """Like parse_duration(), but returns a ParseResult instead of raising."""
    try:
        return ParseResult.ok(parse_duration(text))
    except CalspanError as exc:
        return ParseResult.fail(exc)


# ----------------------------------------------------------------------
# Anchors


def format_anchor(anchor: Anchor) -> str:
    if isinstance(anchor, YearMonth):
        return str(anchor)
    if is_anchor(anchor):
        return anchor.isoformat()
    raise TypeError(
        f"Expected an anchor (date, datetime, time or YearMonth).\n"
        f"Got {type(anchor).__name__!r}: {anchor!r}"
    )


def parse_anchor(text: str) -> Anchor:
    """Parse an anchor, detecting its kind from the text.

    Detection order:
        - contains 'T': datetime (with an offset if one follows the time)
        - starts like HH:MM: time (with an optional offset)
        - otherwise: date, falling back to a YYYY-MM year-month

    Raises:
        MalformedInputError: If the text matches none of the anchor forms
    """
    if not isinstance(text, str):
        raise TypeError(
            f"Anchor text must be a str, got {type(text).__name__!r}: {text!r}"
        )
    stripped = text.strip()
    try:
        if "T" in stripped.upper():
            return datetime.fromisoformat(stripped)
        if _TIME_RE.match(stripped):
            return time.fromisoformat(stripped)
    except ValueError as exc:
        raise MalformedInputError(
            f"Invalid anchor: {text!r}\n"
            f"Example: '2024-01-15T09:30:00+01:00' or '09:30:00'"
        ) from exc

    try:
        return date.fromisoformat(stripped)
    except ValueError as exc:
        logger.debug("Anchor %r is not a date, trying year-month", stripped)
        try:
            return YearMonth.parse(stripped)
        except CalspanError:
            raise MalformedInputError(
                f"Invalid anchor: {text!r}\n"
                f"Expected a date, time, date-time or year-month.\n"
                f"Example: '2024-01-15', '09:30', '2024-01-15T09:30' or '2024-01'"
            ) from exc


# ----------------------------------------------------------------------
# Intervals


def format_interval(interval: Interval, omit_single_repetition: bool = False) -> str:
    """Format any interval variant.

    Args:
        interval: The interval to format
        omit_single_repetition: Write a RepeatedInterval with repetition 1
            as its bare base (``"P1D"`` instead of ``"R1/P1D"``)
    """
    if isinstance(interval, RepeatedInterval):
        base = format_interval(interval.base)
        if omit_single_repetition and interval.repetition == 1:
            return base
        count = "" if interval.repetition == INFINITE else str(interval.repetition)
        return f"R{count}/{base}"
    if isinstance(interval, TwoPointInterval):
        return f"{format_anchor(interval.start)}/{format_anchor(interval.end)}"
    if isinstance(interval, PureDurationInterval):
        return format_duration(interval.duration)
    if isinstance(interval, DurationEndInterval):
        return f"{format_duration(interval.duration)}/{format_anchor(interval.end)}"
    if isinstance(interval, DurationStartInterval):
        return f"{format_anchor(interval.start)}/{format_duration(interval.duration)}"
    raise TypeError(
        f"Expected an Interval, got {type(interval).__name__!r}: {interval!r}"
    )


def parse_interval(text: str) -> Interval:
    """Parse any interval form.

    Returns a RepeatedInterval when the text starts with an ``R[n]`` part,
    otherwise one of the four plain variants. Blank text parses to a zero
    PureDurationInterval.

    Raises:
        MalformedInputError: On a bad repetition prefix, a wrong number of
            ``/``-separated parts or a malformed anchor or duration
    """
    if not isinstance(text, str):
        raise TypeError(
            f"Interval text must be a str, got {type(text).__name__!r}: {text!r}"
        )
    stripped = text.strip()
    if not stripped:
        return PureDurationInterval(duration=CalendarDuration.ZERO)

    parts = [part.strip() for part in stripped.split("/")]
    if parts[0][:1] in ("R", "r"):
        match = _REPETITION_RE.match(parts[0])
        if match is None:
            raise MalformedInputError(
                f"Invalid repetition prefix {parts[0]!r} in {text!r}\n"
                f"Example: 'R3/2024-01-01/P1D' or 'R/2024-01-01/P1D' (infinite)"
            )
        if len(parts) not in (2, 3):
            raise MalformedInputError(
                f"Invalid repeated interval: {text!r}\n"
                f"Expected R[n]/<interval> with 1 or 2 interval parts, got {len(parts) - 1}"
            )
        repetition = int(match["count"]) if match["count"] else INFINITE
        return RepeatedInterval(base=_parse_base(parts[1:], text), repetition=repetition)
    return _parse_base(parts, text)


def parse_repeated_interval(text: str) -> RepeatedInterval:
    """Parse an interval as a RepeatedInterval; no ``R`` prefix means once."""
    interval = parse_interval(text)
    if isinstance(interval, RepeatedInterval):
        return interval
    return RepeatedInterval(base=interval, repetition=1)


def try_parse_interval(text: str) -> ParseResult[Interval]:
    """Like parse_interval(), but returns a ParseResult instead of raising."""
    try:
        return ParseResult.ok(parse_interval(text))
    except CalspanError as exc:
        return ParseResult.fail(exc)


def _is_duration_part(part: str) -> bool:
    return _DURATION_PART_RE.match(part) is not None


def _parse_duration_part(part: str, text: str) -> CalendarDuration:
    if not part:
        raise MalformedInputError(f"Empty interval part in {text!r}")
    return parse_duration(part)


def _parse_anchor_part(part: str, text: str) -> Anchor:
    if not part:
        raise MalformedInputError(f"Empty interval part in {text!r}")
    return parse_anchor(part)


def _parse_base(parts: list[str], text: str) -> Interval:
    if len(parts) == 1:
        return PureDurationInterval(duration=_parse_duration_part(parts[0], text))
    if len(parts) != 2:
        raise MalformedInputError(
            f"Invalid interval: {text!r}\n"
            f"Expected 1 or 2 '/'-separated parts, got {len(parts)}\n"
            f"Example: '2024-01-01/2024-02-01' or '2024-01-01/P1M'"
        )

    first, second = parts
    if _is_duration_part(first):
        if _is_duration_part(second):
            raise MalformedInputError(
                f"Invalid interval: {text!r}\n"
                f"At most one side of an interval can be a duration.\n"
                f"Example: 'P1M/2024-02-01'"
            )
        logger.debug("Interval %r parsed as duration/end", text)
        return DurationEndInterval(
            duration=_parse_duration_part(first, text),
            end=_parse_anchor_part(second, text),
        )
    if _is_duration_part(second):
        logger.debug("Interval %r parsed as start/duration", text)
        return DurationStartInterval(
            start=_parse_anchor_part(first, text),
            duration=_parse_duration_part(second, text),
        )
    return TwoPointInterval(
        start=_parse_anchor_part(first, text),
        end=_parse_anchor_part(second, text),
    )
