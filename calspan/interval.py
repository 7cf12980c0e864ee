"""Intervals: a duration pinned to zero, one or two anchors.

Four variants share the Interval base, differing in which values they store
and which they derive:

    ==========================  ===================  ==================
    Variant                     Stores               Derives
    ==========================  ===================  ==================
    TwoPointInterval            start, end           duration
    PureDurationInterval        duration             (nothing)
    DurationEndInterval         duration, end        start
    DurationStartInterval       start, duration      end
    ==========================  ===================  ==================

All variants are frozen dataclasses. Replacing a stored value keeps the
variant; replacing a derived anchor pins both anchors and yields a
TwoPointInterval.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any

from typing_extensions import override

from calspan import anchors
from calspan.anchors import Anchor
from calspan.duration import CalendarDuration
from calspan.errors import NoAnchorError
from calspan.units import Field, Unit


def _check_anchor(value: Any, name: str) -> None:
    if not anchors.is_anchor(value):
        raise TypeError(
            f"Interval {name} must be a date, datetime, time or YearMonth.\n"
            f"Got {type(value).__name__!r}: {value!r}"
        )


def _check_duration(value: Any) -> None:
    if not isinstance(value, CalendarDuration):
        raise TypeError(
            f"Interval duration must be a CalendarDuration.\n"
            f"Got {type(value).__name__!r}: {value!r}\n"
            f"Hint: CalendarDuration.parse('P1D') or CalendarDuration(days=1)"
        )


def not_before(point: Anchor, bound: Anchor) -> bool:
    point, bound = anchors.promote(point, bound)
    return point >= bound  # type: ignore[operator]


def not_after(point: Anchor, bound: Anchor) -> bool:
    point, bound = anchors.promote(point, bound)
    return point <= bound  # type: ignore[operator]


class Interval(ABC):
    """Base class of the interval variants.

    Every variant exposes ``duration``, ``start`` and ``end``, either as
    stored dataclass fields or as derived properties. Anchor-free intervals
    raise NoAnchorError from ``start`` and ``end``.
    """

    duration: CalendarDuration
    start: Anchor
    end: Anchor

    @abstractmethod
    def with_start(self, start: Anchor) -> "Interval":
        pass

    @abstractmethod
    def with_end(self, end: Anchor) -> "Interval":
        pass

    @abstractmethod
    def with_duration(self, duration: CalendarDuration) -> "Interval":
        pass

    @abstractmethod
    def to_two_point(self) -> "TwoPointInterval":
        pass

    def to_pure_duration(self) -> "PureDurationInterval":
        return PureDurationInterval(duration=self.duration)

    def to_duration_end(self) -> "DurationEndInterval":
        return DurationEndInterval(duration=self.duration, end=self.end)

    def to_duration_start(self) -> "DurationStartInterval":
        return DurationStartInterval(start=self.start, duration=self.duration)

    @property
    def units(self) -> list[Unit]:
        return self.duration.units

    def get(self, unit: "Unit | Field | str") -> int:
        """Stored duration field for ``unit`` (see CalendarDuration.get)."""
        return self.duration.get(unit)

    def contains(self, point: Anchor) -> bool:
        """True if ``point`` is not before ``start`` and not after ``end``."""
        return not_before(point, self.start) and not_after(point, self.end)

    def __contains__(self, point: Anchor) -> bool:
        return self.contains(point)

    def add_to(self, anchor: Anchor) -> Anchor:
        return self.duration.add_to(anchor)

    def subtract_from(self, anchor: Anchor) -> Anchor:
        return self.duration.subtract_from(anchor)

    @staticmethod
    def parse(text: str) -> "Interval":
        """Parse any interval form, including repeated ones (``R3/...``)."""
        from calspan.codec import parse_interval

        return parse_interval(text)

    def to_string(self) -> str:
        from calspan.codec import format_interval

        return format_interval(self)

    def __str__(self) -> str:
        return self.to_string()


@dataclass(frozen=True, kw_only=True)
class TwoPointInterval(Interval):
    """Interval between two anchors; the duration is measured between them."""

    start: Anchor
    end: Anchor

    def __post_init__(self) -> None:
        _check_anchor(self.start, "start")
        _check_anchor(self.end, "end")

    @property
    def duration(self) -> CalendarDuration:  # type: ignore[override]
        return CalendarDuration.between(self.start, self.end)

    @override
    def with_start(self, start: Anchor) -> "TwoPointInterval":
        return replace(self, start=start)

    @override
    def with_end(self, end: Anchor) -> "TwoPointInterval":
        return replace(self, end=end)

    @override
    def with_duration(self, duration: CalendarDuration) -> "TwoPointInterval":
        """Keep ``start`` and move ``end`` to ``start + duration``."""
        return TwoPointInterval(start=self.start, end=duration.add_to(self.start))

    @override
    def to_two_point(self) -> "TwoPointInterval":
        return self


@dataclass(frozen=True, kw_only=True)
class PureDurationInterval(Interval):
    """An anchor-free interval: only a length.

    ``start``, ``end``, contains() and the anchored conversions raise
    NoAnchorError. Supply an anchor with with_start() or with_end().
    """

    duration: CalendarDuration

    def __post_init__(self) -> None:
        _check_duration(self.duration)

    def _no_anchor(self, what: str) -> NoAnchorError:
        return NoAnchorError(
            f"A pure-duration interval has no {what}.\n"
            f"Interval: {self}\n"
            f"Hint: pin it first, e.g. interval.with_start(date(2024, 1, 1))"
        )

    @property
    def start(self) -> Anchor:  # type: ignore[override]
        raise self._no_anchor("start")

    @property
    def end(self) -> Anchor:  # type: ignore[override]
        raise self._no_anchor("end")

    @override
    def contains(self, point: Anchor) -> bool:
        raise self._no_anchor("start or end to test containment against")

    @override
    def with_start(self, start: Anchor) -> "DurationStartInterval":
        return DurationStartInterval(start=start, duration=self.duration)

    @override
    def with_end(self, end: Anchor) -> "DurationEndInterval":
        return DurationEndInterval(duration=self.duration, end=end)

    @override
    def with_duration(self, duration: CalendarDuration) -> "PureDurationInterval":
        return replace(self, duration=duration)

    @override
    def to_two_point(self) -> "TwoPointInterval":
        raise self._no_anchor("anchors to convert to a two-point interval")

    @override
    def to_pure_duration(self) -> "PureDurationInterval":
        return self

    @override
    def to_duration_end(self) -> "DurationEndInterval":
        raise self._no_anchor("end to convert to a duration-end interval")

    @override
    def to_duration_start(self) -> "DurationStartInterval":
        raise self._no_anchor("start to convert to a duration-start interval")


@dataclass(frozen=True, kw_only=True)
class DurationEndInterval(Interval):
    """A duration ending at ``end``; ``start`` is derived by subtraction."""

    duration: CalendarDuration
    end: Anchor

    def __post_init__(self) -> None:
        _check_duration(self.duration)
        _check_anchor(self.end, "end")

    @property
    def start(self) -> Anchor:  # type: ignore[override]
        return self.duration.subtract_from(self.end)

    @override
    def with_start(self, start: Anchor) -> "TwoPointInterval":
        return TwoPointInterval(start=start, end=self.end)

    @override
    def with_end(self, end: Anchor) -> "DurationEndInterval":
        return replace(self, end=end)

    @override
    def with_duration(self, duration: CalendarDuration) -> "DurationEndInterval":
        return replace(self, duration=duration)

    @override
    def to_two_point(self) -> "TwoPointInterval":
        return TwoPointInterval(start=self.start, end=self.end)

    @override
    def to_duration_end(self) -> "DurationEndInterval":
        return self


@dataclass(frozen=True, kw_only=True)
class DurationStartInterval(Interval):
    """A duration starting at ``start``; ``end`` is derived by addition."""

    start: Anchor
    duration: CalendarDuration

    def __post_init__(self) -> None:
        _check_anchor(self.start, "start")
        _check_duration(self.duration)

    @property
    def end(self) -> Anchor:  # type: ignore[override]
        return self.duration.add_to(self.start)

    @override
    def with_start(self, start: Anchor) -> "DurationStartInterval":
        return replace(self, start=start)

    @override
    def with_end(self, end: Anchor) -> "TwoPointInterval":
        return TwoPointInterval(start=self.start, end=end)

    @override
    def with_duration(self, duration: CalendarDuration) -> "DurationStartInterval":
        return replace(self, duration=duration)

    @override
    def to_two_point(self) -> "TwoPointInterval":
        return TwoPointInterval(start=self.start, end=self.end)

    @override
    def to_duration_start(self) -> "DurationStartInterval":
        return self
