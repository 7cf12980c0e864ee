"""RepeatedInterval: a base interval occurring several times back to back.

The repetition count is ``-1`` for an endless repetition, ``0`` for none, or
``N`` for N consecutive occurrences. Occurrences chain from the anchor the
base owns: forward from ``start`` for start-anchored and two-point bases,
backward from ``end`` for end-anchored ones. A pure-duration base has no
anchor; only its total length can be computed.

Repetition-aware values are computed, never iterated to exhaustion: an
endless repetition raises InfiniteRepetitionError for anything that would
need its far end, and occurrences() is a lazy generator.
"""

import itertools
from collections.abc import Iterator
from dataclasses import dataclass, replace

from typing_extensions import override

from calspan.anchors import Anchor
from calspan.duration import CalendarDuration
from calspan.errors import InfiniteRepetitionError, InvalidValueError, NoAnchorError
from calspan.interval import (
    DurationEndInterval,
    DurationStartInterval,
    Interval,
    PureDurationInterval,
    TwoPointInterval,
    not_after,
    not_before,
)
from calspan.units import Field, Unit

INFINITE = -1


@dataclass(frozen=True, kw_only=True)
class RepeatedInterval(Interval):
    """A base interval repeated ``repetition`` times.

    Attributes:
        base: The repeated interval (any variant except RepeatedInterval)
        repetition: Occurrence count, -1 for infinite
    """

    base: Interval
    repetition: int = 1

    def __post_init__(self) -> None:
        if isinstance(self.base, RepeatedInterval):
            raise InvalidValueError(
                f"A repeated interval cannot repeat another repeated interval.\n"
                f"Got base: {self.base}\n"
                f"Hint: multiply the counts instead, e.g. base.with_repetition(n * m)"
            )
        if not isinstance(self.base, Interval):
            raise TypeError(
                f"RepeatedInterval base must be an Interval.\n"
                f"Got {type(self.base).__name__!r}: {self.base!r}"
            )
        if isinstance(self.repetition, bool) or not isinstance(self.repetition, int):
            raise InvalidValueError(
                f"Repetition must be an int, got {type(self.repetition).__name__!r}"
            )
        if self.repetition < INFINITE:
            raise InvalidValueError(
                f"Repetition must be -1 (infinite), 0 or a positive count.\n"
                f"Got: {self.repetition}"
            )

    # ------------------------------------------------------------------
    # Base delegation

    @property
    def duration(self) -> CalendarDuration:  # type: ignore[override]
        """Length of a single occurrence."""
        return self.base.duration

    @property
    def start(self) -> Anchor:  # type: ignore[override]
        return self.base.start

    @property
    def end(self) -> Anchor:  # type: ignore[override]
        return self.base.end

    @property
    def is_infinite(self) -> bool:
        return self.repetition == INFINITE

    @property
    def units(self) -> list[Unit]:
        return self.base.units

    def _is_pure(self) -> bool:
        return isinstance(self.base, PureDurationInterval)

    def _is_end_anchored(self) -> bool:
        return isinstance(self.base, DurationEndInterval)

    def _require_anchor(self) -> None:
        if self._is_pure():
            raise NoAnchorError(
                f"A repeated pure-duration interval has no anchor to chain from.\n"
                f"Interval: {self}\n"
                f"Hint: pin the base first, e.g. interval.with_start(date(2024, 1, 1))"
            )

    def _require_finite(self, what: str) -> None:
        if self.is_infinite:
            raise InfiniteRepetitionError(
                f"Cannot compute the {what} of an infinitely repeating interval.\n"
                f"Interval: {self}\n"
                f"Hint: use occurrences() to iterate lazily, or with_repetition(n)"
            )

    def _far_point(self) -> Anchor:
        """The anchor reached after chaining every occurrence."""
        self._require_finite("far end")
        step = self.base.duration
        if self._is_end_anchored():
            if self.repetition == 1:
                return self.base.start
            point = self.base.end
            for _ in range(self.repetition):
                point = step.subtract_from(point)
            return point
        if self.repetition == 1:
            return self.base.end
        point = self.base.start
        for _ in range(self.repetition):
            point = step.add_to(point)
        return point

    # ------------------------------------------------------------------
    # Repetition-aware values

    @property
    def duration_with_repetition(self) -> CalendarDuration:
        """Total length of all occurrences.

        Raises:
            InfiniteRepetitionError: If the repetition is infinite.
        """
        self._require_finite("total duration")
        if self.repetition == 0:
            return CalendarDuration.ZERO
        if self.repetition == 1:
            return self.base.duration
        if self._is_pure():
            return self.base.duration.times(self.repetition)
        if self._is_end_anchored():
            return CalendarDuration.between(self._far_point(), self.base.end)
        return CalendarDuration.between(self.base.start, self._far_point())

    @property
    def start_with_repetition(self) -> Anchor:
        """Start of the first occurrence.

        Start-anchored bases return their own start unchanged, even when the
        repetition is infinite.
        """
        if self._is_end_anchored():
            return self._far_point()
        return self.base.start

    @property
    def end_with_repetition(self) -> Anchor:
        """End of the last occurrence.

        End-anchored bases return their own end unchanged, even when the
        repetition is infinite.
        """
        if self._is_end_anchored():
            return self.base.end
        self._require_anchor()
        return self._far_point()

    @override
    def get(self, unit: "Unit | Field | str", consider_repetition: bool = True) -> int:
        if consider_repetition:
            return self.duration_with_repetition.get(unit)
        return self.base.get(unit)

    @override
    def contains(self, point: Anchor, consider_repetition: bool = True) -> bool:
        """Inclusive containment over all occurrences.

        An infinite repetition is unbounded on its derived side: a
        start-anchored one contains every point from ``start`` on.
        """
        if not consider_repetition:
            return self.base.contains(point)
        if self.is_infinite:
            if self._is_end_anchored():
                return not_after(point, self.base.end)
            return not_before(point, self.base.start)
        return not_before(point, self.start_with_repetition) and not_after(
            point, self.end_with_repetition
        )

    @override
    def add_to(self, anchor: Anchor, consider_repetition: bool = True) -> Anchor:
        if consider_repetition:
            return self.duration_with_repetition.add_to(anchor)
        return self.base.add_to(anchor)

    @override
    def subtract_from(self, anchor: Anchor, consider_repetition: bool = True) -> Anchor:
        if consider_repetition:
            return self.duration_with_repetition.subtract_from(anchor)
        return self.base.subtract_from(anchor)

    def occurrences(self) -> Iterator[TwoPointInterval]:
        """Yield each occurrence as a TwoPointInterval, lazily.

        Start-anchored repetitions run forward from ``start``; end-anchored
        ones run backward from ``end``, so the first item yielded is the last
        occurrence in time.

        Raises:
            NoAnchorError: If the base is a pure duration.
        """
        self._require_anchor()
        counter = itertools.count() if self.is_infinite else range(self.repetition)
        return self._occurrences(counter)

    def _occurrences(self, counter: Iterator[int] | range) -> Iterator[TwoPointInterval]:
        step = self.base.duration
        if self._is_end_anchored():
            point = self.base.end
            for _ in counter:
                previous = step.subtract_from(point)
                yield TwoPointInterval(start=previous, end=point)
                point = previous
        else:
            point = self.base.start
            for _ in counter:
                following = step.add_to(point)
                yield TwoPointInterval(start=point, end=following)
                point = following

    # ------------------------------------------------------------------
    # Transformations

    def with_repetition(self, repetition: int) -> "RepeatedInterval":
        return replace(self, repetition=repetition)

    def with_base(self, base: Interval) -> "RepeatedInterval":
        return replace(self, base=base)

    @override
    def with_start(self, start: Anchor) -> "RepeatedInterval":
        return self.with_base(self.base.with_start(start))

    @override
    def with_end(self, end: Anchor) -> "RepeatedInterval":
        return self.with_base(self.base.with_end(end))

    @override
    def with_duration(self, duration: CalendarDuration) -> "RepeatedInterval":
        return self.with_base(self.base.with_duration(duration))

    @override
    def to_two_point(self) -> TwoPointInterval:
        """A single interval spanning every occurrence."""
        return TwoPointInterval(
            start=self.start_with_repetition, end=self.end_with_repetition
        )

    @override
    def to_pure_duration(self) -> "RepeatedInterval":  # type: ignore[override]
        return self.with_base(self.base.to_pure_duration())

    @override
    def to_duration_end(self) -> "RepeatedInterval":  # type: ignore[override]
        return self.with_base(self.base.to_duration_end())

    @override
    def to_duration_start(self) -> "RepeatedInterval":  # type: ignore[override]
        return self.with_base(self.base.to_duration_start())

    # ------------------------------------------------------------------
    # Text

    @staticmethod
    def parse(text: str) -> "RepeatedInterval":
        """Parse ``R[n]/base``; text without the prefix repeats once."""
        from calspan.codec import parse_repeated_interval

        return parse_repeated_interval(text)

    @override
    def to_string(self, omit_single_repetition: bool = False) -> str:
        from calspan.codec import format_interval

        return format_interval(self, omit_single_repetition=omit_single_repetition)

