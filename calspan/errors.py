"""calspan exception hierarchy.

Every calspan error derives from CalspanError and carries an ErrorKind, so
callers can branch on ``err.kind`` instead of on the exception class. The
concrete classes also derive from the closest builtin (ValueError,
ArithmeticError) so generic handlers keep working.
"""

from enum import StrEnum
from typing import ClassVar


class ErrorKind(StrEnum):
    MALFORMED_INPUT = "malformed_input"
    UNSUPPORTED_UNIT = "unsupported_unit"
    UNSUPPORTED_FIELD = "unsupported_field"
    NO_ANCHOR = "no_anchor"
    INFINITE_REPETITION = "infinite_repetition"
    INVALID_VALUE = "invalid_value"


class CalspanError(Exception):
    """Base exception for all calspan errors."""

    kind: ClassVar[ErrorKind]


class MalformedInputError(CalspanError, ValueError):
    """Text does not match the expected grammar.

    Examples:
        - A duration without the leading 'P'
        - 'H' or 'S' designators without a preceding 'T'
        - An interval with more than two '/'-separated parts
        - An anchor that is neither a date, a time, a date-time nor a year-month
    """

    kind = ErrorKind.MALFORMED_INPUT


class UnsupportedUnitError(CalspanError, ValueError):
    """The operation does not model the requested unit (e.g. ERAS)."""

    kind = ErrorKind.UNSUPPORTED_UNIT


class UnsupportedFieldError(CalspanError, ValueError):
    """The operation does not model the requested field (e.g. DAY_OF_WEEK)."""

    kind = ErrorKind.UNSUPPORTED_FIELD


class NoAnchorError(CalspanError, ValueError):
    """An anchor-free interval was asked for a start, an end or a conversion
    that needs one."""

    kind = ErrorKind.NO_ANCHOR


class InfiniteRepetitionError(CalspanError, ArithmeticError):
    """A repetition-aware value was requested on an endlessly repeating interval."""

    kind = ErrorKind.INFINITE_REPETITION


class InvalidValueError(CalspanError, ValueError):
    """Constructor-level validation failed.

    Examples:
        - repetition below -1
        - a non-finite duration component
        - a precise() component outside its calendar range
    """

    kind = ErrorKind.INVALID_VALUE


class ApproximationWarning(UserWarning):
    """A conversion relied on 365-day years and 30-day months."""


__all__ = [
    "ErrorKind",
    "CalspanError",
    "MalformedInputError",
    "UnsupportedUnitError",
    "UnsupportedFieldError",
    "NoAnchorError",
    "InfiniteRepetitionError",
    "InvalidValueError",
    "ApproximationWarning",
]
