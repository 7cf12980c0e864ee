"""Result type for callers that branch on an error kind instead of catching."""

from dataclasses import dataclass
from typing import Generic, TypeVar

from calspan.errors import CalspanError, ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Outcome of a ``try_parse_*`` call.

    Attributes:
        success: True if the text parsed, False otherwise
        value: The parsed value if successful, None if failed
        error: The calspan error that occurred if failed, None if successful
    """

    success: bool
    value: T | None
    error: CalspanError | None

    @property
    def kind(self) -> ErrorKind | None:
        """The error kind of a failed result, None on success."""
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> T:
        """Return the value, re-raising the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    @classmethod
    def ok(cls, value: T) -> "ParseResult[T]":
        return cls(success=True, value=value, error=None)

    @classmethod
    def fail(cls, error: CalspanError) -> "ParseResult[T]":
        return cls(success=False, value=None, error=error)
