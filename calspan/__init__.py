import logging
from importlib.resources import files

from .anchors import Anchor, YearMonth
from .codec import (
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
from .duration import CalendarDuration
from .errors import (
    ApproximationWarning,
    CalspanError,
    ErrorKind,
    InfiniteRepetitionError,
    InvalidValueError,
    MalformedInputError,
    NoAnchorError,
    UnsupportedFieldError,
    UnsupportedUnitError,
)
from .interval import (
    DurationEndInterval,
    DurationStartInterval,
    Interval,
    PureDurationInterval,
    TwoPointInterval,
)
from .repeated import RepeatedInterval
from .result import ParseResult
from .units import Field, Unit

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Load documentation files for programmatic access by agents and code-aware tools
_docs_path = files(__package__) / "docs"
docs = {
    "readme": (_docs_path / "README.md").read_text(),
    "tutorial": (_docs_path / "TUTORIAL.md").read_text(),
    "api": (_docs_path / "API.md").read_text(),
}

__all__ = [
    "CalendarDuration",
    "Interval",
    "TwoPointInterval",
    "PureDurationInterval",
    "DurationEndInterval",
    "DurationStartInterval",
    "RepeatedInterval",
    "Anchor",
    "YearMonth",
    "Unit",
    "Field",
    "format_duration",
    "parse_duration",
    "format_anchor",
    "parse_anchor",
    "format_interval",
    "parse_interval",
    "parse_repeated_interval",
    "try_parse_duration",
    "try_parse_interval",
    "ParseResult",
    "ErrorKind",
    "CalspanError",
    "MalformedInputError",
    "UnsupportedUnitError",
    "UnsupportedFieldError",
    "NoAnchorError",
    "InfiniteRepetitionError",
    "InvalidValueError",
    "ApproximationWarning",
    "docs",
]
