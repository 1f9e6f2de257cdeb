"""
Primitive formatters for X12 segment construction.

Every function here is pure and total on validated input. Enforcing field
presence and formats is the validator's job; these functions never raise for
a cosmetic or optional value.
"""
import re
from datetime import date, datetime
from typing import Optional, Union

# Delimiters for the 005010 interchanges produced by this package
ELEMENT_SEPARATOR = "*"
SEGMENT_TERMINATOR = "~"
COMPONENT_SEPARATOR = ":"
REPETITION_SEPARATOR = "^"

NPI_LENGTH = 10
TAX_ID_LENGTH = 9

_NON_DIGITS = re.compile(r"\D")
# Delimiters plus line breaks and other control characters
_UNSAFE_CHARACTERS = re.compile(
    "[" + re.escape(ELEMENT_SEPARATOR + SEGMENT_TERMINATOR + COMPONENT_SEPARATOR + REPETITION_SEPARATOR) + r"\x00-\x1f\x7f]"
)
_WHITESPACE_RUN = re.compile(r"\s+")

DateLike = Union[date, datetime, str]


def edi_date(value: DateLike) -> str:
    """
    Format a date as CCYYMMDD.

    ISO ``YYYY-MM-DD`` strings are rewritten textually rather than parsed, so
    no timezone conversion can roll the date. ``date``/``datetime`` values use
    their own calendar fields.

    Args:
        value: A ``date``, ``datetime`` or ``YYYY-MM-DD`` string

    Returns:
        8-character date string
    """
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y%m%d")
    return str(value).strip()[:10].replace("-", "")


def edi_time(value: datetime) -> str:
    """Format a time of day as 24-hour HHMM."""
    return value.strftime("%H%M")


def edi_clean(text: Optional[str]) -> str:
    """
    Make free text safe to place inside an element.

    Delimiter characters and control characters are replaced with a space,
    whitespace runs collapse to one space, and the ends are trimmed.

    Args:
        text: Value to clean; ``None`` is treated as empty

    Returns:
        Cleaned text
    """
    if not text:
        return ""
    cleaned = _UNSAFE_CHARACTERS.sub(" ", str(text))
    return _WHITESPACE_RUN.sub(" ", cleaned).strip()


def fixed_width(value: Optional[str], length: int) -> str:
    """Space-pad or truncate ``value`` to exactly ``length`` characters."""
    return (value or "").ljust(length)[:length]


def digits_only(value: Optional[str]) -> str:
    """Strip every non-digit character."""
    return _NON_DIGITS.sub("", value or "")


def format_npi(npi: Optional[str]) -> str:
    """Normalize an NPI to its 10 digits (punctuation and spaces dropped)."""
    return digits_only(npi)[:NPI_LENGTH]


def format_tax_id(tax_id: Optional[str]) -> str:
    """Normalize an EIN such as ``74-1234567`` to its 9 digits."""
    return digits_only(tax_id)[:TAX_ID_LENGTH]


def composite(*components: str) -> str:
    """Join composite components with the component separator."""
    return COMPONENT_SEPARATOR.join(components)


def segment(segment_id: str, *elements: Optional[str]) -> str:
    """
    Assemble one segment.

    Empty elements between populated ones are kept as empty positions so
    element numbering stays intact. Trailing empty elements are dropped, as
    X12 requires a segment to end at its last populated element.

    Args:
        segment_id: Segment identifier, e.g. ``"NM1"``
        *elements: Element values in position order; ``None`` means empty

    Returns:
        The segment including its terminator

    Example:
        >>> segment("HL", "1", "", "20", "1")
        'HL*1**20*1~'
        >>> segment("NM1", "QC", "1", "DOE", "JANE", "", "", "")
        'NM1*QC*1*DOE*JANE~'
    """
    values = ["" if element is None else str(element) for element in elements]
    while values and values[-1] == "":
        values.pop()
    return ELEMENT_SEPARATOR.join([segment_id, *values]) + SEGMENT_TERMINATOR
