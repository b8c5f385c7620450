"""Month designator normalization.

Schedules arrive with months spelled several ways ("Jan", "FEB", "3", 4).
Everything downstream (key encoding, validation, responses) works on the
canonical integer month in [1, 12].
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from schedule_limiter.core.errors import UnknownMonthError

MONTH_NAMES: Mapping[str, int] = MappingProxyType(
    {
        "jan": 1,
        "feb": 2,
        "mar": 3,
        "apr": 4,
        "may": 5,
        "jun": 6,
        "jul": 7,
        "aug": 8,
        "sep": 9,
        "oct": 10,
        "nov": 11,
        "dec": 12,
    }
)

MonthDesignator = int | str


def normalize_month(designator: MonthDesignator) -> int:
    """Map a month designator to its canonical integer month.

    Args:
        designator: Three-letter month name (any case), numeric string, or int.

    Returns:
        Month number in [1, 12].

    Raises:
        UnknownMonthError: If the designator is not a known name or a number
            from 1 to 12.

    Examples:
        >>> normalize_month("Jan")
        1
        >>> normalize_month("DEC")
        12
        >>> normalize_month(" 7 ")
        7
    """
    # bool is an int subclass; True must not silently mean January
    if isinstance(designator, bool):
        raise UnknownMonthError(designator)

    if isinstance(designator, int):
        month = designator
    elif isinstance(designator, str):
        text = designator.strip()
        by_name = MONTH_NAMES.get(text.lower())
        if by_name is not None:
            return by_name
        if not (text.isascii() and text.isdigit()):
            raise UnknownMonthError(designator)
        month = int(text)
    else:
        raise UnknownMonthError(designator)

    if not 1 <= month <= 12:
        raise UnknownMonthError(designator)
    return month
