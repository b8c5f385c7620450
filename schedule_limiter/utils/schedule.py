"""Schedule request shapes and their normalization.

Callers may pass tokens three ways:

- a bare integer: spend against the current month of the current year;
- a flat ``{month: tokens}`` mapping: spend against the current year;
- a full ``{year: {month: tokens}}`` mapping.

``resolve_tokens`` turns any of them into a ``FullSchedule`` and
``normalize_schedule`` produces the canonical ``{year: {month: tokens}}``
form with integer keys that the limiter and stores work with.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable

from schedule_limiter.core.errors import ValidationAppError
from schedule_limiter.utils.months import normalize_month

# year -> month -> count, always with canonical integer keys
UsageMap = dict[int, dict[int, int]]


@dataclass(frozen=True)
class SingleMonthShortcut:
    """Tokens for the current calendar month."""

    tokens: int


@dataclass(frozen=True)
class CurrentYearSchedule:
    """Month designator -> tokens for the current calendar year."""

    months: Mapping[Any, int]


@dataclass(frozen=True)
class FullSchedule:
    """Year -> month designator -> tokens."""

    years: Mapping[Any, Mapping[Any, int]]


ScheduleRequest = SingleMonthShortcut | CurrentYearSchedule | FullSchedule


def classify_tokens(tokens: Any) -> ScheduleRequest:
    """Wrap a raw token argument in its request variant.

    Raises:
        ValidationAppError: If the argument matches none of the accepted shapes.
    """
    if isinstance(tokens, (SingleMonthShortcut, CurrentYearSchedule, FullSchedule)):
        return tokens
    if isinstance(tokens, int) and not isinstance(tokens, bool):
        return SingleMonthShortcut(tokens)
    if isinstance(tokens, Mapping) and tokens:
        if all(isinstance(value, Mapping) for value in tokens.values()):
            return FullSchedule(tokens)
        if all(not isinstance(value, Mapping) for value in tokens.values()):
            return CurrentYearSchedule(tokens)
    raise ValidationAppError(
        code="invalid_tokens",
        message="Tokens must be an integer or a non-empty {month: tokens} or {year: {month: tokens}} mapping",
    )


def resolve_tokens(tokens: Any, today: Callable[[], date] = date.today) -> FullSchedule:
    """Expand shorthand token arguments into a full schedule.

    Args:
        tokens: Raw token argument or an already classified request.
        today: Clock used to pick the current year/month for shorthands.

    Returns:
        FullSchedule equivalent of the argument.
    """
    request = classify_tokens(tokens)
    if isinstance(request, FullSchedule):
        return request

    current = today()
    if isinstance(request, SingleMonthShortcut):
        return FullSchedule({current.year: {current.month: request.tokens}})
    return FullSchedule({current.year: request.months})


def normalize_year(year: Any) -> int:
    """Coerce a year key (int or numeric string) to int."""
    if isinstance(year, bool):
        raise _invalid_year(year)
    if isinstance(year, int):
        return year
    if isinstance(year, str):
        text = year.strip()
        # int() also accepts non-ASCII digits; str.isdigit() accepts superscripts
        if text.isascii() and text.isdigit():
            return int(text)
    raise _invalid_year(year)


def _invalid_year(year: Any) -> ValidationAppError:
    return ValidationAppError(
        code="invalid_year",
        message=f"Invalid year: {year!r}",
        details={"hint": "Years must be integers or numeric strings"},
    )


def _validate_count(count: Any, year: int, month: int) -> int:
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise ValidationAppError(
            code="invalid_tokens",
            message=f"Token count for {year}-{month:02d} must be a non-negative integer, got {count!r}",
            details={"year": year, "month": month},
        )
    return count


def normalize_schedule(schedule: FullSchedule) -> UsageMap:
    """Normalize every year and month key of a schedule.

    Designators that collapse to the same month within a year are summed.

    Raises:
        UnknownMonthError: On an unrecognized month designator.
        ValidationAppError: On a malformed year or token count.
    """
    normalized: UsageMap = {}
    for raw_year, months in schedule.years.items():
        year = normalize_year(raw_year)
        if not isinstance(months, Mapping):
            raise ValidationAppError(
                code="invalid_tokens",
                message=f"Months for year {year} must be a mapping of month to tokens",
                details={"year": year},
            )
        bucket = normalized.setdefault(year, {})
        for designator, count in months.items():
            month = normalize_month(designator)
            bucket[month] = bucket.get(month, 0) + _validate_count(count, year, month)
    return normalized


def normalize_months(months: Mapping[Any, Iterable[Any]]) -> dict[int, list[int]]:
    """Normalize a ``{year: [month designators]}`` query, dropping duplicates."""
    normalized: dict[int, list[int]] = {}
    for raw_year, designators in months.items():
        if isinstance(designators, (str, bytes)) or not isinstance(designators, Iterable):
            raise ValidationAppError(
                code="invalid_months",
                message=f"Months for year {raw_year!r} must be a list of month designators",
            )
        year = normalize_year(raw_year)
        bucket = normalized.setdefault(year, [])
        for designator in designators:
            month = normalize_month(designator)
            if month not in bucket:
                bucket.append(month)
    return normalized


def months_touched(request: UsageMap) -> dict[int, list[int]]:
    """Return ``{year: [months]}`` for the buckets a normalized request touches."""
    return {year: list(months) for year, months in request.items()}
