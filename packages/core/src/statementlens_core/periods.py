"""Heuristic reporting-period comparison.

Periods are free-text labels ("December 2023", "FY2022", "Q1 2024"). They are
ordered by the first year matching ``20\\d{2}``; when either side has no such
year the labels are compared as plain strings. Months are not
parsed: two periods in the same year compare equal, and a stable
sort keeps their input order.

Everything that orders periods goes through ``compare_periods``.
"""

import re
from functools import cmp_to_key
from typing import Callable, Iterable, Optional, TypeVar

UNKNOWN_PERIOD = "Unknown Period"
UNKNOWN_DATE = "Unknown Date"
SENTINEL_PERIODS = frozenset({UNKNOWN_PERIOD, UNKNOWN_DATE})

_YEAR_RE = re.compile(r"20\d{2}")

T = TypeVar("T")


def extract_year(period: str) -> Optional[int]:
    """Return the first 20xx year in a period label, if any."""
    match = _YEAR_RE.search(period or "")
    return int(match.group(0)) if match else None


def compare_periods(a: str, b: str) -> int:
    """Three-way compare two period labels (-1, 0, 1)."""
    year_a = extract_year(a)
    year_b = extract_year(b)
    if year_a is not None and year_b is not None:
        left, right = year_a, year_b
    else:
        left, right = a or "", b or ""
    return (left > right) - (left < right)


period_sort_key = cmp_to_key(compare_periods)


def sort_by_period(items: Iterable[T], period_of: Callable[[T], str]) -> list[T]:
    """Stable ascending sort of items by their period label."""
    return sorted(items, key=lambda item: period_sort_key(period_of(item)))


def is_known_period(period: Optional[str]) -> bool:
    """True for a non-empty label that is not one of the sentinels."""
    return bool(period) and period not in SENTINEL_PERIODS
