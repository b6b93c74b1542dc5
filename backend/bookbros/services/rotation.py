"""
Book of the month picker rotation.

The rotation is a plain value passed into `picker_for`; nothing here reads
settings, so the same function serves the API and the tests.
"""
from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class RotationConfig:
    start_year: int
    start_month: int
    order: tuple[str, ...]


def month_index(year: int, month: int) -> int:
    return year * 12 + (month - 1)


def picker_for(year: int, month: int, config: RotationConfig) -> Optional[str]:
    """
    Return the member whose turn it is to pick for (year, month).

    Months before the rotation start wrap around backwards, so every integer
    (year, month) maps onto the roster. Returns None for an empty roster.
    """
    n = len(config.order)
    if n == 0:
        return None
    months_since_start = month_index(year, month) - month_index(config.start_year, config.start_month)
    index = ((months_since_start % n) + n) % n
    return config.order[index]


def parse_year_month(value: str) -> tuple[int, int]:
    """Parse "YYYY-MM" into (year, month)."""
    try:
        year_str, month_str = value.split("-")
        year, month = int(year_str), int(month_str)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid year_month {value!r}, expected YYYY-MM")
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month in {value!r}")
    return year, month


def format_year_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def current_year_month(today: Optional[date] = None) -> str:
    today = today or date.today()
    return format_year_month(today.year, today.month)
