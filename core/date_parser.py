"""Parse trading-date cells written in the formats exchanges commonly export."""

from __future__ import annotations

import datetime
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

import pandas as pd

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

# (name, pattern, field order, format confidence); 4-digit years first.
_DATE_FORMATS = (
    ("DD-MMM-YYYY", re.compile(r"^(\d{1,2})-([A-Za-z]{3})-(\d{4})$"), ("day", "month_name", "year"), 0.95),
    ("YYYY-MM-DD", re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$"), ("year", "month", "day"), 0.85),
    ("DD/MM/YYYY", re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$"), ("day", "month", "year"), 0.7),
    ("MM/DD/YYYY", re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$"), ("month", "day", "year"), 0.6),
    ("DD-MMM-YY", re.compile(r"^(\d{1,2})-([A-Za-z]{3})-(\d{2})$"), ("day", "month_name", "short_year"), 0.9),
)

STRUCTURED_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.4
MAX_YEARS_FROM_TODAY = 50
GAP_DAYS = 7
LOW_CONFIDENCE = 0.5

LOGGER = logging.getLogger("stocklens.dates")


@dataclass(frozen=True)
class ParsedDate:
    """Calendar date decoded from one cell."""

    date: datetime.date
    formatted: str
    is_valid: bool
    confidence: float
    format_name: str | None = None
    format_confidence: float = 0.0


@dataclass(frozen=True)
class DateRangeReport:
    """Advisory checks over a batch of parsed dates."""

    is_valid: bool
    issues: list[str] = field(default_factory=list)
    gaps: list[str] = field(default_factory=list)
    low_confidence_count: int = 0


def _today(today: datetime.date | None) -> datetime.date:
    return today if today is not None else datetime.date.today()


def _invalid(today: datetime.date) -> ParsedDate:
    return ParsedDate(date=today, formatted=today.isoformat(), is_valid=False, confidence=0.0)


def _plausible(value: datetime.date, today: datetime.date) -> bool:
    return abs(today.year - value.year) <= MAX_YEARS_FROM_TODAY


def _expand_year(short_year: int) -> int:
    return 2000 + short_year if short_year < 50 else 1900 + short_year


def _decode(match: re.Match, order: tuple[str, str, str], today: datetime.date) -> datetime.date | None:
    """Turn regex groups into a date, or None when the parts do not form a plausible day."""
    parts: dict[str, int] = {}
    for slot, raw in zip(order, match.groups()):
        if slot == "month_name":
            month = MONTHS.get(raw.lower())
            if month is None:
                return None
            parts["month"] = month
        elif slot == "short_year":
            parts["year"] = _expand_year(int(raw))
        else:
            parts[slot] = int(raw)

    year, month, day = parts["year"], parts["month"], parts["day"]
    if not 1 <= month <= 12:
        return None
    try:
        decoded = datetime.date(year, month, day)
    except ValueError:
        return None
    if (decoded.year, decoded.month, decoded.day) != (year, month, day):
        return None
    if not _plausible(decoded, today):
        return None
    return decoded


def parse_date(raw_value: Any, today: datetime.date | None = None) -> ParsedDate:
    """
    Parse a date cell.

    Recognized layouts: DD-MMM-YYYY, YYYY-MM-DD, DD/MM/YYYY, MM/DD/YYYY and
    DD-MMM-YY (two-digit years below 50 land in the 2000s). Anything else
    goes through pandas' generic parser at reduced confidence. Failures
    return today's date flagged invalid.
    """
    reference = _today(today)

    if raw_value is None:
        return _invalid(reference)

    if isinstance(raw_value, (datetime.date, pd.Timestamp)):
        if pd.isna(raw_value):
            return _invalid(reference)
        value = raw_value.date() if isinstance(raw_value, datetime.datetime) else raw_value
        if not _plausible(value, reference):
            LOGGER.debug("Date %s is more than %d years from %s", value, MAX_YEARS_FROM_TODAY, reference)
            return _invalid(reference)
        return ParsedDate(date=value, formatted=value.isoformat(), is_valid=True, confidence=1.0, format_name="native")

    text = str(raw_value).strip()
    if not text or text.lower() in {"nan", "nat", "none"}:
        return _invalid(reference)

    for name, pattern, order, format_confidence in _DATE_FORMATS:
        match = pattern.match(text)
        if match is None:
            continue
        decoded = _decode(match, order, reference)
        if decoded is not None:
            return ParsedDate(
                date=decoded,
                formatted=decoded.isoformat(),
                is_valid=True,
                confidence=STRUCTURED_CONFIDENCE,
                format_name=name,
                format_confidence=format_confidence,
            )

    fallback = pd.to_datetime(text, errors="coerce")
    if pd.notna(fallback) and _plausible(fallback.date(), reference):
        value = fallback.date()
        LOGGER.debug("Fallback date parse %r -> %s", text, value)
        return ParsedDate(
            date=value,
            formatted=value.isoformat(),
            is_valid=True,
            confidence=FALLBACK_CONFIDENCE,
            format_name="generic",
        )

    LOGGER.debug("Could not parse date %r", text)
    return _invalid(reference)


def validate_date_range(dates: Iterable[ParsedDate]) -> DateRangeReport:
    """Flag calendar gaps longer than a week and low-confidence parses."""
    items = list(dates)
    if not items:
        return DateRangeReport(is_valid=False, issues=["No dates provided"])

    issues: list[str] = []
    ordered = sorted(items, key=lambda item: item.date)
    gaps: list[str] = []
    for previous, current in zip(ordered, ordered[1:]):
        days = (current.date - previous.date).days
        if days > GAP_DAYS:
            gaps.append(f"{days} days between {previous.formatted} and {current.formatted}")

    if gaps:
        issues.append(f"Date gaps detected: {', '.join(gaps)}")

    low_confidence = sum(1 for item in items if item.confidence < LOW_CONFIDENCE)
    if low_confidence:
        issues.append(f"{low_confidence} dates parsed with low confidence")

    return DateRangeReport(
        is_valid=not issues,
        issues=issues,
        gaps=gaps,
        low_confidence_count=low_confidence,
    )
