"""Parse raw spreadsheet cells into validated numbers with confidence scores."""

from __future__ import annotations

import logging
import math
import numbers
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

PRICE = "price"
VOLUME = "volume"
PERCENTAGE = "percentage"
CONTEXTS = (PRICE, VOLUME, PERCENTAGE)

CURRENCY_SYMBOLS = ("₹", "$", "€", "£", "¥", "₽")

# Most specific first; the first match decides the base confidence.
_NUMBER_PATTERNS = (
    # 1,234,567.89
    (re.compile(r"^(-?[0-9]{1,3}(?:,[0-9]{3})*(?:\.[0-9]+)?)$"), 0.9),
    # 12,34,567.89
    (re.compile(r"^(-?[0-9]{1,2}(?:,[0-9]{2})*(?:,[0-9]{3})?(?:\.[0-9]+)?)$"), 0.85),
    # 1.23E+5
    (re.compile(r"^(-?[0-9]+\.?[0-9]*[eE][+-]?[0-9]+)$"), 0.8),
    # 1234.56
    (re.compile(r"^(-?[0-9]+\.?[0-9]*)$"), 0.7),
)
_LEADING_NUMBER = re.compile(r"^[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_FALLBACK_FACTOR = 0.3

LOGGER = logging.getLogger("stocklens.numbers")


@dataclass(frozen=True)
class ParsedNumber:
    """Result of parsing one cell."""

    value: float
    is_valid: bool
    confidence: float
    original_value: Any = None
    formatted: str = "0.00"


@dataclass(frozen=True)
class NumberStatistics:
    """Batch statistics over the valid subset of parsed numbers."""

    mean: float
    median: float
    std_dev: float
    outliers: list[ParsedNumber] = field(default_factory=list)
    confidence: float = 0.0


def _check_context(context: str) -> None:
    if context not in CONTEXTS:
        raise ValueError(f"Unknown number context: {context!r}")


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _validate(number: float, context: str) -> tuple[bool, float]:
    """Context plausibility: (is_valid, confidence multiplier)."""
    if context == PRICE:
        if number < 0:
            return False, 0.0
        if number > 100000:
            return True, 0.7
        if number < 0.01:
            return True, 0.6
        return True, 0.9

    if context == VOLUME:
        if number < 0:
            return False, 0.0
        if number != math.floor(number):
            return True, 0.7
        if number > 1e10:
            return True, 0.6
        return True, 0.9

    magnitude = abs(number)
    if magnitude > 50:
        return True, 0.5
    if magnitude > 20:
        return True, 0.7
    return True, 0.9


def format_number(value: float, context: str = PRICE) -> str:
    """Render a number the way the dashboard displays it."""
    _check_context(context)
    if context == VOLUME:
        return f"{int(math.floor(value)):,}"
    if context == PERCENTAGE:
        return f"{value:.2f}%"
    return f"{value:.2f}"


def _invalid(original: Any) -> ParsedNumber:
    return ParsedNumber(value=0.0, is_valid=False, confidence=0.0, original_value=original, formatted="0.00")


def _strip_decorations(text: str, context: str) -> str:
    cleaned = text.strip()
    for symbol in CURRENCY_SYMBOLS:
        cleaned = cleaned.replace(symbol, "")
    cleaned = cleaned.strip()
    if context == PERCENTAGE and cleaned.endswith("%"):
        cleaned = cleaned[:-1].strip()
    return cleaned


def parse_number(raw_value: Any, context: str = PRICE) -> ParsedNumber:
    """
    Parse a raw cell into a number.

    Strings may carry a currency symbol, 3-digit or South-Asian grouping,
    or scientific notation. Context (price, volume or percentage) scales
    the confidence and rejects negative prices and volumes.
    """
    _check_context(context)

    if _is_empty(raw_value):
        return _invalid(raw_value)

    if isinstance(raw_value, numbers.Real) and not isinstance(raw_value, bool):
        number = float(raw_value)
        if not math.isfinite(number):
            return _invalid(raw_value)
        return ParsedNumber(
            value=number,
            is_valid=True,
            confidence=1.0,
            original_value=raw_value,
            formatted=format_number(number, context),
        )

    text = _strip_decorations(str(raw_value), context)

    for pattern, base_confidence in _NUMBER_PATTERNS:
        match = pattern.match(text)
        if match is None:
            continue
        try:
            number = float(match.group(1).replace(",", ""))
        except ValueError:
            continue
        if not math.isfinite(number):
            continue
        is_valid, context_confidence = _validate(number, context)
        return ParsedNumber(
            value=number,
            is_valid=is_valid,
            confidence=base_confidence * context_confidence,
            original_value=raw_value,
            formatted=format_number(number, context),
        )

    prefix = _LEADING_NUMBER.match(text)
    if prefix is not None:
        number = float(prefix.group(0))
        if math.isfinite(number):
            is_valid, context_confidence = _validate(number, context)
            LOGGER.debug("Fallback number parse %r -> %s", raw_value, number)
            return ParsedNumber(
                value=number,
                is_valid=is_valid,
                confidence=_FALLBACK_FACTOR * context_confidence,
                original_value=raw_value,
                formatted=format_number(number, context),
            )

    LOGGER.debug("Could not parse number %r", raw_value)
    return _invalid(raw_value)


def calculate_statistics(parsed: Iterable[ParsedNumber]) -> NumberStatistics:
    """Mean, median, population std dev and 1.5xIQR outliers of the valid values."""
    valid = [item for item in parsed if item.is_valid and math.isfinite(item.value)]
    if not valid:
        return NumberStatistics(mean=0.0, median=0.0, std_dev=0.0, outliers=[], confidence=0.0)

    values = [item.value for item in valid]
    count = len(values)
    mean = sum(values) / count

    ordered = sorted(values)
    middle = count // 2
    if count % 2 == 0:
        median = (ordered[middle - 1] + ordered[middle]) / 2
    else:
        median = ordered[middle]

    variance = sum((value - mean) ** 2 for value in values) / count
    std_dev = math.sqrt(variance)

    q1 = ordered[int(count * 0.25)]
    q3 = ordered[int(count * 0.75)]
    iqr = q3 - q1
    lower_bound = q1 - 1.5 * iqr
    upper_bound = q3 + 1.5 * iqr
    outliers = [item for item in valid if item.value < lower_bound or item.value > upper_bound]

    average_confidence = sum(item.confidence for item in valid) / count
    outlier_penalty = min(len(outliers) / count, 0.3)
    confidence = max(average_confidence - outlier_penalty, 0.1)

    return NumberStatistics(
        mean=mean,
        median=median,
        std_dev=std_dev,
        outliers=outliers,
        confidence=confidence,
    )
