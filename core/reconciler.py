"""Gap-filling policy that turns parsed cells into an invariant-safe canonical row."""

from __future__ import annotations

import datetime
import random
from dataclasses import dataclass
from typing import Mapping

from core.models import CanonicalRow
from core.number_parser import ParsedNumber

DEFAULT_PRICE = 100.0
DEFAULT_SERIES = "EQ"

OPEN_GAP = 0.02
RANGE_PAD = (0.001, 0.02)
PREV_CLOSE_BAND = (0.98, 1.02)
VOLUME_BASE = (10_000, 1_010_000)
VOLATILITY_VOLUME_SCALE = 10.0
LOT_SIZE = (80.0, 120.0)
WEEK52_HIGH_DIVISOR = (0.7, 1.0)
WEEK52_LOW_DIVISOR = (1.0, 1.5)


@dataclass(frozen=True)
class ReconciledRow:
    """A canonical row plus which fields had to be synthesized."""

    row: CanonicalRow
    synthesized: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


def _positive(parsed: ParsedNumber | None) -> float | None:
    """Parsed value when it is a usable positive number, else None."""
    if parsed is None or not parsed.is_valid or parsed.value <= 0:
        return None
    return parsed.value


class ReconciliationPolicy:
    """
    Fill missing or inconsistent fields of one row from related fields.

    Close is the anchor: every reconstructed value is derived from the
    resolved close, and the result always satisfies
    low <= min(open, close) <= max(open, close) <= high with all prices,
    volume and trade count strictly positive. Randomness comes from the
    injected generator so a seeded policy reproduces the same series.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        default_price: float = DEFAULT_PRICE,
        default_series: str = DEFAULT_SERIES,
    ) -> None:
        if default_price <= 0:
            raise ValueError("default_price must be positive")
        self._rng = rng if rng is not None else random.Random()
        self._default_price = default_price
        self._default_series = default_series

    def reconcile(
        self,
        date: datetime.date,
        numbers: Mapping[str, ParsedNumber],
        series: str | None = None,
        previous_close: float | None = None,
    ) -> ReconciledRow:
        rng = self._rng
        synthesized: list[str] = []
        warnings: list[str] = []

        raw_open = _positive(numbers.get("open"))
        raw_high = _positive(numbers.get("high"))
        raw_low = _positive(numbers.get("low"))

        close = _positive(numbers.get("close"))
        if close is None:
            synthesized.append("close")
            close = next(
                (value for value in (raw_open, raw_high, raw_low) if value is not None),
                self._default_price,
            )

        open_price = raw_open
        if open_price is None:
            synthesized.append("open")
            base = previous_close if previous_close and previous_close > 0 else close
            open_price = base * (1 + rng.uniform(-OPEN_GAP, OPEN_GAP))

        upper = max(open_price, close)
        lower = min(open_price, close)

        high = raw_high
        if high is None or high < upper:
            synthesized.append("high")
            high = upper * (1 + rng.uniform(*RANGE_PAD))

        low = raw_low
        if low is None or low > lower:
            synthesized.append("low")
            low = lower * (1 - rng.uniform(*RANGE_PAD))

        ltp = _positive(numbers.get("ltp"))
        if ltp is None:
            synthesized.append("ltp")
            ltp = close

        vwap = _positive(numbers.get("vwap"))
        if vwap is None:
            synthesized.append("vwap")
            vwap = (high + low + close) / 3

        prev_close = _positive(numbers.get("prev_close"))
        if prev_close is None:
            synthesized.append("prev_close")
            if previous_close and previous_close > 0:
                prev_close = previous_close
            else:
                prev_close = close * rng.uniform(*PREV_CLOSE_BAND)

        raw_volume = _positive(numbers.get("volume"))
        if raw_volume is not None:
            volume = max(1, int(round(raw_volume)))
        else:
            synthesized.append("volume")
            day_range = (high - low) / close
            volume = int(rng.uniform(*VOLUME_BASE) * (1 + VOLATILITY_VOLUME_SCALE * day_range))
            volume = max(1, volume)

        value = _positive(numbers.get("value"))
        if value is None:
            synthesized.append("value")
            value = volume * vwap

        raw_trades = _positive(numbers.get("trades"))
        if raw_trades is not None:
            trades = max(1, int(round(raw_trades)))
        else:
            synthesized.append("trades")
            trades = max(1, int(volume // rng.uniform(*LOT_SIZE)))

        week52_high = _positive(numbers.get("week52_high"))
        if week52_high is None:
            synthesized.append("week52_high")
            week52_high = max(close / rng.uniform(*WEEK52_HIGH_DIVISOR), high)

        week52_low = _positive(numbers.get("week52_low"))
        if week52_low is None:
            synthesized.append("week52_low")
            week52_low = min(close / rng.uniform(*WEEK52_LOW_DIVISOR), low)

        if not week52_low <= close <= week52_high:
            warnings.append(f"{date.isoformat()}: close {close:.2f} outside 52-week band")

        series_code = (series or "").strip() or self._default_series

        row = CanonicalRow(
            date=date,
            series=series_code,
            open=open_price,
            high=high,
            low=low,
            prev_close=prev_close,
            ltp=ltp,
            close=close,
            vwap=vwap,
            week52_high=week52_high,
            week52_low=week52_low,
            volume=volume,
            value=value,
            trades=trades,
        )
        return ReconciledRow(row=row, synthesized=tuple(synthesized), warnings=tuple(warnings))
