"""Rule-based anomaly flags and direction probabilities for an analyzed series."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np
import pandas as pd

LOGGER = logging.getLogger("stocklens.anomalies")

ANOMALY_WINDOW = 30
ANOMALY_LIMIT = 5
PRICE_MOVE_THRESHOLD = 5.0
VOLUME_SPIKE_RATIO = 2.0
VOLUME_LOOKBACK = 5


@dataclass(frozen=True)
class Anomaly:
    date: datetime.date
    kind: str
    value: float
    score: float
    severity: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "kind": self.kind,
            "value": round(self.value, 2),
            "score": round(self.score, 2),
            "severity": self.severity,
            "description": self.description,
        }


@dataclass(frozen=True)
class Probabilities:
    bullish: float
    bearish: float
    neutral: float

    def to_dict(self) -> dict[str, float]:
        return {"bullish": self.bullish, "bearish": self.bearish, "neutral": self.neutral}


def _price_severity(change_pct: float) -> str:
    if change_pct > 10:
        return "high"
    if change_pct > 7:
        return "medium"
    return "low"


def detect_anomalies(data: pd.DataFrame, window: int = ANOMALY_WINDOW, limit: int = ANOMALY_LIMIT) -> list[Anomaly]:
    """
    Flag unusual sessions in the last `window` rows.

    A price anomaly is a close-to-close move above 5%. A volume anomaly is a
    session trading more than twice the mean of up to five sessions before
    it. Results are ordered by score, strongest first, and capped at `limit`.
    """
    recent = data.tail(window).reset_index(drop=True)
    closes = recent["close"].astype(float).tolist()
    volumes = recent["volume"].astype(float).tolist()
    dates = [pd.Timestamp(value).date() for value in recent["date"]]

    found: list[Anomaly] = []
    for index in range(1, len(recent)):
        previous = closes[index - 1]
        if previous > 0:
            change_pct = abs(closes[index] - previous) / previous * 100
            if change_pct > PRICE_MOVE_THRESHOLD:
                found.append(
                    Anomaly(
                        date=dates[index],
                        kind="price",
                        value=closes[index],
                        score=change_pct,
                        severity=_price_severity(change_pct),
                        description=f"Unusual price movement: {change_pct:.1f}% change",
                    )
                )

        lookback = volumes[max(0, index - VOLUME_LOOKBACK):index]
        average = sum(lookback) / len(lookback)
        if average > 0 and volumes[index] > average * VOLUME_SPIKE_RATIO:
            ratio = volumes[index] / average
            found.append(
                Anomaly(
                    date=dates[index],
                    kind="volume",
                    value=volumes[index],
                    score=ratio * 10,
                    severity="high" if ratio > 3 else "medium",
                    description=f"Volume spike: {(ratio - 1) * 100:.0f}% above average",
                )
            )

    found.sort(key=lambda item: item.score, reverse=True)
    LOGGER.debug("Flagged %d anomalies in the last %d rows", len(found), len(recent))
    return found[:limit]


def _sma(prices: Sequence[float], period: int) -> float:
    window = prices[-period:]
    return sum(window) / len(window)


def anomaly_score(prices: Sequence[float], volumes: Sequence[float]) -> float:
    """
    0-100 score for how unusual the latest session looks.

    Adds 30 for return volatility above 10%, 25 for a last volume above three
    times the recent mean, 20 for a five-session move above 10% and 15 for a
    close more than 20% away from its 20-session mean.
    """
    if len(prices) < 2:
        return 0.0

    score = 0.0
    closes = np.asarray(prices, dtype=float)
    returns = np.diff(closes) / closes[:-1]
    if float(np.std(returns)) > 0.1:
        score += 30

    if len(volumes) > 5:
        recent_volume = sum(volumes[-10:]) / len(volumes[-10:])
        if volumes[-1] > recent_volume * 3:
            score += 25

    if len(prices) > 5 and prices[-6]:
        momentum = (prices[-1] - prices[-6]) / prices[-6] * 100
        if abs(momentum) > 10:
            score += 20

    mean = _sma(prices, 20)
    if mean and abs(prices[-1] - mean) / mean > 0.2:
        score += 15

    return min(score, 100.0)


def calculate_probabilities(
    rsi: float | None,
    macd: float | None,
    last_close: float,
    sma20: float | None,
    target_price: float,
) -> Probabilities:
    """Bullish/bearish/neutral split from RSI, MACD, SMA20 position and the expected move."""
    bullish = 0.33
    bearish = 0.33

    if rsi is not None:
        if rsi > 70:
            bearish += 0.1
        elif rsi < 30:
            bullish += 0.1

    if macd is not None:
        if macd > 0:
            bullish += 0.05
        else:
            bearish += 0.05

    if sma20:
        if last_close > sma20:
            bullish += 0.1
        else:
            bearish += 0.1

    if last_close:
        expected_return = (target_price - last_close) / last_close
        if expected_return > 0.02:
            bullish += 0.15
        elif expected_return < -0.02:
            bearish += 0.15

    neutral = max(0.0, 1 - (bullish + bearish))
    total = bullish + bearish + neutral
    return Probabilities(
        bullish=round(bullish / total, 2),
        bearish=round(bearish / total, 2),
        neutral=round(neutral / total, 2),
    )
