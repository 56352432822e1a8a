"""StockLens analyst: trend summary and rule-based recommendation for one series."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any

import pandas as pd

from core.indicators import add_indicators, annualized_volatility
from core.models import CanonicalSeries

TREND_BAND = 0.02
SUPPORT_WINDOW = 20
MIN_RSI_PRICES = 15
MIN_MACD_PRICES = 26

BULLISH = "Bullish"
BEARISH = "Bearish"
NEUTRAL = "Neutral"


@dataclass(frozen=True)
class TrendSummary:
    """Latest-value trend indicators shown on the dashboard and exported."""

    sma20: float | None
    sma50: float | None
    rsi: float | None
    macd: float | None
    trend_direction: str
    support: float
    resistance: float
    volume_trend: str
    volatility: float
    recommendation: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class StockAnalysis:
    """Complete analysis package for one uploaded series."""

    source_name: str
    data: pd.DataFrame
    trends: TrendSummary
    insights: list[str]


def _last_value(column: pd.Series) -> float | None:
    if column.empty:
        return None
    value = column.iloc[-1]
    if pd.isna(value):
        return None
    return float(value)


def trend_direction(prices: list[float]) -> str:
    """Compare the last 10 prices against the 10 before them, with a 2% band."""
    recent = prices[-10:]
    older = prices[-20:-10]
    if not recent or not older:
        return NEUTRAL
    recent_avg = sum(recent) / len(recent)
    older_avg = sum(older) / len(older)
    if recent_avg > older_avg * (1 + TREND_BAND):
        return BULLISH
    if recent_avg < older_avg * (1 - TREND_BAND):
        return BEARISH
    return NEUTRAL


def volume_trend(volumes: list[float]) -> str:
    recent = volumes[-5:]
    older = volumes[-10:-5]
    if not recent or not older:
        return NEUTRAL
    recent_avg = sum(recent) / len(recent)
    older_avg = sum(older) / len(older)
    return "Increasing" if recent_avg > older_avg else "Decreasing"


def recommend(rsi: float | None, direction: str) -> str:
    """Oversold in an uptrend buys, overbought in a downtrend sells; otherwise hold."""
    if rsi is None or math.isnan(rsi):
        return "Hold"
    if direction == BULLISH and rsi < 30:
        return "Strong Buy"
    if direction == BULLISH and rsi < 40:
        return "Buy"
    if direction == BEARISH and rsi > 70:
        return "Strong Sell"
    if direction == BEARISH and rsi > 60:
        return "Sell"
    return "Hold"


class StockAnalyst:
    """Analyze a canonical series with explainable outputs."""

    @staticmethod
    def summarize(data: pd.DataFrame) -> TrendSummary:
        """Build a TrendSummary from an indicator-enriched frame."""
        prices = data["close"].astype(float).tolist()
        volumes = data["volume"].astype(float).tolist()
        window = prices[-SUPPORT_WINDOW:]

        rsi = _last_value(data["RSI_14"]) if len(prices) >= MIN_RSI_PRICES else None
        macd = _last_value(data["MACD"]) if len(prices) >= MIN_MACD_PRICES else None
        direction = trend_direction(prices)

        return TrendSummary(
            sma20=_last_value(data["SMA_20"]),
            sma50=_last_value(data["SMA_50"]),
            rsi=rsi,
            macd=macd,
            trend_direction=direction,
            support=min(window),
            resistance=max(window),
            volume_trend=volume_trend(volumes),
            volatility=annualized_volatility(data["close"]),
            recommendation=recommend(rsi, direction),
        )

    @staticmethod
    def _generate_insights(data: pd.DataFrame, trends: TrendSummary) -> list[str]:
        """Generate plain-English insights from latest indicator context."""
        insights: list[str] = [f"Trend over the last 20 sessions is {trends.trend_direction.lower()}."]
        if len(data) < 2:
            return insights

        latest = data.iloc[-1]
        prev = data.iloc[-2]

        if pd.notna(latest["SMA_20"]) and pd.notna(prev["SMA_20"]):
            if prev["close"] <= prev["SMA_20"] and latest["close"] > latest["SMA_20"]:
                insights.append("Price crossed above the 20-day average, showing improving momentum.")
            elif prev["close"] >= prev["SMA_20"] and latest["close"] < latest["SMA_20"]:
                insights.append("Price crossed below the 20-day average, showing weaker momentum.")

        if trends.rsi is None:
            insights.append("Not enough history for a 14-day RSI reading.")
        elif trends.rsi < 30:
            insights.append("RSI is in oversold territory, which often reflects short-term stress.")
        elif trends.rsi > 70:
            insights.append("RSI is in overbought territory, which can precede pullbacks.")
        else:
            insights.append("RSI is neutral, indicating balanced momentum.")

        if pd.notna(latest["BB_UPPER"]) and latest["close"] > latest["BB_UPPER"]:
            insights.append("Close is above the upper Bollinger band.")
        elif pd.notna(latest["BB_LOWER"]) and latest["close"] < latest["BB_LOWER"]:
            insights.append("Close is below the lower Bollinger band.")

        insights.append(f"Annualized volatility is about {trends.volatility * 100:.1f}%.")
        return insights

    def analyze(self, series: CanonicalSeries, source_name: str = "upload") -> StockAnalysis:
        """Run indicators and trend analysis for one series."""
        if len(series) == 0:
            raise ValueError("Cannot analyze an empty series")
        data = add_indicators(series.to_frame())
        trends = self.summarize(data)
        return StockAnalysis(
            source_name=source_name,
            data=data,
            trends=trends,
            insights=self._generate_insights(data, trends),
        )
