"""Core indicator calculations without external TA libraries."""

from __future__ import annotations

import numpy as np
import pandas as pd

TRADING_DAYS = 252


def _rsi(series: pd.Series, period: int = 14) -> pd.Series:
    """Compute RSI using exponential smoothing."""
    delta = series.diff()
    gains = delta.clip(lower=0)
    losses = -delta.clip(upper=0)

    avg_gain = gains.ewm(alpha=1 / period, min_periods=period, adjust=False).mean()
    avg_loss = losses.ewm(alpha=1 / period, min_periods=period, adjust=False).mean()

    rs = avg_gain / avg_loss.replace(0, np.nan)
    rsi = 100 - (100 / (1 + rs))
    # Flat losses with gains is a full-strength up move.
    rsi = rsi.mask(avg_loss.eq(0) & avg_gain.gt(0), 100.0)
    return rsi.fillna(50)


def add_indicators(frame: pd.DataFrame, price_column: str = "close") -> pd.DataFrame:
    """
    Return a copy of the series frame with trend, momentum and band indicators.

    Rolling averages stay NaN until their window fills; EMAs and MACD are
    defined from the first row.
    """
    enriched = frame.copy()
    close = enriched[price_column].astype(float)

    enriched["SMA_20"] = close.rolling(window=20, min_periods=20).mean()
    enriched["SMA_50"] = close.rolling(window=50, min_periods=50).mean()
    enriched["EMA_12"] = close.ewm(span=12, adjust=False).mean()
    enriched["EMA_26"] = close.ewm(span=26, adjust=False).mean()
    enriched["RSI_14"] = _rsi(close, period=14)

    enriched["MACD"] = enriched["EMA_12"] - enriched["EMA_26"]
    enriched["MACD_SIGNAL"] = enriched["MACD"].ewm(span=9, adjust=False).mean()
    enriched["MACD_HIST"] = enriched["MACD"] - enriched["MACD_SIGNAL"]

    rolling_std = close.rolling(window=20, min_periods=20).std()
    enriched["BB_MIDDLE"] = enriched["SMA_20"]
    enriched["BB_UPPER"] = enriched["SMA_20"] + 2 * rolling_std
    enriched["BB_LOWER"] = enriched["SMA_20"] - 2 * rolling_std

    daily_returns = close.pct_change()
    enriched["VOLATILITY_20"] = daily_returns.rolling(window=20, min_periods=20).std() * np.sqrt(TRADING_DAYS)

    return enriched


def annualized_volatility(close: pd.Series) -> float:
    """Population std of simple daily returns, annualized. 0.0 with under two prices."""
    returns = close.astype(float).pct_change().dropna()
    if returns.empty:
        return 0.0
    return float(returns.std(ddof=0) * np.sqrt(TRADING_DAYS))
