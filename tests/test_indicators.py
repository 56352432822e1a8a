from __future__ import annotations

import math

import numpy as np
import pandas as pd
import pytest

from core.indicators import add_indicators, annualized_volatility


def _frame(closes) -> pd.DataFrame:
    return pd.DataFrame({"close": [float(value) for value in closes]})


def test_rolling_windows_warm_up() -> None:
    enriched = add_indicators(_frame(range(100, 160)))

    assert enriched["SMA_20"].iloc[:19].isna().all()
    assert enriched["SMA_20"].iloc[19] == pytest.approx(np.mean(range(100, 120)))
    assert enriched["SMA_50"].iloc[:49].isna().all()
    assert enriched["SMA_50"].iloc[-1] == pytest.approx(np.mean(range(110, 160)))
    assert enriched["BB_MIDDLE"].equals(enriched["SMA_20"])


def test_input_frame_is_not_modified() -> None:
    frame = _frame(range(30))

    add_indicators(frame)

    assert list(frame.columns) == ["close"]


def test_rsi_stays_in_range() -> None:
    closes = [100 + 5 * math.sin(index / 3) for index in range(80)]

    rsi = add_indicators(_frame(closes))["RSI_14"]

    assert rsi.between(0, 100).all()


def test_rsi_of_steady_rise_is_full_strength() -> None:
    rsi = add_indicators(_frame(range(100, 140)))["RSI_14"]

    assert rsi.iloc[-1] == pytest.approx(100.0)


def test_rsi_of_steady_fall_is_zero() -> None:
    rsi = add_indicators(_frame(range(140, 100, -1)))["RSI_14"]

    assert rsi.iloc[-1] == pytest.approx(0.0)


def test_macd_parts_are_consistent() -> None:
    enriched = add_indicators(_frame([100 + (index % 7) for index in range(60)]))

    np.testing.assert_allclose(enriched["MACD"], enriched["EMA_12"] - enriched["EMA_26"])
    np.testing.assert_allclose(enriched["MACD_HIST"], enriched["MACD"] - enriched["MACD_SIGNAL"])


def test_bands_surround_the_average() -> None:
    enriched = add_indicators(_frame([100 + (index % 5) for index in range(40)])).dropna(subset=["SMA_20"])

    assert (enriched["BB_UPPER"] >= enriched["BB_MIDDLE"]).all()
    assert (enriched["BB_LOWER"] <= enriched["BB_MIDDLE"]).all()


def test_annualized_volatility() -> None:
    closes = pd.Series([100.0, 110.0, 99.0, 108.9])
    returns = np.array([0.1, -0.1, 0.1])

    assert annualized_volatility(closes) == pytest.approx(returns.std() * np.sqrt(252))
    assert annualized_volatility(pd.Series([100.0, 100.0, 100.0])) == 0.0
    assert annualized_volatility(pd.Series([100.0])) == 0.0
