from __future__ import annotations

import datetime

import pandas as pd

from core.anomalies import anomaly_score, calculate_probabilities, detect_anomalies


def _frame(closes, volumes) -> pd.DataFrame:
    start = datetime.date(2025, 2, 1)
    return pd.DataFrame(
        {
            "date": pd.to_datetime([start + datetime.timedelta(days=index) for index in range(len(closes))]),
            "close": closes,
            "volume": volumes,
        }
    )


def test_quiet_series_has_no_anomalies() -> None:
    frame = _frame([100 + index * 0.5 for index in range(40)], [1000] * 40)

    assert detect_anomalies(frame) == []
    assert anomaly_score(frame["close"].tolist(), frame["volume"].tolist()) == 0.0


def test_price_jump_and_volume_spike_are_flagged() -> None:
    closes = [100.0] * 10 + [112.0] + [112.0] * 9
    volumes = [1000.0] * 15 + [4000.0] + [1000.0] * 4
    anomalies = detect_anomalies(_frame(closes, volumes))

    price, volume = sorted(anomalies, key=lambda item: item.kind)
    assert price.kind == "price"
    assert price.date == datetime.date(2025, 2, 11)
    assert price.severity == "high"
    assert price.description == "Unusual price movement: 12.0% change"
    assert volume.kind == "volume"
    assert volume.date == datetime.date(2025, 2, 16)
    assert volume.severity == "high"
    assert volume.description == "Volume spike: 300% above average"
    assert anomalies[0] is volume


def test_only_recent_window_is_scanned_and_list_is_capped() -> None:
    closes = [100.0, 120.0] + [100.0 if index % 2 else 108.0 for index in range(40)]
    anomalies = detect_anomalies(_frame(closes, [1000] * len(closes)), limit=5)

    assert len(anomalies) == 5
    assert all(item.date >= datetime.date(2025, 2, 13) for item in anomalies)
    scores = [item.score for item in anomalies]
    assert scores == sorted(scores, reverse=True)


def test_anomaly_score_components() -> None:
    flat = [100.0] * 20
    assert anomaly_score(flat, [1000.0] * 19 + [5000.0]) == 25
    assert anomaly_score(flat[:-1] + [125.0], [1000.0] * 20) == 20 + 15
    swings = [100.0, 150.0, 90.0, 160.0, 80.0, 170.0]
    assert anomaly_score(swings, [1000.0] * 6) == 30 + 20 + 15
    assert anomaly_score(swings, [1000.0] * 5 + [9000.0]) == 90


def test_probabilities_start_even_and_lean_with_signals() -> None:
    neutral = calculate_probabilities(None, None, 100.0, None, 100.0)
    assert neutral.bullish == neutral.bearish == 0.33
    assert neutral.neutral == 0.34

    bullish = calculate_probabilities(25.0, 1.2, 110.0, 100.0, 115.0)
    assert bullish.bullish == 0.69
    assert bullish.bearish == 0.31
    assert bullish.neutral == 0.0

    bearish = calculate_probabilities(75.0, -0.5, 90.0, 100.0, 85.0)
    assert bearish.bearish > bearish.bullish
