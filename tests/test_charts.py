from __future__ import annotations

import pandas as pd

from ui.charts import recent_range


def test_recent_range_covers_last_half_year() -> None:
    data = pd.DataFrame({"date": pd.date_range("2024-01-01", periods=400, freq="D")})

    assert recent_range(data) == ["2024-08-07", "2025-02-03"]


def test_short_history_starts_at_first_date() -> None:
    data = pd.DataFrame({"date": pd.date_range("2025-01-01", periods=10, freq="D")})

    assert recent_range(data) == ["2025-01-01", "2025-01-10"]


def test_no_dates() -> None:
    assert recent_range(pd.DataFrame({"date": pd.Series([], dtype="datetime64[ns]")})) is None
