from __future__ import annotations

import datetime
import random

import pandas as pd
import pytest

from config.fields import CONTRACT_COLUMNS
from core.data_reader import RawTable
from core.exceptions import InsufficientDataError
from core.ingestion import ingest_file, ingest_table

PLAIN_HEADERS = ["Date", "Open", "High", "Low", "Close", "Volume"]


def _assert_series_invariants(series) -> None:
    dates = [row.date for row in series]
    assert dates == sorted(dates)
    for row in series:
        assert row.high >= row.open and row.high >= row.close
        assert row.low <= row.open and row.low <= row.close
        for value in (row.open, row.high, row.low, row.close, row.prev_close, row.ltp, row.vwap):
            assert value > 0
        assert row.volume > 0
        assert row.trades > 0


def test_exchange_export_is_sorted_and_kept(nse_csv, make_nse_rows, today, rng) -> None:
    result = ingest_file(nse_csv, today=today, rng=rng)

    series = result.series
    assert len(series) == 30
    assert series.start_date == datetime.date(2025, 3, 3)
    assert series.end_date == datetime.date(2025, 4, 1)
    assert result.diagnostics.synthesized == {}
    assert result.mapping.confidence == pytest.approx(1.0)
    assert result.diagnostics.mapping_issues == []

    last_close = float(make_nse_rows(30, newest_first=False)[-1][7].replace(",", ""))
    assert series[-1].close == pytest.approx(last_close)
    _assert_series_invariants(series)


def test_previous_close_chains_after_sorting(write_csv, today, rng) -> None:
    rows = [
        ["2025-01-06", "103", "106", "101", "105", "1500"],
        ["2025-01-02", "100", "104", "99", "102", "1000"],
        ["2025-01-07", "105", "107", "100", "101", "1700"],
        ["2025-01-03", "102", "105", "100", "103", "1200"],
        ["2025-01-08", "101", "103", "97", "98", "2100"],
    ]
    path = write_csv("shuffled.csv", PLAIN_HEADERS, rows)

    series = ingest_file(path, today=today, rng=rng).series

    closes = [row.close for row in series]
    assert closes == [102.0, 103.0, 105.0, 101.0, 98.0]
    for previous, current in zip(series, series[1:]):
        assert current.prev_close == previous.close
    _assert_series_invariants(series)


def test_shared_header_goes_to_strongest_claim(write_csv, today, rng) -> None:
    rows = [[f"2025-01-{day:02d}", "100", "104", "99", "102", "1000"] for day in range(2, 8)]
    path = write_csv("plain.csv", PLAIN_HEADERS, rows)

    result = ingest_file(path, today=today, rng=rng)

    warnings = result.diagnostics.warnings
    assert 'Column "Close" matched close, prev_close; using it for close' in warnings
    assert 'Column "Volume" matched volume, vwap; using it for volume' in warnings
    assert result.diagnostics.synthesized["prev_close"] == 6
    assert result.diagnostics.synthesized["vwap"] == 6
    assert all(row.close == 102.0 for row in result.series)


def test_mixed_date_formats(write_csv, today, rng) -> None:
    rows = [
        ["14/07/2025", "104", "106", "103", "105", "900"],
        ["11-Jul-25", "100", "102", "99", "101", "1000"],
        ["2025-07-13", "103", "105", "102", "104", "950"],
        ["12-Jul-2025", "101", "103", "100", "102", "1100"],
        ["15-Jul-2025", "105", "107", "104", "106", "1200"],
    ]
    path = write_csv("mixed.csv", PLAIN_HEADERS, rows)

    series = ingest_file(path, today=today, rng=rng).series

    assert [row.date for row in series] == [datetime.date(2025, 7, day) for day in range(11, 16)]
    assert [row.close for row in series] == [101.0, 102.0, 104.0, 105.0, 106.0]


def test_too_few_rows_is_rejected(write_csv, today, rng) -> None:
    rows = [[f"2025-01-0{day}", "100", "104", "99", "102", "1000"] for day in range(2, 5)]
    path = write_csv("short.csv", PLAIN_HEADERS, rows)

    with pytest.raises(InsufficientDataError, match="Please provide at least 5 rows") as caught:
        ingest_file(path, today=today, rng=rng, min_rows=5)

    assert caught.value.row_count == 3


def test_missing_prices_are_filled_consistently(write_csv, today, rng) -> None:
    rows = [
        ["2025-02-03", "100", "0", "0", "0", "1000"],
        ["2025-02-04", "101", "103", "100", "n/a", "1000"],
        ["2025-02-05", "", "", "", "", ""],
        ["2025-02-06", "102", "104", "101", "103", "-5"],
        ["2025-02-07", "103", "105", "102", "104", "1300"],
    ]
    path = write_csv("gaps.csv", PLAIN_HEADERS, rows)

    result = ingest_file(path, today=today, rng=rng)

    series = result.series
    assert series[0].close == series[0].open == 100.0
    assert series[1].close == 101.0
    assert result.diagnostics.synthesized["close"] == 3
    assert '1 invalid values in column "Close" (close)' in result.diagnostics.warnings
    assert '1 invalid values in column "Volume" (volume)' in result.diagnostics.warnings
    _assert_series_invariants(series)


def test_no_date_column_uses_placeholders(write_csv, today, rng) -> None:
    rows = [["100", "104", "99", str(100 + index), "1000"] for index in range(6)]
    path = write_csv("nodates.csv", PLAIN_HEADERS[1:], rows)

    result = ingest_file(path, today=today, rng=rng)

    expected = [today - datetime.timedelta(days=6 - index) for index in range(6)]
    assert [row.date for row in result.series] == expected
    assert [row.close for row in result.series] == [100.0 + index for index in range(6)]
    assert any("No date column" in warning for warning in result.diagnostics.warnings)


def test_unparseable_date_gets_placeholder(write_csv, today, rng) -> None:
    rows = [[f"2025-01-{day:02d}", "100", "104", "99", "102", "1000"] for day in range(2, 7)]
    rows.insert(2, ["??", "100", "104", "99", "150", "1000"])
    path = write_csv("baddate.csv", PLAIN_HEADERS, rows)

    result = ingest_file(path, today=today, rng=rng)

    assert result.series[-1].date == today - datetime.timedelta(days=6 - 2)
    assert result.series[-1].close == 150.0
    assert "1 rows had unparseable dates; placeholders used" in result.diagnostics.warnings


def test_seeded_runs_are_reproducible(write_csv, today) -> None:
    rows = [[f"2025-01-{day:02d}", "", "", "", "", ""] for day in range(2, 9)]
    path = write_csv("empty_prices.csv", PLAIN_HEADERS, rows)

    first = ingest_file(path, today=today, rng=random.Random(99)).series
    second = ingest_file(path, today=today, rng=random.Random(99)).series

    assert first == second
    _assert_series_invariants(first)


def test_workbook_upload(write_xlsx, today, rng) -> None:
    rows = [
        [f"2025-01-{day:02d}", 100.0 + day, 104.0 + day, 99.0 + day, 102.0 + day, 1000 + day]
        for day in range(2, 9)
    ]
    path = write_xlsx("prices.xlsx", PLAIN_HEADERS, rows)

    result = ingest_file(path, today=today, rng=rng)

    assert len(result.series) == 7
    assert result.series[0].close == 104.0
    assert result.series[0].volume == 1002
    assert result.source_name == "prices.xlsx"


def test_ingest_table_and_contract_records(today, rng) -> None:
    frame = pd.DataFrame(
        [[f"2025-01-{day:02d}", "100", "104", "99", "102", "1000"] for day in range(2, 8)],
        columns=PLAIN_HEADERS,
    )
    table = RawTable(headers=PLAIN_HEADERS, frame=frame, source_name="inline")

    result = ingest_table(table, today=today, rng=rng)

    records = result.series.to_records(last=2)
    assert len(records) == 2
    assert list(records[0]) == list(CONTRACT_COLUMNS)
    assert records[-1]["Date"] == "2025-01-07"
    assert set(result.diagnostics.column_confidence) >= {"close", "volume"}
    assert result.diagnostics.row_count == 6


def test_price_suffixed_headers_keep_the_close_column(write_csv, today, rng) -> None:
    headers = ["Date", "Open Price", "High Price", "Low Price", "Close Price", "Volume"]
    rows = [
        [f"2025-01-{day:02d}", "100", str(210 + day), "95", str(200 + day), "1000"]
        for day in range(2, 9)
    ]
    path = write_csv("priced.csv", headers, rows)

    result = ingest_file(path, today=today, rng=rng)

    assert [row.close for row in result.series] == [202.0 + index for index in range(7)]
    assert [row.open for row in result.series] == [100.0] * 7
    assert result.mapping.source_for("close") == "Close Price"
    assert "open" not in result.diagnostics.synthesized
    assert "close" not in result.diagnostics.synthesized
