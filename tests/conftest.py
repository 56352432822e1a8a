"""Shared fixtures for the StockLens test suite."""

from __future__ import annotations

import csv
import datetime
import random
from pathlib import Path
from typing import Callable, Sequence

import pandas as pd
import pytest

NSE_HEADERS = [
    "Date ", "series ", "OPEN ", "HIGH ", "LOW ", "PREV. CLOSE ", "ltp ", "close ",
    "vwap ", "52W H ", "52W L ", "VOLUME ", "VALUE ", "No of trades ",
]


@pytest.fixture
def today() -> datetime.date:
    return datetime.date(2025, 7, 31)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[..., Path]:
    """Write rows to a delimited file and return its path."""

    def _write(name: str, headers: Sequence[str], rows: Sequence[Sequence[object]], delimiter: str = ",") -> Path:
        path = tmp_path / name
        with path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle, delimiter=delimiter)
            writer.writerow(headers)
            writer.writerows(rows)
        return path

    return _write


@pytest.fixture
def write_xlsx(tmp_path: Path) -> Callable[..., Path]:
    """Write rows to the first sheet of an xlsx workbook."""

    def _write(name: str, headers: Sequence[str], rows: Sequence[Sequence[object]]) -> Path:
        path = tmp_path / name
        frame = pd.DataFrame(list(rows), columns=list(headers))
        frame.to_excel(path, index=False, sheet_name="Prices", engine="openpyxl")
        return path

    return _write


def nse_rows(count: int, start: datetime.date = datetime.date(2025, 3, 3), newest_first: bool = True) -> list[list[str]]:
    """Exchange-style export rows with comma-grouped numbers, newest first like NSE downloads."""
    rows: list[list[str]] = []
    close = 1500.0
    for index in range(count):
        day = start + datetime.timedelta(days=index)
        previous = close
        close = round(previous * (1.01 if index % 3 else 0.985), 2)
        open_price = round(previous * 1.002, 2)
        high = round(max(open_price, close) * 1.01, 2)
        low = round(min(open_price, close) * 0.99, 2)
        volume = 120_000 + index * 1_000
        rows.append(
            [
                day.strftime("%d-%b-%Y"),
                "EQ",
                f"{open_price:,.2f}",
                f"{high:,.2f}",
                f"{low:,.2f}",
                f"{previous:,.2f}",
                f"{close:,.2f}",
                f"{close:,.2f}",
                f"{(high + low + close) / 3:,.2f}",
                "1,900.00",
                "1,100.00",
                f"{volume:,}",
                f"{volume * close:,.2f}",
                f"{volume // 90:,}",
            ]
        )
    if newest_first:
        rows.reverse()
    return rows


@pytest.fixture
def nse_csv(write_csv: Callable[..., Path]) -> Path:
    return write_csv("RELIANCE.csv", NSE_HEADERS, nse_rows(30))


@pytest.fixture
def make_nse_rows() -> Callable[..., list[list[str]]]:
    return nse_rows
