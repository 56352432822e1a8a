"""Canonical series data model shared by charts, indicators and exports."""

from __future__ import annotations

import datetime
from dataclasses import asdict, dataclass, field, fields
from typing import Any

import pandas as pd

from config.fields import CONTRACT_COLUMNS, DEFAULT_FIELDS

OUTPUT_NAMES = DEFAULT_FIELDS.output_names()


@dataclass(frozen=True)
class CanonicalRow:
    """One normalized trading day."""

    date: datetime.date
    series: str
    open: float
    high: float
    low: float
    prev_close: float
    ltp: float
    close: float
    vwap: float
    week52_high: float
    week52_low: float
    volume: int
    value: float
    trades: int

    def to_contract(self) -> dict[str, Any]:
        """Row keyed by the contract column names."""
        record = {OUTPUT_NAMES[key]: value for key, value in asdict(self).items()}
        record["Date"] = self.date.isoformat()
        return {column: record[column] for column in CONTRACT_COLUMNS}


ROW_FIELDS = tuple(item.name for item in fields(CanonicalRow))


@dataclass(frozen=True)
class CanonicalSeries:
    """Date-ascending, immutable sequence of normalized rows."""

    rows: tuple[CanonicalRow, ...]

    def __post_init__(self) -> None:
        for previous, current in zip(self.rows, self.rows[1:]):
            if current.date < previous.date:
                raise ValueError("CanonicalSeries rows must be sorted by date")

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    def __getitem__(self, index):
        return self.rows[index]

    @property
    def start_date(self) -> datetime.date | None:
        return self.rows[0].date if self.rows else None

    @property
    def end_date(self) -> datetime.date | None:
        return self.rows[-1].date if self.rows else None

    def to_frame(self) -> pd.DataFrame:
        """Internal snake_case frame with a datetime64 `date` column."""
        frame = pd.DataFrame([asdict(row) for row in self.rows], columns=list(ROW_FIELDS))
        frame["date"] = pd.to_datetime(frame["date"])
        return frame

    def to_contract_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.to_records(), columns=list(CONTRACT_COLUMNS))

    def to_records(self, last: int | None = None) -> list[dict[str, Any]]:
        rows = self.rows
        if last is not None:
            rows = self.rows[-last:] if last > 0 else ()
        return [row.to_contract() for row in rows]


@dataclass(frozen=True)
class IngestionDiagnostics:
    """Per-upload quality report shown next to the chart."""

    row_count: int
    source_rows: int
    mapping_confidence: float
    suggestions: list[str] = field(default_factory=list)
    mapping_issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    date_issues: list[str] = field(default_factory=list)
    synthesized: dict[str, int] = field(default_factory=dict)
    column_confidence: dict[str, float] = field(default_factory=dict)
    unmapped_columns: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
