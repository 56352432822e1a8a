"""Upload ingestion: read, map columns, parse cells, sort, reconcile."""

from __future__ import annotations

import datetime
import logging
import random
from collections import Counter, defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from config.settings import MIN_ROWS, RANDOM_SEED
from core.column_mapper import ColumnMapper, MappingResult
from core.data_reader import RawTable, is_blank, read_upload
from core.date_parser import ParsedDate, parse_date, validate_date_range
from core.exceptions import InsufficientDataError
from core.models import CanonicalSeries, IngestionDiagnostics
from core.number_parser import PRICE, VOLUME, ParsedNumber, calculate_statistics, parse_number
from core.reconciler import ReconciliationPolicy

NUMBER_CONTEXTS = {
    "open": PRICE,
    "high": PRICE,
    "low": PRICE,
    "close": PRICE,
    "prev_close": PRICE,
    "ltp": PRICE,
    "vwap": PRICE,
    "value": PRICE,
    "week52_high": PRICE,
    "week52_low": PRICE,
    "volume": VOLUME,
    "trades": VOLUME,
}
MAX_ROW_WARNINGS = 10

LOGGER = logging.getLogger("stocklens.ingest")


@dataclass(frozen=True)
class IngestionResult:
    """A completed upload: the series plus everything the UI shows about its quality."""

    series: CanonicalSeries
    mapping: MappingResult
    diagnostics: IngestionDiagnostics
    source_name: str


@dataclass(frozen=True)
class _PendingRow:
    file_index: int
    date: datetime.date
    numbers: dict[str, ParsedNumber]
    series: str | None


class _DiagnosticsBuilder:
    """Collects warnings during one ingestion; frozen into IngestionDiagnostics at the end."""

    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.row_warnings: list[str] = []
        self.synthesized: Counter[str] = Counter()
        self.unparsed: Counter[str] = Counter()
        self.column_confidence: dict[str, float] = {}
        self.date_issues: list[str] = []

    def freeze(self, *, row_count: int, source_rows: int, mapping: MappingResult, mapping_issues: list[str]) -> IngestionDiagnostics:
        warnings = list(self.warnings)
        for field_name, count in sorted(self.unparsed.items()):
            source = mapping.source_for(field_name)
            warnings.append(f'{count} invalid values in column "{source}" ({field_name})')
        warnings.extend(self.row_warnings[:MAX_ROW_WARNINGS])
        if len(self.row_warnings) > MAX_ROW_WARNINGS:
            warnings.append(f"...and {len(self.row_warnings) - MAX_ROW_WARNINGS} more row warnings")

        return IngestionDiagnostics(
            row_count=row_count,
            source_rows=source_rows,
            mapping_confidence=mapping.confidence,
            suggestions=list(mapping.suggestions),
            mapping_issues=list(mapping_issues),
            warnings=warnings,
            date_issues=list(self.date_issues),
            synthesized=dict(self.synthesized),
            column_confidence=dict(self.column_confidence),
            unmapped_columns=list(mapping.unmapped_columns),
        )


def _cell(record: dict[str, Any], header: str | None) -> Any:
    if header is None:
        return None
    return record.get(header)


def _series_code(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in {"nan", "none"}:
        return None
    return text


def ingest_table(
    table: RawTable,
    *,
    mapper: ColumnMapper | None = None,
    policy: ReconciliationPolicy | None = None,
    rng: random.Random | None = None,
    today: datetime.date | None = None,
    min_rows: int = MIN_ROWS,
) -> IngestionResult:
    """
    Normalize raw rows into a CanonicalSeries.

    Dates are parsed first and rows stably sorted by date, then each row is
    reconciled in date order so previous close always refers to the prior
    trading row. Rows without a usable date get placeholders counting back
    from today in file order.

    Raises:
        InsufficientDataError: Fewer than `min_rows` rows.
    """
    mapper = mapper or ColumnMapper()
    if policy is None:
        policy = ReconciliationPolicy(rng=rng if rng is not None else random.Random(RANDOM_SEED))
    reference_day = today or datetime.date.today()
    diagnostics = _DiagnosticsBuilder()

    mapping, claim_warnings = mapper.assign_unique(mapper.map_columns(table.headers))
    validation = mapper.validate_mappings(mapping)
    for issue in validation.issues:
        LOGGER.warning("%s: %s", table.source_name, issue)

    sources = {name: item.original_name for name, item in mapping.mapped().items()}
    diagnostics.warnings.extend(claim_warnings)
    date_source = sources.get("date")
    if date_source is None:
        diagnostics.warnings.append("No date column found; using placeholder dates counting back from today")

    records = list(table.rows())
    total = len(records)
    parsed_dates: list[ParsedDate] = []
    parsed_columns: dict[str, list[ParsedNumber]] = defaultdict(list)
    pending: list[_PendingRow] = []
    placeholder_dates = 0

    for index, record in enumerate(records):
        row_date: datetime.date | None = None
        if date_source is not None:
            parsed_date = parse_date(_cell(record, date_source), today=reference_day)
            parsed_dates.append(parsed_date)
            if parsed_date.is_valid:
                row_date = parsed_date.date
        if row_date is None:
            placeholder_dates += 1
            row_date = reference_day - datetime.timedelta(days=total - index)

        numbers: dict[str, ParsedNumber] = {}
        for field_name, context in NUMBER_CONTEXTS.items():
            header = sources.get(field_name)
            if header is None:
                continue
            raw_value = _cell(record, header)
            parsed = parse_number(raw_value, context)
            numbers[field_name] = parsed
            parsed_columns[field_name].append(parsed)
            if not parsed.is_valid and not is_blank(raw_value):
                diagnostics.unparsed[field_name] += 1

        pending.append(
            _PendingRow(
                file_index=index,
                date=row_date,
                numbers=numbers,
                series=_series_code(_cell(record, sources.get("series"))),
            )
        )

    if date_source is not None and placeholder_dates:
        diagnostics.warnings.append(f"{placeholder_dates} rows had unparseable dates; placeholders used")

    pending.sort(key=lambda item: item.date)

    rows = []
    previous_close: float | None = None
    for item in pending:
        reconciled = policy.reconcile(item.date, item.numbers, series=item.series, previous_close=previous_close)
        rows.append(reconciled.row)
        diagnostics.synthesized.update(reconciled.synthesized)
        diagnostics.row_warnings.extend(reconciled.warnings)
        previous_close = reconciled.row.close

    if len(rows) < min_rows:
        LOGGER.warning("%s: only %d rows, need %d", table.source_name, len(rows), min_rows)
        raise InsufficientDataError(len(rows), min_rows)

    if parsed_dates:
        diagnostics.date_issues.extend(validate_date_range(parsed_dates).issues)
    for field_name, parsed_values in parsed_columns.items():
        diagnostics.column_confidence[field_name] = calculate_statistics(parsed_values).confidence

    series = CanonicalSeries(rows=tuple(rows))
    result = IngestionResult(
        series=series,
        mapping=mapping,
        diagnostics=diagnostics.freeze(
            row_count=len(rows),
            source_rows=total,
            mapping=mapping,
            mapping_issues=validation.issues,
        ),
        source_name=table.source_name,
    )
    LOGGER.info(
        "Ingested %s: %d rows %s..%s, mapping confidence %.2f",
        table.source_name,
        len(series),
        series.start_date,
        series.end_date,
        mapping.confidence,
    )
    return result


def ingest_file(
    path: str | Path,
    original_name: str | None = None,
    *,
    mapper: ColumnMapper | None = None,
    policy: ReconciliationPolicy | None = None,
    rng: random.Random | None = None,
    today: datetime.date | None = None,
    min_rows: int = MIN_ROWS,
) -> IngestionResult:
    """Read an uploaded file and normalize it; see `ingest_table`."""
    table = read_upload(path, original_name)
    return ingest_table(table, mapper=mapper, policy=policy, rng=rng, today=today, min_rows=min_rows)
