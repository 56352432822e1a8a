"""Read uploaded delimited-text and workbook files into raw header-keyed rows."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

import pandas as pd

from config.settings import (
    DELIMITED_EXTENSIONS,
    MAX_UPLOAD_BYTES,
    MAX_UPLOAD_MB,
    SPREADSHEET_EXTENSIONS,
    SUPPORTED_EXTENSIONS,
)
from core.exceptions import EmptyFileError, FileTooLargeError, MalformedFileError, UnsupportedFileError

_EXCEL_ENGINES = {
    ".xls": "xlrd",
    ".xlsb": "pyxlsb",
}
_BLANK_TOKENS = {"", "nan", "nat", "none", "<na>"}
SNIFF_DELIMITERS = ",\t;|"
SNIFF_SAMPLE_CHARS = 64 * 1024

LOGGER = logging.getLogger("stocklens.reader")


@dataclass(frozen=True)
class RawTable:
    """Header list plus untouched cell values, one row per input record."""

    headers: list[str]
    frame: pd.DataFrame
    source_name: str

    def __len__(self) -> int:
        return len(self.frame)

    def rows(self) -> Iterator[dict[str, Any]]:
        for record in self.frame.to_dict(orient="records"):
            yield record


def file_extension(name: str) -> str:
    return Path(name).suffix.lower()


def check_upload(name: str, size_bytes: int) -> str:
    """Reject unsupported or oversized uploads before any parsing; returns the extension."""
    extension = file_extension(name)
    if extension not in SUPPORTED_EXTENSIONS:
        accepted = ", ".join(SUPPORTED_EXTENSIONS)
        raise UnsupportedFileError(f"Please upload a CSV, text or Excel file ({accepted})")
    if size_bytes > MAX_UPLOAD_BYTES:
        raise FileTooLargeError(f"File size must be less than {MAX_UPLOAD_MB}MB")
    return extension


def _sniff_delimiter(sample: str) -> str:
    """Pick the delimiter among comma, tab, semicolon and pipe; comma when unsure."""
    try:
        return csv.Sniffer().sniff(sample, delimiters=SNIFF_DELIMITERS).delimiter
    except csv.Error:
        return ","


def _read_delimited(path: Path) -> pd.DataFrame:
    options = {"dtype": str, "keep_default_na": False, "skip_blank_lines": True}
    for encoding in ("utf-8-sig", "latin-1"):
        try:
            with path.open("r", encoding=encoding, newline="") as handle:
                sample = handle.read(SNIFF_SAMPLE_CHARS)
            if not sample.strip():
                raise EmptyFileError("File is empty")
            return pd.read_csv(path, sep=_sniff_delimiter(sample), encoding=encoding, **options)
        except UnicodeDecodeError:
            LOGGER.info("Retrying %s with latin-1 encoding", path.name)
            continue
        except pd.errors.EmptyDataError as exc:
            raise EmptyFileError("File is empty") from exc
        except pd.errors.ParserError as exc:
            raise MalformedFileError(f"Failed to parse delimited file: {exc}") from exc
    raise MalformedFileError("Failed to decode delimited file")


def _read_workbook(path: Path, extension: str) -> pd.DataFrame:
    """First worksheet only, header row taken from row one."""
    engine = _EXCEL_ENGINES.get(extension, "openpyxl")
    try:
        return pd.read_excel(path, sheet_name=0, engine=engine)
    except ImportError:
        raise
    except Exception as exc:
        raise MalformedFileError(f"Failed to read spreadsheet: {exc}") from exc


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        return False
    return str(value).strip().lower() in _BLANK_TOKENS


def _tidy(frame: pd.DataFrame) -> pd.DataFrame:
    """Trim headers, drop placeholder columns and fully blank rows."""
    tidy = frame.copy()
    tidy.columns = [str(column).strip() for column in tidy.columns]
    if tidy.empty:
        return tidy

    blank = tidy.apply(lambda column: column.map(is_blank))
    placeholder_columns = [
        column for column in tidy.columns
        if (not column or column.startswith("Unnamed:")) and bool(blank[column].all())
    ]
    if placeholder_columns:
        tidy = tidy.drop(columns=placeholder_columns)
        blank = blank.drop(columns=placeholder_columns)

    if tidy.columns.empty:
        return tidy
    return tidy.loc[~blank.all(axis=1)].reset_index(drop=True)


def read_upload(path: str | Path, original_name: str | None = None) -> RawTable:
    """
    Read one uploaded file and return its raw rows.

    The extension is taken from `original_name` when given (uploads are
    usually saved under a temporary name).

    Raises:
        UnsupportedFileError: Unknown extension.
        FileTooLargeError: File is over the size ceiling.
        EmptyFileError: No data rows.
        MalformedFileError: File could not be parsed.
    """
    file_path = Path(path)
    name = original_name or file_path.name
    if not file_path.exists():
        raise FileNotFoundError(f"Upload not found: {file_path}")

    extension = check_upload(name, file_path.stat().st_size)

    if extension in DELIMITED_EXTENSIONS:
        frame = _read_delimited(file_path)
    elif extension in SPREADSHEET_EXTENSIONS:
        frame = _read_workbook(file_path, extension)
    else:
        raise UnsupportedFileError(f"Unsupported file type: {extension}")

    frame = _tidy(frame)
    if frame.empty:
        raise EmptyFileError("File has a header row but no data rows")

    LOGGER.info("Read %s: %d rows, %d columns", name, len(frame), len(frame.columns))
    return RawTable(headers=list(frame.columns), frame=frame, source_name=name)
