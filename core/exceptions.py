"""File-level ingestion failures. Cell- and column-level problems never raise."""

from __future__ import annotations


class IngestionError(ValueError):
    """An upload could not be turned into a usable series."""


class UnsupportedFileError(IngestionError):
    """Extension is not one of the accepted text or workbook types."""


class FileTooLargeError(IngestionError):
    """Upload exceeds the configured size ceiling."""


class EmptyFileError(IngestionError):
    """File parsed but holds no data rows."""


class MalformedFileError(IngestionError):
    """File could not be parsed at all."""


class InsufficientDataError(IngestionError):
    """Too few rows survived normalization for analysis."""

    def __init__(self, row_count: int, minimum: int) -> None:
        self.row_count = row_count
        self.minimum = minimum
        super().__init__(f"Insufficient data. Please provide at least {minimum} rows for analysis.")
