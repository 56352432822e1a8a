"""UI data models for the upload dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import threading
from typing import Callable

from core.analyst import StockAnalysis
from core.ingestion import IngestionResult
from core.predictor import Prediction


@dataclass(frozen=True)
class UploadViewModel:
    """Everything the dashboard renders for the current upload."""

    token: int
    uploaded_at: datetime
    result: IngestionResult
    analysis: StockAnalysis
    prediction: Prediction
    interactive_chart_html: str | None = None
    chart_path: str | None = None

    @property
    def source_name(self) -> str:
        return self.result.source_name

    @property
    def row_count(self) -> int:
        return len(self.result.series)

    @property
    def date_range_label(self) -> str:
        series = self.result.series
        return f"{series.start_date:%Y-%m-%d} to {series.end_date:%Y-%m-%d}"


class UploadState:
    """
    The one current upload of this process.

    Each upload takes a token when it starts. A finished upload is installed
    only if no newer upload has started since, so a slow older file never
    replaces a newer one. Failed uploads never touch the current view.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._latest_token = 0
        self._current: UploadViewModel | None = None

    def begin(self) -> int:
        with self._lock:
            self._latest_token += 1
            return self._latest_token

    def is_latest(self, token: int) -> bool:
        with self._lock:
            return token == self._latest_token

    def install(
        self,
        view: UploadViewModel,
        on_replaced: Callable[[UploadViewModel], None] | None = None,
    ) -> bool:
        """Make `view` current if its token is still the newest; hand the view it replaces to `on_replaced`."""
        with self._lock:
            if view.token != self._latest_token:
                return False
            previous, self._current = self._current, view
        if previous is not None and on_replaced is not None:
            on_replaced(previous)
        return True

    def current(self) -> UploadViewModel | None:
        with self._lock:
            return self._current
