"""JSON payload helpers for StockLens UI API routes and exports."""

from __future__ import annotations

from datetime import datetime, timezone
import math
from typing import Any

from core.column_mapper import MappingResult
from core.predictor import Prediction
from ui.models import UploadViewModel

EXPORT_ROW_COUNT = 5
SERIES_DEFAULT_LIMIT = 250
SERIES_MAX_LIMIT = 5000


def parse_int(raw_value: str | None, default: int, min_value: int, max_value: int) -> int:
    """Parse bounded int from request args."""
    try:
        value = int(raw_value) if raw_value is not None else default
    except (TypeError, ValueError):
        value = default
    return max(min_value, min(max_value, value))


def _rounded(value: float | None, digits: int = 2) -> float | None:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return round(value, digits)


def serialize_mapping(mapping: MappingResult) -> dict[str, Any]:
    """Matched columns only, plus the headers nothing claimed."""
    return {
        "confidence": round(mapping.confidence, 3),
        "columns": {
            name: {
                "source": item.original_name,
                "confidence": round(item.confidence, 3),
                "description": item.description,
            }
            for name, item in mapping.mapped().items()
        },
        "unmapped_columns": list(mapping.unmapped_columns),
        "suggestions": list(mapping.suggestions),
    }


def serialize_trends(view: UploadViewModel) -> dict[str, Any]:
    trends = view.analysis.trends
    return {
        "sma20": _rounded(trends.sma20),
        "sma50": _rounded(trends.sma50),
        "rsi": _rounded(trends.rsi),
        "macd": _rounded(trends.macd, 4),
        "trend_direction": trends.trend_direction,
        "support": _rounded(trends.support),
        "resistance": _rounded(trends.resistance),
        "volume_trend": trends.volume_trend,
        "volatility": _rounded(trends.volatility, 4),
        "recommendation": trends.recommendation,
        "insights": list(view.analysis.insights),
    }


def serialize_prediction(prediction: Prediction) -> dict[str, Any]:
    return {
        "simulated": prediction.simulated,
        "target_price": round(prediction.target_price, 2),
        "predicted_high": round(prediction.predicted_high, 2),
        "predicted_low": round(prediction.predicted_low, 2),
        "confidence": round(prediction.confidence, 4),
        "volatility": round(prediction.volatility, 4),
        "recommendation": prediction.recommendation,
        "risk_level": prediction.risk_level,
        "risk_score": prediction.risk_score,
        "anomaly_score": round(prediction.anomaly_score, 2),
        "anomalies": [item.to_dict() for item in prediction.anomalies],
        "probabilities": prediction.probabilities.to_dict() if prediction.probabilities else None,
        "models": {
            item.name: {
                "prediction": round(item.prediction, 2),
                "confidence": item.confidence,
                "weight": item.weight,
            }
            for item in prediction.models
        },
    }


def upload_summary(view: UploadViewModel) -> dict[str, Any]:
    """Response body for a successful upload."""
    series = view.result.series
    return {
        "token": view.token,
        "source_name": view.source_name,
        "rows": len(series),
        "start_date": series.start_date.isoformat(),
        "end_date": series.end_date.isoformat(),
        "uploaded_at": view.uploaded_at.isoformat(timespec="seconds"),
        "mapping": serialize_mapping(view.result.mapping),
        "diagnostics": view.result.diagnostics.to_dict(),
    }


def series_payload(view: UploadViewModel, limit: int) -> dict[str, Any]:
    series = view.result.series
    return {
        "source_name": view.source_name,
        "total_rows": len(series),
        "columns": list(series.to_contract_frame().columns),
        "rows": series.to_records(last=limit),
    }


def build_export_payload(view: UploadViewModel, now: datetime | None = None) -> dict[str, Any]:
    """
    Downloadable analysis bundle.

    Holds the prediction, trend summary, an ISO timestamp, the last five
    contract-named rows and a metadata block.
    """
    timestamp = now or datetime.now(timezone.utc)
    prediction = view.prediction
    return {
        "predictions": serialize_prediction(prediction),
        "trends": serialize_trends(view),
        "timestamp": timestamp.isoformat(),
        "originalData": view.result.series.to_records(last=EXPORT_ROW_COUNT),
        "metadata": {
            "source": view.source_name,
            "dataPoints": len(view.result.series),
            "confidence": round(prediction.confidence, 4),
            "riskLevel": prediction.risk_level,
            "mappingConfidence": round(view.result.mapping.confidence, 3),
        },
    }
