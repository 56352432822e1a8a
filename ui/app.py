"""Local Flask UI: upload a price file, inspect the normalized series and its analysis."""

from __future__ import annotations

from datetime import datetime
import io
import json
import logging
import os
from pathlib import Path
import random
import sys
import tempfile
from typing import Any

MPL_CONFIG_DIR = os.path.join(tempfile.gettempdir(), "matplotlib")
os.environ.setdefault("MPLCONFIGDIR", MPL_CONFIG_DIR)
os.makedirs(MPL_CONFIG_DIR, exist_ok=True)

import matplotlib

matplotlib.use("Agg")

from flask import Flask, got_request_exception, jsonify, redirect, render_template, request, send_file, url_for
from plotly.offline import get_plotlyjs
from werkzeug.exceptions import RequestEntityTooLarge

# Make `python ui/app.py` work without external PYTHONPATH setup.
THIS_DIR = Path(__file__).resolve().parent
PROJECT_DIR = THIS_DIR.parent
if str(PROJECT_DIR) not in sys.path:
    sys.path.insert(0, str(PROJECT_DIR))

from config.settings import BASE_DIR, LOG_DIR, MAX_UPLOAD_BYTES, MAX_UPLOAD_MB, MIN_ROWS, RANDOM_SEED, REPORTS_DIR
from core.analyst import StockAnalyst
from core.data_reader import file_extension
from core.exceptions import FileTooLargeError, IngestionError
from core.ingestion import ingest_file
from core.predictor import simulate_prediction
from core.visualizer import save_stock_chart
from ui.api import (
    SERIES_DEFAULT_LIMIT,
    SERIES_MAX_LIMIT,
    build_export_payload,
    parse_int,
    serialize_prediction,
    serialize_trends,
    series_payload,
    upload_summary,
)
from ui.charts import build_interactive_chart
from ui.models import UploadState, UploadViewModel
from ui.utils.pdf_exporter import build_analysis_pdf


BASE_PATH = Path(BASE_DIR)
UI_DIR = BASE_PATH / "ui"
STATIC_DIR = UI_DIR / "static"
CHARTS_DIR = Path(REPORTS_DIR) / "charts"

PLOTLY_VENDOR_RELATIVE_PATH = "vendor/plotly.min.js"
PLOTLY_VENDOR_PATH = STATIC_DIR / PLOTLY_VENDOR_RELATIVE_PATH

# Multipart framing on top of the file itself
UPLOAD_OVERHEAD_BYTES = 1024 * 1024

NO_DATA_MESSAGE = "No data uploaded yet. Upload a CSV or Excel file first."
DISCLAIMER = (
    "Disclaimer: predictions are simulated from random perturbations of the last close. "
    "They are not investment advice."
)


def _configure_ui_logger() -> logging.Logger:
    """Configure file logger for the UI app."""
    logs_dir = Path(LOG_DIR)
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / "ui.log"

    logger = logging.getLogger("stocklens.ui")
    logger.setLevel(logging.INFO)
    logger.propagate = False

    existing = None
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            existing = handler
            break

    if existing is None:
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
        logger.addHandler(handler)

    return logger


def _wants_json() -> bool:
    return request.path.startswith("/api/")


def create_app(config: dict[str, Any] | None = None) -> Flask:
    """Create and configure the local Flask application."""
    app = Flask(
        __name__,
        template_folder=str(UI_DIR / "templates"),
        static_folder=str(STATIC_DIR),
    )
    app.config["TEMPLATES_AUTO_RELOAD"] = True
    app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_BYTES + UPLOAD_OVERHEAD_BYTES
    app.config["STOCKLENS_RANDOM_SEED"] = RANDOM_SEED
    app.config["STOCKLENS_MIN_ROWS"] = MIN_ROWS
    app.config["STOCKLENS_CHARTS_DIR"] = str(CHARTS_DIR)
    if config:
        app.config.update(config)

    charts_dir = Path(app.config["STOCKLENS_CHARTS_DIR"])
    charts_dir.mkdir(parents=True, exist_ok=True)
    PLOTLY_VENDOR_PATH.parent.mkdir(parents=True, exist_ok=True)
    logger = _configure_ui_logger()
    logger.info("UI app initialized")

    if not PLOTLY_VENDOR_PATH.exists():
        try:
            PLOTLY_VENDOR_PATH.write_text(get_plotlyjs(), encoding="utf-8")
            logger.info("Wrote local Plotly bundle: %s", PLOTLY_VENDOR_PATH)
        except OSError as exc:
            logger.warning("Failed to write local Plotly bundle: %s", exc)

    analyst = StockAnalyst()
    upload_state = UploadState()
    app.extensions["stocklens_uploads"] = upload_state

    def _discard_chart(view: UploadViewModel) -> None:
        if view.chart_path:
            Path(view.chart_path).unlink(missing_ok=True)

    def _process_upload() -> tuple[UploadViewModel | None, str | None, int]:
        """Ingest the posted file. Returns (installed view, error message, status)."""
        upload = request.files.get("file")
        if upload is None or not upload.filename:
            return None, "Please choose a file to upload.", 400

        token = upload_state.begin()
        filename = upload.filename
        fd, temp_path = tempfile.mkstemp(suffix=file_extension(filename))
        os.close(fd)
        try:
            upload.save(temp_path)
            rng = random.Random(app.config["STOCKLENS_RANDOM_SEED"])
            result = ingest_file(
                temp_path,
                original_name=filename,
                rng=rng,
                min_rows=app.config["STOCKLENS_MIN_ROWS"],
            )
        except FileTooLargeError as exc:
            logger.warning("Rejected upload %s: %s", filename, exc)
            return None, str(exc), 413
        except IngestionError as exc:
            logger.warning("Rejected upload %s: %s", filename, exc)
            return None, str(exc), 400
        finally:
            os.unlink(temp_path)

        if not upload_state.is_latest(token):
            logger.info("Upload %s (token %d) superseded before analysis", filename, token)
            return None, "A newer upload replaced this one.", 409

        analysis = analyst.analyze(result.series, source_name=result.source_name)
        chart_path = save_stock_chart(analysis, charts_dir / f"upload_{token}.png")
        view = UploadViewModel(
            token=token,
            uploaded_at=datetime.now(),
            result=result,
            analysis=analysis,
            prediction=simulate_prediction(analysis, rng),
            interactive_chart_html=build_interactive_chart(analysis),
            chart_path=str(chart_path),
        )
        if not upload_state.install(view, on_replaced=_discard_chart):
            _discard_chart(view)
            logger.info("Upload %s (token %d) superseded", filename, token)
            return None, "A newer upload replaced this one.", 409

        logger.info("Installed upload %s (token %d, %d rows)", filename, token, view.row_count)
        return view, None, 200

    def _render_dashboard(error: str | None = None, status: int = 200):
        return (
            render_template(
                "index.html",
                view=upload_state.current(),
                error=error,
                max_upload_mb=MAX_UPLOAD_MB,
                plotly_src=url_for("static", filename=PLOTLY_VENDOR_RELATIVE_PATH),
            ),
            status,
        )

    def _no_data():
        return jsonify({"error": NO_DATA_MESSAGE}), 404

    @app.route("/")
    def index():
        """Dashboard: upload form, diagnostics, chart, trends and prediction."""
        return _render_dashboard()

    @app.route("/upload", methods=["POST"])
    def upload():
        view, error, status = _process_upload()
        if view is None:
            return _render_dashboard(error=error, status=status)
        return redirect(url_for("index"))

    @app.route("/api/upload", methods=["POST"])
    def api_upload():
        view, error, status = _process_upload()
        if view is None:
            return jsonify({"error": error}), status
        return jsonify(upload_summary(view))

    @app.route("/api/series")
    def api_series():
        view = upload_state.current()
        if view is None:
            return _no_data()
        limit = parse_int(request.args.get("limit"), SERIES_DEFAULT_LIMIT, 1, SERIES_MAX_LIMIT)
        return jsonify(series_payload(view, limit))

    @app.route("/api/diagnostics")
    def api_diagnostics():
        view = upload_state.current()
        if view is None:
            return _no_data()
        return jsonify(upload_summary(view))

    @app.route("/api/trends")
    def api_trends():
        view = upload_state.current()
        if view is None:
            return _no_data()
        return jsonify(serialize_trends(view))

    @app.route("/api/prediction")
    def api_prediction():
        view = upload_state.current()
        if view is None:
            return _no_data()
        return jsonify(serialize_prediction(view.prediction))

    @app.route("/export/json")
    def export_json():
        view = upload_state.current()
        if view is None:
            return _no_data()
        payload = build_export_payload(view)
        buffer = io.BytesIO(json.dumps(payload, indent=2).encode("utf-8"))
        return send_file(
            buffer,
            as_attachment=True,
            download_name=f"stock-analysis-{datetime.now():%Y-%m-%d}.json",
            mimetype="application/json",
        )

    @app.route("/export/pdf")
    def export_pdf():
        """Export the current upload's analysis as a PDF report built in a scratch directory."""
        view = upload_state.current()
        if view is None:
            return _no_data()

        trends = view.analysis.trends
        prediction = view.prediction
        diagnostics = view.result.diagnostics
        trend_lines = [
            f"Direction: {trends.trend_direction}",
            f"Support / resistance (20 sessions): {trends.support:.2f} / {trends.resistance:.2f}",
            f"RSI 14: {trends.rsi:.2f}" if trends.rsi is not None else "RSI 14: not enough data",
            f"Volume trend: {trends.volume_trend}",
            f"Annualized volatility: {trends.volatility * 100:.1f}%",
            *view.analysis.insights,
        ]
        prediction_lines = [
            f"Target price: {prediction.target_price:.2f}",
            f"Range: {prediction.predicted_low:.2f} - {prediction.predicted_high:.2f}",
            f"Confidence: {prediction.confidence * 100:.1f}%",
            f"Risk level: {prediction.risk_level}",
            f"Anomaly score: {prediction.anomaly_score:.0f}",
        ]
        if prediction.probabilities is not None:
            odds = prediction.probabilities
            prediction_lines.append(
                f"Bullish / bearish / neutral: {odds.bullish:.0%} / {odds.bearish:.0%} / {odds.neutral:.0%}"
            )
        prediction_lines.extend(
            f"{item.date:%Y-%m-%d} {item.severity}: {item.description}" for item in prediction.anomalies
        )
        synthesized = ", ".join(f"{name} x{count}" for name, count in sorted(diagnostics.synthesized.items()))
        diagnostic_lines = [
            f"Rows: {diagnostics.row_count} (source {diagnostics.source_rows})",
            f"Column mapping confidence: {diagnostics.mapping_confidence * 100:.1f}%",
            f"Filled values: {synthesized or 'none'}",
            *diagnostics.mapping_issues,
            *diagnostics.warnings,
        ]

        with tempfile.TemporaryDirectory() as scratch:
            chart_path = Path(view.chart_path) if view.chart_path else None
            if chart_path is None or not chart_path.exists():
                chart_path = save_stock_chart(view.analysis, Path(scratch) / "chart.png")
            pdf_path = build_analysis_pdf(
                source_name=view.source_name,
                date_range=view.date_range_label,
                trend_lines=trend_lines,
                prediction_lines=prediction_lines,
                diagnostic_lines=diagnostic_lines,
                recommendation=trends.recommendation,
                disclaimer=DISCLAIMER,
                chart_path=chart_path,
                output_dir=Path(scratch),
            )
            buffer = io.BytesIO(pdf_path.read_bytes())

        return send_file(
            buffer,
            as_attachment=True,
            download_name=pdf_path.name,
            mimetype="application/pdf",
        )

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(_: RequestEntityTooLarge):
        message = f"File size must be less than {MAX_UPLOAD_MB}MB"
        logger.warning("Rejected oversized request to %s", request.path)
        if _wants_json():
            return jsonify({"error": message}), 413
        return _render_dashboard(error=message, status=413)

    def _log_unhandled_exception(sender: Flask, exception: Exception, **_: Any) -> None:
        logger.exception("Unhandled UI exception: %s", exception)

    got_request_exception.connect(_log_unhandled_exception, app)

    return app


app = create_app()


if __name__ == "__main__":
    app.run(host="127.0.0.1", port=5000, debug=False)
