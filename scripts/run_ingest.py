import argparse
import datetime
import logging
import os
import random
import sys

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from config.settings import LOG_DIR, MIN_ROWS, RANDOM_SEED
from core.analyst import StockAnalyst
from core.exceptions import IngestionError
from core.ingestion import ingest_file
from core.predictor import simulate_prediction


def _configure_logging():
    """Configure file logging for offline runs."""
    os.makedirs(LOG_DIR, exist_ok=True)

    log_file = os.path.join(LOG_DIR, "stocklens.log")
    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    root_logger.handlers.clear()

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    root_logger.addHandler(file_handler)

    logging.getLogger("matplotlib").setLevel(logging.WARNING)


def _print_summary(result, analysis, prediction):
    series = result.series
    diagnostics = result.diagnostics
    trends = analysis.trends

    print(f"Source: {result.source_name}")
    print(f"Rows: {len(series)} ({series.start_date} to {series.end_date})")
    print(f"Mapping confidence: {diagnostics.mapping_confidence * 100:.1f}%")
    for name, item in result.mapping.mapped().items():
        print(f"  {name:<12} <- {item.original_name} ({item.confidence:.2f})")
    if diagnostics.synthesized:
        filled = ", ".join(f"{name} x{count}" for name, count in sorted(diagnostics.synthesized.items()))
        print(f"Filled values: {filled}")
    for message in diagnostics.mapping_issues + diagnostics.warnings + diagnostics.date_issues:
        print(f"  ! {message}")

    print(f"Trend: {trends.trend_direction}, volume {trends.volume_trend.lower()}")
    print(f"Support / resistance: {trends.support:.2f} / {trends.resistance:.2f}")
    print(f"Recommendation: {trends.recommendation}")
    print(
        f"Simulated target: {prediction.target_price:.2f} "
        f"({prediction.predicted_low:.2f} - {prediction.predicted_high:.2f}), risk {prediction.risk_level}"
    )
    print(f"Anomaly score: {prediction.anomaly_score:.0f}")
    for anomaly in prediction.anomalies:
        print(f"  * {anomaly.date} {anomaly.severity}: {anomaly.description}")


def main(argv: list[str] | None = None):
    _configure_logging()
    logger = logging.getLogger("stocklens.runner")

    parser = argparse.ArgumentParser(description="Normalize and analyze one OHLCV file")
    parser.add_argument("file", help="CSV, text or Excel file with daily price rows")
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for gap-filling and the simulated prediction (default: STOCKLENS_RANDOM_SEED, else unseeded)",
        default=RANDOM_SEED,
    )
    parser.add_argument(
        "--min-rows",
        type=int,
        help=f"Minimum rows required (default: {MIN_ROWS})",
        default=MIN_ROWS,
    )
    parser.add_argument("--chart", action="store_true", help="Also save a static PNG chart under reports/charts")
    args = parser.parse_args(argv)

    start_time = datetime.datetime.now(datetime.timezone.utc)
    logger.info("Run started at %s for %s", start_time.isoformat(), args.file)

    exit_code = 0
    try:
        rng = random.Random(args.seed)
        result = ingest_file(args.file, rng=rng, min_rows=args.min_rows)
        analysis = StockAnalyst().analyze(result.series, source_name=result.source_name)
        prediction = simulate_prediction(analysis, rng)
        _print_summary(result, analysis, prediction)

        if args.chart:
            from core.visualizer import save_stock_chart

            chart_path = save_stock_chart(analysis)
            print(f"Chart: {chart_path}")
            logger.info("Saved chart %s", chart_path)
    except FileNotFoundError as error:
        exit_code = 1
        print(f"File not found: {error}")
        logger.error("File not found: %s", error)
    except IngestionError as error:
        exit_code = 1
        print(f"Could not ingest file: {error}")
        logger.error("Ingestion failed: %s", error)
    except KeyboardInterrupt:
        exit_code = 2
        logger.warning("Run interrupted by user")

    end_time = datetime.datetime.now(datetime.timezone.utc)
    logger.info("Run ended at %s", end_time.isoformat())
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
