"""Static chart generation for StockLens reports."""

from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt

from config.settings import REPORTS_DIR
from core.analyst import StockAnalysis


def _chart_output_dir() -> Path:
    path = Path(REPORTS_DIR) / "charts"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _safe_stem(name: str) -> str:
    stem = Path(name).stem or "upload"
    return "".join(char if char.isalnum() or char in "-_" else "_" for char in stem)


def save_stock_chart(analysis: StockAnalysis, output_path: Path | None = None) -> Path:
    """Save price/Bollinger/RSI chart as a PNG; defaults to reports/charts/<upload>.png."""
    data = analysis.data

    fig, (ax_price, ax_rsi) = plt.subplots(
        2,
        1,
        figsize=(13, 8),
        sharex=True,
        gridspec_kw={"height_ratios": [3, 1]},
    )

    ax_price.plot(data["date"], data["close"], label="Close", linewidth=1.6)
    ax_price.plot(data["date"], data["SMA_20"], label="SMA 20", linewidth=1.0)
    ax_price.plot(data["date"], data["SMA_50"], label="SMA 50", linewidth=1.0)
    ax_price.fill_between(
        data["date"],
        data["BB_LOWER"],
        data["BB_UPPER"],
        color="tab:gray",
        alpha=0.15,
        label="Bollinger 20/2",
    )
    ax_price.legend(loc="upper left")
    ax_price.set_title(f"{analysis.source_name} | Trend: {analysis.trends.trend_direction}")
    ax_price.set_ylabel("Price")
    ax_price.grid(True, alpha=0.25)

    ax_rsi.plot(data["date"], data["RSI_14"], label="RSI 14", color="tab:purple", linewidth=1.2)
    ax_rsi.axhline(70, color="red", linestyle="--", linewidth=0.9)
    ax_rsi.axhline(30, color="green", linestyle="--", linewidth=0.9)
    ax_rsi.set_ylim(0, 100)
    ax_rsi.set_ylabel("RSI")
    ax_rsi.set_xlabel("Date")
    ax_rsi.grid(True, alpha=0.25)

    fig.tight_layout()

    if output_path is None:
        output_path = _chart_output_dir() / f"{_safe_stem(analysis.source_name)}.png"
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=130)
    plt.close(fig)
    return output_path
