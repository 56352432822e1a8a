"""PDF export helpers for StockLens analysis pages."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas

from config.settings import REPORTS_DIR


PDF_DIR = Path(REPORTS_DIR) / "pdf"

RECOMMENDATION_COLORS = {
    "Buy": (0.12, 0.54, 0.27),
    "Sell": (0.77, 0.30, 0.12),
}


def build_analysis_pdf(
    *,
    source_name: str,
    date_range: str,
    trend_lines: list[str],
    prediction_lines: list[str],
    diagnostic_lines: list[str],
    recommendation: str,
    disclaimer: str,
    chart_path: Path | None,
    output_dir: Path | None = None,
) -> Path:
    """Generate a local PDF report for the current upload."""
    target_dir = Path(output_dir) if output_dir is not None else PDF_DIR
    target_dir.mkdir(parents=True, exist_ok=True)

    date_stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    stem = "".join(char if char.isalnum() or char in "-_" else "_" for char in Path(source_name).stem) or "upload"
    output_path = target_dir / f"{stem}_analysis_{date_stamp}.pdf"

    pdf = canvas.Canvas(str(output_path), pagesize=A4)
    width, height = A4
    left_margin = 0.75 * inch
    top = height - 0.75 * inch
    y = top

    def draw_title(text: str, size: int = 16) -> None:
        nonlocal y
        pdf.setFont("Helvetica-Bold", size)
        pdf.drawString(left_margin, y, text)
        y -= 0.28 * inch

    def draw_line(text: str, bold: bool = False, color: tuple[float, float, float] | None = None) -> None:
        nonlocal y
        pdf.setFont("Helvetica-Bold" if bold else "Helvetica", 10)
        if color is not None:
            pdf.setFillColorRGB(*color)
        else:
            pdf.setFillColor(colors.black)

        if y < 0.8 * inch:
            pdf.showPage()
            y = top

        pdf.drawString(left_margin, y, text)
        y -= 0.2 * inch
        pdf.setFillColor(colors.black)

    def draw_section(heading: str, lines: list[str], limit: int = 12) -> None:
        nonlocal y
        y -= 0.08 * inch
        draw_line(heading, bold=True)
        for line in lines[:limit]:
            draw_line(f"- {line}")

    draw_title("StockLens Analysis Report")
    draw_line(f"Source: {source_name}", bold=True)
    draw_line(f"Period: {date_range}")
    draw_line(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    color = next((rgb for key, rgb in RECOMMENDATION_COLORS.items() if key in recommendation), None)
    draw_line(f"Recommendation: {recommendation}", bold=True, color=color)

    draw_section("Trend summary:", trend_lines)
    draw_section("Simulated prediction:", prediction_lines)
    draw_section("Data quality:", diagnostic_lines)

    y -= 0.05 * inch
    draw_line(disclaimer, bold=True)

    def draw_image_block(image_path: Path | None, label: str, desired_height: float) -> None:
        nonlocal y
        if image_path is None or not image_path.exists():
            draw_line(f"{label}: not available")
            return

        if y < desired_height + 1.0 * inch:
            pdf.showPage()
            y = top

        draw_line(label, bold=True)
        img_width = width - (2 * left_margin)
        pdf.drawImage(str(image_path), left_margin, y - desired_height, width=img_width, height=desired_height, preserveAspectRatio=True)
        y -= desired_height + 0.2 * inch

    draw_image_block(chart_path, "Price + RSI", desired_height=4.2 * inch)

    pdf.save()
    return output_path
