"""Interactive chart helpers for the StockLens UI."""

from __future__ import annotations

import pandas as pd
import plotly.graph_objects as go
from plotly.offline import plot
from plotly.subplots import make_subplots

from core.analyst import StockAnalysis

RECENT_WINDOW_DAYS = 180


def recent_range(data: pd.DataFrame) -> list[str] | None:
    """Initial x-axis range: the last RECENT_WINDOW_DAYS of the series, or None without dates."""
    dates = pd.to_datetime(data["date"], errors="coerce").dropna()
    if dates.empty:
        return None
    end = dates.max()
    start = max(dates.min(), end - pd.Timedelta(days=RECENT_WINDOW_DAYS))
    return [f"{start:%Y-%m-%d}", f"{end:%Y-%m-%d}"]


def build_interactive_chart(analysis: StockAnalysis) -> str:
    """Candlesticks with SMA/Bollinger overlays, volume bars and RSI, as an embeddable div."""
    data = analysis.data
    initial_range = recent_range(data)

    figure = make_subplots(
        rows=3,
        cols=1,
        shared_xaxes=True,
        row_heights=[0.6, 0.15, 0.25],
        vertical_spacing=0.05,
        subplot_titles=("Price + SMA/Bollinger", "Volume", "RSI"),
    )

    figure.add_trace(
        go.Candlestick(
            x=data["date"],
            open=data["open"],
            high=data["high"],
            low=data["low"],
            close=data["close"],
            name="OHLC",
        ),
        row=1,
        col=1,
    )

    for column, label, dash in [
        ("SMA_20", "SMA 20", None),
        ("SMA_50", "SMA 50", None),
        ("BB_UPPER", "Bollinger Upper", "dot"),
        ("BB_LOWER", "Bollinger Lower", "dot"),
    ]:
        figure.add_trace(
            go.Scatter(
                x=data["date"],
                y=data[column],
                mode="lines",
                name=label,
                line={"dash": dash} if dash else None,
                hovertemplate="Date: %{x|%Y-%m-%d}<br>Value: %{y:.2f}<extra></extra>",
            ),
            row=1,
            col=1,
        )

    figure.add_trace(
        go.Bar(
            x=data["date"],
            y=data["volume"],
            name="Volume",
            marker={"color": "rgba(90, 110, 160, 0.5)"},
            hovertemplate="Date: %{x|%Y-%m-%d}<br>Volume: %{y:,.0f}<extra></extra>",
        ),
        row=2,
        col=1,
    )

    figure.add_trace(
        go.Scatter(
            x=data["date"],
            y=data["RSI_14"],
            mode="lines",
            name="RSI 14",
            line={"color": "purple"},
            hovertemplate="Date: %{x|%Y-%m-%d}<br>RSI: %{y:.2f}<extra></extra>",
        ),
        row=3,
        col=1,
    )

    figure.add_hline(y=70, line_dash="dash", line_color="red", row=3, col=1)
    figure.add_hline(y=30, line_dash="dash", line_color="green", row=3, col=1)

    if initial_range is not None:
        for row in (1, 2, 3):
            figure.update_xaxes(range=initial_range, row=row, col=1)

    figure.update_layout(
        title=f"{analysis.source_name} Interactive View",
        template="plotly_white",
        hovermode="x unified",
        legend={"orientation": "h", "y": 1.08},
        margin={"l": 30, "r": 20, "t": 60, "b": 30},
        xaxis={"rangeslider": {"visible": False}},
        xaxis3={
            "title": "Date",
            "rangeselector": {
                "buttons": [
                    {"count": 1, "label": "1M", "step": "month", "stepmode": "backward"},
                    {"count": 3, "label": "3M", "step": "month", "stepmode": "backward"},
                    {"count": 6, "label": "6M", "step": "month", "stepmode": "backward"},
                    {"count": 1, "label": "1Y", "step": "year", "stepmode": "backward"},
                    {"step": "all", "label": "ALL"},
                ]
            },
            "type": "date",
        },
        yaxis={"title": "Price"},
        yaxis3={"title": "RSI", "range": [0, 100]},
    )

    return plot(
        figure,
        output_type="div",
        include_plotlyjs=False,
        config={"displaylogo": False, "responsive": True},
    )
