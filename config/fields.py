"""Canonical OHLCV field dictionary used by the column mapper."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class FieldDefinition:
    """One canonical field and the header spellings it is known by."""

    name: str
    output_name: str
    variations: tuple[str, ...]
    description: str
    required: bool = False
    weight: float = 1.0


@dataclass(frozen=True)
class FieldDictionary:
    """Ordered, immutable set of canonical fields."""

    fields: tuple[FieldDefinition, ...]

    def __post_init__(self) -> None:
        names = [field.name for field in self.fields]
        if len(names) != len(set(names)):
            raise ValueError("Duplicate canonical field names in dictionary")

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, name: object) -> bool:
        return any(field.name == name for field in self.fields)

    def get(self, name: str) -> FieldDefinition:
        for field in self.fields:
            if field.name == name:
                return field
        raise KeyError(name)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(field.name for field in self.fields)

    @property
    def required(self) -> tuple[str, ...]:
        return tuple(field.name for field in self.fields if field.required)

    def output_names(self) -> dict[str, str]:
        """Internal name -> contract column name used by downstream consumers."""
        return {field.name: field.output_name for field in self.fields}


DEFAULT_FIELDS = FieldDictionary(
    fields=(
        FieldDefinition(
            name="date",
            output_name="Date",
            variations=(
                "Date", "DATE", "date", "timestamp", "Timestamp", "TIME", "time",
                "trading_date", "TRADING_DATE", "trade_date", "TRADE_DATE",
                "dt", "DT", "day", "Day", "DAY",
            ),
            description="Trading date for the stock data",
            required=True,
            weight=1.0,
        ),
        FieldDefinition(
            name="series",
            output_name="series",
            variations=(
                "series", "Series", "SERIES", "symbol", "Symbol", "SYMBOL",
                "ticker", "Ticker", "TICKER", "market_segment", "MARKET_SEGMENT",
                "seg", "SEG", "segment", "Segment", "SEGMENT",
            ),
            description="Market segment code (EQ=Equity, BE=Book Entry, etc.)",
            weight=0.6,
        ),
        FieldDefinition(
            name="open",
            output_name="OPEN",
            variations=(
                "OPEN", "open", "Open", "opening", "Opening", "OPENING",
                "open_price", "OPEN_PRICE", "openPrice", "OpenPrice", "o", "O",
            ),
            description="Opening price - first traded price of the day",
            required=True,
            weight=0.9,
        ),
        FieldDefinition(
            name="high",
            output_name="HIGH",
            variations=(
                "HIGH", "high", "High", "maximum", "max", "Max", "MAX",
                "day_high", "DAY_HIGH", "dayHigh", "DayHigh",
                "h", "H", "peak", "Peak", "PEAK",
            ),
            description="Highest price reached during trading day",
            required=True,
            weight=0.9,
        ),
        FieldDefinition(
            name="low",
            output_name="LOW",
            variations=(
                "LOW", "low", "Low", "minimum", "min", "Min", "MIN",
                "day_low", "DAY_LOW", "dayLow", "DayLow",
                "l", "L", "bottom", "Bottom", "BOTTOM",
            ),
            description="Lowest price reached during trading day",
            required=True,
            weight=0.9,
        ),
        FieldDefinition(
            name="close",
            output_name="close",
            variations=(
                "close", "Close", "CLOSE", "closing", "Closing", "CLOSING",
                "closing_price", "CLOSING_PRICE", "closingPrice", "ClosingPrice",
                "c", "C", "end", "End", "END",
            ),
            description="Final closing price when market closed",
            required=True,
            weight=1.0,
        ),
        FieldDefinition(
            name="prev_close",
            output_name="PREV. CLOSE",
            variations=(
                "PREV. CLOSE", "PREV CLOSE", "prev close", "previous close",
                "prevclose", "prev_close", "previous_close", "PREVIOUS_CLOSE",
                "prevClose", "PrevClose", "previousClose", "PreviousClose",
                "last_close", "LAST_CLOSE",
            ),
            description="Previous day closing price for return calculations",
            weight=0.7,
        ),
        FieldDefinition(
            name="ltp",
            output_name="ltp",
            variations=(
                "ltp", "LTP", "Ltp", "last_price", "LAST_PRICE", "lastPrice",
                "last_traded_price", "LAST_TRADED_PRICE", "lastTradedPrice",
                "current", "Current", "CURRENT", "latest", "Latest", "LATEST",
            ),
            description="Last Traded Price - most recent trading price",
            weight=0.8,
        ),
        FieldDefinition(
            name="vwap",
            output_name="vwap",
            variations=(
                "vwap", "VWAP", "Vwap", "weighted average", "avg price", "avgPrice",
                "volume_weighted_avg", "VOLUME_WEIGHTED_AVG", "volumeWeightedAvg",
                "wap", "WAP", "weighted_avg", "WEIGHTED_AVG",
            ),
            description="Volume Weighted Average Price - more accurate than simple average",
            weight=0.6,
        ),
        FieldDefinition(
            name="volume",
            output_name="VOLUME",
            variations=(
                "VOLUME", "volume", "Volume", "vol", "Vol", "VOL",
                "quantity", "Quantity", "QUANTITY", "qty", "Qty", "QTY",
                "shares_traded", "SHARES_TRADED", "sharesTrade", "SharesTraded",
                "units", "Units", "UNITS",
            ),
            description="Total number of shares traded",
            required=True,
            weight=0.9,
        ),
        FieldDefinition(
            name="value",
            output_name="VALUE",
            variations=(
                "VALUE", "value", "Value", "turnover", "Turnover", "TURNOVER",
                "amount", "Amount", "AMOUNT", "total_value", "TOTAL_VALUE",
                "totalValue", "TotalValue", "worth", "Worth", "WORTH",
            ),
            description="Total turnover (Volume x Price) in currency",
            weight=0.7,
        ),
        FieldDefinition(
            name="trades",
            output_name="No of trades",
            variations=(
                "No of trades", "NO OF TRADES", "trades", "trade count", "tradeCount",
                "transactions", "no_of_trades", "trade_count", "TRADE_COUNT",
                "Number of trades", "NUMBER OF TRADES", "numberOfTrades",
                "tx", "TX", "trans", "Trans", "TRANS",
            ),
            description="Total number of buy/sell transactions executed",
            weight=0.6,
        ),
        FieldDefinition(
            name="week52_high",
            output_name="52W H",
            variations=(
                "52W H", "52W_H", "52w high", "52 week high", "52WeekHigh",
                "yearly high", "52_week_high", "52WH", "52W HIGH",
                "year_high", "YEAR_HIGH", "yearHigh", "YearHigh",
            ),
            description="52-week high - highest price in past year",
            weight=0.5,
        ),
        FieldDefinition(
            name="week52_low",
            output_name="52W L",
            variations=(
                "52W L", "52W_L", "52w low", "52 week low", "52WeekLow",
                "yearly low", "52_week_low", "52WL", "52W LOW",
                "year_low", "YEAR_LOW", "yearLow", "YearLow",
            ),
            description="52-week low - lowest price in past year",
            weight=0.5,
        ),
    )
)

# Contract column order exposed to charting, indicators and exports.
CONTRACT_COLUMNS = (
    "Date", "series", "OPEN", "HIGH", "LOW", "PREV. CLOSE", "ltp", "close",
    "vwap", "52W H", "52W L", "VOLUME", "VALUE", "No of trades",
)
