from __future__ import annotations

import pytest

from core.number_parser import (
    PERCENTAGE,
    PRICE,
    VOLUME,
    calculate_statistics,
    format_number,
    parse_number,
)


def test_currency_symbol_and_grouping() -> None:
    parsed = parse_number("₹1,234.50", PRICE)

    assert parsed.is_valid
    assert parsed.value == pytest.approx(1234.5)
    assert parsed.confidence == pytest.approx(0.81)
    assert parsed.formatted == "1234.50"


def test_south_asian_grouping() -> None:
    parsed = parse_number("12,34,567.89", PRICE)

    assert parsed.value == pytest.approx(1234567.89)
    # Large prices are plausible but less trusted.
    assert parsed.confidence == pytest.approx(0.85 * 0.7)


def test_scientific_notation_volume() -> None:
    parsed = parse_number("1.23E+5", VOLUME)

    assert parsed.value == pytest.approx(123000.0)
    assert parsed.confidence == pytest.approx(0.72)
    assert parsed.formatted == "123,000"


def test_plain_decimal_and_fractional_volume() -> None:
    assert parse_number("1234.56", PRICE).confidence == pytest.approx(0.63)
    assert parse_number("1500.5", VOLUME).confidence == pytest.approx(0.49)


def test_negative_price_and_volume_are_invalid() -> None:
    price = parse_number("-5", PRICE)
    volume = parse_number("-100", VOLUME)

    assert not price.is_valid
    assert price.confidence == 0.0
    assert not volume.is_valid


@pytest.mark.parametrize("raw", ["", "   ", None, "abc", "--"])
def test_unparseable_cells(raw) -> None:
    parsed = parse_number(raw, PRICE)

    assert not parsed.is_valid
    assert parsed.value == 0.0
    assert parsed.confidence == 0.0


def test_leading_number_fallback_is_low_confidence() -> None:
    parsed = parse_number("12.5 approx", PRICE)

    assert parsed.is_valid
    assert parsed.value == pytest.approx(12.5)
    assert parsed.confidence == pytest.approx(0.27)


def test_percentage_strips_sign_and_penalizes_magnitude() -> None:
    small = parse_number("5%", PERCENTAGE)
    large = parse_number("75", PERCENTAGE)

    assert small.value == pytest.approx(5.0)
    assert small.formatted == "5.00%"
    assert large.confidence < small.confidence


def test_native_numbers_are_fully_trusted() -> None:
    assert parse_number(42, PRICE).confidence == 1.0
    assert parse_number(3.5, PRICE).value == 3.5
    assert not parse_number(float("nan"), PRICE).is_valid
    assert not parse_number(True, PRICE).is_valid


def test_unknown_context_raises() -> None:
    with pytest.raises(ValueError):
        parse_number("1", "weight")


def test_formatted_values_parse_back() -> None:
    assert parse_number(format_number(1234.567, PRICE), PRICE).value == pytest.approx(1234.57)
    assert parse_number(format_number(1234567.8, VOLUME), VOLUME).value == 1234567
    assert parse_number(format_number(-3.25, PERCENTAGE), PERCENTAGE).value == pytest.approx(-3.25)


def test_statistics_flags_outlier_and_lowers_confidence() -> None:
    dirty = calculate_statistics(parse_number(raw, PRICE) for raw in ["10", "11", "9", "10", "1000"])
    clean = calculate_statistics(parse_number(raw, PRICE) for raw in ["10", "11", "9", "10", "12"])

    assert [item.value for item in dirty.outliers] == [1000.0]
    assert clean.outliers == []
    assert dirty.confidence < clean.confidence
    assert clean.confidence == pytest.approx(0.81)
    assert clean.mean == pytest.approx(10.4)
    assert clean.median == pytest.approx(10.0)


def test_statistics_ignores_invalid_values() -> None:
    stats = calculate_statistics([parse_number("abc"), parse_number("")])

    assert stats.confidence == 0.0
    assert stats.mean == 0.0
