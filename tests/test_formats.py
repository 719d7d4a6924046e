"""Layout detection and the two row parsers."""

import pytest

from conftest import HOME, LAYOUT_A_HEADER, LAYOUT_B_HEADER, layout_a_row, layout_b_row

from marketshare.constants import HOME_BRAND_DISPLAY_NAME
from marketshare.formats import (
    detect_format,
    parse_layout_a_row,
    parse_layout_b_rows,
    parse_rows,
    validate_column_map,
)
from marketshare.models import FileFormat


# =============================================================================
# FORMAT DETECTION
# =============================================================================
def test_detects_layout_a_from_share_headers() -> None:
    assert detect_format(LAYOUT_A_HEADER) is FileFormat.LAYOUT_A


def test_detects_layout_a_from_units_share_only() -> None:
    header = ["Rank", "Brand", "Total ($)", "MARKET SHARE (#)"]
    assert detect_format(header) is FileFormat.LAYOUT_A


def test_detects_layout_b_from_mkt_percent_column() -> None:
    assert detect_format(LAYOUT_B_HEADER) is FileFormat.LAYOUT_B


def test_layout_b_check_runs_first() -> None:
    header = list(LAYOUT_B_HEADER)
    header[2] = "Market Share ($)"
    assert detect_format(header) is FileFormat.LAYOUT_B


def test_mkt_percent_outside_marker_column_is_not_layout_b() -> None:
    header = ["#", "Brand", "Mkt %", "Volume"]
    assert detect_format(header) is FileFormat.UNKNOWN


def test_unknown_header() -> None:
    assert detect_format(["Name", "Sales", "Volume", "Notes"]) is FileFormat.UNKNOWN
    assert detect_format([]) is FileFormat.UNKNOWN


def test_leading_byte_order_mark_is_ignored() -> None:
    assert detect_format(["\ufeffMarket Share ($)", "Brand"]) is FileFormat.LAYOUT_A

    header = list(LAYOUT_A_HEADER)
    header[0] = "\ufeff" + header[0]
    assert detect_format(header) is FileFormat.LAYOUT_A


def test_numeric_header_cells_do_not_break_detection() -> None:
    header = [1, None, 2.5] + LAYOUT_A_HEADER[3:]
    assert detect_format(header) is FileFormat.LAYOUT_A


# =============================================================================
# LAYOUT A
# =============================================================================
def test_layout_a_row_scales_decimal_shares() -> None:
    row = [1, HOME, 5000000, 0, 0, 0, 0.25, 0, 10, 0, 0, 0, 0.30, 500000, 0.98, 45, 250]

    record = parse_layout_a_row(row)

    assert record.is_home_brand
    assert record.name == HOME_BRAND_DISPLAY_NAME
    assert record.original_name == HOME
    assert record.market_share_dollar == pytest.approx(25)
    assert record.market_share_units == pytest.approx(30)
    assert record.dollar_volume == 5000000
    assert record.total_sales == 10
    assert record.rank == 1


def test_layout_a_row_reads_every_column() -> None:
    row = [3, " Compass ", "$2,500,000", "-4.2%", "", "", "0.12", "", "8", "", "", "",
           "0.09", "", "$612,000", "0.971", "38", "$455"]

    record = parse_layout_a_row(row)

    assert record.name == "Compass"
    assert record.original_name == "Compass"
    assert not record.is_home_brand
    assert record.rank == 3
    assert record.dollar_volume == 2500000
    assert record.percent_change == -4.2
    assert record.market_share_dollar == pytest.approx(12)
    assert record.market_share_units == pytest.approx(9)
    assert record.avg_price == 612000
    assert record.sale_to_list_ratio == pytest.approx(0.971)
    assert record.days_on_market == 38
    assert record.price_per_sqft == 455


def test_layout_a_sale_to_list_as_whole_percent() -> None:
    row = layout_a_row("Compass", 1000, 0.1, 0.1) + [0]
    row[15] = 98.5
    assert parse_layout_a_row(row).sale_to_list_ratio == pytest.approx(0.985)


def test_layout_a_blank_brand_is_skipped() -> None:
    assert parse_layout_a_row(layout_a_row("", 1000, 0.1, 0.1)) is None
    assert parse_layout_a_row(layout_a_row("   ", 1000, 0.1, 0.1)) is None


def test_layout_a_placeholder_row_is_skipped() -> None:
    assert parse_layout_a_row(layout_a_row("Compass", 0, 0, 0)) is None


@pytest.mark.parametrize("volume, share_dollar, share_units", [
    (1000, 0, 0),
    (0, 0.1, 0),
    (0, 0, 0.1),
])
def test_layout_a_row_kept_when_any_figure_is_present(volume, share_dollar, share_units) -> None:
    assert parse_layout_a_row(layout_a_row("Compass", volume, share_dollar, share_units)) is not None


def test_layout_a_short_row_reads_missing_cells_as_zero() -> None:
    record = parse_layout_a_row([2, "HomeSmart", 900000])
    assert record.dollar_volume == 900000
    assert record.market_share_dollar == 0
    assert record.price_per_sqft == 0
    assert record.rank == 2


def test_layout_a_discarded_rows_are_exactly_the_placeholders() -> None:
    rows = [
        layout_a_row(HOME, 5000000, 0.25, 0.30),
        layout_a_row("Placeholder One", 0, 0, 0),
        layout_a_row("Compass", 3000000, 0.15, 0.12),
        layout_a_row("Placeholder Two", 0, 0, 0),
        layout_a_row("HomeSmart", 0, 0, 0.05),
    ]

    brokerages, discarded = parse_rows(FileFormat.LAYOUT_A, rows)

    assert discarded == 2
    assert [b.original_name for b in brokerages] == [HOME, "Compass", "HomeSmart"]


# =============================================================================
# LAYOUT B
# =============================================================================
def test_layout_b_derives_dollar_share_from_volume() -> None:
    rows = [
        layout_b_row("Compass", 300, 40),
        layout_b_row(HOME, 700, 60),
    ]

    brokerages = parse_layout_b_rows(rows)

    assert [b.market_share_dollar for b in brokerages] == [pytest.approx(30), pytest.approx(70)]
    assert [b.rank for b in brokerages] == [1, 2]
    assert [b.market_share_units for b in brokerages] == [40, 60]
    assert all(b.percent_change == 0 for b in brokerages)


def test_layout_b_decimal_unit_share_is_scaled() -> None:
    brokerages = parse_layout_b_rows([layout_b_row("Compass", 100, 0.25)])
    assert brokerages[0].market_share_units == pytest.approx(25)


def test_layout_b_reads_metric_columns() -> None:
    record = parse_layout_b_rows([layout_b_row(HOME, 100, 50, sales=12)])[0]

    assert record.is_home_brand
    assert record.name == HOME_BRAND_DISPLAY_NAME
    assert record.total_sales == 12
    assert record.days_on_market == 60
    assert record.avg_price == 750000
    assert record.price_per_sqft == 400
    assert record.sale_to_list_ratio == pytest.approx(0.975)


def test_layout_b_zero_total_volume() -> None:
    rows = [
        layout_b_row("Compass", 0, 55),
        layout_b_row("HomeSmart", 0, 0),
    ]

    brokerages = parse_layout_b_rows(rows)

    assert len(brokerages) == 1
    assert brokerages[0].market_share_dollar == 0
    assert brokerages[0].market_share_units == 55


def test_layout_b_blank_brand_counts_toward_total_but_is_skipped() -> None:
    rows = [
        layout_b_row("", 500, 0),
        layout_b_row("Compass", 500, 50),
    ]

    brokerages = parse_layout_b_rows(rows)

    assert len(brokerages) == 1
    assert brokerages[0].market_share_dollar == pytest.approx(50)
    assert brokerages[0].rank == 1


def test_layout_b_ranks_follow_kept_rows() -> None:
    rows = [
        layout_b_row("Compass", 200, 20),
        layout_b_row("Nobody", 0, 0),
        layout_b_row("HomeSmart", 800, 80),
    ]

    brokerages, discarded = parse_rows(FileFormat.LAYOUT_B, rows)

    assert discarded == 1
    assert [(b.name, b.rank) for b in brokerages] == [("Compass", 1), ("HomeSmart", 2)]


def test_parse_rows_rejects_unknown_format() -> None:
    with pytest.raises(ValueError):
        parse_rows(FileFormat.UNKNOWN, [])


# =============================================================================
# COLUMN MAPS
# =============================================================================
def test_column_map_missing_field() -> None:
    with pytest.raises(ValueError, match="missing: brand"):
        validate_column_map("Test", {"rank": 0}, ["rank", "brand"])


def test_column_map_duplicate_index() -> None:
    with pytest.raises(ValueError, match="duplicate"):
        validate_column_map("Test", {"rank": 0, "brand": 0}, ["rank", "brand"])


@pytest.mark.parametrize("index", [-1, "3", 1.5, True])
def test_column_map_invalid_index(index) -> None:
    with pytest.raises(ValueError, match="invalid index"):
        validate_column_map("Test", {"brand": index}, ["brand"])
