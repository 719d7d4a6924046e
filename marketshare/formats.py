"""
formats.py - Layout detection and per-layout row parsing.

This module contains:
- Validation of the per-layout column maps (run once at import)
- Detection of the layout from the header row
- Layout A parser (row by row, shares stored as decimals)
- Layout B parser (whole sheet at once, dollar share derived from volume)
"""

import logging
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .constants import (
    BYTE_ORDER_MARK,
    LAYOUT_A_COLUMNS,
    LAYOUT_B_COLUMNS,
    LAYOUT_A_DECIMAL_ENCODED,
    LAYOUT_B_DECIMAL_ENCODED,
    LAYOUT_A_MARKER_PATTERNS,
    LAYOUT_B_MARKER_INDEX,
    LAYOUT_B_MARKER_PATTERN,
)
from .models import BrokerageRecord, FileFormat
from .normalize import (
    canonicalize_name,
    is_home_brand,
    normalize_percentage_scale,
    parse_numeric,
)

logger = logging.getLogger(__name__)

LAYOUT_A_FIELDS = (
    "rank", "brand", "dollar_volume", "percent_change", "market_share_dollar",
    "total_sales", "market_share_units", "avg_price", "sale_to_list_ratio",
    "days_on_market", "price_per_sqft",
)
LAYOUT_B_FIELDS = (
    "brand", "dollar_volume", "total_sales", "market_percent", "days_on_market",
    "avg_price", "price_per_sqft", "sale_to_list_ratio",
)


def validate_column_map(
    layout: str,
    columns: Mapping[str, int],
    required_fields: Sequence[str]
) -> None:
    """
    Checks a layout column map.

    Every required field must be mapped to a non-negative int index and no
    two fields may share an index.

    Raises:
        ValueError: If the map is incomplete or inconsistent
    """
    missing = [f for f in required_fields if f not in columns]
    if missing:
        raise ValueError(f"{layout} column map is missing: {', '.join(missing)}")

    for field_name, index in columns.items():
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise ValueError(f"{layout} column '{field_name}' has invalid index {index!r}")

    indices = list(columns.values())
    if len(set(indices)) != len(indices):
        raise ValueError(f"{layout} column map has duplicate indices")


validate_column_map("Layout A", LAYOUT_A_COLUMNS, LAYOUT_A_FIELDS)
validate_column_map("Layout B", LAYOUT_B_COLUMNS, LAYOUT_B_FIELDS)


def clean_header(cell: Any) -> str:
    """Stringifies a header cell, dropping a leading byte-order mark."""
    text = str(cell).strip()
    if text.startswith(BYTE_ORDER_MARK):
        text = text[len(BYTE_ORDER_MARK):]
    return text.strip()


def detect_format(header_row: Sequence[Any]) -> FileFormat:
    """
    Classifies a file by its header row.

    Order matters:
    1. "Mkt %" at the Layout B marker column -> LAYOUT_B
    2. Any "Market Share ($)" or "Market Share (#)" header -> LAYOUT_A
    3. Otherwise UNKNOWN

    Args:
        header_row: Cells of row 0

    Returns:
        Detected FileFormat
    """
    headers = [clean_header(h) for h in header_row]

    if len(headers) > LAYOUT_B_MARKER_INDEX and LAYOUT_B_MARKER_PATTERN.search(
        headers[LAYOUT_B_MARKER_INDEX]
    ):
        return FileFormat.LAYOUT_B

    for header in headers:
        if any(pattern.search(header) for pattern in LAYOUT_A_MARKER_PATTERNS):
            return FileFormat.LAYOUT_A

    return FileFormat.UNKNOWN


def _cell(row: Sequence[Any], index: int) -> Any:
    """Cell at index, or None past the end of a short row."""
    if index < len(row):
        return row[index]
    return None


def _number(row: Sequence[Any], columns: Mapping[str, int], field_name: str) -> float:
    return parse_numeric(_cell(row, columns[field_name]))


def _brand(row: Sequence[Any], columns: Mapping[str, int]) -> str:
    value = _cell(row, columns["brand"])
    if value is None:
        return ""
    return str(value).strip()


def parse_layout_a_row(row: Sequence[Any]) -> Optional[BrokerageRecord]:
    """
    Extracts one brokerage from a Layout A row.

    Dollar and unit shares come as decimals (0.162 = 16.2%). Rows with a
    blank brand, or with both shares and the dollar volume at zero, are
    placeholders and return None.

    Args:
        row: Data row (header excluded)

    Returns:
        BrokerageRecord or None
    """
    cols = LAYOUT_A_COLUMNS
    brand = _brand(row, cols)
    if not brand:
        return None

    dollar_volume = _number(row, cols, "dollar_volume")
    share_dollar = normalize_percentage_scale(
        _number(row, cols, "market_share_dollar"), LAYOUT_A_DECIMAL_ENCODED
    )
    share_units = normalize_percentage_scale(
        _number(row, cols, "market_share_units"), LAYOUT_A_DECIMAL_ENCODED
    )

    if share_dollar == 0 and share_units == 0 and dollar_volume == 0:
        return None

    sale_to_list = normalize_percentage_scale(
        _number(row, cols, "sale_to_list_ratio"), LAYOUT_A_DECIMAL_ENCODED
    ) / 100

    return BrokerageRecord(
        name=canonicalize_name(brand),
        original_name=brand,
        is_home_brand=is_home_brand(brand),
        rank=max(int(_number(row, cols, "rank")), 1),
        dollar_volume=dollar_volume,
        market_share_dollar=share_dollar,
        market_share_units=share_units,
        total_sales=_number(row, cols, "total_sales"),
        avg_price=_number(row, cols, "avg_price"),
        days_on_market=_number(row, cols, "days_on_market"),
        price_per_sqft=_number(row, cols, "price_per_sqft"),
        sale_to_list_ratio=sale_to_list,
        percent_change=_number(row, cols, "percent_change"),
    )


def parse_layout_b_rows(rows: Sequence[Sequence[Any]]) -> List[BrokerageRecord]:
    """
    Extracts every brokerage from the data rows of a Layout B file.

    Layout B has no dollar share column: the total dollar volume of all rows
    is computed first and each share is volume / total * 100. The "Mkt %"
    column holds the unit share. Ranks follow parse order and percent_change
    is always 0 (no such column).

    Args:
        rows: Data rows (header excluded)

    Returns:
        List of BrokerageRecord, in file order
    """
    cols = LAYOUT_B_COLUMNS
    total_dollar_volume = sum(_number(row, cols, "dollar_volume") for row in rows)

    brokerages = []
    for row in rows:
        brand = _brand(row, cols)
        if not brand:
            continue

        dollar_volume = _number(row, cols, "dollar_volume")
        share_units = normalize_percentage_scale(
            _number(row, cols, "market_percent"), LAYOUT_B_DECIMAL_ENCODED
        )
        if total_dollar_volume > 0:
            share_dollar = dollar_volume / total_dollar_volume * 100
        else:
            share_dollar = 0.0

        if share_dollar == 0 and share_units == 0:
            continue

        sale_to_list = normalize_percentage_scale(
            _number(row, cols, "sale_to_list_ratio"), LAYOUT_B_DECIMAL_ENCODED
        ) / 100

        brokerages.append(BrokerageRecord(
            name=canonicalize_name(brand),
            original_name=brand,
            is_home_brand=is_home_brand(brand),
            rank=len(brokerages) + 1,
            dollar_volume=dollar_volume,
            market_share_dollar=share_dollar,
            market_share_units=share_units,
            total_sales=_number(row, cols, "total_sales"),
            avg_price=_number(row, cols, "avg_price"),
            days_on_market=_number(row, cols, "days_on_market"),
            price_per_sqft=_number(row, cols, "price_per_sqft"),
            sale_to_list_ratio=sale_to_list,
            percent_change=0.0,
        ))

    return brokerages


def parse_rows(
    file_format: FileFormat,
    rows: Sequence[Sequence[Any]]
) -> Tuple[List[BrokerageRecord], int]:
    """
    Runs the parser matching the detected layout.

    Args:
        file_format: Layout returned by detect_format
        rows: Data rows (header excluded)

    Returns:
        Tuple (brokerages kept, number of rows discarded)
    """
    if file_format is FileFormat.LAYOUT_A:
        brokerages = [b for b in (parse_layout_a_row(row) for row in rows) if b is not None]
    elif file_format is FileFormat.LAYOUT_B:
        brokerages = parse_layout_b_rows(rows)
    else:
        raise ValueError(f"No parser for format {file_format}")

    discarded = len(rows) - len(brokerages)
    logger.debug(
        "[process] format=%s kept=%d discarded=%d",
        file_format.value, len(brokerages), discarded,
    )
    return brokerages, discarded
