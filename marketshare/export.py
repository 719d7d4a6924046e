"""
export.py - Data export functions.

This module exports normalized market data to CSV and Excel, and builds
the file names used by single and batch downloads.
"""

import re
from datetime import date, datetime
from io import BytesIO
from typing import Dict, List, Optional

import pandas as pd
from openpyxl.utils import get_column_letter

from .constants import BATCH_EXPORT_PREFIX, EXCEL_SHEET_NAME_LIMIT
from .models import MarketRecord
from .reports import format_brokerage_table, format_status_table

_INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")


def export_csv(df: pd.DataFrame) -> bytes:
    """
    Exports a DataFrame to CSV.

    Args:
        df: DataFrame to export

    Returns:
        CSV bytes (UTF-8 with BOM so Excel opens it correctly)
    """
    return df.to_csv(index=False).encode('utf-8-sig')


def _autofit_columns(worksheet, df: pd.DataFrame) -> None:
    """Sets column widths from the content, between 10 and 50 characters."""
    for idx, col in enumerate(df.columns):
        if len(df) > 0:
            max_content = df[col].astype(str).map(len).max()
        else:
            max_content = 0

        width = max(max_content, len(str(col))) + 2
        width = max(min(width, 50), 10)
        worksheet.column_dimensions[get_column_letter(idx + 1)].width = width


def export_excel(df: pd.DataFrame, sheet_name: str = "Data") -> bytes:
    """
    Exports a DataFrame to Excel (.xlsx).

    Args:
        df: DataFrame to export
        sheet_name: Worksheet name

    Returns:
        Excel file bytes
    """
    return export_multiple_sheets({sheet_name: df})


def export_multiple_sheets(dataframes: Dict[str, pd.DataFrame]) -> bytes:
    """
    Exports several DataFrames to one Excel file, one sheet each.

    Args:
        dataframes: Dict {sheet_name: DataFrame}, names already unique

    Returns:
        Excel file bytes
    """
    output = BytesIO()

    with pd.ExcelWriter(output, engine='openpyxl') as writer:
        for sheet_name, df in dataframes.items():
            safe_name = sheet_name[:EXCEL_SHEET_NAME_LIMIT]
            df.to_excel(writer, sheet_name=safe_name, index=False)
            _autofit_columns(writer.sheets[safe_name], df)

    return output.getvalue()


def unique_sheet_names(titles: List[str]) -> List[str]:
    """
    Turns market titles into valid, unique Excel sheet names.

    Invalid characters are replaced, names are cut to 31 characters and
    duplicates get a " (2)", " (3)" ... suffix that still fits the limit.
    """
    used = set()
    names = []
    for title in titles:
        base = _INVALID_SHEET_CHARS.sub("-", title).strip() or "Market"
        base = base[:EXCEL_SHEET_NAME_LIMIT]
        name = base
        counter = 2
        while name.lower() in used:
            suffix = f" ({counter})"
            name = base[:EXCEL_SHEET_NAME_LIMIT - len(suffix)] + suffix
            counter += 1
        used.add(name.lower())
        names.append(name)
    return names


def export_markets_workbook(
    markets: List[MarketRecord],
    include_status_sheet: bool = True
) -> bytes:
    """
    Exports a batch of markets to one workbook.

    The first sheet summarizes every file (status, views, diagnostics);
    each market with brokerage data gets its own sheet.

    Args:
        markets: Records in upload order
        include_status_sheet: Whether to add the "Files" summary sheet

    Returns:
        Excel file bytes
    """
    with_data = [m for m in markets if m.brokerages]

    dataframes = {}
    if include_status_sheet:
        dataframes["Files"] = format_status_table(markets)

    reserved = list(dataframes)
    names = unique_sheet_names(reserved + [m.title for m in with_data])
    for name, market in zip(names[len(reserved):], with_data):
        dataframes[name] = format_brokerage_table(market)

    return export_multiple_sheets(dataframes)


def safe_export_name(title: str) -> str:
    """
    File-system friendly name for a market title.

    Example:
        "Carefree/Cave Creek Area" -> "CarefreeCave-Creek-Area"
    """
    name = re.sub(r"[^a-zA-Z0-9 ]", "", title)
    return re.sub(r"\s+", "-", name.strip())


def generate_file_name(prefix: str, extension: str, now: Optional[datetime] = None) -> str:
    """
    Generates a file name with a timestamp.

    Args:
        prefix: File name prefix
        extension: Extension (without dot)
        now: Timestamp to use (default: current time)

    Returns:
        Formatted file name
    """
    timestamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{timestamp}.{extension}"


def batch_export_name(extension: str, day: Optional[date] = None) -> str:
    """Name of a batch download, e.g. RLSIR-Market-Reports-2026-10-19.xlsx."""
    day = day or date.today()
    return f"{BATCH_EXPORT_PREFIX}-{day.isoformat()}.{extension}"
