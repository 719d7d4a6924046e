"""
io.py - Reading uploaded spreadsheets into a raw grid of rows.

This module contains:
- Reading of Excel (.xlsx/.xls) and CSV files with pandas
- Encoding and separator detection for CSV exports
- Conversion to a list of rows where row 0 is the header row

No header inference happens here: format detection and parsing work on
fixed column indices, so every cell is kept in its original position.
"""

import csv
import logging
from io import BytesIO, StringIO
from typing import Any, BinaryIO, List, Tuple, Union

import pandas as pd

from .constants import CSV_ENCODINGS, CSV_SEPARATORS, SUPPORTED_EXTENSIONS

logger = logging.getLogger(__name__)

Grid = List[List[Any]]


class DataValidationError(Exception):
    """Custom exception for unreadable or unsupported input files."""
    pass


def read_bytes(data: Union[bytes, bytearray, BinaryIO]) -> bytes:
    """
    Returns the raw content of an upload.

    Args:
        data: Bytes or a binary file-like object (e.g. a Streamlit UploadedFile)

    Returns:
        File content as bytes
    """
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)

    if hasattr(data, "seek"):
        data.seek(0)
    content = data.read()
    if not isinstance(content, (bytes, bytearray)):
        raise DataValidationError("Uploaded file did not return binary content")
    return bytes(content)


def decode_csv(content: bytes) -> Tuple[str, str]:
    """
    Decodes CSV bytes trying the known encodings in order.

    Returns:
        Tuple (text, encoding used)

    Raises:
        DataValidationError: If no encoding can decode the file
    """
    for enc in CSV_ENCODINGS:
        try:
            return content.decode(enc), enc
        except UnicodeDecodeError:
            continue

    raise DataValidationError(
        "Could not decode the CSV file. "
        "Try converting it to Excel (.xlsx) before uploading."
    )


def detect_separator(first_line: str) -> str:
    """Picks the most frequent known separator in the header line (default ',')."""
    counts = {sep: first_line.count(sep) for sep in CSV_SEPARATORS}
    separator = max(counts, key=counts.get)
    return separator if counts[separator] > 0 else ","


def _frame_to_grid(df: pd.DataFrame) -> Grid:
    """Converts a header-less DataFrame into rows, dropping blank rows."""
    df = df.astype(object).where(pd.notna(df), "")

    rows = []
    for row in df.itertuples(index=False, name=None):
        cells = list(row)
        if all(str(cell).strip() == "" for cell in cells):
            continue
        rows.append(cells)
    return rows


def read_spreadsheet(data: Union[bytes, bytearray, BinaryIO], file_name: str) -> Grid:
    """
    Reads the first sheet of an Excel file, or a CSV file, as a grid of rows.

    Args:
        data: Bytes or binary buffer of the uploaded file
        file_name: File name, used to detect the extension

    Returns:
        List of rows (header first); empty cells are ""

    Raises:
        DataValidationError: If the format is not supported or the file is unreadable
    """
    name_lower = file_name.lower()
    if not name_lower.endswith(SUPPORTED_EXTENSIONS):
        raise DataValidationError(
            f"Unsupported file format: {file_name}. Use .xlsx, .xls or .csv"
        )

    content = read_bytes(data)
    if not content:
        raise DataValidationError(f"File {file_name} is empty")

    try:
        if name_lower.endswith(".csv"):
            text, encoding = decode_csv(content)
            lines = text.splitlines()
            separator = detect_separator(lines[0] if lines else "")

            # Data rows may be wider than the header row (trailing blank header
            # cells are dropped by some exports); size the frame to the widest row.
            reader = csv.reader(StringIO(text), delimiter=separator, quotechar='"')
            width = max((len(fields) for fields in reader), default=0)
            if width == 0:
                return []

            df = pd.read_csv(
                StringIO(text),
                sep=separator,
                header=None,
                names=range(width),
                dtype=str,
                engine="python",
                quotechar='"',
                keep_default_na=False,
                skip_blank_lines=True,
                on_bad_lines="error",
            )
            logger.info(
                "[ingest] file=%s encoding=%s separator=%r columns=%d rows=%d",
                file_name, encoding, separator, width, len(df),
            )
        else:
            # openpyxl for xlsx, xlrd for legacy xls
            engine = "openpyxl" if name_lower.endswith(".xlsx") else "xlrd"
            df = pd.read_excel(
                BytesIO(content), sheet_name=0, header=None, dtype=object, engine=engine
            )
            logger.info("[ingest] file=%s engine=%s rows=%d", file_name, engine, len(df))
    except DataValidationError:
        raise
    except pd.errors.EmptyDataError:
        return []
    except Exception as e:
        raise DataValidationError(f"Error reading file {file_name}: {str(e)[:300]}") from e

    return _frame_to_grid(df)
