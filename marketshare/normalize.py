"""
normalize.py - Numeric, brand name and market name normalization.

This module contains:
- Safe parsing of currency/percent/number cells
- Percentage scale correction (0-1 decimals -> 0-100)
- Home brand identification and canonical display name
- Market name derivation from the uploaded file name
"""

import math
import re
from typing import Any

import pandas as pd

from .constants import (
    HOME_BRAND_PATTERNS,
    HOME_BRAND_DISPLAY_NAME,
    MARKET_NAME_RULES,
)

_NUMERIC_NOISE = re.compile(r"[$,%]")


def parse_numeric(value: Any) -> float:
    """
    Parses a spreadsheet cell into a float.

    Rules:
    1. None, NaN, empty strings and booleans are 0
    2. Remove $ , % and surrounding whitespace
    3. Anything still unparseable (or infinite) is 0

    Args:
        value: Cell value (str, int, float, None...)

    Returns:
        Parsed number, never NaN
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            if pd.isna(value):
                return 0.0
        except (TypeError, ValueError):
            return 0.0

        text = _NUMERIC_NOISE.sub("", str(value)).strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0

    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def normalize_percentage_scale(value: float, source_is_decimal_encoded: bool) -> float:
    """
    Brings a share value to the 0-100 scale.

    Values strictly between 0 and 1 are decimals exported by Excel and are
    multiplied by 100. Every layout turned out to export decimals somewhere,
    so the correction happens whatever source_is_decimal_encoded says; the
    flag only records how the layout is documented.

    Args:
        value: Raw share value
        source_is_decimal_encoded: Whether the layout stores shares as decimals

    Returns:
        Share on the 0-100 scale
    """
    if 0 < value < 1:
        return value * 100
    return value


def is_home_brand(name: str) -> bool:
    """Checks the name against the home brand aliases."""
    if not name:
        return False
    return any(pattern.search(str(name)) for pattern in HOME_BRAND_PATTERNS)


def canonicalize_name(name: str) -> str:
    """
    Returns the display name for a brokerage.

    Args:
        name: Brokerage name as found in the file

    Returns:
        Canonical home brand name, or the trimmed input for other brokerages
    """
    if is_home_brand(name):
        return HOME_BRAND_DISPLAY_NAME
    return str(name).strip()


def derive_market_name(file_name: str) -> str:
    """
    Turns an export file name into a readable market title.

    The rules in MARKET_NAME_RULES run in order on the output of the previous
    rule: extension and prefixes first, then abbreviation expansions and word
    spacing. Whitespace is collapsed and each word gets an upper-case first
    letter.

    Example:
        "marketshareNorthScottsdaleluxury.xlsx" -> "North Scottsdale Luxury"

    Args:
        file_name: Name of the uploaded file

    Returns:
        Market title, or the original file name if nothing is left
    """
    name = file_name
    for pattern, replacement in MARKET_NAME_RULES:
        name = pattern.sub(replacement, name, count=1)

    name = re.sub(r"\s+", " ", name).strip()

    if name:
        name = " ".join(word[:1].upper() + word[1:] for word in name.split(" "))

    return name or file_name
