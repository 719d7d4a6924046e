"""Shared fixtures: in-memory spreadsheet files and record factories."""
import os
import sys
from io import BytesIO

import pandas as pd
import pytest

_root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _root_dir not in sys.path:
    sys.path.insert(0, _root_dir)

from marketshare.models import BrokerageRecord  # noqa: E402

HOME = "Russ Lyon Sotheby's International Realty"

LAYOUT_A_HEADER = [
    "Rank", "Brand", "Total ($)", "% Chg", "", "", "Market Share ($)", "",
    "Total (#)", "", "", "", "Market Share (#)", "Avg Price", "SP/LP", "DOM", "$/SqFt",
]

LAYOUT_B_HEADER = [
    "#", "Brand", "Office", "Volume", "", "", "Sales", "", "Mkt %",
    "DOM", "Avg Price", "$/SqFt", "SP/LP",
]


def layout_a_row(brand, volume, share_dollar, share_units, rank=1, sales=10):
    """Layout A data row with the given figures and zeros elsewhere."""
    return [rank, brand, volume, 0, 0, 0, share_dollar, 0, sales, 0, 0, 0,
            share_units, 500000, 0.98, 45, 250]


def layout_b_row(brand, volume, market_percent, sales=10):
    return [1, brand, "Main Office", volume, "", "", sales, "", market_percent,
            60, 750000, 400, 97.5]


@pytest.fixture
def csv_bytes():
    """Factory turning a list of rows into CSV file bytes (no header inference)."""
    def _make(rows):
        return pd.DataFrame(rows).to_csv(header=False, index=False).encode("utf-8")
    return _make


@pytest.fixture
def xlsx_bytes():
    """Factory turning a list of rows into .xlsx file bytes."""
    def _make(rows):
        buffer = BytesIO()
        pd.DataFrame(rows).to_excel(buffer, header=False, index=False, engine="openpyxl")
        return buffer.getvalue()
    return _make


@pytest.fixture
def brokerage():
    """Factory for BrokerageRecord with sensible defaults."""
    def _make(name, share_dollar, share_units, **kwargs):
        values = dict(
            name=name,
            original_name=name,
            is_home_brand=name == HOME,
            market_share_dollar=share_dollar,
            market_share_units=share_units,
        )
        values.update(kwargs)
        return BrokerageRecord(**values)
    return _make


@pytest.fixture
def id_factory():
    """Deterministic ids: market-test-1, market-test-2, ..."""
    counter = iter(range(1, 10_000))
    return lambda: f"market-test-{next(counter)}"
