"""
models.py - Data model shared by the ingestion pipeline and its consumers.

BrokerageRecord holds one brokerage's figures inside one market file.
MarketRecord is the assembled, ranked and validated result for one upload;
after construction only its display title may change.
"""

from dataclasses import dataclass, field, FrozenInstanceError
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class FileFormat(str, Enum):
    """Spreadsheet layouts recognized by the format detector."""

    LAYOUT_A = "layout_a"  # "FH" export, Market Share ($) / (#) columns
    LAYOUT_B = "layout_b"  # "Mkt %" export, dollar share derived from volume
    UNKNOWN = "unknown"


class MetricView(str, Enum):
    DOLLAR = "dollar"
    UNITS = "units"


class RecordStatus(str, Enum):
    PARSING = "parsing"
    VALIDATING = "validating"
    READY = "ready"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class BrokerageRecord:
    """
    Performance of a single brokerage within one market file.

    Shares are on a 0-100 scale, sale_to_list_ratio on a 0-1 scale.
    """
    name: str
    original_name: str
    is_home_brand: bool
    rank: int = 1
    dollar_volume: float = 0.0
    market_share_dollar: float = 0.0
    market_share_units: float = 0.0
    total_sales: float = 0.0
    avg_price: float = 0.0
    days_on_market: float = 0.0
    price_per_sqft: float = 0.0
    sale_to_list_ratio: float = 0.0
    percent_change: float = 0.0

    def share(self, view: MetricView) -> float:
        """Market share for the given view."""
        if MetricView(view) is MetricView.DOLLAR:
            return self.market_share_dollar
        return self.market_share_units


@dataclass(frozen=True)
class KPIMetrics:
    total_sales: float
    avg_price: float
    days_on_market: float
    price_per_sqft: float
    sale_to_list_ratio: float
    dollar_volume: float
    market_share_dollar: float
    market_share_units: float
    gap_to_second: float
    second_place_name: str


# Fields a caller may still assign once the record is built
_MUTABLE_FIELDS = frozenset({"display_title_override"})


@dataclass
class MarketRecord:
    """
    Result of processing one uploaded file.

    The record is sealed after __init__: assigning any field other than
    display_title_override raises FrozenInstanceError.
    """
    id: str
    source_file_name: str
    derived_market_name: str
    detected_format: FileFormat = FileFormat.UNKNOWN
    brokerages: Tuple[BrokerageRecord, ...] = ()
    home_brand_record: Optional[BrokerageRecord] = None
    is_home_brand_first_by_dollar: bool = False
    is_home_brand_first_by_units: bool = False
    available_metric_views: Tuple[MetricView, ...] = ()
    total_market_dollar: float = 0.0
    total_market_units: float = 0.0
    status: RecordStatus = RecordStatus.ERROR
    warnings: Tuple[str, ...] = ()
    errors: Tuple[str, ...] = ()
    processed_at: datetime = field(default_factory=datetime.now)
    display_title_override: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "_sealed", True)

    def __setattr__(self, name, value):
        if getattr(self, "_sealed", False) and name not in _MUTABLE_FIELDS:
            raise FrozenInstanceError(f"cannot assign to field '{name}'")
        object.__setattr__(self, name, value)

    def __delattr__(self, name):
        raise FrozenInstanceError(f"cannot delete field '{name}'")

    @property
    def title(self) -> str:
        """Title shown on the report: the override when set, else the derived name."""
        if self.display_title_override and self.display_title_override.strip():
            return self.display_title_override.strip()
        return self.derived_market_name

    @property
    def can_generate_report(self) -> bool:
        return self.status is not RecordStatus.ERROR and len(self.available_metric_views) > 0

    @property
    def requires_confirmation(self) -> bool:
        """Warning records must be confirmed before a report is distributed."""
        return self.status is RecordStatus.WARNING
