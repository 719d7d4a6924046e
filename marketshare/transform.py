"""
transform.py - Ranking, validation and metric calculations.

This module contains:
- Sorting brokerages by a share metric and assigning ranks
- #1 status of the home brand per metric view
- Data quality warnings and final record status
- Market totals, home brand KPIs and top-N selection for charts
"""

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from .constants import (
    WARNING_HOME_BRAND_NOT_FOUND,
    WARNING_NO_REPORT,
    WARNING_SHARE_OVER_100,
)
from .models import (
    BrokerageRecord,
    FileFormat,
    KPIMetrics,
    MarketRecord,
    MetricView,
    RecordStatus,
)


@dataclass(frozen=True)
class RankingResult:
    brokerages: Tuple[BrokerageRecord, ...]
    home_brand_record: Optional[BrokerageRecord]
    is_home_brand_first_by_dollar: bool
    is_home_brand_first_by_units: bool
    available_metric_views: Tuple[MetricView, ...]
    warnings: Tuple[str, ...]


def sort_by_share(
    brokerages: Sequence[BrokerageRecord],
    view: MetricView
) -> List[BrokerageRecord]:
    """
    Returns a new list sorted by the view's share, highest first.

    The sort is stable: ties keep their parse order.
    """
    return sorted(brokerages, key=lambda b: b.share(view), reverse=True)


def assign_ranks(brokerages: Sequence[BrokerageRecord]) -> List[BrokerageRecord]:
    """Returns copies of the records ranked 1..N in the given order."""
    return [replace(b, rank=i + 1) for i, b in enumerate(brokerages)]


def rank_and_validate(brokerages: Sequence[BrokerageRecord]) -> RankingResult:
    """
    Orders, ranks and validates the brokerages of one market.

    Steps:
    1. Sort by dollar share (display order) and rank 1..N
    2. Check whether the home brand is #1 by dollar and by units
    3. Collect warnings: home brand missing, no report possible,
       shares above 100% (flagged only, never clamped)

    Args:
        brokerages: Non-empty list of parsed records

    Returns:
        RankingResult
    """
    if not brokerages:
        raise ValueError("rank_and_validate needs at least one brokerage")

    warnings = []

    ranked = assign_ranks(sort_by_share(brokerages, MetricView.DOLLAR))

    top_by_dollar = sort_by_share(ranked, MetricView.DOLLAR)[0]
    top_by_units = sort_by_share(ranked, MetricView.UNITS)[0]
    first_by_dollar = top_by_dollar.is_home_brand
    first_by_units = top_by_units.is_home_brand

    views = []
    if first_by_dollar:
        views.append(MetricView.DOLLAR)
    if first_by_units:
        views.append(MetricView.UNITS)

    home_brand = next((b for b in ranked if b.is_home_brand), None)
    if home_brand is None:
        warnings.append(WARNING_HOME_BRAND_NOT_FOUND)

    if not views:
        warnings.append(WARNING_NO_REPORT)

    for b in ranked:
        if b.market_share_dollar > 100:
            warnings.append(WARNING_SHARE_OVER_100.format(
                name=b.name, label="dollar", value=b.market_share_dollar
            ))
        if b.market_share_units > 100:
            warnings.append(WARNING_SHARE_OVER_100.format(
                name=b.name, label="unit", value=b.market_share_units
            ))

    return RankingResult(
        brokerages=tuple(ranked),
        home_brand_record=home_brand,
        is_home_brand_first_by_dollar=first_by_dollar,
        is_home_brand_first_by_units=first_by_units,
        available_metric_views=tuple(views),
        warnings=tuple(warnings),
    )


def compute_market_totals(brokerages: Sequence[BrokerageRecord]) -> Tuple[float, float]:
    """
    Sums dollar volume and total sales over every brokerage.

    Returns:
        Tuple (total_market_dollar, total_market_units)
    """
    total_dollar = sum(b.dollar_volume for b in brokerages)
    total_units = sum(b.total_sales for b in brokerages)
    return total_dollar, total_units


def resolve_status(
    file_format: FileFormat,
    brokerages: Sequence[BrokerageRecord],
    warnings: Sequence[str],
    errors: Sequence[str]
) -> RecordStatus:
    """Final status: error, then warning, then ready."""
    if file_format is FileFormat.UNKNOWN or not brokerages or errors:
        return RecordStatus.ERROR
    if warnings:
        return RecordStatus.WARNING
    return RecordStatus.READY


def calculate_kpi_metrics(market: MarketRecord, view: MetricView) -> Optional[KPIMetrics]:
    """
    Calculates the home brand KPIs shown on report cards.

    gap_to_second is the home brand share minus the best competitor share
    for the chosen view (0 when there is no competitor).

    Args:
        market: Assembled market record
        view: Metric view used for the gap

    Returns:
        KPIMetrics, or None when the home brand is not in the file
    """
    home = market.home_brand_record
    if home is None:
        return None

    view = MetricView(view)
    second = next(
        (b for b in sort_by_share(market.brokerages, view) if not b.is_home_brand),
        None,
    )
    gap = home.share(view) - second.share(view) if second else 0.0

    return KPIMetrics(
        total_sales=home.total_sales,
        avg_price=home.avg_price,
        days_on_market=home.days_on_market,
        price_per_sqft=home.price_per_sqft,
        sale_to_list_ratio=home.sale_to_list_ratio,
        dollar_volume=home.dollar_volume,
        market_share_dollar=home.market_share_dollar,
        market_share_units=home.market_share_units,
        gap_to_second=gap,
        second_place_name=second.name if second else "",
    )


def top_brokerages(
    market: MarketRecord,
    view: MetricView,
    limit: int
) -> List[BrokerageRecord]:
    """Top brokerages by the view's share, for chart feeds."""
    if limit <= 0:
        return []
    return sort_by_share(market.brokerages, MetricView(view))[:limit]
