"""
reports.py - Tables, KPI cards and narrative summaries for display and reports.

This module prepares MarketRecord data for the interface and for the
external report renderer. The renderer must only be called through
build_report_context, which refuses views the record does not make available.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pandas as pd

from .constants import (
    CURRENCY_FORMAT,
    HOME_BRAND_DISPLAY_NAME,
    HOME_BRAND_SHORT_NAME,
    MAX_BROKERAGES_EXPORT,
    NUMBER_FORMAT,
    PERCENT_FORMAT,
    VIEW_LABELS,
)
from .models import BrokerageRecord, KPIMetrics, MarketRecord, MetricView
from .transform import calculate_kpi_metrics, top_brokerages


class ReportUnavailableError(Exception):
    """Raised when a report is requested for a view the record cannot produce."""
    pass


@dataclass(frozen=True)
class ReportContext:
    """Everything the report renderer consumes for one page."""
    market_id: str
    title: str
    view: MetricView
    brokerages: List[BrokerageRecord]
    kpis: Optional[KPIMetrics]
    summary: str
    requires_confirmation: bool


def format_dollar(value: float) -> str:
    """
    Compact dollar amount: $1.25B, $4.5M, $850K, $900.

    Args:
        value: Amount in dollars

    Returns:
        Formatted string
    """
    if value >= 1_000_000_000:
        return f"${value / 1_000_000_000:.2f}B"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"${value / 1_000:.0f}K"
    return f"${value:.0f}"


def format_value(value: Any, kind: str) -> str:
    """
    Formats a value according to the given type.

    Args:
        value: Value to format
        kind: 'currency', 'percent', 'number' or 'compact_currency'

    Returns:
        Formatted string ("-" for missing values)
    """
    if value is None or pd.isna(value):
        return "-"

    if kind == 'currency':
        return CURRENCY_FORMAT.format(value)
    elif kind == 'compact_currency':
        return format_dollar(value)
    elif kind == 'percent':
        return PERCENT_FORMAT.format(value)
    elif kind == 'number':
        return NUMBER_FORMAT.format(value)
    else:
        return str(value)


def ensure_view_available(market: MarketRecord, view: MetricView) -> MetricView:
    """
    Guards the report renderer.

    Raises:
        ReportUnavailableError: If the record is unusable or the view is not available
    """
    view = MetricView(view)
    if not market.can_generate_report or view not in market.available_metric_views:
        raise ReportUnavailableError(
            f"{market.title}: no {view.value} report available "
            f"({HOME_BRAND_SHORT_NAME} is not #1 by {VIEW_LABELS[view.value].lower()})"
        )
    return view


def generate_executive_summary(market: MarketRecord, view: MetricView) -> str:
    """
    Writes the narrative paragraph shown under the chart.

    Args:
        market: Assembled market record
        view: Metric view the report is built for

    Returns:
        Summary text
    """
    view = MetricView(view)
    home = market.home_brand_record
    if home is None:
        return (
            f"Market data for {market.title} has been processed. "
            f"{HOME_BRAND_DISPLAY_NAME} was not found in this dataset."
        )

    share_label = "dollar volume" if view is MetricView.DOLLAR else "units sold"
    kpis = calculate_kpi_metrics(market, view)

    opening = (
        f"{HOME_BRAND_DISPLAY_NAME} commands {home.share(view):.1f}% of the "
        f"{market.title} market by {share_label}"
    )
    if view is MetricView.DOLLAR and home.dollar_volume > 0:
        opening += f" ({format_dollar(home.dollar_volume)})"

    if kpis.second_place_name and kpis.gap_to_second > 0:
        opening += (
            f", leading {kpis.second_place_name} by "
            f"{kpis.gap_to_second:.1f} percentage points."
        )
    else:
        opening += "."

    parts = [opening]

    metrics = []
    if home.avg_price > 0:
        metrics.append(f"an average sale price of {format_dollar(home.avg_price)}")
    if home.days_on_market > 0:
        metrics.append(f"{round(home.days_on_market)} average days on market")
    if home.price_per_sqft > 0:
        metrics.append(f"{format_dollar(home.price_per_sqft)}/sqft")

    if metrics:
        parts.append(
            f"With {', '.join(metrics)}, {HOME_BRAND_SHORT_NAME} maintains a premium "
            "market position among the top brokerages."
        )

    if home.total_sales > 0:
        parts.append(
            f"Across {NUMBER_FORMAT.format(round(home.total_sales))} total transactions, "
            f"the firm demonstrates consistent market leadership in the {market.title} area."
        )

    return " ".join(parts)


def build_kpi_cards(kpis: KPIMetrics) -> List[Dict[str, Any]]:
    """
    Builds the KPI cards list (label, formatted value, highlight flag).

    Zero values for days on market, price per sqft and sale-to-list ratio
    mean the layout did not provide them and are shown as "-".
    """
    return [
        {
            'label': 'Dollar Volume',
            'value': format_dollar(kpis.dollar_volume),
            'highlight': True,
        },
        {
            'label': 'Total Sales',
            'value': NUMBER_FORMAT.format(round(kpis.total_sales)),
            'highlight': False,
        },
        {
            'label': 'Avg Sale Price',
            'value': format_dollar(kpis.avg_price),
            'highlight': True,
        },
        {
            'label': 'Days on Market',
            'value': f"{round(kpis.days_on_market)}" if kpis.days_on_market > 0 else "-",
            'highlight': False,
        },
        {
            'label': 'Price / SqFt',
            'value': f"${round(kpis.price_per_sqft)}" if kpis.price_per_sqft > 0 else "-",
            'highlight': False,
        },
        {
            'label': 'SP / LP Ratio',
            'value': (
                PERCENT_FORMAT.format(kpis.sale_to_list_ratio * 100)
                if kpis.sale_to_list_ratio > 0 else "-"
            ),
            'highlight': False,
        },
    ]


def build_report_context(
    market: MarketRecord,
    view: MetricView,
    limit: int = MAX_BROKERAGES_EXPORT
) -> ReportContext:
    """
    Collects the data for one report page after checking the view is available.

    Raises:
        ReportUnavailableError: See ensure_view_available
    """
    view = ensure_view_available(market, view)
    return ReportContext(
        market_id=market.id,
        title=market.title,
        view=view,
        brokerages=top_brokerages(market, view, limit),
        kpis=calculate_kpi_metrics(market, view),
        summary=generate_executive_summary(market, view),
        requires_confirmation=market.requires_confirmation,
    )


def format_brokerage_table(market: MarketRecord) -> pd.DataFrame:
    """
    Builds the brokerage table of one market for display and export.

    Args:
        market: Assembled market record

    Returns:
        DataFrame ordered by rank, one row per brokerage
    """
    columns = [
        'Rank', 'Brokerage', 'Original Name', 'Home Brand', 'Dollar Volume',
        'Market Share ($) %', 'Market Share (#) %', 'Total Sales', 'Avg Price',
        'Days on Market', 'Price / SqFt', 'SP / LP', '% Change',
    ]

    rows = [
        [
            b.rank,
            b.name,
            b.original_name,
            b.is_home_brand,
            b.dollar_volume,
            round(b.market_share_dollar, 2),
            round(b.market_share_units, 2),
            b.total_sales,
            b.avg_price,
            b.days_on_market,
            b.price_per_sqft,
            round(b.sale_to_list_ratio, 4),
            b.percent_change,
        ]
        for b in market.brokerages
    ]

    return pd.DataFrame(rows, columns=columns)


def format_status_table(markets: List[MarketRecord]) -> pd.DataFrame:
    """
    Summarizes a batch of records: one row per uploaded file.

    Args:
        markets: Records in upload order

    Returns:
        DataFrame with title, file, format, status, views and diagnostics
    """
    rows = []
    for m in markets:
        rows.append({
            'Market': m.title,
            'File': m.source_file_name,
            'Format': m.detected_format.value,
            'Status': m.status.value,
            'Views': ", ".join(v.value for v in m.available_metric_views) or "-",
            'Brokerages': len(m.brokerages),
            'Warnings': len(m.warnings),
            'Errors': "; ".join(m.errors),
        })

    return pd.DataFrame(rows, columns=[
        'Market', 'File', 'Format', 'Status', 'Views', 'Brokerages', 'Warnings', 'Errors'
    ])


def ready_markets(markets: List[MarketRecord]) -> List[MarketRecord]:
    """Records that can produce at least one report, in upload order."""
    return [m for m in markets if m.can_generate_report]
