"""
marketshare - Main package of the Market Share Reports application.

This package contains the data processing modules:
- constants: Constants and settings
- models: Brokerage and market records
- normalize: Numeric, brand and market name normalization
- io: Reading of uploaded spreadsheets
- formats: Layout detection and row parsing
- transform: Ranking, validation and metrics
- processor: One MarketRecord per uploaded file
- reports: Tables, KPI cards and summaries
- export: Data export
"""

from .constants import *
from .models import (
    BrokerageRecord,
    FileFormat,
    KPIMetrics,
    MarketRecord,
    MetricView,
    RecordStatus,
)
from .normalize import (
    parse_numeric,
    normalize_percentage_scale,
    is_home_brand,
    canonicalize_name,
    derive_market_name,
)
from .io import (
    read_spreadsheet,
    DataValidationError,
)
from .formats import (
    detect_format,
    parse_layout_a_row,
    parse_layout_b_rows,
    parse_rows,
)
from .transform import (
    rank_and_validate,
    sort_by_share,
    assign_ranks,
    compute_market_totals,
    resolve_status,
    calculate_kpi_metrics,
    top_brokerages,
)
from .processor import (
    MarketIdGenerator,
    process_file,
    process_files,
)
from .reports import (
    ReportUnavailableError,
    ensure_view_available,
    build_report_context,
    generate_executive_summary,
    build_kpi_cards,
    format_brokerage_table,
    format_status_table,
    format_value,
    ready_markets,
)
from .export import (
    export_csv,
    export_excel,
    export_markets_workbook,
    generate_file_name,
    safe_export_name,
    batch_export_name,
)
