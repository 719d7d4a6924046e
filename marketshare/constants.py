"""
constants.py - Constants and settings for the Market Share Reports project.

Defines the home brand patterns, the column maps of every supported
spreadsheet layout, processing messages and general settings so that the
whole project reads them from a single place.
"""

import re

# =============================================================================
# HOME BRAND
# =============================================================================
HOME_BRAND_DISPLAY_NAME = "Russ Lyon Sotheby's International Realty"
HOME_BRAND_SHORT_NAME = "RLSIR"

# Evaluated in order, first match wins
HOME_BRAND_PATTERNS = (
    re.compile(r"sotheby", re.IGNORECASE),
    re.compile(r"rlsir", re.IGNORECASE),
    re.compile(r"russ\s*lyon", re.IGNORECASE),
)

# =============================================================================
# FILE FORMATS
# =============================================================================
SUPPORTED_EXTENSIONS = (".xlsx", ".xls", ".csv")

CSV_ENCODINGS = ["utf-8-sig", "utf-8", "latin-1", "cp1252"]
CSV_SEPARATORS = ["|", ";", ",", "\t"]

BYTE_ORDER_MARK = "\ufeff"

# Layout A ("FH" export): shares stored as 0-1 decimals
LAYOUT_A_COLUMNS = {
    "rank": 0,
    "brand": 1,
    "dollar_volume": 2,        # Total ($)
    "percent_change": 3,       # % Chg
    "market_share_dollar": 6,  # Market Share ($)
    "total_sales": 8,          # Total (#)
    "market_share_units": 12,  # Market Share (#)
    "avg_price": 14,
    "sale_to_list_ratio": 15,
    "days_on_market": 16,
    "price_per_sqft": 17,
}

# Layout B ("Mkt %" export): no rank, no dollar share, no % change
LAYOUT_B_COLUMNS = {
    "brand": 1,
    "dollar_volume": 3,
    "total_sales": 6,
    "market_percent": 8,       # "Mkt %" header, unit share
    "days_on_market": 9,
    "avg_price": 10,
    "price_per_sqft": 11,
    "sale_to_list_ratio": 12,
}

LAYOUT_A_DECIMAL_ENCODED = True
LAYOUT_B_DECIMAL_ENCODED = False

# Header patterns used by format detection
LAYOUT_B_MARKER_INDEX = LAYOUT_B_COLUMNS["market_percent"]
LAYOUT_B_MARKER_PATTERN = re.compile(r"mkt\s*%", re.IGNORECASE)
LAYOUT_A_MARKER_PATTERNS = (
    re.compile(r"market\s*share\s*\(\$\)", re.IGNORECASE),
    re.compile(r"market\s*share\s*\(#\)", re.IGNORECASE),
)

# =============================================================================
# MARKET NAME DERIVATION
# =============================================================================
# (pattern, replacement) applied in order, first occurrence only
MARKET_NAME_RULES = (
    (re.compile(r"\.(csv|xlsx?|xls)$", re.IGNORECASE), ""),
    (re.compile(r"^marketshare", re.IGNORECASE), ""),
    (re.compile(r"^makretshare", re.IGNORECASE), ""),  # typo seen in real exports
    (re.compile(r"active", re.IGNORECASE), " Active "),
    (re.compile(r"luxury", re.IGNORECASE), " Luxury "),
    (re.compile(r"listings", re.IGNORECASE), " Listings "),
    (re.compile(r"NorthScottsdale", re.IGNORECASE), "North Scottsdale"),
    (re.compile(r"CarefreeCaveCreekArea", re.IGNORECASE), "Carefree/Cave Creek Area"),
    (re.compile(r"corridor", re.IGNORECASE), " Corridor"),
    (re.compile(r"Scottsdale", re.IGNORECASE), "Scottsdale"),
    (re.compile(r"Sedona", re.IGNORECASE), "Sedona"),
    (re.compile(r"Tubac", re.IGNORECASE), "Tubac"),
    # Upper case only: "dh" and "dm" also occur inside words (Redhawk, Goldmine)
    (re.compile(r"DH"), " Desert Highlands "),
    (re.compile(r"DM"), " Desert Mountain "),
)

# =============================================================================
# METRIC VIEWS AND CHARTS
# =============================================================================
MAX_BROKERAGES_PREVIEW = 15
MAX_BROKERAGES_EXPORT = 10

VIEW_LABELS = {
    "dollar": "Dollar Volume",
    "units": "Units Sold",
}

# =============================================================================
# PROCESSING MESSAGES
# =============================================================================
ERROR_NO_DATA_ROWS = "File has no data rows"
ERROR_UNKNOWN_FORMAT = (
    "Unrecognized file format. Expected Market Share ($)/(#) or Mkt % headers."
)
ERROR_NO_VALID_ROWS = "No valid brokerage data found"
ERROR_UNEXPECTED = "Unknown error processing file"
ERROR_CANCELLED = "Processing cancelled"

WARNING_HOME_BRAND_NOT_FOUND = f"{HOME_BRAND_DISPLAY_NAME} not found in this file"
WARNING_NO_REPORT = (
    f"{HOME_BRAND_SHORT_NAME} is not #1 in any market share view. "
    "Chart will not be generated."
)
WARNING_SHARE_OVER_100 = "{name}: {label} share {value:.1f}% exceeds 100%"

DEVELOPER_CONTACT_MESSAGE = "Something looks off. Do not distribute this report."
DEVELOPER_CONTACT_ACTION = "Contact the developer before proceeding."

# =============================================================================
# INTERFACE TEXTS
# =============================================================================
APP_TITLE = "Market Share Reports"
APP_SUBTITLE = "Brokerage market share by dollar volume and units sold"
APP_ICON = ":house_buildings:"

STATUS_ICONS = {
    "ready": ":white_check_mark:",
    "warning": ":warning:",
    "error": ":x:",
}

# =============================================================================
# FORMATTING
# =============================================================================
CURRENCY_FORMAT = "${:,.0f}"
PERCENT_FORMAT = "{:.1f}%"
NUMBER_FORMAT = "{:,.0f}"

EXCEL_SHEET_NAME_LIMIT = 31
BATCH_EXPORT_PREFIX = "RLSIR-Market-Reports"
