"""
Immistats — Configuration: paths, status taxonomy, region/category options, model constants.
"""
import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Paths — override with IMMISTATS_DATA_DIR / IMMISTATS_DATA_PATH for deployment
# ---------------------------------------------------------------------------
_data_dir = Path(os.environ.get("IMMISTATS_DATA_DIR", str(Path.home() / "immistats")))
BASE_FOLDER = _data_dir
DATA_PATH = Path(os.environ.get("IMMISTATS_DATA_PATH", str(_data_dir / "getStatsData.json")))
REPORTS_FOLDER = BASE_FOLDER / "reports"

# ---------------------------------------------------------------------------
# Cache — snapshot is reloaded lazily once it is older than this
# ---------------------------------------------------------------------------
CACHE_TTL_SECONDS = 60 * 60

# ---------------------------------------------------------------------------
# Raw e-Stat payload keys
# ---------------------------------------------------------------------------
RAW_VALUE_PATH = ("GET_STATS_DATA", "STATISTICAL_DATA", "DATA_INF", "VALUE")

RAW_COLUMN_MAP = {
    "@time": "time_code",
    "@cat01": "status",
    "@cat02": "category",
    "@cat03": "region",
    "$": "raw_value",
}

# ---------------------------------------------------------------------------
# Status taxonomy (cat01)
# ---------------------------------------------------------------------------
STATUS_LABELS = {
    "100000": "Total Received",
    "102000": "Carryover",
    "103000": "New Received",
    "300000": "Total Processed",
    "301000": "Granted",
    "302000": "Denied",
    "305000": "Other",
    "400000": "Pending",
}

# ---------------------------------------------------------------------------
# Regions (cat03) — children are folded into the parent's published figure
# ---------------------------------------------------------------------------
NATIONWIDE_REGION = "100000"

REGION_OPTIONS = [
    {"value": "all", "label": "Nationwide", "short": "ALL"},
    {"value": "101720", "label": "Fukuoka", "short": "FUK", "children": ["101740"]},
    {"value": "101580", "label": "Hiroshima", "short": "HIJ"},
    {"value": "101490", "label": "Kobe", "short": "UKB"},
    {"value": "101350", "label": "Nagoya", "short": "NAG", "children": ["101370"]},
    {"value": "101740", "label": "Naha", "short": "OKA"},
    {"value": "101460", "label": "Osaka", "short": "ITM", "children": ["101480", "101490"]},
    {"value": "101010", "label": "Sapporo", "short": "CTS"},
    {"value": "101090", "label": "Sendai", "short": "SDJ"},
    {"value": "101170", "label": "Tokyo", "short": "TYO", "children": ["101190", "101200", "101210"]},
    {"value": "101670", "label": "Takamatsu", "short": "TAK"},
    {"value": "101210", "label": "Yokohama", "short": "YOK"},
    {"value": "101190", "label": "Narita Airport", "short": "NRT"},
    {"value": "101200", "label": "Haneda Airport", "short": "HND"},
    {"value": "101480", "label": "Kansai Airport", "short": "KIX"},
    {"value": "101370", "label": "Chubu Airport", "short": "NGO"},
]

REGION_HIERARCHY: dict[str, tuple[str, ...]] = {
    opt["value"]: tuple(opt["children"]) for opt in REGION_OPTIONS if opt.get("children")
}

REGION_LABELS = {
    (NATIONWIDE_REGION if opt["value"] == "all" else opt["value"]): opt["label"]
    for opt in REGION_OPTIONS
}

# ---------------------------------------------------------------------------
# Application categories (cat02)
# ---------------------------------------------------------------------------
CATEGORY_OPTIONS = [
    {"value": "all", "label": "All Types", "short": "ALL"},
    {"value": "10", "label": "Status Acquisition", "short": "取得"},
    {"value": "20", "label": "Period Extension", "short": "更新"},
    {"value": "30", "label": "Status Change", "short": "変更"},
    {"value": "40", "label": "Extra-Status Activities", "short": "資格外"},
    {"value": "50", "label": "Re-entry", "short": "再入国"},
    {"value": "60", "label": "Permanent Residence", "short": "永住"},
]

CATEGORY_LABELS = {opt["value"]: opt["label"] for opt in CATEGORY_OPTIONS if opt["value"] != "all"}

BACKLOG_CATEGORIES = ["10", "20", "30", "40", "50", "60"]

# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------
APPROVAL_RATE_MIN_PROCESSED = 50

# ---------------------------------------------------------------------------
# Estimation model
# ---------------------------------------------------------------------------
EWMA_DECAY = 0.85          # latest month weighs ~2.3x the oldest in a 6-month window
EWMA_WINDOW_MONTHS = 6
DAYS_PER_MONTH = 30        # processing-rate divisor; arrivals use true calendar days
MAX_FALLBACK_DAYS = 365 * 10

# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------
CORS_ORIGINS = [
    o.strip()
    for o in os.environ.get("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001").split(",")
    if o.strip()
]
