"""
config.py — Loads preferences.yaml and environment variables.
Provides typed access to all configuration.
"""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Project root directory
PROJECT_ROOT = Path(__file__).parent

# Load preferences.yaml (path can be overridden for alternate setups)
PREFERENCES_PATH = Path(os.getenv("JOB_RADAR_PREFERENCES", PROJECT_ROOT / "preferences.yaml"))
if PREFERENCES_PATH.exists():
    with open(PREFERENCES_PATH, "r", encoding="utf-8") as f:
        _prefs = yaml.safe_load(f) or {}
else:
    _prefs = {}


# --- Scoring ---
_DEFAULT_WEIGHTS = {
    "green_flags": {"title": 25, "company": 15, "location": 10, "description": 5},
    "red_flags": {"title": -30, "company": -20, "location": -50, "description": -10},
}

def _load_weights() -> dict[str, dict[str, int]]:
    """Merge configured weights over the defaults so a partial override still scores every field."""
    configured = _prefs.get("scoring", {})
    weights = {}
    for kind, defaults in _DEFAULT_WEIGHTS.items():
        merged = dict(defaults)
        merged.update({k: int(v) for k, v in (configured.get(kind) or {}).items()})
        weights[kind] = merged
    return weights

SCORING_WEIGHTS = _load_weights()

# --- Sources ---
_sources = _prefs.get("sources", {})
BUILTIN_SOURCES = _sources.get("builtin", [
    {"name": "LinkedIn", "url": "https://www.linkedin.com/jobs"},
    {"name": "Indeed", "url": "https://uk.indeed.com"},
])
DEFAULT_ENABLED_SOURCES = _sources.get("default_enabled", ["LinkedIn", "Indeed"])

# --- Discovery ---
_discovery = _prefs.get("discovery", {})
SEARCH_URL_TEMPLATES = _discovery.get("search_urls", {})
BOARD_API_URLS = _discovery.get("board_apis", {})
BOARD_API_TIMEOUT = float(_discovery.get("board_api_timeout", 20))

# --- Rendering ---
_render = _prefs.get("render", {})
RENDER = {
    "navigation_timeout_ms": int(_render.get("navigation_timeout_ms", 30000)),
    "wait_until": _render.get("wait_until", "networkidle"),
    "settle_seconds": float(_render.get("settle_seconds", 1.0)),
    "scroll": bool(_render.get("scroll", True)),
    "user_agents": _render.get("user_agents") or [
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    ],
}

# --- Pipeline ---
STALE_DAYS = int(_prefs.get("pipeline", {}).get("stale_days", 7))

# --- API Keys & Secrets (from .env) ---
COMPANIES_HOUSE_API_KEY = os.getenv("COMPANIES_HOUSE_API_KEY", "")

# --- Database ---
DB_PATH = Path(os.getenv("JOB_RADAR_DB", PROJECT_ROOT / "data" / "radar.db"))

# --- Logging ---
LOG_DIR = Path(os.getenv("JOB_RADAR_LOG_DIR", PROJECT_ROOT / "logs"))
LOG_FILE = LOG_DIR / "job_radar.log"
LOG_LEVEL = os.getenv("JOB_RADAR_LOG_LEVEL", "INFO")


def validate_config():
    """Check that critical configuration is present."""
    warnings = []

    if not PREFERENCES_PATH.exists():
        warnings.append(f"Preferences file not found at {PREFERENCES_PATH} — using built-in defaults")
    if not COMPANIES_HOUSE_API_KEY:
        warnings.append("COMPANIES_HOUSE_API_KEY is not set — company enrichment will use mock data")
    if not SEARCH_URL_TEMPLATES and not BOARD_API_URLS:
        warnings.append("No search URLs or board APIs configured — sweeps will find nothing")

    return warnings
