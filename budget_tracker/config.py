"""Configuration management for the budget tracker.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

# Base project root - assumes this file is in budget_tracker/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("BUDGET_TRACKER_DATA_DIR", _PROJECT_ROOT / "data"))
SNAPSHOTS_DIR = DATA_DIR / "snapshots"

# Ledger snapshot consumed by the dashboard and the report script
SNAPSHOT_PATH = Path(
    os.getenv("BUDGET_TRACKER_SNAPSHOT", SNAPSHOTS_DIR / "snapshot.json")
).resolve()

DEFAULT_BASE_CURRENCY = "USD"
BASE_CURRENCY = os.getenv("BUDGET_TRACKER_BASE_CURRENCY", DEFAULT_BASE_CURRENCY).strip().upper()

LOG_LEVEL = os.getenv("BUDGET_TRACKER_LOG_LEVEL", "WARNING").strip().upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, SNAPSHOTS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


def get_snapshot_path() -> str:
    """Get the snapshot path as a string."""
    return str(SNAPSHOT_PATH)


def get_base_currency() -> str:
    """Return the configured base currency, falling back to USD for bad values."""
    if len(BASE_CURRENCY) != 3 or not BASE_CURRENCY.isalpha():
        return DEFAULT_BASE_CURRENCY
    return BASE_CURRENCY


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for scripts and the Streamlit page."""
    resolved = getattr(logging, (level or LOG_LEVEL).upper(), logging.WARNING)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
