"""Configuration management for the budget insight engine.

This module centralizes filesystem locations used by the reference storage
collaborator, with environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base project root - assumes this file is in budget_insights/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("BUDGET_INSIGHTS_DATA_DIR", _PROJECT_ROOT / "data"))
USERS_DIR = DATA_DIR / "users"

# Budget used when callers do not name one
DEFAULT_BUDGET_ID = os.getenv("BUDGET_INSIGHTS_DEFAULT_BUDGET", "default")


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, USERS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)

