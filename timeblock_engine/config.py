"""
Centralized configuration for the time-block engine.

All values that vary by deployment belong here.
Override via environment variables where marked.
"""

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent.resolve()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ============================================================
# Time windows
# ============================================================

WINDOWS_FILE: Path = Path(
    os.environ.get("TIMEBLOCK_WINDOWS_FILE", str(PROJECT_ROOT / "config" / "time_windows.yaml"))
)
"""YAML file holding the recurring availability windows."""

# ============================================================
# Scheduling
# ============================================================

MIN_GAP_MINUTES: int = int(os.environ.get("TIMEBLOCK_MIN_GAP_MINUTES", "1"))
"""Gaps shorter than this are never used for a block."""

SCAN_HORIZON_DAYS: int = int(os.environ.get("TIMEBLOCK_SCAN_HORIZON_DAYS", "366"))
"""Upper bound on how many calendar days one scheduling pass walks."""

KEEP_PARTIAL_BLOCKS: bool = _env_bool("TIMEBLOCK_KEEP_PARTIAL", True)
"""Commit the blocks of a partially scheduled task during batch runs."""

DERIVE_MISSING_URGENCY: bool = _env_bool("TIMEBLOCK_DERIVE_URGENCY", False)
"""Compute urgency for tasks that carry none when ordering a batch."""

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("TIMEBLOCK_LOG_LEVEL", "INFO")

LOG_JSON: bool | None = (
    _env_bool("TIMEBLOCK_LOG_JSON", False) if "TIMEBLOCK_LOG_JSON" in os.environ else None
)
"""None means auto-detect: JSON when stderr is not a TTY."""
