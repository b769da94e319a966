"""
Data path and settings helpers for catalog-feed-sync.

Centralized path management for all data directories.

Directory structure:
data/
 ├── feed/                              # Feed files
 │   ├── product_catalog_<secret>.csv   # Live feed (served over HTTP)
 │   └── temp_product_catalog_<secret>.csv
 ├── catalog.sqlite                     # Product catalog
 └── scheduler.sqlite                   # Chain run state

logs/                                   # Daily log files

Environment Variables:
- FEEDSYNC_DATA_DIR: Override data root (default: <project>/data)
- FEED_DIR: Override feed directory (default: data/feed)
- FEED_FILE_SECRET: Feed file name suffix (default: default)
- FEED_BATCH_SIZE: Products per batch (default: 15)
- CATALOG_DB_PATH: Catalog database (default: data/catalog.sqlite)
- SCHEDULER_DB_PATH: Scheduler database (default: data/scheduler.sqlite)
- SCHEDULER_POLL_INTERVAL: Dispatcher poll seconds (default: 1.0)
- FEED_WEBHOOK_URL: Run completion notification URL (default: unset)
- FEED_AUTOREGENERATE: Enqueue a run when the live feed is missing (default: true)
- SCHEDULER_AUTOSTART: Start the dispatch loop with the API server (default: true)
- LOG_DIR: Log directory (default: logs)
"""

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_FEED_BATCH_SIZE = 15
DEFAULT_POLL_INTERVAL = 1.0

# =============================================================================
# Environment Variable Helpers
# =============================================================================

def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    val = os.getenv(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    elif val in ("false", "0", "no", "off"):
        return False
    return default


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    val = os.getenv(key)
    if val is not None:
        try:
            return int(val)
        except ValueError:
            logger.warning(f"[DataPaths] Invalid integer for {key}: {val}, using default: {default}")
    return default


def _get_env_float(key: str, default: float) -> float:
    """Get float value from environment variable."""
    val = os.getenv(key)
    if val is not None:
        try:
            return float(val)
        except ValueError:
            logger.warning(f"[DataPaths] Invalid number for {key}: {val}, using default: {default}")
    return default


def _get_env_path(key: str, default: Path) -> Path:
    val = os.getenv(key)
    return Path(val) if val else default

# =============================================================================
# Base Paths
# =============================================================================

def get_project_root() -> Path:
    """
    Get the project root directory.

    This file is at feedsync/infra/data_paths.py, so the project root is
    2 levels up from its directory.
    """
    return Path(__file__).parent.parent.parent.resolve()


def get_data_root() -> Path:
    """Get the data root directory (FEEDSYNC_DATA_DIR or <project>/data)."""
    return _get_env_path("FEEDSYNC_DATA_DIR", get_project_root() / "data")


def get_logs_dir() -> Path:
    """Get the log directory (LOG_DIR or logs)."""
    return _get_env_path("LOG_DIR", Path("logs"))

# =============================================================================
# Feed Paths
# =============================================================================

def get_feed_dir() -> Path:
    """Directory holding the live and temporary feed files."""
    return _get_env_path("FEED_DIR", get_data_root() / "feed")


def get_feed_file_secret() -> str:
    return os.getenv("FEED_FILE_SECRET", "default") or "default"


def get_feed_batch_size() -> int:
    """
    Products per feed batch.

    Non-positive values fall back to the default; a run must keep one
    batch size from start to end.
    """
    size = _get_env_int("FEED_BATCH_SIZE", DEFAULT_FEED_BATCH_SIZE)
    if size < 1:
        logger.warning(
            f"[DataPaths] FEED_BATCH_SIZE must be positive, got {size}, "
            f"using default: {DEFAULT_FEED_BATCH_SIZE}"
        )
        return DEFAULT_FEED_BATCH_SIZE
    return size

# =============================================================================
# Database Paths
# =============================================================================

def get_catalog_db_path() -> Path:
    return _get_env_path("CATALOG_DB_PATH", get_data_root() / "catalog.sqlite")


def get_scheduler_db_path() -> Path:
    return _get_env_path("SCHEDULER_DB_PATH", get_data_root() / "scheduler.sqlite")

# =============================================================================
# Scheduler / Notifications
# =============================================================================

def get_scheduler_poll_interval() -> float:
    return _get_env_float("SCHEDULER_POLL_INTERVAL", DEFAULT_POLL_INTERVAL)


def get_feed_webhook_url() -> Optional[str]:
    """Completion webhook URL, None when unset."""
    return os.getenv("FEED_WEBHOOK_URL") or None


def is_feed_autoregenerate_enabled() -> bool:
    """Whether a missing live feed triggers a new run (FEED_AUTOREGENERATE)."""
    return _get_env_bool("FEED_AUTOREGENERATE", True)


def is_scheduler_autostart_enabled() -> bool:
    """Whether the API server starts the dispatch loop on startup (SCHEDULER_AUTOSTART)."""
    return _get_env_bool("SCHEDULER_AUTOSTART", True)

# =============================================================================
# Directory Initialization
# =============================================================================

def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    directories = [
        get_data_root(),
        get_feed_dir(),
        get_catalog_db_path().parent,
        get_scheduler_db_path().parent,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)
        logger.debug(f"[DataPaths] Ensured directory: {directory}")
