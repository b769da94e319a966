"""
Infrastructure module - paths, settings, logging, and notifications.
"""

from .data_paths import (
    get_project_root,
    get_data_root,
    get_logs_dir,
    get_feed_dir,
    get_feed_file_secret,
    get_feed_batch_size,
    get_catalog_db_path,
    get_scheduler_db_path,
    get_scheduler_poll_interval,
    get_feed_webhook_url,
    is_feed_autoregenerate_enabled,
    is_scheduler_autostart_enabled,
    ensure_data_directories,
)

from .logging_config import setup_logging

from .webhook import (
    build_run_payload,
    send_webhook_sync,
    fire_and_forget_webhook,
)

__all__ = [
    # data_paths
    "get_project_root",
    "get_data_root",
    "get_logs_dir",
    "get_feed_dir",
    "get_feed_file_secret",
    "get_feed_batch_size",
    "get_catalog_db_path",
    "get_scheduler_db_path",
    "get_scheduler_poll_interval",
    "get_feed_webhook_url",
    "is_feed_autoregenerate_enabled",
    "is_scheduler_autostart_enabled",
    "ensure_data_directories",
    # logging
    "setup_logging",
    # webhook
    "build_run_payload",
    "send_webhook_sync",
    "fire_and_forget_webhook",
]
