"""
Feed app state management for API integration.

Provides singleton access to the FeedApp (catalog, feed job, scheduler).
Initialized during FastAPI lifespan; the lifespan starts the scheduler
only when SCHEDULER_AUTOSTART is enabled (see api/main.py).

Usage:
    from ._app_state import get_feed_app, init_feed_app

    # In lifespan:
    init_feed_app()

    # In routers:
    feed_app = get_feed_app()
"""

import logging
from typing import Optional

from feedsync.bootstrap import FeedApp, create_feed_app


logger = logging.getLogger(__name__)

# Global feed app instance
_feed_app: Optional[FeedApp] = None


def init_feed_app(**kwargs) -> FeedApp:
    """
    Initialize the feed app singleton.

    Keyword arguments are passed to create_feed_app(); unset values come
    from the environment.
    """
    global _feed_app

    if _feed_app is not None:
        return _feed_app

    _feed_app = create_feed_app(**kwargs)
    return _feed_app


def set_feed_app(feed_app: Optional[FeedApp]) -> None:
    """Install a prebuilt FeedApp (tests, embedding)."""
    global _feed_app
    _feed_app = feed_app


def get_feed_app() -> FeedApp:
    """
    Get the feed app singleton.

    Raises:
        RuntimeError: If the feed app is not initialized
    """
    if _feed_app is None:
        raise RuntimeError(
            "Feed app not initialized. "
            "Ensure init_feed_app() is called during startup."
        )

    return _feed_app


def shutdown_feed_app() -> None:
    """
    Shutdown the feed app.

    Gracefully stops the scheduler if running.
    """
    global _feed_app

    if _feed_app is not None:
        if _feed_app.scheduler.is_running:
            _feed_app.scheduler.stop()

        _feed_app = None
