"""API routers package."""

from . import feed, scheduler

__all__ = ["feed", "scheduler"]
