"""
API Schemas package.

Pydantic models for request/response validation.
"""

from .scheduler import (
    RunResponse,
    RunListResponse,
    RunCancelResponse,
    SchedulerStartRequest,
    SchedulerStartResponse,
    SchedulerStopRequest,
    SchedulerStopResponse,
    SchedulerStatusResponse,
)
from .feed import (
    FeedStatusResponse,
    FeedRegenerateRequest,
    FeedRegenerateResponse,
)

__all__ = [
    "RunResponse",
    "RunListResponse",
    "RunCancelResponse",
    "SchedulerStartRequest",
    "SchedulerStartResponse",
    "SchedulerStopRequest",
    "SchedulerStopResponse",
    "SchedulerStatusResponse",
    "FeedStatusResponse",
    "FeedRegenerateRequest",
    "FeedRegenerateResponse",
]
