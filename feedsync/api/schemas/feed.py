"""
Feed API schemas.
"""

from typing import Optional
from pydantic import BaseModel, Field

from .scheduler import RunResponse


class FeedStatusResponse(BaseModel):
    """State of the live feed file and its runs."""

    feed_exists: bool = Field(..., description="Whether the live feed file exists")
    file_name: str = Field(..., description="Public feed file name")
    size_bytes: Optional[int] = Field(default=None, description="Live file size")
    modified_at: Optional[str] = Field(default=None, description="Live file mtime (ISO)")
    active_run: Optional[RunResponse] = Field(default=None, description="Run in progress")
    last_run: Optional[RunResponse] = Field(default=None, description="Most recent run")


class FeedRegenerateRequest(BaseModel):
    """Request to regenerate the feed."""

    args: dict = Field(default_factory=dict, description="Args passed to every batch")


class FeedRegenerateResponse(BaseModel):
    """Response from feed regeneration."""

    run: RunResponse
    message: str
