"""
Scheduler API schemas.

Supports /scheduler/* control endpoints and chain run listing.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field


# =============================================================================
# Run Schemas
# =============================================================================


class RunResponse(BaseModel):
    """Response representing a ChainRun."""

    run_id: str = Field(..., description="Unique run identifier")
    job_name: str = Field(..., description="Job slug")
    owner: str = Field(..., description="Job owner namespace")
    status: str = Field(..., description="PENDING/RUNNING/COMPLETED/FAILED/CANCELLED")
    batch_number: int = Field(..., description="Next batch to run (0 = start pending)")
    args: dict = Field(default_factory=dict, description="Job args")
    items_exported: int = Field(default=0, description="Records written so far")
    items_failed: int = Field(default=0, description="Items skipped after transform errors")
    error: Optional[str] = Field(default=None, description="Fatal error, if FAILED")
    created_at: str = Field(..., description="Creation timestamp (ISO format)")
    started_at: Optional[str] = Field(default=None, description="start() timestamp")
    updated_at: str = Field(..., description="Last step timestamp")
    finished_at: Optional[str] = Field(default=None, description="Terminal timestamp")


class RunListResponse(BaseModel):
    """Response for run list endpoint."""

    runs: List[RunResponse] = Field(default_factory=list)
    total: int = Field(..., description="Number of runs returned")


class RunCancelResponse(BaseModel):
    """Response from run cancellation."""

    run_id: str
    success: bool
    status: str
    message: Optional[str] = None


# =============================================================================
# Scheduler Control Schemas
# =============================================================================


class SchedulerStartRequest(BaseModel):
    """Request to start the scheduler."""

    run_recovery: bool = Field(
        default=True,
        description="Restart interrupted runs from start() before dispatching"
    )


class SchedulerStartResponse(BaseModel):
    """Response from scheduler start."""

    success: bool
    message: str
    recovery_stats: Optional[dict] = None


class SchedulerStopRequest(BaseModel):
    """Request to stop the scheduler."""

    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for the step in flight"
    )


class SchedulerStopResponse(BaseModel):
    """Response from scheduler stop."""

    success: bool
    message: str


class SchedulerStatusResponse(BaseModel):
    """Comprehensive scheduler status."""

    scheduler_running: bool
    current_run_id: Optional[str] = None
    active_count: int = 0
    registered_jobs: List[str] = Field(default_factory=list)
    run_counts: Dict[str, int] = Field(default_factory=dict)
