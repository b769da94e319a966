"""
Scheduler router for scheduler control APIs.

Endpoints under /scheduler/* for start, stop, status and chain runs.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from feedsync.scheduler.entities import ChainRun, ChainRunStatus
from feedsync.scheduler.errors import InvalidOperationError, RunNotFoundError

from ..schemas.scheduler import (
    RunResponse,
    RunListResponse,
    RunCancelResponse,
    SchedulerStartRequest,
    SchedulerStartResponse,
    SchedulerStopRequest,
    SchedulerStopResponse,
    SchedulerStatusResponse,
)
from .._app_state import get_feed_app


router = APIRouter()


def run_to_response(run: ChainRun) -> RunResponse:
    return RunResponse(
        run_id=run.run_id,
        job_name=run.job_name,
        owner=run.owner,
        status=run.status.value,
        batch_number=run.batch_number,
        args=run.args,
        items_exported=run.items_exported,
        items_failed=run.items_failed,
        error=run.error,
        created_at=run.created_at,
        started_at=run.started_at,
        updated_at=run.updated_at,
        finished_at=run.finished_at,
    )


@router.post("/start", response_model=SchedulerStartResponse)
async def start_scheduler(request: SchedulerStartRequest = SchedulerStartRequest()):
    """
    Start the scheduler dispatch loop.

    Idempotent: If scheduler is already running, returns success with message.
    """
    service = get_feed_app().scheduler

    if service.is_running:
        return SchedulerStartResponse(
            success=True,
            message="Scheduler is already running",
            recovery_stats=None,
        )

    try:
        recovery_stats = service.start(
            run_recovery=request.run_recovery,
            blocking=False,
        )

        return SchedulerStartResponse(
            success=True,
            message="Scheduler started successfully",
            recovery_stats=recovery_stats if recovery_stats else None,
        )

    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to start scheduler: {str(e)}"
        )


@router.post("/stop", response_model=SchedulerStopResponse)
async def stop_scheduler(request: SchedulerStopRequest = SchedulerStopRequest()):
    """
    Stop the scheduler dispatch loop gracefully.

    Waits for the step in flight to complete. Active runs stay active.
    Idempotent: If scheduler is already stopped, returns success.
    """
    service = get_feed_app().scheduler

    if not service.is_running:
        return SchedulerStopResponse(
            success=True,
            message="Scheduler is already stopped",
        )

    try:
        service.stop(timeout=request.timeout)

        return SchedulerStopResponse(
            success=True,
            message="Scheduler stopped successfully",
        )

    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to stop scheduler: {str(e)}"
        )


@router.get("/status", response_model=SchedulerStatusResponse)
async def get_scheduler_status():
    """Get scheduler status and run counts."""
    service = get_feed_app().scheduler
    status = service.get_scheduler_status()

    return SchedulerStatusResponse(
        scheduler_running=status["scheduler_running"],
        current_run_id=status["current_run_id"],
        active_count=status["active_count"],
        registered_jobs=status["registered_jobs"],
        run_counts=status["run_counts"],
    )


@router.get("/runs", response_model=RunListResponse)
async def list_runs(
    status: Optional[ChainRunStatus] = Query(default=None, description="Filter by status"),
    limit: int = Query(default=50, ge=1, le=500),
):
    """List chain runs, newest first."""
    runs = get_feed_app().scheduler.list_runs(status=status, limit=limit)
    return RunListResponse(
        runs=[run_to_response(run) for run in runs],
        total=len(runs),
    )


@router.get("/runs/{run_id}", response_model=RunResponse)
async def get_run(run_id: str):
    """Get a chain run."""
    run = get_feed_app().scheduler.get_run(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")
    return run_to_response(run)


@router.post("/runs/{run_id}/cancel", response_model=RunCancelResponse)
async def cancel_run(run_id: str):
    """Cancel an active chain run."""
    service = get_feed_app().scheduler

    try:
        run = service.cancel_run(run_id)
    except RunNotFoundError:
        raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")
    except InvalidOperationError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return RunCancelResponse(
        run_id=run.run_id,
        success=True,
        status=run.status.value,
        message="Run cancelled",
    )
