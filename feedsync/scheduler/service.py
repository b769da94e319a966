"""
Scheduler Service - Main entry point for the chain scheduler.

This service orchestrates all scheduler components:
- PersistenceAdapter (run state storage)
- JobRegistry (job identity -> engine)
- Executor (one step per call)
- Dispatcher (dispatch loop)
- RecoveryManager (crash recovery)

Usage:
    service = SchedulerService.create(db_path, registry)
    service.enqueue_run("generate_feed", "catalog_feed_sync")
    service.start()
    # ... dispatch loop runs batches in background ...
    service.stop()
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from .dispatcher import Dispatcher
from .entities import ChainRun, ChainRunStatus, now_iso
from .errors import InvalidOperationError, RunNotFoundError
from .executor import Executor
from .persistence import PersistenceAdapter
from .recovery import RecoveryManager
from .registry import JobRegistry


logger = logging.getLogger(__name__)


class SchedulerService:
    """
    Main service that coordinates all scheduler components.

    Provides:
    - Component initialization and wiring
    - Startup with recovery
    - Graceful shutdown
    - API-friendly methods for run operations
    """

    def __init__(
        self,
        persistence: PersistenceAdapter,
        registry: JobRegistry,
        dispatcher: Dispatcher,
        executor: Executor,
        recovery_manager: RecoveryManager,
    ):
        """
        Initialize SchedulerService with all components.

        Use SchedulerService.create() for convenient construction.
        """
        self.persistence = persistence
        self.registry = registry
        self.dispatcher = dispatcher
        self.executor = executor
        self.recovery_manager = recovery_manager

        self._started = False

    @classmethod
    def create(
        cls,
        db_path: str | Path,
        registry: JobRegistry,
        poll_interval: float = 1.0,
        on_run_finished: Optional[Callable[[ChainRun], None]] = None,
    ) -> "SchedulerService":
        """
        Create a SchedulerService with all components wired together.

        Args:
            db_path: Path to SQLite database
            registry: Registry holding every job the scheduler may run
            poll_interval: Dispatcher poll interval in seconds
            on_run_finished: Called with each run that reaches a terminal status

        Returns:
            Configured SchedulerService
        """
        persistence = PersistenceAdapter(db_path)

        dispatcher = Dispatcher(
            persistence=persistence,
            poll_interval=poll_interval,
        )

        executor = Executor(persistence=persistence, registry=registry)

        recovery_manager = RecoveryManager(persistence=persistence)

        dispatcher.set_executor(executor)

        def log_finished(run: ChainRun):
            logger.info(
                f"Run {run.run_id} ({run.job_key}) finished: {run.status.value}"
            )
            if on_run_finished is not None:
                on_run_finished(run)

        dispatcher.set_on_run_finished(log_finished)

        return cls(
            persistence=persistence,
            registry=registry,
            dispatcher=dispatcher,
            executor=executor,
            recovery_manager=recovery_manager,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self, run_recovery: bool = True, blocking: bool = False) -> dict:
        """
        Start the scheduler service.

        Args:
            run_recovery: Whether to run crash recovery first
            blocking: Whether to block on dispatch loop

        Returns:
            Recovery statistics if recovery was run
        """
        if self._started:
            raise RuntimeError("Scheduler already started")

        logger.info("Starting scheduler service...")

        recovery_stats = {}
        if run_recovery:
            recovery_stats = self.recover()

        self._started = True
        self.dispatcher.start(blocking=blocking)

        logger.info("Scheduler service started")
        return recovery_stats

    def recover(self) -> dict:
        """
        Reset interrupted runs so they restart from start().

        Used by start() and by callers that drive runs without the
        dispatch loop.
        """
        return self.recovery_manager.recover_on_startup()

    def stop(self, timeout: float = 30.0) -> None:
        """
        Stop the scheduler service gracefully.

        Waits for the current step to complete (no preemption).

        Args:
            timeout: Maximum wait time for current step
        """
        if not self._started:
            return

        logger.info("Stopping scheduler service...")
        self.dispatcher.stop(timeout=timeout)
        self._started = False
        logger.info("Scheduler service stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._started and self.dispatcher.is_running()

    def run_until_idle(self, max_steps: Optional[int] = None) -> int:
        """Drive all active runs to completion in the current thread."""
        return self.dispatcher.run_until_idle(max_steps=max_steps)

    # =========================================================================
    # Run Operations (API-friendly)
    # =========================================================================

    def enqueue_run(
        self,
        job_name: str,
        owner: str,
        args: Optional[dict] = None,
    ) -> ChainRun:
        """
        Enqueue a new run of a registered job.

        Raises:
            JobNotRegisteredError: If the job is unknown
            DuplicateRunError: If the job already has an active run
        """
        self.registry.get(owner, job_name)

        run = self.persistence.create_run(
            ChainRun.create(job_name=job_name, owner=owner, args=args)
        )
        logger.info(f"Enqueued run {run.run_id} ({run.job_key})")
        return run

    def get_run(self, run_id: str) -> Optional[ChainRun]:
        """Get a run by ID."""
        return self.persistence.get_run(run_id)

    def get_active_run(self, job_name: str, owner: str) -> Optional[ChainRun]:
        return self.persistence.get_active_run(owner, job_name)

    def get_latest_run(self, job_name: str, owner: str) -> Optional[ChainRun]:
        return self.persistence.get_latest_run(owner, job_name)

    def list_runs(
        self,
        status: Optional[ChainRunStatus] = None,
        limit: int = 100,
    ) -> list[ChainRun]:
        """List recent runs, newest first."""
        return self.persistence.list_runs(status=status, limit=limit)

    def cancel_run(self, run_id: str) -> ChainRun:
        """
        Cancel an active run. No further batches are dispatched for it;
        its temporary feed file is discarded by the next run's start().

        Raises:
            RunNotFoundError: If the run does not exist
            InvalidOperationError: If the run already finished
        """
        run = self.persistence.get_run(run_id)
        if run is None:
            raise RunNotFoundError(run_id)

        if run.is_terminal():
            raise InvalidOperationError(
                f"Cannot cancel run {run_id} in {run.status.value} state"
            )

        logger.info(f"Cancelling run {run_id} ({run.job_key}) at batch {run.batch_number}")
        return self.persistence.update_run(
            run_id,
            status=ChainRunStatus.CANCELLED,
            finished_at=now_iso(),
        )

    # =========================================================================
    # Status
    # =========================================================================

    def get_scheduler_status(self) -> dict:
        """
        Get scheduler status.

        Returns:
            Dict with scheduler_running, current_run_id, active_count,
            registered_jobs, run_counts
        """
        counts = self.persistence.count_by_status()
        current = self.dispatcher.current_run

        return {
            "scheduler_running": self.is_running,
            "current_run_id": current.run_id if current else None,
            "active_count": (
                counts[ChainRunStatus.PENDING.value] + counts[ChainRunStatus.RUNNING.value]
            ),
            "registered_jobs": self.registry.keys(),
            "run_counts": counts,
        }
