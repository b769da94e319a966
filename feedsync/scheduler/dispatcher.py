"""
Dispatcher for the chain scheduler.

- Picks the next active run and hands one step of it to the Executor
- Runs the dispatch loop in a background thread (or blocking)
- Single-worker: at most one step in flight, so batches of a run never
  overlap and always execute in increasing batch_number order

What Dispatcher MUST NOT do:
- Execute job work itself
- Modify run args
- Retry failed runs
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional, Protocol

from .entities import ChainRun
from .persistence import PersistenceAdapter


logger = logging.getLogger(__name__)


class DispatcherState(str, Enum):
    """Dispatcher lifecycle states."""

    STOPPED = "STOPPED"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"


class ExecutorProtocol(Protocol):
    """Protocol for step executor."""

    def execute_step(self, run: ChainRun) -> ChainRun:
        """Execute one step and return the persisted run."""
        ...


class Dispatcher:
    """
    Pulls active runs and dispatches one step at a time.

    Key behaviors:
    1. Query PersistenceAdapter.get_next_runnable()
    2. If a run exists, execute one step via Executor
    3. If the step made the run terminal, notify the completion callback
    4. Loop; wait poll_interval only when idle
    """

    def __init__(
        self,
        persistence: PersistenceAdapter,
        poll_interval: float = 1.0,
    ):
        """
        Initialize Dispatcher.

        Args:
            persistence: PersistenceAdapter for storage
            poll_interval: Seconds between polls when no run is active
        """
        self.persistence = persistence
        self.poll_interval = poll_interval

        self._state = DispatcherState.STOPPED
        self._executor: Optional[ExecutorProtocol] = None
        self._current_run: Optional[ChainRun] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._step_lock = threading.Lock()

        # Callback for terminal runs (e.g., webhook notification)
        self._on_run_finished: Optional[Callable[[ChainRun], None]] = None

    @property
    def state(self) -> DispatcherState:
        """Get current dispatcher state."""
        return self._state

    @property
    def current_run(self) -> Optional[ChainRun]:
        """Get the run whose step is executing, if any."""
        return self._current_run

    def set_executor(self, executor: ExecutorProtocol) -> None:
        """
        Set the executor for step execution.

        Must be called before starting the dispatcher.
        """
        self._executor = executor

    def set_on_run_finished(self, callback: Callable[[ChainRun], None]) -> None:
        """Set callback invoked once a run reaches a terminal status."""
        self._on_run_finished = callback

    # =========================================================================
    # Single Dispatch Operation
    # =========================================================================

    def dispatch_one(self) -> Optional[ChainRun]:
        """
        Attempt to execute a single step.

        Returns:
            The run after its step, or None if nothing was dispatched

        Raises:
            RuntimeError: If executor is not set
        """
        if self._executor is None:
            raise RuntimeError("Executor not set. Call set_executor() first.")

        # Single-worker: a concurrent caller simply skips this round
        if not self._step_lock.acquire(blocking=False):
            logger.debug("Already executing a step, skipping dispatch")
            return None

        try:
            run = self.persistence.get_next_runnable()
            if run is None:
                logger.debug("No active runs")
                return None

            self._current_run = run
            logger.debug(
                f"Dispatching run {run.run_id} ({run.job_key}) batch {run.batch_number}"
            )

            updated = self._executor.execute_step(run)

            if updated.is_terminal() and self._on_run_finished is not None:
                try:
                    self._on_run_finished(updated)
                except Exception as e:
                    logger.error(f"Error in run finished callback: {e}")

            return updated

        finally:
            self._current_run = None
            self._step_lock.release()

    def run_until_idle(self, max_steps: Optional[int] = None) -> int:
        """
        Dispatch steps in the current thread until no run is active.

        Args:
            max_steps: Upper bound on steps, None for unbounded

        Returns:
            Number of steps executed
        """
        steps = 0
        while max_steps is None or steps < max_steps:
            if self.dispatch_one() is None:
                break
            steps += 1
        return steps

    # =========================================================================
    # Dispatch Loop
    # =========================================================================

    def start(self, blocking: bool = False) -> None:
        """
        Start the dispatch loop.

        Args:
            blocking: If True, run in current thread. If False, run in background.
        """
        if self._state != DispatcherState.STOPPED:
            raise RuntimeError(f"Cannot start dispatcher in {self._state.value} state")

        if self._executor is None:
            raise RuntimeError("Executor not set. Call set_executor() first.")

        self._stop_event.clear()
        self._state = DispatcherState.RUNNING

        if blocking:
            self._dispatch_loop()
        else:
            self._thread = threading.Thread(target=self._dispatch_loop, daemon=True)
            self._thread.start()

    def stop(self, timeout: float = 30.0) -> None:
        """
        Stop the dispatch loop gracefully.

        The step in flight finishes first; the run stays active and restarts
        from start() on the next recovering start.

        Args:
            timeout: Maximum seconds to wait for the current step
        """
        if self._state == DispatcherState.STOPPED:
            return

        logger.info("Stopping dispatcher...")
        self._state = DispatcherState.STOPPING
        self._stop_event.set()

        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Dispatcher thread did not stop within timeout")
            self._thread = None

        self._state = DispatcherState.STOPPED
        logger.info("Dispatcher stopped")

    def _dispatch_loop(self) -> None:
        """Main dispatch loop."""
        logger.info("Dispatcher loop started")

        while not self._stop_event.is_set():
            try:
                result = self.dispatch_one()

                if result is None:
                    self._stop_event.wait(self.poll_interval)

            except Exception as e:
                logger.error(f"Error in dispatch loop: {e}", exc_info=True)
                self._stop_event.wait(self.poll_interval)

        logger.info("Dispatcher loop ended")

    def is_running(self) -> bool:
        """Check if dispatcher loop is running."""
        return self._state == DispatcherState.RUNNING

    def is_busy(self) -> bool:
        """Check if dispatcher is executing a step."""
        return self._current_run is not None
