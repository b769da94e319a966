"""
Executor for the chain scheduler.

Runs exactly one step of a ChainRun and persists the outcome:
- batch_number 0: engine.start(args), then batch_number = 1
- batch_number N: engine.handle_batch_action(N, args)
    - empty batch: engine.end(args), run COMPLETED
    - otherwise:   batch_number = N + 1

Any exception escaping the engine is fatal to the run: the run is marked
FAILED with the error and no further steps are taken. The engine isolates
item-level errors itself, so only infrastructure failures arrive here.

What Executor MUST NOT do:
- Choose which run goes next (Dispatcher's responsibility)
- Retry a failed step
"""

import logging
from typing import Optional

from .entities import ChainRun, ChainRunStatus, now_iso
from .persistence import PersistenceAdapter
from .registry import JobRegistry


logger = logging.getLogger(__name__)


class Executor:
    """Executes single chain steps against registered engines."""

    def __init__(self, persistence: PersistenceAdapter, registry: JobRegistry):
        """
        Initialize Executor.

        Args:
            persistence: PersistenceAdapter for ChainRun updates
            registry: JobRegistry resolving a run's job identity
        """
        self.persistence = persistence
        self.registry = registry
        self._current_run: Optional[ChainRun] = None

    @property
    def is_executing(self) -> bool:
        """Check if executor is currently running a step."""
        return self._current_run is not None

    @property
    def current_run(self) -> Optional[ChainRun]:
        return self._current_run

    def execute_step(self, run: ChainRun) -> ChainRun:
        """
        Execute one step of a run.

        Args:
            run: Active (PENDING/RUNNING) run

        Returns:
            The run as persisted after the step
        """
        self._current_run = run

        try:
            engine = self.registry.get(run.owner, run.job_name)

            if run.batch_number == 0:
                engine.start(run.args)
                return self._save(
                    run,
                    status=ChainRunStatus.RUNNING,
                    batch_number=1,
                    items_exported=0,
                    items_failed=0,
                    clear_error=True,
                    started_at=now_iso(),
                )

            result = engine.handle_batch_action(run.batch_number, run.args)
            exported = run.items_exported + len(result.records)
            failed = run.items_failed + len(result.failures)

            if result.is_last:
                engine.end(run.args)
                logger.info(
                    f"Run {run.run_id} ({run.job_key}) completed after "
                    f"{run.batch_number} batches: {exported} exported, {failed} failed"
                )
                return self._save(
                    run,
                    status=ChainRunStatus.COMPLETED,
                    items_exported=exported,
                    items_failed=failed,
                    finished_at=now_iso(),
                )

            return self._save(
                run,
                batch_number=run.batch_number + 1,
                items_exported=exported,
                items_failed=failed,
            )

        except Exception as e:
            logger.exception(
                f"Run {run.run_id} ({run.job_key}) failed at batch {run.batch_number}"
            )
            return self._save(
                run,
                status=ChainRunStatus.FAILED,
                error=f"{type(e).__name__}: {e}",
                finished_at=now_iso(),
            )

        finally:
            self._current_run = None

    def _save(self, run: ChainRun, **fields) -> ChainRun:
        """Persist step results unless the run was cancelled meanwhile."""
        current = self.persistence.get_run(run.run_id)
        if current is not None and current.status == ChainRunStatus.CANCELLED:
            logger.info(f"Run {run.run_id} was cancelled during step, result discarded")
            return current
        return self.persistence.update_run(run.run_id, **fields)
