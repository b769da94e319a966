"""
Recovery Manager for the chain scheduler.

On startup, every active run that already passed start() is treated as
interrupted. Nothing records which batches reached the temporary feed
file, so such a run is reset to batch 0 and restarts from start(), which
truncates the temporary file.

Recovery is idempotent: running multiple times produces same result.
"""

import logging

from .entities import ChainRun, ChainRunStatus
from .persistence import PersistenceAdapter


logger = logging.getLogger(__name__)


class RecoveryManager:
    """Handles crash recovery and startup cleanup."""

    def __init__(self, persistence: PersistenceAdapter):
        """
        Initialize RecoveryManager.

        Args:
            persistence: PersistenceAdapter for storage
        """
        self.persistence = persistence

    def recover_on_startup(self) -> dict:
        """
        Perform recovery on scheduler startup.

        Returns:
            Recovery statistics
        """
        stats = {
            "runs_restarted": 0,
            "errors": [],
        }

        logger.info("Starting crash recovery...")

        try:
            restarted = self._restart_interrupted_runs()
            stats["runs_restarted"] = len(restarted)
        except Exception as e:
            logger.error(f"Error recovering interrupted runs: {e}")
            stats["errors"].append(f"Interrupted runs: {e}")

        logger.info(f"Recovery complete: {stats['runs_restarted']} runs restarted")

        return stats

    def _restart_interrupted_runs(self) -> list[ChainRun]:
        """Reset interrupted runs to batch 0 / PENDING."""
        restarted = []

        for run in self.persistence.get_interrupted_runs():
            logger.info(
                f"Restarting interrupted run {run.run_id} ({run.job_key}) "
                f"from start, was at batch {run.batch_number}"
            )

            restarted.append(
                self.persistence.update_run(
                    run.run_id,
                    status=ChainRunStatus.PENDING,
                    batch_number=0,
                    items_exported=0,
                    items_failed=0,
                    clear_error=True,
                )
            )

        return restarted
