"""
Scheduler-specific exceptions.
"""


class SchedulerError(Exception):
    """Base exception for all scheduler errors."""
    pass


class InvalidOperationError(SchedulerError):
    """
    Raised when an operation violates scheduler invariants.

    Examples:
    - Cancelling a run that already finished
    - Advancing a run that is not active
    """
    pass


class RunNotFoundError(SchedulerError):
    """Raised when a requested chain run does not exist."""

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"ChainRun not found: {run_id}")


class JobNotRegisteredError(SchedulerError):
    """Raised when no chained job is registered under a job identity."""

    def __init__(self, owner: str, job_name: str):
        self.owner = owner
        self.job_name = job_name
        super().__init__(f"No chained job registered for {owner}/{job_name}")


class DuplicateRunError(SchedulerError):
    """
    Raised when enqueuing a run while the same job already has an active one.

    Two runs of one job would share the temporary feed file.
    """

    def __init__(self, owner: str, job_name: str, existing_run_id: str):
        self.owner = owner
        self.job_name = job_name
        self.existing_run_id = existing_run_id
        super().__init__(
            f"Cannot enqueue {owner}/{job_name}: run {existing_run_id} is still active"
        )
