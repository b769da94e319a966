"""
Scheduler Domain Entities.

- ChainRun: persisted state of one chained job run (batch number + args)

A run moves PENDING -> RUNNING -> COMPLETED | FAILED, or to CANCELLED
from any non-terminal state. batch_number 0 means start() has not run.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import uuid


class ChainRunStatus(str, Enum):
    """
    ChainRun status values.

    - PENDING: Enqueued, start() not yet executed
    - RUNNING: start() done, batches in progress
    - COMPLETED: Terminating batch reached and end() succeeded
    - FAILED: A fatal error stopped the chain
    - CANCELLED: Stopped on request
    """

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


ACTIVE_STATUSES = (ChainRunStatus.PENDING, ChainRunStatus.RUNNING)
TERMINAL_STATUSES = (
    ChainRunStatus.COMPLETED,
    ChainRunStatus.FAILED,
    ChainRunStatus.CANCELLED,
)


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


def now_iso() -> str:
    """Get current UTC time as ISO format string."""
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


@dataclass
class ChainRun:
    """
    One run of a chained job.

    Mutability rules:
    - run_id, job_name, owner, args, created_at: Immutable
    - batch_number: Advanced by exactly 1 per completed batch
    - status, counters, error, timestamps: Updated by the dispatcher
    """

    run_id: str
    job_name: str
    owner: str
    args: dict = field(default_factory=dict)
    batch_number: int = 0
    status: ChainRunStatus = ChainRunStatus.PENDING
    items_exported: int = 0
    items_failed: int = 0
    error: Optional[str] = None
    created_at: str = field(default_factory=now_iso)
    started_at: Optional[str] = None
    updated_at: str = field(default_factory=now_iso)
    finished_at: Optional[str] = None

    @classmethod
    def create(
        cls,
        job_name: str,
        owner: str,
        args: Optional[dict] = None,
    ) -> "ChainRun":
        """Create a new PENDING run with generated ID."""
        now = now_iso()
        return cls(
            run_id=generate_uuid(),
            job_name=job_name,
            owner=owner,
            args=args or {},
            created_at=now,
            updated_at=now,
        )

    @property
    def job_key(self) -> str:
        return f"{self.owner}/{self.job_name}"

    def is_terminal(self) -> bool:
        """Check if run has a terminal status."""
        return self.status in TERMINAL_STATUSES

    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES
