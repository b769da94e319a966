"""
Chain Scheduler.

Drives chained jobs one step per dispatch: start(), then batches in
increasing order, then end(). Run state (batch number, args) is persisted
in SQLite between steps.
"""

from .entities import (
    ChainRun,
    ChainRunStatus,
)
from .errors import (
    SchedulerError,
    InvalidOperationError,
    RunNotFoundError,
    JobNotRegisteredError,
    DuplicateRunError,
)
from .persistence import PersistenceAdapter
from .registry import JobRegistry
from .executor import Executor
from .dispatcher import Dispatcher, DispatcherState
from .recovery import RecoveryManager
from .service import SchedulerService

__all__ = [
    # Entities
    "ChainRun",
    "ChainRunStatus",
    # Errors
    "SchedulerError",
    "InvalidOperationError",
    "RunNotFoundError",
    "JobNotRegisteredError",
    "DuplicateRunError",
    # Persistence
    "PersistenceAdapter",
    # Registry
    "JobRegistry",
    # Executor
    "Executor",
    # Dispatcher
    "Dispatcher",
    "DispatcherState",
    # Recovery
    "RecoveryManager",
    # Service
    "SchedulerService",
]
