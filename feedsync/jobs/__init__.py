"""
Chained batch job engine.

A chained job walks a collection one fixed-size window per invocation.
The external driver calls start(), then handle_batch_action() with
batch numbers 1, 2, 3, ... until a batch materializes no items, then end().
"""

from .errors import (
    JobError,
    ItemProcessingError,
    BatchInfrastructureError,
    ItemSourceError,
    FeedStorageError,
)
from .pagination import BatchWindow, compute_offset, get_batch_window
from .chained import (
    ChainedJob,
    ChainedJobHooks,
    ChainedJobEngine,
    BatchResult,
    ItemFailure,
    job_key,
)

__all__ = [
    # Errors
    "JobError",
    "ItemProcessingError",
    "BatchInfrastructureError",
    "ItemSourceError",
    "FeedStorageError",
    # Pagination
    "BatchWindow",
    "compute_offset",
    "get_batch_window",
    # Engine
    "ChainedJob",
    "ChainedJobHooks",
    "ChainedJobEngine",
    "BatchResult",
    "ItemFailure",
    "job_key",
]
