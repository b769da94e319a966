"""
Chained job exceptions.

Two categories:
- ItemProcessingError: one item could not be turned into a feed record.
  Recovered inside the batch; the item is skipped.
- BatchInfrastructureError: the source could not be queried or the feed
  file could not be written. Fatal to the run; propagated to the driver.
"""

from typing import Any, Optional


class JobError(Exception):
    """Base exception for all chained job errors."""
    pass


class ItemProcessingError(JobError):
    """Raised when a single item cannot be transformed."""

    def __init__(self, item_id: Optional[Any], message: str):
        self.item_id = item_id
        self.message = message
        super().__init__(f"Item {item_id}: {message}")


class BatchInfrastructureError(JobError):
    """Base for errors that stop the whole run."""
    pass


class ItemSourceError(BatchInfrastructureError):
    """Raised when the item source cannot be queried."""
    pass


class FeedStorageError(BatchInfrastructureError):
    """
    Raised when the feed folder or feed files cannot be written.

    Examples:
    - Feed directory cannot be created (permissions)
    - Temporary file cannot be truncated or appended to
    - Temporary file missing when promoting it to the live path
    """
    pass
