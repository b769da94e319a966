"""
Offset pagination for chained jobs.

Items are fetched by a fixed window per batch number. The window is
derived fresh on every invocation; the collection may have grown or
shrunk since the previous batch, so nothing is cached between batches.

The source query must order by an ascending, immutable key (e.g. the
numeric item ID). New rows then always sort after the current offset.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class BatchWindow:
    """LIMIT/OFFSET pair for one batch."""

    limit: int
    offset: int


def compute_offset(batch_number: int, batch_size: int) -> int:
    """
    Get the query offset for a batch.

    Args:
        batch_number: 1-based batch number
        batch_size: Fixed number of items per batch

    Returns:
        Number of items to skip: (batch_number - 1) * batch_size

    Raises:
        ValueError: If batch_number < 1 or batch_size < 1
    """
    if batch_number < 1:
        raise ValueError(f"batch_number must be >= 1, got {batch_number}")
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    return (batch_number - 1) * batch_size


def get_batch_window(batch_number: int, batch_size: int) -> BatchWindow:
    """Get the LIMIT/OFFSET window for a batch."""
    return BatchWindow(
        limit=batch_size,
        offset=compute_offset(batch_number, batch_size),
    )
