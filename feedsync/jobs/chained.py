"""
Chained Batch Job Engine.

Lifecycle driven by an external scheduler:
1. start(args): once, before batch 1
2. handle_batch_action(batch_number, args): batch 1, 2, 3, ...
3. end(args): once, after a batch materialized zero items

Each handle_batch_action call does exactly one window of work:
- Compute LIMIT/OFFSET from batch_number
- Query raw identifiers (get_items_for_batch)
- Materialize/filter them (filter_items_before_processing)
- Transform each item (process_item), isolating per-item failures
- Flush the transformed records (write_processed_items)

The chain ends when the *materialized* list is empty. Pagination runs over
the unfiltered identifier window, so every batch number advances over a
fresh slice of the collection no matter how many items get filtered out.

What the engine MUST NOT do:
- Keep processed records between calls (BatchResult is built per call)
- Retry infrastructure failures (the driver decides)
- Schedule the next batch itself
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

from .errors import ItemProcessingError
from .pagination import BatchWindow, get_batch_window


logger = logging.getLogger(__name__)


@runtime_checkable
class ChainedJob(Protocol):
    """
    Operations every chained job must provide.

    get_items_for_batch must order by an ascending, immutable key.
    """

    def get_name(self) -> str:
        """Stable slug of the job."""
        ...

    def get_plugin_name(self) -> str:
        """Stable namespace of the job owner."""
        ...

    def get_batch_size(self) -> int:
        """Number of identifiers per batch. Constant for a run."""
        ...

    def get_items_for_batch(self, window: BatchWindow, args: dict) -> list:
        """Raw item identifiers for the window, ascending."""
        ...

    def filter_items_before_processing(self, items: list, args: dict) -> list:
        """Materialize identifiers into items, dropping irrelevant kinds."""
        ...

    def process_item(self, item: Any, args: dict) -> Any:
        """
        Transform one item into a record.

        Raises:
            ItemProcessingError: If the item cannot be transformed
        """
        ...


@runtime_checkable
class ChainedJobHooks(Protocol):
    """Optional lifecycle hooks. Called only when a job implements them."""

    def handle_start(self, args: dict) -> None:
        ...

    def handle_end(self, args: dict) -> None:
        ...

    def write_processed_items(self, records: list, args: dict) -> None:
        ...


def job_key(job: ChainedJob) -> str:
    """Scheduling key of a job: '<owner>/<name>'."""
    return f"{job.get_plugin_name()}/{job.get_name()}"


@dataclass
class ItemFailure:
    """An item skipped because its transform failed."""

    item_id: Any
    message: str


@dataclass
class BatchResult:
    """Outcome of one handle_batch_action call."""

    batch_number: int
    window: BatchWindow
    fetched: int = 0
    materialized: int = 0
    records: list = field(default_factory=list)
    failures: list[ItemFailure] = field(default_factory=list)

    @property
    def is_last(self) -> bool:
        """
        True when no items were materialized from an exhausted window.

        A window whose identifiers were all filtered out is not the end:
        pagination runs over the unfiltered IDs, so later windows may
        still hold exportable items.
        """
        return self.materialized == 0 and self.fetched == 0


def _item_id(item: Any) -> Any:
    """Best-effort identifier of an item for logging."""
    if item is None:
        return 0
    return getattr(item, "id", item)


class ChainedJobEngine:
    """
    Runs the start/batch/end lifecycle of a single chained job.

    The engine is generic over any object satisfying ChainedJob; optional
    hooks (see ChainedJobHooks) are called only when the job defines them.
    """

    def __init__(self, job: ChainedJob):
        if not isinstance(job, ChainedJob):
            raise TypeError(
                f"{type(job).__name__} does not implement the ChainedJob interface"
            )
        self.job = job

    @property
    def name(self) -> str:
        return self.job.get_name()

    @property
    def owner(self) -> str:
        return self.job.get_plugin_name()

    @property
    def key(self) -> str:
        return job_key(self.job)

    def _hook(self, name: str):
        hook = getattr(self.job, name, None)
        return hook if callable(hook) else None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self, args: Optional[dict] = None) -> None:
        """
        Prepare the run. Safe to call again after an aborted run.

        Raises:
            BatchInfrastructureError: If output storage cannot be prepared
        """
        args = args or {}
        logger.info(f"[{self.key}] Starting job")

        handle_start = self._hook("handle_start")
        if handle_start is not None:
            handle_start(args)

    def end(self, args: Optional[dict] = None) -> None:
        """
        Finish the run after the terminating empty batch.

        Raises:
            BatchInfrastructureError: If the output cannot be finalized
        """
        args = args or {}

        handle_end = self._hook("handle_end")
        if handle_end is not None:
            handle_end(args)

        logger.info(f"[{self.key}] Job complete")

    def handle_batch_action(
        self,
        batch_number: int,
        args: Optional[dict] = None,
    ) -> BatchResult:
        """
        Process one batch.

        Args:
            batch_number: 1-based batch number, incremented by the driver
            args: Job args, passed unchanged to every batch

        Returns:
            BatchResult for this call only. result.is_last signals the
            driver to call end().

        Raises:
            ValueError: If batch_number or the job's batch size is invalid
            BatchInfrastructureError: If querying or flushing fails
        """
        args = args or {}
        window = get_batch_window(batch_number, self.job.get_batch_size())
        result = BatchResult(batch_number=batch_number, window=window)

        item_ids = self.job.get_items_for_batch(window, args)
        result.fetched = len(item_ids)

        items = self.job.filter_items_before_processing(item_ids, args) if item_ids else []
        result.materialized = len(items)

        logger.debug(
            f"[{self.key}] Batch {batch_number}: offset={window.offset}, "
            f"fetched={result.fetched}, materialized={result.materialized}"
        )

        if result.is_last:
            return result

        if not items:
            logger.info(
                f"[{self.key}] Batch {batch_number} fetched {result.fetched} "
                f"identifiers but none survived filtering; continuing"
            )
            return result

        for item in items:
            self._process_one(item, args, result)

        if result.records:
            write_processed_items = self._hook("write_processed_items")
            if write_processed_items is not None:
                write_processed_items(result.records, args)

        logger.info(
            f"[{self.key}] Batch {batch_number} processed: "
            f"{len(result.records)} exported, {len(result.failures)} failed"
        )

        return result

    def _process_one(self, item: Any, args: dict, result: BatchResult) -> None:
        """Transform a single item, recording failures instead of raising."""
        try:
            if item is None:
                raise ItemProcessingError(None, "Item not found.")
            result.records.append(self.job.process_item(item, args))

        except ItemProcessingError as e:
            item_id = e.item_id if e.item_id is not None else _item_id(item)
            logger.warning(f"Error processing item #{item_id} - {e.message}")
            result.failures.append(ItemFailure(item_id=item_id, message=e.message))

        except Exception as e:
            item_id = _item_id(item)
            logger.warning(
                f"Error processing item #{item_id} - {e}",
                exc_info=True,
            )
            result.failures.append(ItemFailure(item_id=item_id, message=str(e)))
