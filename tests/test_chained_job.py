"""
Tests for ChainedJobEngine.

Uses an in-memory job over a list of integer IDs so the engine contract
can be checked without the catalog or the feed file.
"""

import logging

import pytest

from feedsync.jobs.chained import (
    BatchResult,
    ChainedJob,
    ChainedJobEngine,
    job_key,
)
from feedsync.jobs.errors import ItemProcessingError, ItemSourceError
from feedsync.jobs.pagination import BatchWindow


class ListJob:
    """
    Chained job over a mutable list of IDs.

    IDs in `hidden` are dropped by the filter; IDs in `bad`
    raise ItemProcessingError.
    """

    def __init__(self, ids, batch_size=3, hidden=(), bad=(), explode=()):
        self.ids = list(ids)
        self.batch_size = batch_size
        self.hidden = set(hidden)
        self.bad = set(bad)
        self.explode = set(explode)
        self.windows: list[BatchWindow] = []
        self.written: list[list] = []
        self.calls: list[str] = []

    def get_name(self):
        return "list_export"

    def get_plugin_name(self):
        return "tests"

    def get_batch_size(self):
        return self.batch_size

    def get_items_for_batch(self, window, args):
        self.windows.append(window)
        ordered = sorted(self.ids)
        return ordered[window.offset:window.offset + window.limit]

    def filter_items_before_processing(self, items, args):
        return [i for i in items if i not in self.hidden]

    def process_item(self, item, args):
        if item in self.bad:
            raise ItemProcessingError(item, "bad data")
        if item in self.explode:
            raise KeyError("price")
        return f"row-{item}{args.get('suffix', '')}"

    def handle_start(self, args):
        self.calls.append("start")

    def handle_end(self, args):
        self.calls.append("end")

    def write_processed_items(self, records, args):
        self.written.append(list(records))


class MinimalJob:
    """Chained job without optional hooks."""

    def get_name(self):
        return "minimal"

    def get_plugin_name(self):
        return "tests"

    def get_batch_size(self):
        return 2

    def get_items_for_batch(self, window, args):
        return [1, 2, 3][window.offset:window.offset + window.limit]

    def filter_items_before_processing(self, items, args):
        return items

    def process_item(self, item, args):
        return item * 10


def run_chain(engine: ChainedJobEngine, args=None, max_batches=100) -> list[BatchResult]:
    """Drive start/batches/end the way the scheduler does."""
    engine.start(args)
    results = []
    for batch_number in range(1, max_batches + 1):
        result = engine.handle_batch_action(batch_number, args)
        results.append(result)
        if result.is_last:
            engine.end(args)
            return results
    raise AssertionError("chain did not terminate")


class TestEngineConstruction:
    """Tests for interface checks."""

    def test_list_job_is_chained_job(self):
        assert isinstance(ListJob([]), ChainedJob)

    def test_rejects_non_job(self):
        with pytest.raises(TypeError, match="ChainedJob"):
            ChainedJobEngine(object())

    def test_identity(self):
        engine = ChainedJobEngine(ListJob([]))
        assert engine.name == "list_export"
        assert engine.owner == "tests"
        assert engine.key == "tests/list_export"
        assert job_key(ListJob([])) == "tests/list_export"


class TestHandleBatchAction:
    """Tests for a single batch."""

    def test_window_from_batch_number(self):
        job = ListJob(range(1, 11), batch_size=3)
        engine = ChainedJobEngine(job)

        result = engine.handle_batch_action(2, {})

        assert job.windows == [BatchWindow(limit=3, offset=3)]
        assert result.records == ["row-4", "row-5", "row-6"]
        assert result.is_last is False

    def test_args_passed_through(self):
        engine = ChainedJobEngine(ListJob([1]))
        result = engine.handle_batch_action(1, {"suffix": "!"})
        assert result.records == ["row-1!"]

    def test_writes_records_once_per_batch(self):
        job = ListJob(range(1, 5), batch_size=2)
        engine = ChainedJobEngine(job)

        engine.handle_batch_action(1, {})
        engine.handle_batch_action(2, {})

        assert job.written == [["row-1", "row-2"], ["row-3", "row-4"]]

    def test_fresh_result_per_call(self):
        """Records of one batch never leak into the next."""
        job = ListJob(range(1, 7), batch_size=3)
        engine = ChainedJobEngine(job)

        first = engine.handle_batch_action(1, {})
        second = engine.handle_batch_action(2, {})

        assert first is not second
        assert first.records == ["row-1", "row-2", "row-3"]
        assert second.records == ["row-4", "row-5", "row-6"]

    def test_empty_window_is_last(self):
        job = ListJob([1, 2], batch_size=3)
        engine = ChainedJobEngine(job)

        result = engine.handle_batch_action(2, {})

        assert result.is_last is True
        assert result.fetched == 0
        assert job.written == []

    def test_rejects_batch_zero(self):
        with pytest.raises(ValueError):
            ChainedJobEngine(ListJob([1])).handle_batch_action(0, {})

    def test_rejects_non_positive_batch_size(self):
        with pytest.raises(ValueError):
            ChainedJobEngine(ListJob([1], batch_size=0)).handle_batch_action(1, {})

    def test_source_errors_propagate(self):
        job = ListJob([1])

        def broken(window, args):
            raise ItemSourceError("catalog unavailable")

        job.get_items_for_batch = broken

        with pytest.raises(ItemSourceError):
            ChainedJobEngine(job).handle_batch_action(1, {})


class TestItemIsolation:
    """A failing item is skipped; the rest of the batch is exported."""

    def test_item_error_skipped_and_logged(self, caplog):
        job = ListJob([1, 2, 3], bad={2})
        engine = ChainedJobEngine(job)

        result = engine.handle_batch_action(1, {})

        assert result.records == ["row-1", "row-3"]
        assert [(f.item_id, f.message) for f in result.failures] == [(2, "bad data")]
        assert "Error processing item #2 - bad data" in caplog.text
        assert job.written == [["row-1", "row-3"]]

    def test_unexpected_error_isolated(self):
        job = ListJob([1, 2, 3], explode={1})
        result = ChainedJobEngine(job).handle_batch_action(1, {})

        assert result.records == ["row-2", "row-3"]
        assert result.failures[0].item_id == 1

    def test_none_item_reports_not_found(self, caplog):
        job = MinimalJob()
        job.filter_items_before_processing = lambda items, args: [None, 2]

        result = ChainedJobEngine(job).handle_batch_action(1, {})

        assert result.records == [20]
        assert result.failures[0].message == "Item not found."
        assert "Error processing item #0 - Item not found." in caplog.text

    def test_all_items_failing_does_not_end_chain(self):
        job = ListJob([1, 2, 3, 4], batch_size=2, bad={1, 2})
        results = run_chain(ChainedJobEngine(job))

        assert results[0].records == []
        assert results[0].is_last is False
        assert results[1].records == ["row-3", "row-4"]
        assert job.written == [["row-3", "row-4"]]


class TestChainLifecycle:
    """Full start -> batches -> end runs."""

    def test_hooks_called_in_order(self):
        job = ListJob(range(1, 8), batch_size=3)
        results = run_chain(ChainedJobEngine(job))

        assert job.calls == ["start", "end"]
        assert len(results) == 4
        assert [len(r.records) for r in results] == [3, 3, 1, 0]

    def test_every_item_exported_once(self):
        job = ListJob(range(1, 38), batch_size=15)
        results = run_chain(ChainedJobEngine(job))

        exported = [record for result in results for record in result.records]
        assert exported == [f"row-{i}" for i in range(1, 38)]

    def test_fully_filtered_window_continues(self, caplog):
        """A window whose IDs are all filtered out does not end the chain."""
        job = ListJob(range(1, 10), batch_size=3, hidden={4, 5, 6})
        with caplog.at_level(logging.INFO):
            results = run_chain(ChainedJobEngine(job))

        assert results[1].fetched == 3
        assert results[1].materialized == 0
        assert results[1].is_last is False
        assert job.written == [["row-1", "row-2", "row-3"], ["row-7", "row-8", "row-9"]]
        assert job.calls == ["start", "end"]
        assert "none survived filtering" in caplog.text

    def test_trailing_filtered_windows_still_terminate(self):
        job = ListJob(range(1, 7), batch_size=2, hidden={3, 4, 5, 6})
        results = run_chain(ChainedJobEngine(job))

        assert len(results) == 4
        assert results[-1].fetched == 0
        assert job.written == [["row-1", "row-2"]]

    def test_partially_filtered_window_continues(self):
        job = ListJob(range(1, 7), batch_size=3, hidden={2, 4})
        results = run_chain(ChainedJobEngine(job))

        exported = [record for result in results for record in result.records]
        assert exported == ["row-1", "row-3", "row-5", "row-6"]

    def test_items_appended_during_run_exported_at_tail(self):
        job = ListJob([1, 2, 3, 4], batch_size=2)
        engine = ChainedJobEngine(job)
        engine.start({})

        first = engine.handle_batch_action(1, {})
        job.ids.extend([5, 6])
        second = engine.handle_batch_action(2, {})
        third = engine.handle_batch_action(3, {})

        assert first.records + second.records + third.records == [
            "row-1", "row-2", "row-3", "row-4", "row-5", "row-6",
        ]

    def test_job_without_hooks(self):
        results = run_chain(ChainedJobEngine(MinimalJob()))
        assert [r.records for r in results] == [[10, 20], [30], []]

    def test_restart_reprocesses_from_first_batch(self):
        job = ListJob(range(1, 5), batch_size=2)
        engine = ChainedJobEngine(job)

        engine.start({})
        engine.handle_batch_action(1, {})
        # Aborted; a new run starts over
        results = run_chain(engine)

        assert job.calls == ["start", "start", "end"]
        assert results[0].records == ["row-1", "row-2"]
