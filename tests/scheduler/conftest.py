"""
Scheduler Test Fixtures.

Base fixtures:
  - Empty scheduler database
  - Registry holding an in-memory chained job
  - Executor / Dispatcher / RecoveryManager wired to the same database

Per-test fixtures:
  - Factory for runs in a given state
"""

import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest

from feedsync.jobs.errors import ItemProcessingError
from feedsync.scheduler import (
    ChainRun,
    ChainRunStatus,
    Dispatcher,
    Executor,
    JobRegistry,
    PersistenceAdapter,
    RecoveryManager,
)


class CountingJob:
    """
    Chained job over range(1, total + 1).

    Records lifecycle calls; fail_on_batch raises a fatal error when that
    batch is reached.
    """

    def __init__(self, total: int = 7, batch_size: int = 3, bad: tuple = ()):
        self.total = total
        self.batch_size = batch_size
        self.bad = set(bad)
        self.fail_on_batch = None
        self.calls: list = []
        self.output: list = []

    def get_name(self):
        return "count"

    def get_plugin_name(self):
        return "tests"

    def get_batch_size(self):
        return self.batch_size

    def get_items_for_batch(self, window, args):
        batch_number = window.offset // window.limit + 1
        self.calls.append(("batch", batch_number))
        if self.fail_on_batch == batch_number:
            raise RuntimeError(f"storage down at batch {batch_number}")
        ids = list(range(1, self.total + 1))
        return ids[window.offset:window.offset + window.limit]

    def filter_items_before_processing(self, items, args):
        return items

    def process_item(self, item, args):
        if item in self.bad:
            raise ItemProcessingError(item, "bad")
        return item

    def handle_start(self, args):
        self.calls.append(("start", dict(args)))
        self.output = []

    def handle_end(self, args):
        self.calls.append(("end", dict(args)))

    def write_processed_items(self, records, args):
        self.output.extend(records)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def temp_db_path() -> Generator[str, None, None]:
    """Create a temporary database file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    yield db_path

    # Cleanup
    Path(db_path).unlink(missing_ok=True)
    # Also cleanup WAL and SHM files
    Path(f"{db_path}-wal").unlink(missing_ok=True)
    Path(f"{db_path}-shm").unlink(missing_ok=True)


@pytest.fixture
def persistence(temp_db_path: str) -> PersistenceAdapter:
    """Create a fresh PersistenceAdapter with empty database."""
    return PersistenceAdapter(temp_db_path)


# =============================================================================
# Component Fixtures
# =============================================================================


@pytest.fixture
def counting_job() -> CountingJob:
    return CountingJob()


@pytest.fixture
def registry(counting_job: CountingJob) -> JobRegistry:
    reg = JobRegistry()
    reg.register(counting_job)
    return reg


@pytest.fixture
def executor(persistence: PersistenceAdapter, registry: JobRegistry) -> Executor:
    return Executor(persistence, registry)


@pytest.fixture
def finished_runs() -> list:
    """Runs passed to the dispatcher's completion callback."""
    return []


@pytest.fixture
def dispatcher(
    persistence: PersistenceAdapter,
    executor: Executor,
    finished_runs: list,
) -> Dispatcher:
    """Create a Dispatcher with all dependencies."""
    disp = Dispatcher(
        persistence=persistence,
        poll_interval=0.05,  # Fast polling for tests
    )
    disp.set_executor(executor)
    disp.set_on_run_finished(finished_runs.append)
    return disp


@pytest.fixture
def recovery_manager(persistence: PersistenceAdapter) -> RecoveryManager:
    return RecoveryManager(persistence)


# =============================================================================
# Run Factory Fixtures
# =============================================================================


@pytest.fixture
def create_run(persistence: PersistenceAdapter) -> Callable:
    """
    Factory fixture for creating runs.

    Returns a function that creates a run and moves it to the given state.
    """

    def _create(
        job_name: str = "count",
        owner: str = "tests",
        args: dict = None,
        status: ChainRunStatus = ChainRunStatus.PENDING,
        batch_number: int = 0,
    ) -> ChainRun:
        run = persistence.create_run(
            ChainRun.create(job_name=job_name, owner=owner, args=args)
        )
        if status != ChainRunStatus.PENDING or batch_number:
            run = persistence.update_run(
                run.run_id, status=status, batch_number=batch_number
            )
        return run

    return _create


# =============================================================================
# Assertion Helpers
# =============================================================================


def assert_run_status(persistence: PersistenceAdapter, run_id: str, expected: ChainRunStatus):
    """Assert a run has the expected status."""
    run = persistence.get_run(run_id)
    assert run is not None, f"Run {run_id} not found"
    assert run.status == expected, f"Expected {expected}, got {run.status}"
