"""
Persistence tests for the chain scheduler.

- Run round trip (args, counters, timestamps)
- One active run per job identity
- Dispatch ordering
- Recovery queries
"""

import sqlite3

import pytest

from feedsync.scheduler import (
    ChainRun,
    ChainRunStatus,
    DuplicateRunError,
    PersistenceAdapter,
    RunNotFoundError,
)


class TestRunCrud:
    """Run creation, lookup and updates."""

    def test_round_trip(self, persistence: PersistenceAdapter):
        run = persistence.create_run(
            ChainRun.create(job_name="count", owner="tests", args={"locale": "en"})
        )

        loaded = persistence.get_run(run.run_id)

        assert loaded == run
        assert loaded.status == ChainRunStatus.PENDING
        assert loaded.batch_number == 0
        assert loaded.args == {"locale": "en"}

    def test_get_missing_run(self, persistence):
        assert persistence.get_run("nope") is None

    def test_update_fields(self, persistence, create_run):
        run = create_run()

        updated = persistence.update_run(
            run.run_id,
            status=ChainRunStatus.RUNNING,
            batch_number=3,
            items_exported=30,
            items_failed=2,
            started_at="2026-01-01T00:00:00Z",
        )

        assert updated.status == ChainRunStatus.RUNNING
        assert updated.batch_number == 3
        assert updated.items_exported == 30
        assert updated.items_failed == 2
        assert updated.started_at == "2026-01-01T00:00:00Z"

    def test_error_set_and_cleared(self, persistence, create_run):
        run = create_run()

        assert persistence.update_run(run.run_id, error="boom").error == "boom"
        assert persistence.update_run(run.run_id, clear_error=True).error is None

    def test_update_missing_run(self, persistence):
        with pytest.raises(RunNotFoundError):
            persistence.update_run("nope", batch_number=1)

    def test_list_runs_newest_first(self, persistence, create_run):
        first = create_run(status=ChainRunStatus.COMPLETED)
        second = create_run(status=ChainRunStatus.FAILED)
        third = create_run()

        runs = persistence.list_runs()

        assert [r.run_id for r in runs] == [third.run_id, second.run_id, first.run_id]
        assert [r.run_id for r in persistence.list_runs(status=ChainRunStatus.FAILED)] == [
            second.run_id
        ]
        assert len(persistence.list_runs(limit=1)) == 1

    def test_latest_run(self, persistence, create_run):
        assert persistence.get_latest_run("tests", "count") is None

        create_run(status=ChainRunStatus.COMPLETED)
        latest = create_run(status=ChainRunStatus.FAILED)

        assert persistence.get_latest_run("tests", "count").run_id == latest.run_id


class TestOneActiveRun:
    """A job identity has at most one PENDING/RUNNING run."""

    def test_duplicate_pending_rejected(self, persistence, create_run):
        existing = create_run()

        with pytest.raises(DuplicateRunError) as exc_info:
            create_run()

        assert exc_info.value.existing_run_id == existing.run_id

    def test_duplicate_running_rejected(self, persistence, create_run):
        create_run(status=ChainRunStatus.RUNNING, batch_number=2)

        with pytest.raises(DuplicateRunError):
            create_run()

    @pytest.mark.parametrize(
        "status",
        [ChainRunStatus.COMPLETED, ChainRunStatus.FAILED, ChainRunStatus.CANCELLED],
    )
    def test_terminal_run_allows_new(self, persistence, create_run, status):
        create_run(status=status)
        new = create_run()

        assert persistence.get_active_run("tests", "count").run_id == new.run_id

    def test_other_job_unaffected(self, persistence, create_run):
        create_run()
        create_run(job_name="other")

        assert persistence.count_by_status()["PENDING"] == 2

    def test_duplicate_primary_key_not_masked(self, persistence, create_run):
        run = create_run(status=ChainRunStatus.COMPLETED)

        with pytest.raises(sqlite3.IntegrityError):
            persistence.create_run(run)


class TestDispatchQueries:
    """Dispatch ordering and counts."""

    def test_next_runnable_is_oldest_active(self, persistence, create_run):
        create_run(job_name="a", status=ChainRunStatus.COMPLETED)
        oldest = create_run(job_name="b")
        create_run(job_name="c", status=ChainRunStatus.RUNNING, batch_number=1)

        assert persistence.get_next_runnable().run_id == oldest.run_id

    def test_no_runnable(self, persistence, create_run):
        create_run(status=ChainRunStatus.COMPLETED)
        assert persistence.get_next_runnable() is None

    def test_count_by_status_has_every_status(self, persistence, create_run):
        create_run(job_name="a")
        create_run(job_name="b", status=ChainRunStatus.FAILED)

        counts = persistence.count_by_status()

        assert counts == {
            "PENDING": 1,
            "RUNNING": 0,
            "COMPLETED": 0,
            "FAILED": 1,
            "CANCELLED": 0,
        }

    def test_interrupted_runs(self, persistence, create_run):
        create_run(job_name="fresh")
        started = create_run(job_name="started", status=ChainRunStatus.RUNNING, batch_number=4)
        create_run(job_name="done", status=ChainRunStatus.COMPLETED, batch_number=5)

        assert [r.run_id for r in persistence.get_interrupted_runs()] == [started.run_id]

    def test_state_survives_reopen(self, temp_db_path, create_run):
        run = create_run(status=ChainRunStatus.RUNNING, batch_number=6)

        reopened = PersistenceAdapter(temp_db_path)

        assert reopened.get_run(run.run_id).batch_number == 6
