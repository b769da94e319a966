"""
Persistence Adapter for the chain scheduler.

SQLite storage (WAL mode) for ChainRun state, so a run's batch number and
args survive between invocations and across restarts.

Provides:
- Run CRUD
- One-active-run-per-job guard (partial unique index)
- Dispatch ordering (oldest active run first)
- Recovery query helpers
"""

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .entities import (
    ChainRun,
    ChainRunStatus,
    now_iso,
)
from .errors import (
    DuplicateRunError,
    RunNotFoundError,
)


class PersistenceAdapter:
    """
    SQLite-based persistence for chain runs.

    - Does NOT contain business logic
    - Does NOT validate beyond schema constraints
    """

    def __init__(self, db_path: str | Path):
        """
        Initialize persistence adapter.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with WAL mode enabled."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = self._get_connection()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS chain_runs (
                    run_id TEXT PRIMARY KEY,
                    job_name TEXT NOT NULL,
                    owner TEXT NOT NULL,
                    args TEXT NOT NULL DEFAULT '{}',
                    batch_number INTEGER NOT NULL DEFAULT 0,
                    status TEXT NOT NULL,
                    items_exported INTEGER NOT NULL DEFAULT 0,
                    items_failed INTEGER NOT NULL DEFAULT 0,
                    error TEXT,
                    created_at TEXT NOT NULL,
                    started_at TEXT,
                    updated_at TEXT NOT NULL,
                    finished_at TEXT
                )
            """)

            # Single active run per job identity
            conn.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_chain_runs_one_active
                ON chain_runs (owner, job_name)
                WHERE status IN ('PENDING', 'RUNNING')
            """)

            # Dispatch ordering
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_chain_runs_dispatch
                ON chain_runs (status, created_at ASC)
            """)

    # =========================================================================
    # Row Conversion
    # =========================================================================

    def _row_to_run(self, row: sqlite3.Row) -> ChainRun:
        """Convert a database row to a ChainRun entity."""
        return ChainRun(
            run_id=row["run_id"],
            job_name=row["job_name"],
            owner=row["owner"],
            args=json.loads(row["args"]),
            batch_number=row["batch_number"],
            status=ChainRunStatus(row["status"]),
            items_exported=row["items_exported"],
            items_failed=row["items_failed"],
            error=row["error"],
            created_at=row["created_at"],
            started_at=row["started_at"],
            updated_at=row["updated_at"],
            finished_at=row["finished_at"],
        )

    # =========================================================================
    # ChainRun CRUD
    # =========================================================================

    def create_run(self, run: ChainRun) -> ChainRun:
        """
        Persist a new run.

        Raises:
            DuplicateRunError: If the job already has a PENDING/RUNNING run
        """
        try:
            with self._transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO chain_runs (
                        run_id, job_name, owner, args, batch_number, status,
                        items_exported, items_failed, error,
                        created_at, started_at, updated_at, finished_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        run.run_id,
                        run.job_name,
                        run.owner,
                        json.dumps(run.args),
                        run.batch_number,
                        run.status.value,
                        run.items_exported,
                        run.items_failed,
                        run.error,
                        run.created_at,
                        run.started_at,
                        run.updated_at,
                        run.finished_at,
                    ),
                )
        except sqlite3.IntegrityError:
            existing = self.get_active_run(run.owner, run.job_name)
            if existing is None:
                raise
            raise DuplicateRunError(run.owner, run.job_name, existing.run_id)

        return run

    def get_run(self, run_id: str) -> Optional[ChainRun]:
        """Get a run by ID."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM chain_runs WHERE run_id = ?", (run_id,)
            ).fetchone()
        return self._row_to_run(row) if row else None

    def update_run(
        self,
        run_id: str,
        status: Optional[ChainRunStatus] = None,
        batch_number: Optional[int] = None,
        items_exported: Optional[int] = None,
        items_failed: Optional[int] = None,
        error: Optional[str] = None,
        clear_error: bool = False,
        started_at: Optional[str] = None,
        finished_at: Optional[str] = None,
    ) -> ChainRun:
        """
        Update mutable run fields. updated_at is always refreshed.

        Raises:
            RunNotFoundError: If the run does not exist
        """
        if self.get_run(run_id) is None:
            raise RunNotFoundError(run_id)

        updates = ["updated_at = ?"]
        values: list = [now_iso()]

        if status is not None:
            updates.append("status = ?")
            values.append(status.value)
        if batch_number is not None:
            updates.append("batch_number = ?")
            values.append(batch_number)
        if items_exported is not None:
            updates.append("items_exported = ?")
            values.append(items_exported)
        if items_failed is not None:
            updates.append("items_failed = ?")
            values.append(items_failed)
        if error is not None:
            updates.append("error = ?")
            values.append(error)
        elif clear_error:
            updates.append("error = NULL")
        if started_at is not None:
            updates.append("started_at = ?")
            values.append(started_at)
        if finished_at is not None:
            updates.append("finished_at = ?")
            values.append(finished_at)

        values.append(run_id)
        with self._transaction() as conn:
            conn.execute(
                f"UPDATE chain_runs SET {', '.join(updates)} WHERE run_id = ?",
                values,
            )

        return self.get_run(run_id)

    def list_runs(
        self,
        status: Optional[ChainRunStatus] = None,
        limit: int = 100,
    ) -> list[ChainRun]:
        """List runs, newest first."""
        with self._connection() as conn:
            if status is None:
                rows = conn.execute(
                    "SELECT * FROM chain_runs ORDER BY created_at DESC, rowid DESC LIMIT ?",
                    (limit,),
                ).fetchall()
            else:
                rows = conn.execute(
                    """
                    SELECT * FROM chain_runs WHERE status = ?
                    ORDER BY created_at DESC, rowid DESC LIMIT ?
                    """,
                    (status.value, limit),
                ).fetchall()
        return [self._row_to_run(row) for row in rows]

    def get_latest_run(self, owner: str, job_name: str) -> Optional[ChainRun]:
        """Most recently created run of a job, any status."""
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM chain_runs WHERE owner = ? AND job_name = ?
                ORDER BY created_at DESC, rowid DESC LIMIT 1
                """,
                (owner, job_name),
            ).fetchone()
        return self._row_to_run(row) if row else None

    # =========================================================================
    # Dispatch Queries
    # =========================================================================

    def get_active_run(self, owner: str, job_name: str) -> Optional[ChainRun]:
        """The PENDING/RUNNING run of a job, if any."""
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM chain_runs
                WHERE owner = ? AND job_name = ? AND status IN ('PENDING', 'RUNNING')
                LIMIT 1
                """,
                (owner, job_name),
            ).fetchone()
        return self._row_to_run(row) if row else None

    def get_next_runnable(self) -> Optional[ChainRun]:
        """Oldest PENDING/RUNNING run."""
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM chain_runs
                WHERE status IN ('PENDING', 'RUNNING')
                ORDER BY created_at ASC, rowid ASC
                LIMIT 1
                """
            ).fetchone()
        return self._row_to_run(row) if row else None

    def count_by_status(self) -> dict[str, int]:
        """Run counts keyed by every ChainRunStatus value."""
        counts = {status.value: 0 for status in ChainRunStatus}
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT status, COUNT(*) AS n FROM chain_runs GROUP BY status"
            ).fetchall()
        for row in rows:
            counts[row["status"]] = row["n"]
        return counts

    # =========================================================================
    # Recovery Queries
    # =========================================================================

    def get_interrupted_runs(self) -> list[ChainRun]:
        """Active runs that already executed start() (batch_number > 0)."""
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM chain_runs
                WHERE status IN ('PENDING', 'RUNNING') AND batch_number > 0
                ORDER BY created_at ASC
                """
            ).fetchall()
        return [self._row_to_run(row) for row in rows]
