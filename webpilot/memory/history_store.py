"""
History Store - SQLite storage for run summaries, page visits, and selector
reliability. An optional sink: the agent loop never depends on it.
"""

import json
import aiosqlite
from typing import Any
from pathlib import Path

from ..core.models import AgentRun, RunStatus, WorldState, now_ms


class HistoryStore:
    """
    SQLite-based storage for agent history.
    Learns which selectors work per domain across runs.
    """

    def __init__(self, db_path: str):
        """
        Initialize history store.

        Args:
            db_path: Path to SQLite database file (":memory:" for tests)
        """
        self.db_path = db_path
        self.db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Initialize database and create tables."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self.db = await aiosqlite.connect(self.db_path)
        self.db.row_factory = aiosqlite.Row

        await self.db.executescript("""
            -- Runs table
            CREATE TABLE IF NOT EXISTS runs (
                id TEXT PRIMARY KEY,
                goal TEXT NOT NULL,
                status TEXT NOT NULL,
                start_time INTEGER NOT NULL,
                end_time INTEGER,
                steps_count INTEGER DEFAULT 0,
                success INTEGER DEFAULT 0,
                final_result TEXT,
                error TEXT,
                metadata JSON
            );

            -- Page visits table
            CREATE TABLE IF NOT EXISTS page_visits (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                run_id TEXT NOT NULL REFERENCES runs(id),
                url TEXT NOT NULL,
                title TEXT,
                timestamp INTEGER NOT NULL,
                dom_summary TEXT,
                action_taken TEXT
            );

            -- Selector reliability table
            CREATE TABLE IF NOT EXISTS selectors (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                domain TEXT NOT NULL,
                selector TEXT NOT NULL,
                selector_type TEXT,
                label TEXT,
                success_count INTEGER DEFAULT 0,
                failure_count INTEGER DEFAULT 0,
                last_used INTEGER,
                UNIQUE(domain, selector)
            );

            CREATE INDEX IF NOT EXISTS idx_runs_status ON runs(status);
            CREATE INDEX IF NOT EXISTS idx_page_visits_run ON page_visits(run_id);
            CREATE INDEX IF NOT EXISTS idx_page_visits_url ON page_visits(url);
            CREATE INDEX IF NOT EXISTS idx_selectors_domain ON selectors(domain);
        """)

        await self.db.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self.db:
            await self.db.close()
            self.db = None

    def _conn(self) -> aiosqlite.Connection:
        if self.db is None:
            raise RuntimeError("HistoryStore not initialized")
        return self.db

    # =========================================================================
    # Runs
    # =========================================================================

    async def save_run(self, run: AgentRun) -> None:
        """Insert or replace the summary row for a run."""
        db = self._conn()
        await db.execute(
            """
            INSERT OR REPLACE INTO runs
                (id, goal, status, start_time, end_time, steps_count,
                 success, final_result, error, metadata)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                run.id,
                run.goal.user_prompt,
                run.status.value,
                run.start_time,
                run.end_time,
                len(run.steps),
                1 if run.status == RunStatus.COMPLETED else 0,
                run.final_result,
                run.error,
                json.dumps({
                    "constraints": run.goal.constraints,
                    "success_criteria": run.goal.success_criteria,
                }),
            ),
        )
        await db.commit()

    async def get_stats(self) -> dict[str, Any]:
        """
        Aggregate statistics over finished runs.

        Returns:
            total_runs, successful_runs, average_steps, success_rate (percent)
        """
        db = self._conn()
        async with db.execute(
            """
            SELECT COUNT(*) AS total,
                   SUM(success) AS successful,
                   AVG(steps_count) AS avg_steps
            FROM runs
            WHERE status IN ('completed', 'failed', 'timeout')
            """
        ) as cursor:
            row = await cursor.fetchone()

        total = row["total"] or 0
        successful = row["successful"] or 0
        return {
            "total_runs": total,
            "successful_runs": successful,
            "average_steps": round(row["avg_steps"] or 0),
            "success_rate": (successful / total) * 100 if total else 0.0,
        }

    # =========================================================================
    # Page Visits
    # =========================================================================

    async def save_page_visit(
        self,
        run_id: str,
        world: WorldState,
        action: str | None = None,
    ) -> None:
        """Record that a run observed a page (and what it did there)."""
        db = self._conn()
        await db.execute(
            """
            INSERT INTO page_visits (run_id, url, title, timestamp, dom_summary, action_taken)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (run_id, world.url, world.title, world.timestamp, world.dom_summary[:5000], action),
        )
        await db.commit()

    async def get_previous_visits(self, url: str, limit: int = 5) -> list[dict[str, Any]]:
        """Most recent visits to a URL, newest first."""
        db = self._conn()
        async with db.execute(
            """
            SELECT timestamp, action_taken, dom_summary
            FROM page_visits
            WHERE url = ?
            ORDER BY timestamp DESC, id DESC
            LIMIT ?
            """,
            (url, limit),
        ) as cursor:
            rows = await cursor.fetchall()

        return [
            {
                "timestamp": row["timestamp"],
                "action": row["action_taken"] or "visited",
                "summary": (row["dom_summary"] or "")[:500],
            }
            for row in rows
        ]

    # =========================================================================
    # Selector Reliability
    # =========================================================================

    async def record_selector_use(
        self,
        domain: str,
        selector: str,
        selector_type: str,
        label: str,
        success: bool,
    ) -> None:
        """Count a success or failure for a selector on a domain."""
        db = self._conn()
        await db.execute(
            """
            INSERT INTO selectors
                (domain, selector, selector_type, label, success_count, failure_count, last_used)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(domain, selector) DO UPDATE SET
                success_count = success_count + excluded.success_count,
                failure_count = failure_count + excluded.failure_count,
                last_used = excluded.last_used
            """,
            (
                domain,
                selector,
                selector_type,
                label,
                1 if success else 0,
                0 if success else 1,
                now_ms(),
            ),
        )
        await db.commit()

    async def get_best_selectors(self, domain: str, limit: int = 20) -> list[dict[str, Any]]:
        """Selectors for a domain ranked by smoothed success rate."""
        db = self._conn()
        async with db.execute(
            """
            SELECT selector,
                   selector_type,
                   label,
                   success_count,
                   (CAST(success_count AS REAL) / (success_count + failure_count + 1)) AS success_rate
            FROM selectors
            WHERE domain = ?
            ORDER BY success_rate DESC, success_count DESC
            LIMIT ?
            """,
            (domain, limit),
        ) as cursor:
            rows = await cursor.fetchall()

        return [
            {
                "selector": row["selector"],
                "type": row["selector_type"],
                "label": row["label"],
                "success_rate": row["success_rate"],
            }
            for row in rows
        ]
