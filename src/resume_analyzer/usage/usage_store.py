"""SQLite-backed usage log storage."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from resume_analyzer.usage.models import UsageLog

DEFAULT_DB_PATH = Path.home() / ".resume-analyzer" / "usage.db"

_COLUMNS = (
    "id",
    "user_id",
    "timestamp",
    "content_length",
    "used_job_context",
    "cache_hit",
    "is_fallback",
    "score",
    "analysis_id",
    "elapsed_seconds",
    "total_input_tokens",
    "total_output_tokens",
    "llm_calls",
    "estimated_cost_usd",
    "success",
    "failed_stage",
    "error_type",
    "error_message",
)
_BOOL_COLUMNS = ("used_job_context", "cache_hit", "is_fallback", "success")


class UsageStore:
    """SQLite-backed store for pipeline usage logs with WAL mode."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS usage_logs (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    content_length INTEGER NOT NULL DEFAULT 0,
                    used_job_context INTEGER NOT NULL DEFAULT 0,
                    cache_hit INTEGER NOT NULL DEFAULT 0,
                    is_fallback INTEGER NOT NULL DEFAULT 0,
                    score INTEGER,
                    analysis_id INTEGER,
                    elapsed_seconds REAL NOT NULL DEFAULT 0.0,
                    total_input_tokens INTEGER NOT NULL DEFAULT 0,
                    total_output_tokens INTEGER NOT NULL DEFAULT 0,
                    llm_calls INTEGER NOT NULL DEFAULT 0,
                    estimated_cost_usd REAL NOT NULL DEFAULT 0.0,
                    success INTEGER NOT NULL DEFAULT 1,
                    failed_stage TEXT,
                    error_type TEXT,
                    error_message TEXT
                )
            """)

    def save_log(self, log: UsageLog) -> None:
        """Persist a usage log entry."""
        data = log.model_dump()
        data["timestamp"] = log.timestamp.isoformat()
        for col in _BOOL_COLUMNS:
            data[col] = 1 if data[col] else 0
        placeholders = ", ".join("?" for _ in _COLUMNS)
        with self._connect() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO usage_logs ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                tuple(data[col] for col in _COLUMNS),
            )

    def get_logs(
        self,
        user_id: str | None = None,
        limit: int = 50,
    ) -> list[UsageLog]:
        """Retrieve usage logs, newest first, optionally filtered by user."""
        select = f"SELECT {', '.join(_COLUMNS)} FROM usage_logs"
        with self._connect() as conn:
            if user_id is not None:
                rows = conn.execute(
                    f"{select} WHERE user_id = ? ORDER BY timestamp DESC LIMIT ?",
                    (user_id, limit),
                ).fetchall()
            else:
                rows = conn.execute(
                    f"{select} ORDER BY timestamp DESC LIMIT ?",
                    (limit,),
                ).fetchall()
        return [self._row_to_log(row) for row in rows]

    def get_monthly_stats(self) -> dict:
        """Get aggregated stats for the current month."""
        now = datetime.now()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        with self._connect() as conn:
            row = conn.execute(
                """SELECT
                       COUNT(*) as total_runs,
                       SUM(total_input_tokens) as total_input,
                       SUM(total_output_tokens) as total_output,
                       SUM(estimated_cost_usd) as total_cost,
                       AVG(score) as avg_score,
                       SUM(CASE WHEN success = 1 THEN 1 ELSE 0 END) as success_count,
                       SUM(cache_hit) as cache_hits
                   FROM usage_logs
                   WHERE timestamp >= ?""",
                (month_start.isoformat(),),
            ).fetchone()
        return {
            "total_runs": row[0] or 0,
            "total_input_tokens": row[1] or 0,
            "total_output_tokens": row[2] or 0,
            "total_cost_usd": row[3] or 0.0,
            "avg_score": round(row[4], 1) if row[4] is not None else None,
            "success_rate": (row[5] / row[0] * 100) if row[0] else 0.0,
            "cache_hits": row[6] or 0,
            "month": now.strftime("%Y-%m"),
        }

    def get_failures_by_stage(self) -> dict[str, int]:
        """Count failed runs per pipeline stage."""
        with self._connect() as conn:
            rows = conn.execute(
                """SELECT COALESCE(failed_stage, 'unknown'), COUNT(*)
                   FROM usage_logs WHERE success = 0
                   GROUP BY failed_stage"""
            ).fetchall()
        return {stage: count for stage, count in rows}

    @staticmethod
    def _row_to_log(row: tuple) -> UsageLog:
        data = dict(zip(_COLUMNS, row))
        data["timestamp"] = datetime.fromisoformat(data["timestamp"])
        for col in _BOOL_COLUMNS:
            data[col] = bool(data[col])
        return UsageLog(**data)
