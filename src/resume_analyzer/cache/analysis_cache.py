"""SQLite cache for finished analyses, keyed by resume + job text (TTL 24 hours)."""

from __future__ import annotations

import hashlib
import sqlite3
import time
from pathlib import Path

from resume_analyzer.models.analysis import AnalysisResult

DEFAULT_DB_PATH = Path.home() / ".resume-analyzer" / "cache.db"
DEFAULT_TTL_HOURS = 24


def make_cache_key(resume_text: str, job_text: str | None = None) -> str:
    """MD5 over the resume and (when given) the job posting text."""
    digest = hashlib.md5(resume_text.encode("utf-8"))
    if job_text:
        digest.update(b"\x00job:")
        digest.update(job_text.strip().encode("utf-8"))
    return digest.hexdigest()


class AnalysisCache:
    """SQLite-backed analysis cache with TTL expiration."""

    def __init__(
        self,
        db_path: str | Path = DEFAULT_DB_PATH,
        ttl_hours: int = DEFAULT_TTL_HOURS,
    ):
        self.db_path = Path(db_path)
        self.ttl_seconds = ttl_hours * 3600
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS analysis_cache (
                    cache_key TEXT PRIMARY KEY,
                    result_json TEXT NOT NULL,
                    cached_at REAL NOT NULL
                )
            """)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    def get(self, key: str) -> AnalysisResult | None:
        """Get a cached analysis if present and not expired."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT result_json, cached_at FROM analysis_cache WHERE cache_key = ?",
                (key,),
            ).fetchone()

        if row is None:
            return None

        result_json, cached_at = row
        if time.time() - cached_at >= self.ttl_seconds:
            self.delete(key)
            return None

        return AnalysisResult.model_validate_json(result_json)

    def put(self, key: str, result: AnalysisResult) -> None:
        """Cache an analysis. Fallback records are never cached."""
        if result.is_fallback:
            return
        with self._connect() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO analysis_cache
                   (cache_key, result_json, cached_at)
                   VALUES (?, ?, ?)""",
                (key, result.model_dump_json(), time.time()),
            )

    def delete(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM analysis_cache WHERE cache_key = ?", (key,))

    def clear(self) -> int:
        """Clear all cached entries. Returns count of deleted rows."""
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM analysis_cache")
            return cursor.rowcount

    def stats(self) -> dict:
        """Return cache statistics."""
        with self._connect() as conn:
            total = conn.execute(
                "SELECT COUNT(*) FROM analysis_cache"
            ).fetchone()[0]
            expired = conn.execute(
                "SELECT COUNT(*) FROM analysis_cache WHERE ? - cached_at >= ?",
                (time.time(), self.ttl_seconds),
            ).fetchone()[0]
        return {"total": total, "expired": expired, "active": total - expired}
