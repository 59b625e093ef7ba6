"""Storage collaborators for analysis records (SQLite and in-memory)."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Protocol

from resume_analyzer.models.analysis import AnalysisRecord, AnalysisResult

DEFAULT_DB_PATH = Path.home() / ".resume-analyzer" / "analyses.db"

# Nested result fields stored as JSON text; optional ones are NULL, never omitted.
_JSON_COLUMNS = (
    "scores",
    "resume_sections",
    "identified_skills",
    "primary_keywords",
    "suggested_improvements",
    "general_feedback",
)


class AnalysisStore(Protocol):
    """create / read / list contract the pipeline persists through."""

    def create(self, record: AnalysisRecord) -> AnalysisRecord: ...

    def get_by_id(self, record_id: int) -> AnalysisRecord | None: ...

    def list_by_user(self, user_id: str) -> list[AnalysisRecord]: ...


class SQLiteAnalysisStore:
    """SQLite-backed analysis store with WAL mode."""

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
                CREATE TABLE IF NOT EXISTS resume_analyses (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    content TEXT NOT NULL,
                    score INTEGER NOT NULL,
                    scores TEXT NOT NULL,
                    resume_sections TEXT NOT NULL,
                    identified_skills TEXT NOT NULL,
                    primary_keywords TEXT NOT NULL,
                    suggested_improvements TEXT NOT NULL,
                    general_feedback TEXT NOT NULL,
                    job_specific_feedback TEXT,
                    job_alignment TEXT,
                    is_fallback INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS user_time_idx ON resume_analyses (user_id, created_at)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS created_at_idx ON resume_analyses (created_at)"
            )

    def create(self, record: AnalysisRecord) -> AnalysisRecord:
        """Insert a record and return it with its assigned id."""
        data = record.result.model_dump(mode="json")
        with self._connect() as conn:
            cursor = conn.execute(
                """INSERT INTO resume_analyses
                   (user_id, content, score, scores, resume_sections, identified_skills,
                    primary_keywords, suggested_improvements, general_feedback,
                    job_specific_feedback, job_alignment, is_fallback, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    record.user_id,
                    record.content,
                    data["score"],
                    *(json.dumps(data[col]) for col in _JSON_COLUMNS),
                    data["job_specific_feedback"],
                    json.dumps(data["job_alignment"]) if data["job_alignment"] is not None else None,
                    1 if data["is_fallback"] else 0,
                    record.created_at.isoformat(),
                ),
            )
            record_id = cursor.lastrowid
        return record.model_copy(update={"id": record_id})

    def get_by_id(self, record_id: int) -> AnalysisRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM resume_analyses WHERE id = ?", (record_id,)
            ).fetchone()
        return self._row_to_record(row) if row is not None else None

    def list_by_user(self, user_id: str) -> list[AnalysisRecord]:
        """All records for a user, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM resume_analyses WHERE user_id = ? "
                "ORDER BY created_at DESC, id DESC",
                (user_id,),
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_record(row: tuple) -> AnalysisRecord:
        (
            record_id, user_id, content, score, scores, sections, skills,
            keywords, improvements, feedback, job_feedback, job_alignment,
            is_fallback, created_at,
        ) = row
        result = AnalysisResult.model_validate(
            {
                "score": score,
                "scores": json.loads(scores),
                "resume_sections": json.loads(sections),
                "identified_skills": json.loads(skills),
                "primary_keywords": json.loads(keywords),
                "suggested_improvements": json.loads(improvements),
                "general_feedback": json.loads(feedback),
                "job_specific_feedback": job_feedback,
                "job_alignment": json.loads(job_alignment) if job_alignment else None,
                "is_fallback": bool(is_fallback),
            }
        )
        return AnalysisRecord(
            id=record_id,
            user_id=user_id,
            content=content,
            result=result,
            created_at=datetime.fromisoformat(created_at),
        )


class InMemoryAnalysisStore:
    """Dict-backed store for tests and throwaway runs."""

    def __init__(self):
        self._records: dict[int, AnalysisRecord] = {}
        self._next_id = 1

    def create(self, record: AnalysisRecord) -> AnalysisRecord:
        stored = record.model_copy(update={"id": self._next_id})
        self._records[stored.id] = stored
        self._next_id += 1
        return stored

    def get_by_id(self, record_id: int) -> AnalysisRecord | None:
        return self._records.get(record_id)

    def list_by_user(self, user_id: str) -> list[AnalysisRecord]:
        records = [r for r in self._records.values() if r.user_id == user_id]
        return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)

    def __len__(self) -> int:
        return len(self._records)
