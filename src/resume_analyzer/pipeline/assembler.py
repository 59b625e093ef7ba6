"""Result Assembler - merges stage outputs into one record and persists it."""

from __future__ import annotations

import logging
import re
import sqlite3

from resume_analyzer.exceptions import PersistenceError
from resume_analyzer.models.analysis import (
    AnalysisRecord,
    AnalysisResult,
    JobAlignment,
    ScoredResume,
)
from resume_analyzer.models.job import JobDescription
from resume_analyzer.pipeline.stages import PipelineStage, check_job_fields
from resume_analyzer.storage.analysis_store import AnalysisStore

logger = logging.getLogger(__name__)

_TOKEN_SPLIT = re.compile(r"[^\w+#.]+")


def _tokens(value: str) -> set[str]:
    return {t.strip(".") for t in _TOKEN_SPLIT.split(value.casefold()) if t.strip(".")}


def _mentions(term: str, candidates: tuple[str, ...]) -> bool:
    """True when ``term`` equals a candidate or all its words appear in one."""
    folded = term.casefold()
    wanted = _tokens(term)
    for candidate in candidates:
        if candidate.casefold() == folded:
            return True
        if wanted and wanted <= _tokens(candidate):
            return True
    return False


def compute_job_alignment(scored: ScoredResume, job: JobDescription) -> JobAlignment:
    """Split the job's skills into matched/missing against the identified skills."""
    evidence = scored.identified_skills + scored.primary_keywords + scored.scores.keywords_relevance.keywords
    matched = tuple(s for s in job.skills if _mentions(s, evidence))
    missing = tuple(s for s in job.skills if s not in matched)
    overlap = tuple(k for k in job.primary_keywords if _mentions(k, evidence))
    return JobAlignment(
        job=job,
        matched_skills=matched,
        missing_skills=missing,
        keyword_overlap=overlap,
    )


def truncate_content(content: str, limit: int) -> str:
    if limit <= 0 or len(content) <= limit:
        return content
    return content[:limit]


class ResultAssembler:
    """Builds the final AnalysisResult and hands it to the storage collaborator."""

    def __init__(self, store: AnalysisStore, *, max_content_length: int = 10000):
        self.store = store
        self.max_content_length = max_content_length

    def assemble(
        self,
        scored: ScoredResume,
        job: JobDescription | None = None,
        job_feedback: str | None = None,
    ) -> AnalysisResult:
        expected = job is not None
        check_job_fields(PipelineStage.ASSEMBLY, expected, job_feedback=job_feedback)

        fields = scored.model_dump()
        if job is not None:
            fields["job_specific_feedback"] = job_feedback
            fields["job_alignment"] = compute_job_alignment(scored, job)
        result = AnalysisResult.model_validate(fields)

        check_job_fields(
            PipelineStage.ASSEMBLY,
            expected,
            job_specific_feedback=result.job_specific_feedback,
            job_alignment=result.job_alignment,
        )
        return result

    def persist(
        self,
        content: str,
        owner_id: str,
        result: AnalysisResult,
        *,
        expect_job_context: bool,
    ) -> AnalysisRecord:
        check_job_fields(
            PipelineStage.PERSISTENCE,
            expect_job_context,
            job_specific_feedback=result.job_specific_feedback,
            job_alignment=result.job_alignment,
        )
        stored_content = truncate_content(content, self.max_content_length)
        if len(stored_content) < len(content):
            logger.info("Stored content truncated %d -> %d chars", len(content), len(stored_content))

        try:
            record = self.store.create(
                AnalysisRecord(user_id=owner_id, content=stored_content, result=result)
            )
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceError(
                f"Failed to store analysis: {exc}", stage=PipelineStage.PERSISTENCE.value
            ) from exc
        logger.info("Analysis %s stored for user %s", record.id, owner_id)
        return record

    def get(self, record_id: int) -> AnalysisRecord | None:
        return self.store.get_by_id(record_id)

    def list_for_user(self, user_id: str) -> list[AnalysisRecord]:
        return self.store.list_by_user(user_id)
