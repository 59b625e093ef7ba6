"""Main pipeline orchestrator - runs one resume analysis end to end."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import time
import uuid
from dataclasses import dataclass, field

from resume_analyzer.cache.analysis_cache import AnalysisCache, make_cache_key
from resume_analyzer.clients.llm_client import LLMClient
from resume_analyzer.clients.rate_limiter import RateLimiter
from resume_analyzer.config import AppConfig
from resume_analyzer.exceptions import (
    AnalysisError,
    AnalysisTimeoutError,
    ExtractionError,
    InputError,
)
from resume_analyzer.models.analysis import AnalysisRecord, RawInput
from resume_analyzer.models.job import JobDescription
from resume_analyzer.pipeline.assembler import ResultAssembler
from resume_analyzer.pipeline.job_fit import JobFitAnalyzer
from resume_analyzer.pipeline.job_parser import JobDescriptionParser
from resume_analyzer.pipeline.preprocessor import TextPreprocessor
from resume_analyzer.pipeline.resume_scorer import ResumeScorer
from resume_analyzer.pipeline.stages import PipelineStage, check_job_fields
from resume_analyzer.storage.analysis_store import AnalysisStore
from resume_analyzer.usage.cost_calculator import calculate_cost
from resume_analyzer.usage.models import UsageLog
from resume_analyzer.usage.usage_store import UsageStore

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Correlation data for one analyze() call."""

    owner_id: str
    content_length: int
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    stage: PipelineStage = PipelineStage.IDLE
    started: float = field(default_factory=time.monotonic)
    used_job_context: bool = False
    cache_hit: bool = False
    job_skipped: bool = False

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started

    def enter(self, stage: PipelineStage) -> None:
        self.stage = stage
        logger.debug("[%s] stage=%s elapsed=%.2fs", self.request_id, stage.value, self.elapsed)


class AnalysisPipeline:
    """Preprocess -> parse job -> score -> job fit -> assemble -> persist."""

    def __init__(
        self,
        llm: LLMClient,
        store: AnalysisStore,
        *,
        scoring_model: str = "claude-sonnet-4-5-20250929",
        utility_model: str = "claude-haiku-4-5-20251001",
        chunk_threshold: int = 12000,
        chunk_size: int = 12000,
        request_timeout: float = 180.0,
        max_content_length: int = 10000,
        validation_retries: int = 0,
        job_parse_policy: str = "abort",
        fallback_enabled: bool = False,
        cache: AnalysisCache | None = None,
        usage_store: UsageStore | None = None,
    ):
        if job_parse_policy not in ("abort", "skip"):
            raise ValueError(f"Unknown job_parse_policy: {job_parse_policy!r}")
        self.llm = llm
        self.preprocessor = TextPreprocessor(
            llm, model=utility_model, threshold=chunk_threshold, chunk_size=chunk_size
        )
        self.job_parser = JobDescriptionParser(llm, model=utility_model)
        self.scorer = ResumeScorer(
            llm,
            model=scoring_model,
            validation_retries=validation_retries,
            fallback_enabled=fallback_enabled,
        )
        self.job_fit = JobFitAnalyzer(llm, model=scoring_model)
        self.assembler = ResultAssembler(store, max_content_length=max_content_length)
        self.request_timeout = request_timeout
        self.job_parse_policy = job_parse_policy
        self.cache = cache
        self.usage_store = usage_store

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        store: AnalysisStore,
        *,
        rate_limiter: RateLimiter | None = None,
        api_key: str | None = None,
        cache: AnalysisCache | None = None,
        usage_store: UsageStore | None = None,
    ) -> AnalysisPipeline:
        """Build a pipeline whose LLM calls all go through one shared limiter."""
        limiter = rate_limiter or RateLimiter(config.llm.min_interval_seconds)
        llm = LLMClient(api_key=api_key, timeout=config.llm.timeout, rate_limiter=limiter)
        p = config.pipeline
        return cls(
            llm,
            store,
            scoring_model=config.llm.scoring_model,
            utility_model=config.llm.utility_model,
            chunk_threshold=p.chunk_threshold,
            chunk_size=p.chunk_size,
            request_timeout=p.request_timeout,
            max_content_length=p.max_content_length,
            validation_retries=p.validation_retries,
            job_parse_policy=p.job_parse_policy,
            fallback_enabled=p.fallback_enabled,
            cache=cache,
            usage_store=usage_store,
        )

    async def analyze(
        self,
        resume_content: str,
        owner_id: str,
        job_description_text: str | None = None,
    ) -> AnalysisRecord:
        """Analyze a resume and persist the result for ``owner_id``.

        Either a complete, validated record is stored and returned, or a
        typed AnalysisError is raised and nothing is stored.
        """
        run = RunContext(owner_id=owner_id or "", content_length=len(resume_content or ""))
        logger.info(
            "[%s] Analysis started: content_length=%d job_text=%s",
            run.request_id, run.content_length, bool(job_description_text),
        )
        with self.llm.run_log():
            return await self._run_and_record(run, resume_content, owner_id, job_description_text)

    async def _run_and_record(
        self,
        run: RunContext,
        resume_content: str,
        owner_id: str,
        job_description_text: str | None,
    ) -> AnalysisRecord:
        try:
            record = await asyncio.wait_for(
                self._run(run, resume_content, owner_id, job_description_text),
                timeout=self.request_timeout,
            )
        except asyncio.TimeoutError as exc:
            error = AnalysisTimeoutError(
                f"Analysis exceeded {self.request_timeout:g}s", stage=run.stage.value
            )
            self._log_failure(run, error)
            raise error from exc
        except AnalysisError as exc:
            if exc.stage is None:
                exc.stage = run.stage.value
            self._log_failure(run, exc)
            raise
        except Exception as exc:
            error = AnalysisError(
                f"Unexpected {type(exc).__name__}: {exc}", stage=run.stage.value
            )
            self._log_failure(run, error)
            raise error from exc

        logger.info(
            "[%s] Analysis %s completed in %.2fs (score=%d, job_context=%s)",
            run.request_id, record.id, run.elapsed, record.result.score, run.used_job_context,
        )
        self._record_usage(run, record=record)
        return record

    async def _run(
        self,
        run: RunContext,
        resume_content: str,
        owner_id: str,
        job_description_text: str | None,
    ) -> AnalysisRecord:
        run.enter(PipelineStage.INGESTION)
        if not resume_content or not resume_content.strip():
            raise InputError("Resume content is required", stage=run.stage.value)
        if not owner_id or not owner_id.strip():
            raise InputError("Owner id is required", stage=run.stage.value)
        raw = RawInput(resume_text=resume_content, job_description_text=job_description_text)
        check_job_fields(
            PipelineStage.INGESTION,
            raw.has_job_text,
            job_description_text=raw.job_description_text,
        )

        cache_key = make_cache_key(raw.resume_text, raw.job_description_text if raw.has_job_text else None)
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.info("[%s] Cache hit", run.request_id)
                run.cache_hit = True
                run.used_job_context = cached.has_job_context
                run.enter(PipelineStage.PERSISTENCE)
                return self.assembler.persist(
                    raw.resume_text, owner_id, cached, expect_job_context=cached.has_job_context
                )

        run.enter(PipelineStage.PREPROCESSING)
        processed = await self.preprocessor.preprocess(raw.resume_text)

        job = await self._parse_job(run, raw)
        run.used_job_context = job is not None

        run.enter(PipelineStage.PROMPTING)
        scored = await self.scorer.score(processed, job, on_stage=run.enter)
        run.enter(PipelineStage.VALID)
        check_job_fields(
            PipelineStage.VALID, raw.has_job_text and not run.job_skipped, job=job
        )

        job_feedback = None
        if job is not None:
            run.enter(PipelineStage.JOB_FIT)
            job_feedback = await self.job_fit.analyze(processed, job)

        run.enter(PipelineStage.ASSEMBLY)
        result = self.assembler.assemble(scored, job, job_feedback)

        run.enter(PipelineStage.PERSISTENCE)
        record = self.assembler.persist(
            raw.resume_text, owner_id, result, expect_job_context=job is not None
        )
        if self.cache is not None:
            try:
                self.cache.put(cache_key, result)
            except (sqlite3.Error, OSError) as exc:
                logger.warning("[%s] Cache write failed, record kept: %s", run.request_id, exc)

        run.enter(PipelineStage.DONE)
        return record

    async def _parse_job(self, run: RunContext, raw: RawInput) -> JobDescription | None:
        if not raw.has_job_text:
            return None

        run.enter(PipelineStage.JOB_PARSING)
        try:
            job = await self.job_parser.parse(raw.job_description_text)
        except ExtractionError as exc:
            if self.job_parse_policy == "abort":
                raise
            logger.warning(
                "[%s] Continuing without job context: %s", run.request_id, exc
            )
            run.job_skipped = True
            return None

        check_job_fields(PipelineStage.JOB_PARSING, True, job=job)
        return job

    def _log_failure(self, run: RunContext, error: AnalysisError) -> None:
        logger.error(
            "[%s] Analysis failed: %s at stage=%s after %.2fs (content_length=%d): %s",
            run.request_id,
            type(error).__name__,
            error.stage,
            run.elapsed,
            run.content_length,
            error,
        )
        self._record_usage(run, error=error)

    def _record_usage(
        self,
        run: RunContext,
        *,
        record: AnalysisRecord | None = None,
        error: AnalysisError | None = None,
    ) -> None:
        tokens = self.llm.get_token_summary()
        if self.usage_store is None:
            return
        log = UsageLog(
            id=run.request_id,
            user_id=run.owner_id or "anonymous",
            content_length=run.content_length,
            used_job_context=run.used_job_context,
            cache_hit=run.cache_hit,
            is_fallback=record.result.is_fallback if record else False,
            score=record.result.score if record else None,
            analysis_id=record.id if record else None,
            elapsed_seconds=round(run.elapsed, 3),
            total_input_tokens=tokens["input"],
            total_output_tokens=tokens["output"],
            llm_calls=len(tokens["calls"]),
            estimated_cost_usd=calculate_cost(tokens["calls"]),
            success=error is None,
            failed_stage=error.stage if error else None,
            error_type=type(error).__name__ if error else None,
            error_message=str(error) if error else None,
        )
        self.usage_store.save_log(log)
