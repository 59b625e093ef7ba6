"""Resume Scoring - one rubric-driven completion validated into a ScoredResume."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from resume_analyzer.clients.llm_client import LLMClient
from resume_analyzer.exceptions import CompletionError, ValidationError
from resume_analyzer.models.analysis import ScoredResume
from resume_analyzer.models.job import JobDescription
from resume_analyzer.pipeline.response_parser import (
    JSONParseFailure,
    ParsedAnalysis,
    parse_analysis_response,
)
from resume_analyzer.pipeline.stages import PipelineStage, check_job_fields

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are an expert resume analyzer. Score the resume against the five criteria \
below and return detailed, actionable feedback.

Scoring rubric (each criterion scored 1-10, maxScore is always 10):
1. keywords_relevance - industry and role keywords, and how naturally they are used
2. achievements_metrics - quantified, outcome-focused accomplishments
3. structure_readability - section order, scannability, consistent formatting
4. summary_clarity - how clearly the summary states the candidate's value
5. overall_polish - grammar, tone, concision and professional presentation

Return ONLY a JSON object with these exact fields:
{
  "score": (overall score 0-100),
  "scores": {
    "keywords_relevance": {
      "score": (1-10), "max_score": 10,
      "feedback": "Specific feedback about keyword usage (at least 50 characters)",
      "keywords": ["at least 8 relevant keywords"]
    },
    "achievements_metrics": {
      "score": (1-10), "max_score": 10,
      "feedback": "Analysis of quantifiable achievements (at least 50 characters)",
      "highlights": ["at least 5 key achievements"]
    },
    "structure_readability": {
      "score": (1-10), "max_score": 10,
      "feedback": "Analysis of resume structure (at least 50 characters)"
    },
    "summary_clarity": {
      "score": (1-10), "max_score": 10,
      "feedback": "Evaluation of the summary (at least 50 characters)"
    },
    "overall_polish": {
      "score": (1-10), "max_score": 10,
      "feedback": "Assessment of presentation (at least 50 characters)"
    }
  },
  "resume_sections": {
    "professional_summary": "Assessment of the professional summary",
    "work_experience": "Assessment of the work experience section",
    "technical_skills": "Assessment of the technical skills section",
    "education": "Assessment of the education section",
    "key_achievements": "Assessment of the key achievements"
  },
  "identified_skills": ["at least 10 specific skills"],
  "primary_keywords": ["at least 8 important keywords from the resume"],
  "suggested_improvements": ["at least 5 actionable suggestions"],
  "general_feedback": {
    "overall": "High-level feedback (at least 100 characters)",
    "strengths": ["at least 3 specific strengths"],
    "action_items": ["at least 3 prioritized tasks"]
  }
}

Requirements:
1. Provide specific examples from the resume
2. Make all feedback actionable and detailed
3. Include metrics and achievements where found
4. Keep the tone professional and constructive
5. Return ONLY the JSON object with no additional text"""


@dataclass(frozen=True)
class ScoringPrompt:
    system: str
    user: str
    job_context: str | None = None


def build_job_context(job: JobDescription) -> str:
    """Job block appended to the scoring prompt. It never changes the output shape."""
    requirements = "\n".join(f"  - {r}" for r in job.requirements) or "  - None specified"
    return f"""\
Additionally, evaluate this resume against the following job. Keep the exact \
JSON structure above; let the job only inform your scores and feedback.
- Role: {job.role_title or 'Not specified'}
- Experience Required: {job.years_of_experience or 'Not specified'}
- Industry: {job.industry or 'Not specified'}
- Required Skills: {', '.join(job.skills) or 'Not specified'}
- Key Requirements:
{requirements}

Focus on:
1. Skills alignment and gaps
2. Experience level match
3. Industry relevance
4. Required vs. present keywords
5. Specific improvements for this role"""


def build_scoring_prompt(resume_text: str, job: JobDescription | None = None) -> ScoringPrompt:
    job_context = build_job_context(job) if job is not None else None
    user = f"""Analyze the following resume:

---
{resume_text}
---"""
    if job_context:
        user = f"{user}\n\n{job_context}"
    check_job_fields(PipelineStage.PROMPTING, job is not None, job_context=job_context)
    return ScoringPrompt(system=SYSTEM_PROMPT, user=user, job_context=job_context)


class ResumeScorer:
    """Issues the scoring completion and validates it into a ScoredResume.

    ``validation_retries`` is the bounded re-prompt budget after a validation
    failure; it defaults to zero so a bad response surfaces immediately.
    With ``fallback_enabled`` (never set in production) a failed completion or
    validation yields ``FALLBACK_ANALYSIS`` instead of raising.
    """

    def __init__(
        self,
        llm: LLMClient,
        model: str = "claude-sonnet-4-5-20250929",
        *,
        validation_retries: int = 0,
        fallback_enabled: bool = False,
    ):
        self.llm = llm
        self.model = model
        self.validation_retries = max(0, validation_retries)
        self.fallback_enabled = fallback_enabled

    async def score(
        self,
        resume_text: str,
        job: JobDescription | None = None,
        *,
        on_stage: Callable[[PipelineStage], None] | None = None,
    ) -> ScoredResume:
        """Score the resume; ``on_stage`` is told when the call enters each state."""
        enter = on_stage or (lambda stage: None)
        prompt = build_scoring_prompt(resume_text, job)
        attempts = 1 + self.validation_retries
        error: ValidationError | None = None

        for attempt in range(1, attempts + 1):
            enter(PipelineStage.AWAITING_COMPLETION)
            try:
                response = await self.llm.generate(
                    prompt=prompt.user,
                    system=prompt.system,
                    model=self.model,
                    temperature=0.0,
                    json_mode=True,
                )
            except CompletionError as exc:
                exc.stage = PipelineStage.AWAITING_COMPLETION.value
                if self.fallback_enabled:
                    return self._fallback(exc)
                raise

            enter(PipelineStage.VALIDATING)
            outcome = parse_analysis_response(response.text)
            if isinstance(outcome, ParsedAnalysis):
                logger.info("Resume scored: %d (attempt %d)", outcome.result.score, attempt)
                return outcome.result

            enter(PipelineStage.INVALID)
            error = _to_validation_error(outcome)
            logger.warning(
                "Scoring response invalid (attempt %d/%d): %s", attempt, attempts, error
            )

        if self.fallback_enabled:
            return self._fallback(error)
        raise error

    @staticmethod
    def _fallback(error: Exception | None) -> ScoredResume:
        logger.warning("Serving canned fallback analysis after: %s", error)
        return FALLBACK_ANALYSIS


def _to_validation_error(outcome) -> ValidationError:
    stage = PipelineStage.INVALID.value
    if isinstance(outcome, JSONParseFailure):
        return ValidationError(
            f"AI response is not valid JSON: {outcome.message}",
            errors=[{"loc": ("__root__",), "msg": outcome.message, "type": "json_invalid"}],
            raw_excerpt=outcome.raw_excerpt,
            stage=stage,
        )
    return ValidationError(
        f"AI response failed schema validation: {outcome.message}",
        errors=outcome.errors,
        raw_excerpt=outcome.raw_excerpt,
        stage=stage,
    )


# Development-only stand-in; labelled so it can never pass for a real analysis.
FALLBACK_ANALYSIS = ScoredResume.model_validate(
    {
        "score": 50,
        "scores": {
            "keywords_relevance": {
                "score": 5,
                "max_score": 10,
                "feedback": "[FALLBACK] Placeholder feedback: the keyword analysis could not be generated.",
                "keywords": [
                    "fallback-1", "fallback-2", "fallback-3", "fallback-4",
                    "fallback-5", "fallback-6", "fallback-7", "fallback-8",
                ],
            },
            "achievements_metrics": {
                "score": 5,
                "max_score": 10,
                "feedback": "[FALLBACK] Placeholder feedback: the achievements analysis could not be generated.",
                "highlights": ["fallback-1", "fallback-2", "fallback-3", "fallback-4", "fallback-5"],
            },
            "structure_readability": {
                "score": 5,
                "max_score": 10,
                "feedback": "[FALLBACK] Placeholder feedback: the structure analysis could not be generated.",
            },
            "summary_clarity": {
                "score": 5,
                "max_score": 10,
                "feedback": "[FALLBACK] Placeholder feedback: the summary analysis could not be generated.",
            },
            "overall_polish": {
                "score": 5,
                "max_score": 10,
                "feedback": "[FALLBACK] Placeholder feedback: the polish analysis could not be generated.",
            },
        },
        "resume_sections": {
            "professional_summary": "[FALLBACK] Summary not analyzed.",
            "work_experience": "[FALLBACK] Experience not analyzed.",
            "technical_skills": "[FALLBACK] Skills not analyzed.",
            "education": "[FALLBACK] Education not analyzed.",
            "key_achievements": "[FALLBACK] Achievements not analyzed.",
        },
        "identified_skills": [f"fallback-skill-{i}" for i in range(1, 11)],
        "primary_keywords": [f"fallback-keyword-{i}" for i in range(1, 9)],
        "suggested_improvements": [f"[FALLBACK] Placeholder improvement {i}" for i in range(1, 6)],
        "general_feedback": {
            "overall": (
                "[FALLBACK] This is a canned development record served because the AI "
                "analysis failed. It does not describe the submitted resume."
            ),
            "strengths": ["[FALLBACK] n/a", "[FALLBACK] n/a", "[FALLBACK] n/a"],
            "action_items": ["Retry the analysis", "Check the AI service", "Inspect the logs"],
        },
        "is_fallback": True,
    }
)
