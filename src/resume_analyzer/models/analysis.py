"""Pydantic models for scored resume analyses."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
)

from resume_analyzer.models.job import JobDescription, unique_items

Feedback = Annotated[str, StringConstraints(strip_whitespace=True, min_length=50)]
Narrative = Annotated[str, StringConstraints(strip_whitespace=True, min_length=20)]
LongNarrative = Annotated[str, StringConstraints(strip_whitespace=True, min_length=100)]
Item = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

MAX_CRITERION_SCORE = 10

CRITERIA_WEIGHTS: dict[str, float] = {
    "keywords_relevance": 0.25,
    "achievements_metrics": 0.25,
    "structure_readability": 0.20,
    "summary_clarity": 0.15,
    "overall_polish": 0.15,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clean_unique(value):
    if isinstance(value, (list, tuple)):
        return unique_items(tuple(str(v).strip() for v in value if v is not None and str(v).strip()))
    return value


UniqueItems = Annotated[tuple[Item, ...], BeforeValidator(_clean_unique)]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class RawInput(_Frozen):
    """Per-request input: resume text plus optional job posting text."""

    resume_text: str
    job_description_text: str | None = None

    @property
    def has_job_text(self) -> bool:
        return bool(self.job_description_text and self.job_description_text.strip())


class CriterionScore(_Frozen):
    score: float = Field(ge=1, le=MAX_CRITERION_SCORE)
    max_score: Literal[10] = MAX_CRITERION_SCORE
    feedback: Feedback


class KeywordsRelevance(CriterionScore):
    keywords: UniqueItems = Field(min_length=8)


class AchievementsMetrics(CriterionScore):
    highlights: tuple[Item, ...] = Field(min_length=5)


class ScoringCriteria(_Frozen):
    keywords_relevance: KeywordsRelevance
    achievements_metrics: AchievementsMetrics
    structure_readability: CriterionScore
    summary_clarity: CriterionScore
    overall_polish: CriterionScore

    def weighted_score(self) -> float:
        """Weighted mean of the five criteria on a 0-100 scale."""
        total = 0.0
        for name, weight in CRITERIA_WEIGHTS.items():
            criterion: CriterionScore = getattr(self, name)
            total += weight * (criterion.score / criterion.max_score)
        return round(total * 100, 1)


class ResumeSections(_Frozen):
    professional_summary: Narrative
    work_experience: Narrative
    technical_skills: Narrative
    education: Narrative
    key_achievements: Narrative


class GeneralFeedback(_Frozen):
    overall: LongNarrative
    strengths: tuple[Item, ...] = Field(min_length=3)
    action_items: tuple[Item, ...] = Field(min_length=3)


class ScoredResume(_Frozen):
    """Validated output of the scoring completion."""

    score: int = Field(ge=0, le=100)
    scores: ScoringCriteria
    resume_sections: ResumeSections
    identified_skills: UniqueItems = Field(min_length=10)
    primary_keywords: UniqueItems = Field(min_length=8)
    suggested_improvements: tuple[Item, ...] = Field(min_length=5)
    general_feedback: GeneralFeedback
    is_fallback: bool = False

    @field_validator("score", mode="before")
    @classmethod
    def _round_score(cls, value):
        # Models sometimes answer 72.5; the stored score is an integer
        if isinstance(value, float):
            return round(value)
        return value


class JobAlignment(_Frozen):
    """How the identified skills line up with a parsed job posting."""

    job: JobDescription
    matched_skills: tuple[str, ...] = ()
    missing_skills: tuple[str, ...] = ()
    keyword_overlap: tuple[str, ...] = ()

    @property
    def skill_match_ratio(self) -> float | None:
        total = len(self.matched_skills) + len(self.missing_skills)
        if not total:
            return None
        return len(self.matched_skills) / total


class AnalysisResult(ScoredResume):
    """Final analysis: scored resume plus job-specific fields when a job was parsed."""

    job_specific_feedback: str | None = None
    job_alignment: JobAlignment | None = None

    @property
    def has_job_context(self) -> bool:
        return self.job_specific_feedback is not None or self.job_alignment is not None


class AnalysisRecord(_Frozen):
    """An AnalysisResult as handed to and returned by storage."""

    id: int | None = None
    user_id: str
    content: str
    result: AnalysisResult
    created_at: datetime = Field(default_factory=_utcnow)
