"""Data models for the resume analysis pipeline."""

from resume_analyzer.models.analysis import (
    AchievementsMetrics,
    AnalysisRecord,
    AnalysisResult,
    CriterionScore,
    GeneralFeedback,
    JobAlignment,
    KeywordsRelevance,
    RawInput,
    ResumeSections,
    ScoredResume,
    ScoringCriteria,
)
from resume_analyzer.models.job import JobDescription

__all__ = [
    "AchievementsMetrics",
    "AnalysisRecord",
    "AnalysisResult",
    "CriterionScore",
    "GeneralFeedback",
    "JobAlignment",
    "JobDescription",
    "KeywordsRelevance",
    "RawInput",
    "ResumeSections",
    "ScoredResume",
    "ScoringCriteria",
]
