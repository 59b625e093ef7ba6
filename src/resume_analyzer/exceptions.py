"""Exception hierarchy for the analysis pipeline."""

from __future__ import annotations

from typing import Any


class AnalysisError(RuntimeError):
    """Base class for every failure surfaced by the analysis pipeline."""

    def __init__(self, message: str, *, stage: str | None = None):
        super().__init__(message)
        self.stage = stage


class InputError(AnalysisError):
    """Raised when resume content or owner id is empty or invalid."""


class ExtractionError(AnalysisError):
    """Raised when a job posting cannot be parsed into a JobDescription."""


class CompletionError(AnalysisError):
    """Raised on transport failures or empty responses from the LLM."""


class AnalysisTimeoutError(CompletionError):
    """Raised when a pipeline run exceeds its wall-clock budget."""


class ValidationError(AnalysisError):
    """Raised when the LLM output does not match the analysis schema.

    ``errors`` holds one dict per offending field (``loc``, ``msg``, ``type``).
    """

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        raw_excerpt: str = "",
        stage: str | None = None,
    ):
        super().__init__(message, stage=stage)
        self.errors = errors or []
        self.raw_excerpt = raw_excerpt

    @property
    def fields(self) -> list[str]:
        """Dotted paths of the fields that failed validation."""
        return [".".join(str(p) for p in err.get("loc", ())) for err in self.errors]


class PipelineInvariantError(AnalysisError):
    """Raised when job-context fields appear or vanish between stages."""


class PersistenceError(AnalysisError):
    """Raised when the analysis store fails to write a finished record."""
