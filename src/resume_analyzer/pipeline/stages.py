"""Pipeline stages and the job-context presence checks run between them."""

from __future__ import annotations

import logging
from enum import Enum

from resume_analyzer.exceptions import PipelineInvariantError

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    IDLE = "idle"
    INGESTION = "ingestion"
    PREPROCESSING = "preprocessing"
    JOB_PARSING = "job_parsing"
    PROMPTING = "prompting"
    AWAITING_COMPLETION = "awaiting_completion"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"
    JOB_FIT = "job_fit"
    ASSEMBLY = "assembly"
    PERSISTENCE = "persistence"
    DONE = "done"


def check_job_fields(stage: PipelineStage, expected: bool, **fields: object) -> None:
    """Assert that every job-context field is present iff ``expected``.

    Strings count as present only when non-blank.

    Raises:
        PipelineInvariantError: naming the stage and the offending fields.
    """
    wrong = [
        name
        for name, value in fields.items()
        if _present(value) != expected
    ]
    if wrong:
        state = "missing" if expected else "unexpectedly present"
        logger.error("Job context %s at %s: %s", state, stage.value, ", ".join(wrong))
        raise PipelineInvariantError(
            f"Job context fields {state} at stage {stage.value}: {', '.join(wrong)}",
            stage=stage.value,
        )


def _present(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True
