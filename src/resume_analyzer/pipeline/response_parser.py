"""Boundary between raw LLM text and the typed ScoredResume model.

Nothing outside this module ever sees the decoded JSON dict: callers get one
of three tagged outcomes and branch on its type.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from resume_analyzer.models.analysis import ScoredResume
from resume_analyzer.utils.json_parser import extract_json_object

logger = logging.getLogger(__name__)

# Keys the model must never set on its own
_RESERVED_KEYS = ("is_fallback", "job_specific_feedback", "job_alignment")


@dataclass(frozen=True)
class ParsedAnalysis:
    result: ScoredResume


@dataclass(frozen=True)
class JSONParseFailure:
    message: str
    raw_excerpt: str


@dataclass(frozen=True)
class SchemaFailure:
    errors: list[dict[str, Any]] = field(default_factory=list)
    raw_excerpt: str = ""

    @property
    def message(self) -> str:
        fields = ", ".join(".".join(str(p) for p in e["loc"]) for e in self.errors[:5])
        more = f" (+{len(self.errors) - 5} more)" if len(self.errors) > 5 else ""
        return f"{len(self.errors)} field(s) failed validation: {fields}{more}"


ParseOutcome = ParsedAnalysis | JSONParseFailure | SchemaFailure


def parse_analysis_response(text: str) -> ParseOutcome:
    """Trim, decode and validate a scoring completion."""
    text = (text or "").strip()
    excerpt = text[:200]
    try:
        data = extract_json_object(text)
    except ValueError as exc:
        return JSONParseFailure(message=str(exc), raw_excerpt=excerpt)

    for key in _RESERVED_KEYS:
        data.pop(key, None)

    try:
        result = ScoredResume.model_validate(data)
    except PydanticValidationError as exc:
        errors = [
            {"loc": tuple(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in exc.errors()
        ]
        logger.debug("Schema validation errors: %s", errors)
        return SchemaFailure(errors=errors, raw_excerpt=excerpt)

    return ParsedAnalysis(result=result)
