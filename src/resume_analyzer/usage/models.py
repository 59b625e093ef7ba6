"""Usage logging data models."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class UsageLog(BaseModel):
    """Single usage log entry for one pipeline run."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))  # request id
    user_id: str = "anonymous"
    timestamp: datetime = Field(default_factory=datetime.now)
    content_length: int = 0
    used_job_context: bool = False
    cache_hit: bool = False
    is_fallback: bool = False
    score: int | None = None
    analysis_id: int | None = None
    elapsed_seconds: float = 0.0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    llm_calls: int = 0
    estimated_cost_usd: float = 0.0
    success: bool = True
    failed_stage: str | None = None
    error_type: str | None = None
    error_message: str | None = None
