"""Job Description Parser - extracts structured fields from a job posting."""

from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError

from resume_analyzer.clients.llm_client import LLMClient
from resume_analyzer.exceptions import CompletionError, ExtractionError
from resume_analyzer.models.job import JobDescription
from resume_analyzer.parsers.jd_parser import clean_job_text
from resume_analyzer.pipeline.stages import PipelineStage
from resume_analyzer.utils.json_parser import extract_json_object

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are an expert job description analyzer. Parse the job posting into a \
structured record, identifying the title, experience requirements and skills.

Follow these rules:
1. Extract information only if it is explicitly stated or strongly implied
2. Use null (or an empty list) when information is not found
3. For years of experience, include any range or minimum requirement mentioned
4. For skills, include both technical and soft skills mentioned
5. Keep the summary concise but informative
6. Include only clear, explicit requirements in the requirements array

Return ONLY a JSON object with this structure:
{
  "role_title": "Extracted job title",
  "years_of_experience": "Extracted experience requirement",
  "industry": "Identified industry",
  "company_name": "Company name if mentioned",
  "primary_keywords": ["Key terms", "and phrases"],
  "summary": "Brief job summary",
  "requirements": ["Requirement 1", "Requirement 2"],
  "skills": ["Skill 1", "Skill 2"]
}"""


class JobDescriptionParser:
    def __init__(self, llm: LLMClient, model: str = "claude-haiku-4-5-20251001"):
        self.llm = llm
        self.model = model

    async def parse(self, text: str) -> JobDescription:
        """Parse a raw job posting into a frozen JobDescription.

        Raises:
            ExtractionError: on empty input, a failed completion, unparseable
                JSON, a schema mismatch, or when nothing could be extracted.
        """
        stage = PipelineStage.JOB_PARSING.value
        cleaned = clean_job_text(text or "")
        if not cleaned:
            raise ExtractionError("Job description text is empty", stage=stage)

        prompt = f"""Parse the following job posting:

---
{cleaned}
---

Respond with the JSON object only."""

        try:
            response = await self.llm.generate(
                prompt=prompt,
                system=SYSTEM_PROMPT,
                model=self.model,
                temperature=0.0,
                max_tokens=2048,
                json_mode=True,
            )
        except CompletionError as exc:
            raise ExtractionError(f"Failed to parse job description: {exc}", stage=stage) from exc

        try:
            data = extract_json_object(response.text)
        except ValueError as exc:
            logger.error("Job description response was not JSON: %s", exc)
            raise ExtractionError(f"Failed to parse job description: {exc}", stage=stage) from exc

        try:
            job = JobDescription.model_validate(data)
        except PydanticValidationError as exc:
            logger.error("Job description failed validation: %s", exc)
            raise ExtractionError(
                f"Job description does not match schema: {exc.error_count()} error(s)",
                stage=stage,
            ) from exc

        if job.is_empty:
            raise ExtractionError("No job details could be extracted", stage=stage)

        logger.info(
            "Job description parsed: role=%s skills=%d requirements=%d",
            job.role_title, len(job.skills), len(job.requirements),
        )
        return job
