"""Job-Fit Analyzer - narrative comparison of a resume against a parsed job."""

from __future__ import annotations

import logging

from resume_analyzer.clients.llm_client import LLMClient
from resume_analyzer.exceptions import CompletionError
from resume_analyzer.models.job import JobDescription
from resume_analyzer.pipeline.stages import PipelineStage

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are an expert resume and job matching analyst. Compare the resume against \
the job details and write tailored feedback of at least 500 words.

Cover, under clear headings:
1. Skill gaps - required skills the resume does not demonstrate
2. Experience alignment - how the candidate's level and history fit the role
3. Keyword overlap - job keywords present in and missing from the resume
4. Prioritized action items - concrete edits, most impactful first

Be specific and quote the resume where it helps. Write plain prose and lists, not JSON."""


def _or_default(value: str | None, default: str = "Not specified") -> str:
    return value or default


class JobFitAnalyzer:
    def __init__(self, llm: LLMClient, model: str = "claude-sonnet-4-5-20250929"):
        self.llm = llm
        self.model = model

    async def analyze(self, resume_text: str, job: JobDescription) -> str:
        """Return the job-fit narrative. Only non-emptiness is checked."""
        requirements = "\n".join(f"- {r}" for r in job.requirements) or "None specified"
        prompt = f"""Resume Content:
{resume_text}

Job Details:
Role: {_or_default(job.role_title)}
Company: {_or_default(job.company_name)}
Experience Required: {_or_default(job.years_of_experience)}
Industry: {_or_default(job.industry)}
Required Skills: {', '.join(job.skills) or 'Not specified'}
Primary Keywords: {', '.join(job.primary_keywords) or 'Not specified'}

Key Requirements:
{requirements}

Analyze how well this resume matches the job and give specific suggestions for improvement."""

        try:
            response = await self.llm.generate(
                prompt=prompt,
                system=SYSTEM_PROMPT,
                model=self.model,
                temperature=0.2,
                max_tokens=4096,
            )
        except CompletionError as exc:
            exc.stage = PipelineStage.JOB_FIT.value
            raise

        feedback = response.text.strip()
        if not feedback:
            raise CompletionError("Job-fit analysis came back empty", stage=PipelineStage.JOB_FIT.value)
        logger.info("Job-fit analysis generated: %d words", len(feedback.split()))
        return feedback
