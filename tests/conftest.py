"""Shared test fixtures."""

from __future__ import annotations

import copy
import json
from contextlib import nullcontext
from unittest.mock import AsyncMock, MagicMock

import pytest

from resume_analyzer.clients.llm_client import LLMClient, LLMResponse
from resume_analyzer.models.analysis import AnalysisResult, ScoredResume
from resume_analyzer.models.job import JobDescription
from resume_analyzer.pipeline import job_fit, job_parser, preprocessor, resume_scorer
from resume_analyzer.storage.analysis_store import InMemoryAnalysisStore


@pytest.fixture
def sample_resume_text() -> str:
    return """Jane Doe
jane@example.com | +1 555 0100

Summary:
Marketing manager with 5 years of experience leading B2B demand generation.

Experience:
- Acme Corp (2021-03 ~ present) - Marketing Manager
  - Increased revenue 40% through a rebuilt lifecycle email program
  - Managed a $1.2M annual paid media budget across Google Ads and LinkedIn
  - Led a team of 4 marketers and 2 designers

- Globex (2019-01 ~ 2021-02) - Marketing Specialist
  - Launched 12 product campaigns with HubSpot and Salesforce
  - Grew organic traffic 65% with an SEO content plan

Education:
- B.A. Communications, State University (2015 ~ 2019)

Skills:
SEO, SEM, HubSpot, Salesforce, Google Analytics, Copywriting, A/B Testing
"""


@pytest.fixture
def sample_job_text() -> str:
    return """<h1>Senior Marketing Manager</h1>
<p>Acme Corp is hiring a Senior Marketing Manager with 5+ years of experience.</p>
<ul><li>Own demand generation</li><li>Manage paid media budgets</li></ul>
<p>Skills: SEO, HubSpot, Marketo, Team Leadership</p>"""


@pytest.fixture
def scoring_json() -> dict:
    """A scoring response that satisfies every schema constraint."""
    return {
        "score": 78,
        "scores": {
            "keywords_relevance": {
                "score": 8,
                "max_score": 10,
                "feedback": "Strong use of marketing keywords such as SEO, SEM and HubSpot throughout.",
                "keywords": [
                    "SEO", "SEM", "HubSpot", "Salesforce", "Google Analytics",
                    "Demand Generation", "Paid Media", "Lifecycle Email",
                ],
            },
            "achievements_metrics": {
                "score": 8,
                "max_score": 10,
                "feedback": "Most bullets are quantified, for example the 40% revenue increase at Acme.",
                "highlights": [
                    "Increased revenue 40%",
                    "Managed a $1.2M budget",
                    "Led a team of 6",
                    "Launched 12 campaigns",
                    "Grew organic traffic 65%",
                ],
            },
            "structure_readability": {
                "score": 7,
                "max_score": 10,
                "feedback": "Clear reverse-chronological layout, though the skills line is hard to scan.",
            },
            "summary_clarity": {
                "score": 7,
                "max_score": 10,
                "feedback": "The summary states the role and tenure but not the candidate's niche clearly.",
            },
            "overall_polish": {
                "score": 8,
                "max_score": 10,
                "feedback": "Consistent tense and formatting with no spelling or grammar problems found.",
            },
        },
        "resume_sections": {
            "professional_summary": "Concise but generic; name the B2B niche explicitly.",
            "work_experience": "Strong quantified bullets across both marketing roles.",
            "technical_skills": "Relevant tools listed; group them by category for scanning.",
            "education": "Relevant communications degree, listed briefly and correctly.",
            "key_achievements": "Revenue and traffic growth figures stand out immediately.",
        },
        "identified_skills": [
            "SEO", "SEM", "HubSpot", "Salesforce", "Google Analytics",
            "Copywriting", "A/B Testing", "Team Leadership", "Budget Management",
            "Email Marketing",
        ],
        "primary_keywords": [
            "Marketing Manager", "Demand Generation", "B2B", "Revenue Growth",
            "Paid Media", "SEO", "HubSpot", "Lifecycle Email",
        ],
        "suggested_improvements": [
            "Name the B2B niche in the summary",
            "Group skills by category",
            "Add results for the Globex campaigns",
            "Mention the team size in the summary",
            "Add certifications such as Google Ads",
        ],
        "general_feedback": {
            "overall": (
                "A strong, metrics-driven marketing resume. Tightening the summary and "
                "grouping the skills would make the strongest results easier to find."
            ),
            "strengths": ["Quantified results", "Clear progression", "Relevant tooling"],
            "action_items": ["Rewrite the summary", "Group skills", "Add certifications"],
        },
    }


@pytest.fixture
def job_json() -> dict:
    return {
        "role_title": "Senior Marketing Manager",
        "years_of_experience": "5+ years",
        "industry": "B2B SaaS",
        "company_name": "Acme Corp",
        "primary_keywords": ["demand generation", "paid media", "SEO"],
        "summary": "Own demand generation and paid media for a B2B SaaS company.",
        "requirements": ["Own demand generation", "Manage paid media budgets"],
        "skills": ["SEO", "HubSpot", "Marketo", "Team Leadership"],
    }


@pytest.fixture
def sample_job(job_json) -> JobDescription:
    return JobDescription.model_validate(job_json)


@pytest.fixture
def sample_scored(scoring_json) -> ScoredResume:
    return ScoredResume.model_validate(scoring_json)


@pytest.fixture
def sample_result(scoring_json) -> AnalysisResult:
    return AnalysisResult.model_validate(scoring_json)


@pytest.fixture
def job_fit_text() -> str:
    return "## Skill gaps\nMarketo is not mentioned anywhere in the resume. " * 20


@pytest.fixture
def memory_store() -> InMemoryAnalysisStore:
    return InMemoryAnalysisStore()


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Create a mock LLM client."""
    client = AsyncMock(spec=LLMClient)
    client.generate = AsyncMock(
        return_value=LLMResponse(text="{}", input_tokens=100, output_tokens=50)
    )
    client.get_token_summary = MagicMock(
        return_value={"input": 0, "output": 0, "calls": []}
    )
    client.run_log = MagicMock(side_effect=nullcontext)
    return client


def _as_response(value) -> LLMResponse:
    if isinstance(value, BaseException):
        raise value
    if isinstance(value, dict):
        value = json.dumps(value)
    return LLMResponse(text=value, input_tokens=100, output_tokens=50)


@pytest.fixture
def route_llm(mock_llm_client, scoring_json, job_json, job_fit_text):
    """Dispatch generate() by system prompt, since chunk calls run concurrently.

    Call with overrides per stage (``scoring``, ``job``, ``job_fit``,
    ``summary``). A value may be a dict (sent as JSON), a str, an exception
    to raise, or a list consumed one item per call.
    """

    def _configure(**overrides):
        responses = {
            resume_scorer.SYSTEM_PROMPT: overrides.get("scoring", copy.deepcopy(scoring_json)),
            job_parser.SYSTEM_PROMPT: overrides.get("job", copy.deepcopy(job_json)),
            job_fit.SYSTEM_PROMPT: overrides.get("job_fit", job_fit_text),
            preprocessor.SYSTEM_PROMPT: overrides.get("summary", "condensed chunk"),
        }

        async def _dispatch(prompt, system="", **kwargs):
            value = responses[system]
            if isinstance(value, list):
                value = value.pop(0)
            return _as_response(value)

        mock_llm_client.generate.side_effect = _dispatch
        return mock_llm_client

    return _configure


@pytest.fixture
def calls_for():
    """Return generate() calls made with a given system prompt."""

    def _calls(client, system_prompt: str) -> list:
        return [c for c in client.generate.call_args_list if c.kwargs.get("system") == system_prompt]

    return _calls
