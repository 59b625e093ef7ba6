"""Tests for job-fit narrative generation."""

import pytest

from resume_analyzer.clients.llm_client import LLMResponse
from resume_analyzer.exceptions import CompletionError
from resume_analyzer.models.job import JobDescription
from resume_analyzer.pipeline.job_fit import JobFitAnalyzer


class TestJobFitAnalyzer:
    async def test_returns_feedback(self, route_llm, sample_resume_text, sample_job, job_fit_text):
        llm = route_llm()
        feedback = await JobFitAnalyzer(llm).analyze(sample_resume_text, sample_job)
        assert feedback == job_fit_text.strip()

    async def test_prompt_includes_job_details(self, route_llm, sample_resume_text, sample_job):
        llm = route_llm()
        await JobFitAnalyzer(llm).analyze(sample_resume_text, sample_job)

        prompt = llm.generate.call_args.kwargs["prompt"]
        assert "Role: Senior Marketing Manager" in prompt
        assert "Company: Acme Corp" in prompt
        assert "- Manage paid media budgets" in prompt
        assert "Increased revenue 40%" in prompt

    async def test_sparse_job_uses_defaults(self, route_llm, sample_resume_text):
        llm = route_llm()
        await JobFitAnalyzer(llm).analyze(sample_resume_text, JobDescription(role_title="PM"))
        prompt = llm.generate.call_args.kwargs["prompt"]
        assert "Industry: Not specified" in prompt
        assert "Key Requirements:\nNone specified" in prompt

    async def test_completion_error_tagged(self, mock_llm_client, sample_resume_text, sample_job):
        mock_llm_client.generate.side_effect = CompletionError("timeout")
        with pytest.raises(CompletionError) as exc_info:
            await JobFitAnalyzer(mock_llm_client).analyze(sample_resume_text, sample_job)
        assert exc_info.value.stage == "job_fit"

    async def test_blank_response_raises(self, mock_llm_client, sample_resume_text, sample_job):
        mock_llm_client.generate.return_value = LLMResponse(text="  \n", input_tokens=1, output_tokens=1)
        with pytest.raises(CompletionError, match="empty"):
            await JobFitAnalyzer(mock_llm_client).analyze(sample_resume_text, sample_job)
