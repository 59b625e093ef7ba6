"""Claude API wrapper with async support, throttling and retry logic."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Iterator

import anthropic
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from resume_analyzer.clients.rate_limiter import RateLimiter
from resume_analyzer.exceptions import CompletionError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-haiku-4-5-20251001"

# Transient transport failures; schema problems are never retried here.
RETRYABLE_ERRORS = (
    anthropic.APIConnectionError,  # includes APITimeoutError
    anthropic.RateLimitError,
    anthropic.InternalServerError,
)

# Token log of the pipeline run in the current task; tasks spawned from it
# inherit the same list.
_run_token_log: ContextVar[list[tuple[str, int, int]] | None] = ContextVar(
    "run_token_log", default=None
)


@dataclass
class LLMResponse:
    """Response from the LLM including usage metadata."""

    text: str
    input_tokens: int
    output_tokens: int


class LLMClient:
    """Async Claude API client with a shared rate limiter and exponential-backoff retries."""

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        kwargs: dict = {}
        if api_key is not None:
            kwargs["api_key"] = api_key
        if timeout is not None:
            kwargs["timeout"] = timeout
        self.client = anthropic.AsyncAnthropic(**kwargs)
        self.rate_limiter = rate_limiter or RateLimiter()
        self._token_log: list[tuple[str, int, int]] = []  # (model, input_tokens, output_tokens)

    @retry(
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        stop=stop_after_attempt(3),
        wait=wait_exponential(min=1, max=10),
        reraise=True,
    )
    async def _call_api(
        self,
        prompt: str,
        system: str,
        model: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> anthropic.types.Message:
        """Make the actual API call with retry logic."""
        messages = [{"role": "user", "content": prompt}]
        if json_mode:
            # Prefilling the assistant turn pins the reply to a JSON object
            messages.append({"role": "assistant", "content": "{"})
        kwargs: dict = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": messages,
        }
        if system:
            kwargs["system"] = system
        await self.rate_limiter.acquire()
        return await self.client.messages.create(**kwargs)

    async def generate(
        self,
        prompt: str,
        system: str = "",
        model: str = DEFAULT_MODEL,
        temperature: float = 0.0,
        max_tokens: int = 8192,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Send a prompt to Claude and return the text response with usage.

        Raises:
            CompletionError: on transport failure (after retries) or when the
                model returns no text.
        """
        logger.debug("LLM call: model=%s json_mode=%s", model, json_mode)
        try:
            message = await self._call_api(
                prompt=prompt,
                system=system,
                model=model,
                temperature=temperature,
                max_tokens=max_tokens,
                json_mode=json_mode,
            )
        except anthropic.APIError as exc:
            logger.error("LLM call failed", exc_info=True)
            raise CompletionError(f"LLM call failed: {exc}") from exc

        input_tokens = message.usage.input_tokens
        output_tokens = message.usage.output_tokens
        logger.debug("LLM response: %d input, %d output tokens", input_tokens, output_tokens)
        self._active_log().append((model, input_tokens, output_tokens))

        text = "".join(
            getattr(block, "text", "") for block in message.content
        )
        if not text.strip():
            raise CompletionError("LLM returned an empty response")
        if json_mode and not text.lstrip().startswith("{"):
            text = "{" + text
        return LLMResponse(
            text=text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )

    @contextmanager
    def run_log(self) -> Iterator[None]:
        """Route token usage made inside the block into a fresh per-run log.

        Concurrent runs sharing this client each see only their own calls in
        ``get_token_summary``. Outside a run, usage accumulates on the client.
        """
        token = _run_token_log.set([])
        try:
            yield
        finally:
            _run_token_log.reset(token)

    def _active_log(self) -> list[tuple[str, int, int]]:
        run_log = _run_token_log.get()
        return self._token_log if run_log is None else run_log

    def get_token_summary(self) -> dict:
        """Return accumulated token usage and reset the log."""
        log = self._active_log()
        summary = {
            "input": sum(t[1] for t in log),
            "output": sum(t[2] for t in log),
            "calls": list(log),
        }
        log.clear()
        return summary
