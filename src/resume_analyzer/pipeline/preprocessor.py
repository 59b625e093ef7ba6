"""Chunked summarization for resumes that exceed the prompt budget."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from resume_analyzer.clients.llm_client import LLMClient
from resume_analyzer.exceptions import CompletionError

logger = logging.getLogger(__name__)

SUMMARY_SEPARATOR = "\n\n"

SYSTEM_PROMPT = """\
You condense sections of a resume so the whole document fits in one analysis.

Rules:
- Preserve every skill, job title, employer, degree and achievement.
- Copy all dates, numbers, percentages and metrics verbatim.
- Copy specific technical terms, tools and certifications verbatim.
- Drop filler, repetition and formatting noise.
- Output plain text only, with no preamble or commentary."""


@dataclass(frozen=True)
class Summarized:
    index: int
    text: str


@dataclass(frozen=True)
class ChunkFailed:
    index: int
    error: str


ChunkOutcome = Summarized | ChunkFailed


def chunk_text(text: str, size: int) -> list[str]:
    """Split text into fixed-size character chunks, ignoring word boundaries."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [text[i : i + size] for i in range(0, len(text), size)]


class TextPreprocessor:
    """Shrinks oversized resume text by summarizing fixed-size chunks concurrently."""

    def __init__(
        self,
        llm: LLMClient,
        model: str = "claude-haiku-4-5-20251001",
        *,
        threshold: int = 12000,
        chunk_size: int = 12000,
    ):
        self.llm = llm
        self.model = model
        self.threshold = threshold
        self.chunk_size = chunk_size

    async def preprocess(self, text: str) -> str:
        """Return ``text`` unchanged when short, else the joined chunk summaries.

        Any failed chunk makes the whole step fall back to the original text.
        """
        if len(text) <= self.threshold:
            return text

        chunks = chunk_text(text, self.chunk_size)
        logger.info("Summarizing %d chunks (%d chars)", len(chunks), len(text))
        outcomes = await asyncio.gather(
            *(self._summarize(i, chunk) for i, chunk in enumerate(chunks))
        )
        return self._apply_fallback_policy(text, outcomes)

    async def _summarize(self, index: int, chunk: str) -> ChunkOutcome:
        try:
            response = await self.llm.generate(
                prompt=chunk,
                system=SYSTEM_PROMPT,
                model=self.model,
                temperature=0.0,
                max_tokens=2048,
            )
        except CompletionError as exc:
            logger.warning("Chunk %d summarization failed: %s", index, exc)
            return ChunkFailed(index=index, error=str(exc))
        text = response.text.strip()
        if not text:
            return ChunkFailed(index=index, error="empty summary")
        return Summarized(index=index, text=text)

    @staticmethod
    def _apply_fallback_policy(original: str, outcomes: list[ChunkOutcome]) -> str:
        """Best effort: a single failed chunk returns the original text untouched."""
        failed = [o for o in outcomes if isinstance(o, ChunkFailed)]
        if failed:
            logger.warning(
                "Preprocessing degraded to pass-through: %d of %d chunks failed",
                len(failed), len(outcomes),
            )
            return original

        ordered = sorted(outcomes, key=lambda o: o.index)
        joined = SUMMARY_SEPARATOR.join(o.text for o in ordered)
        if len(joined) >= len(original):
            logger.warning(
                "Summaries not shorter than input (%d >= %d chars); using original",
                len(joined), len(original),
            )
            return original
        logger.info("Preprocessed %d -> %d chars", len(original), len(joined))
        return joined
