"""Utility to pull a JSON object out of an LLM response."""

from __future__ import annotations

import json


def extract_json_object(text: str) -> dict:
    """Extract a JSON object from LLM output, tolerating ```json fences.

    Tries in order:
    1. Direct json.loads on the trimmed text
    2. Strip fenced code block markers and parse
    3. Parse from the first '{' to the last '}'

    Truncated or otherwise malformed JSON is never repaired.

    Raises:
        ValueError: if no JSON object can be decoded.
    """
    text = (text or "").strip()

    candidates = [text]
    stripped = _strip_code_fences(text)
    if stripped != text:
        candidates.append(stripped)
    braces = _slice_braces(stripped)
    if braces is not None:
        candidates.append(braces)

    last_error: json.JSONDecodeError | None = None
    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as exc:
            last_error = exc
            continue
        if isinstance(data, dict):
            return data
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

    detail = f" ({last_error.msg} at char {last_error.pos})" if last_error else ""
    raise ValueError(f"Could not extract JSON from text{detail}: {text[:200]}...")


def _strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers from text."""
    start = text.find("```")
    if start == -1:
        return text
    lines = text[start:].split("\n")

    # Remove opening fence (```json, ```, etc.)
    lines = lines[1:]

    # Drop everything from the closing fence on
    for i, line in enumerate(lines):
        if line.strip().startswith("```"):
            lines = lines[:i]
            break

    return "\n".join(lines).strip()


def _slice_braces(text: str) -> str | None:
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start : end + 1]
    return None
