import html
import re
from pathlib import Path

TAG_PATTERN = re.compile(r"<[^>]*>")


def clean_job_text(text: str) -> str:
    """Strip markup from a job posting and collapse all whitespace."""
    text = TAG_PATTERN.sub(" ", text)
    text = html.unescape(text)
    # Collapse every run of whitespace, newlines included
    return re.sub(r"\s+", " ", text).strip()


def load_job_file(file_path: str) -> str:
    """Load a job posting from a text or HTML file."""
    return Path(file_path).read_text(encoding="utf-8")
