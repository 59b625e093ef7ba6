import re
from pathlib import Path

from resume_analyzer.exceptions import InputError

SUPPORTED_SUFFIXES = (".pdf", ".docx", ".txt", ".md")

# Zero-width characters, BOMs and soft hyphens left behind by PDF/Docs exports
INVISIBLE_PATTERN = r"[\u200b\u200c\u200d\u00ad\u2060\ufeff]"
BULLET_PATTERN = r"^(\s*)[●•◦◆■▪★○►]\s*"


def parse_resume(file_path: str | Path) -> str:
    """Read a resume file (PDF, DOCX, TXT, MD) and return clean plain text."""
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise InputError(f"Unsupported file format: {path.suffix}", stage="ingestion")

    if suffix == ".pdf":
        raw = _parse_pdf(path)
    elif suffix == ".docx":
        raw = _parse_docx(path)
    else:
        raw = path.read_text(encoding="utf-8")
    return clean_resume_text(raw)


def clean_resume_text(text: str) -> str:
    """Normalize extracted resume text.

    Removes invisible characters, unifies bullet glyphs to ``-``, collapses
    runs of spaces inside lines and squeezes 3+ blank lines down to one.
    """
    text = re.sub(INVISIBLE_PATTERN, "", text)
    text = re.sub(BULLET_PATTERN, r"\1- ", text, flags=re.MULTILINE)

    lines = []
    for line in text.splitlines():
        stripped = line.lstrip()
        indent = line[: len(line) - len(stripped)].replace("\t", "    ")
        stripped = re.sub(r"[ \t]{2,}", " ", stripped).rstrip()
        lines.append(f"{indent}{stripped}" if stripped else "")
    text = "\n".join(lines)

    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def _parse_pdf(path: Path) -> str:
    import fitz  # pymupdf

    with fitz.open(str(path)) as doc:
        return "\n".join(page.get_text() for page in doc)


def _parse_docx(path: Path) -> str:
    from docx import Document

    doc = Document(str(path))
    return "\n".join(p.text for p in doc.paragraphs if p.text.strip())
