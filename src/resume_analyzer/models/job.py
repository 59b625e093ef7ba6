"""Pydantic model for structured job postings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


def unique_items(values: tuple[str, ...]) -> tuple[str, ...]:
    seen: set[str] = set()
    out: list[str] = []
    for value in values:
        key = value.casefold()
        if key not in seen:
            seen.add(key)
            out.append(value)
    return tuple(out)


class JobDescription(BaseModel):
    """Fields extracted from a job posting. Every field is optional."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    role_title: str | None = None
    years_of_experience: str | None = None
    industry: str | None = None
    company_name: str | None = None
    primary_keywords: tuple[str, ...] = ()  # set semantics
    summary: str | None = None
    requirements: tuple[str, ...] = ()  # ordered
    skills: tuple[str, ...] = ()  # set semantics

    @field_validator(
        "role_title", "years_of_experience", "industry", "company_name", "summary",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value):
        if value is None:
            return None
        if isinstance(value, (int, float)):
            value = str(value)
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("primary_keywords", "requirements", "skills", mode="before")
    @classmethod
    def _clean_items(cls, value):
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple, set)):
            return tuple(str(v).strip() for v in value if v is not None and str(v).strip())
        return value

    @field_validator("primary_keywords", "skills")
    @classmethod
    def _unique(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return unique_items(value)

    @property
    def is_empty(self) -> bool:
        """True when the extraction found nothing at all."""
        return not any(
            (
                self.role_title,
                self.years_of_experience,
                self.industry,
                self.company_name,
                self.primary_keywords,
                self.summary,
                self.requirements,
                self.skills,
            )
        )
