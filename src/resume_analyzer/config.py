"""Application configuration loaded from config.yaml."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml

ENV_VAR = "RESUME_ANALYZER_ENV"
JOB_PARSE_POLICIES = ("abort", "skip")


def _check(condition: bool, message: str) -> None:
    if not condition:
        raise ValueError(message)


@dataclass(frozen=True)
class LLMConfig:
    scoring_model: str = "claude-sonnet-4-5-20250929"
    utility_model: str = "claude-haiku-4-5-20251001"
    timeout: int = 60
    min_interval_seconds: float = 0.3

    def __post_init__(self):
        _check(self.timeout >= 1, f"llm.timeout must be >= 1, got {self.timeout}")
        _check(
            0 <= self.min_interval_seconds <= 10,
            f"llm.min_interval_seconds must be within [0, 10], got {self.min_interval_seconds}",
        )


@dataclass(frozen=True)
class PipelineConfig:
    chunk_threshold: int = 12000
    chunk_size: int = 12000
    request_timeout: float = 180.0
    max_content_length: int = 10000
    validation_retries: int = 0
    job_parse_policy: str = "abort"  # "abort" | "skip"
    environment: str = "production"
    allow_fallback: bool = False

    def __post_init__(self):
        _check(self.chunk_threshold > 0, f"pipeline.chunk_threshold must be > 0, got {self.chunk_threshold}")
        _check(self.chunk_size > 0, f"pipeline.chunk_size must be > 0, got {self.chunk_size}")
        _check(self.request_timeout > 0, f"pipeline.request_timeout must be > 0, got {self.request_timeout}")
        _check(
            self.max_content_length > 0,
            f"pipeline.max_content_length must be > 0, got {self.max_content_length}",
        )
        _check(
            0 <= self.validation_retries <= 3,
            f"pipeline.validation_retries must be within [0, 3], got {self.validation_retries}",
        )
        _check(
            self.job_parse_policy in JOB_PARSE_POLICIES,
            f"pipeline.job_parse_policy must be one of {JOB_PARSE_POLICIES}, got {self.job_parse_policy!r}",
        )

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in ("production", "prod")

    @property
    def fallback_enabled(self) -> bool:
        """Canned results are only ever served outside production."""
        return self.allow_fallback and not self.is_production


@dataclass(frozen=True)
class StorageConfig:
    db_path: str = "~/.resume-analyzer/analyses.db"
    usage_db_path: str = "~/.resume-analyzer/usage.db"
    cache_db_path: str = "~/.resume-analyzer/cache.db"
    cache_ttl_hours: int = 24

    def __post_init__(self):
        _check(
            0 <= self.cache_ttl_hours <= 24 * 30,
            f"storage.cache_ttl_hours must be within [0, 720], got {self.cache_ttl_hours}",
        )

    @property
    def resolved_db_path(self) -> Path:
        return Path(self.db_path).expanduser()

    @property
    def resolved_usage_db_path(self) -> Path:
        return Path(self.usage_db_path).expanduser()

    @property
    def resolved_cache_db_path(self) -> Path:
        return Path(self.cache_db_path).expanduser()


@dataclass(frozen=True)
class AppConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, falling back to defaults.

    ``RESUME_ANALYZER_ENV`` overrides ``pipeline.environment``.
    """
    if path is None:
        # Look for config.yaml relative to the project root
        candidates = [
            Path.cwd() / "config.yaml",
            Path(__file__).resolve().parent.parent.parent / "config.yaml",
        ]
        for c in candidates:
            if c.exists():
                path = c
                break

    raw: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text()) or {}

    pipeline = PipelineConfig(**raw.get("pipeline", {}))
    env_override = os.environ.get(ENV_VAR)
    if env_override:
        pipeline = replace(pipeline, environment=env_override)

    return AppConfig(
        llm=LLMConfig(**raw.get("llm", {})),
        pipeline=pipeline,
        storage=StorageConfig(**raw.get("storage", {})),
    )
