"""Tests for config loading."""

import pytest

from resume_analyzer.config import (
    AppConfig,
    LLMConfig,
    PipelineConfig,
    StorageConfig,
    load_config,
)


class TestConfig:
    def test_defaults(self):
        config = AppConfig()
        assert config.llm.utility_model == "claude-haiku-4-5-20251001"
        assert config.llm.min_interval_seconds == 0.3
        assert config.pipeline.chunk_threshold == 12000
        assert config.pipeline.request_timeout == 180.0
        assert config.pipeline.job_parse_policy == "abort"
        assert config.storage.cache_ttl_hours == 24

    def test_load_config_defaults(self, tmp_path, monkeypatch):
        """Loading from non-existent path returns defaults."""
        monkeypatch.delenv("RESUME_ANALYZER_ENV", raising=False)
        config = load_config(tmp_path / "nonexistent.yaml")
        assert config.llm.scoring_model == "claude-sonnet-4-5-20250929"
        assert config.pipeline.environment == "production"

    def test_load_config_from_yaml(self, tmp_path, monkeypatch):
        monkeypatch.delenv("RESUME_ANALYZER_ENV", raising=False)
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text(
            "llm:\n  utility_model: test-model\npipeline:\n  job_parse_policy: skip\n"
        )
        config = load_config(yaml_path)
        assert config.llm.utility_model == "test-model"
        assert config.pipeline.job_parse_policy == "skip"
        # Defaults for unspecified
        assert config.pipeline.max_content_length == 10000

    def test_env_var_overrides_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RESUME_ANALYZER_ENV", "development")
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text("pipeline:\n  environment: production\n  allow_fallback: true\n")
        config = load_config(yaml_path)
        assert config.pipeline.environment == "development"
        assert config.pipeline.fallback_enabled is True

    def test_storage_resolved_paths(self):
        storage = StorageConfig(db_path="~/test.db", cache_db_path="~/cache.db")
        assert "~" not in str(storage.resolved_db_path)
        assert "~" not in str(storage.resolved_cache_db_path)

    def test_frozen_config(self):
        config = LLMConfig()
        with pytest.raises(AttributeError):
            config.utility_model = "changed"


class TestFallbackGate:
    def test_never_in_production(self):
        assert PipelineConfig(environment="production", allow_fallback=True).fallback_enabled is False
        assert PipelineConfig(environment="PROD", allow_fallback=True).fallback_enabled is False

    def test_requires_opt_in(self):
        assert PipelineConfig(environment="development").fallback_enabled is False
        assert PipelineConfig(environment="development", allow_fallback=True).fallback_enabled is True


class TestConfigValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"chunk_size": 0},
            {"chunk_threshold": -1},
            {"request_timeout": 0},
            {"validation_retries": 4},
            {"job_parse_policy": "ignore"},
        ],
    )
    def test_invalid_pipeline_values(self, kwargs):
        with pytest.raises(ValueError):
            PipelineConfig(**kwargs)

    def test_invalid_llm_values(self):
        with pytest.raises(ValueError, match="min_interval_seconds"):
            LLMConfig(min_interval_seconds=-0.1)
        with pytest.raises(ValueError, match="timeout"):
            LLMConfig(timeout=0)

    def test_invalid_cache_ttl(self):
        with pytest.raises(ValueError, match="cache_ttl_hours"):
            StorageConfig(cache_ttl_hours=-1)

    def test_invalid_yaml_value_raises(self, tmp_path):
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text("pipeline:\n  job_parse_policy: retry\n")
        with pytest.raises(ValueError, match="job_parse_policy"):
            load_config(yaml_path)
