"""Tests for the analysis cache."""

import time

import pytest

from resume_analyzer.cache.analysis_cache import AnalysisCache, make_cache_key
from resume_analyzer.pipeline.resume_scorer import FALLBACK_ANALYSIS
from resume_analyzer.models.analysis import AnalysisResult


@pytest.fixture
def cache(tmp_path):
    return AnalysisCache(db_path=tmp_path / "test_cache.db", ttl_hours=1)


class TestCacheKey:
    def test_stable(self):
        assert make_cache_key("resume") == make_cache_key("resume")

    def test_job_text_changes_key(self):
        assert make_cache_key("resume") != make_cache_key("resume", "job")
        assert make_cache_key("resume", "job a") != make_cache_key("resume", "job b")

    def test_job_text_whitespace_ignored(self):
        assert make_cache_key("resume", "  job \n") == make_cache_key("resume", "job")

    def test_blank_job_text_same_as_none(self):
        assert make_cache_key("resume", "") == make_cache_key("resume")


class TestAnalysisCache:
    def test_put_and_get(self, cache, sample_result):
        cache.put("k1", sample_result)
        result = cache.get("k1")
        assert result is not None
        assert result == sample_result

    def test_get_nonexistent(self, cache):
        assert cache.get("missing") is None

    def test_fallback_not_cached(self, cache):
        cache.put("k1", AnalysisResult.model_validate(FALLBACK_ANALYSIS.model_dump()))
        assert cache.get("k1") is None

    def test_delete(self, cache, sample_result):
        cache.put("k1", sample_result)
        cache.delete("k1")
        assert cache.get("k1") is None

    def test_clear(self, cache, sample_result):
        cache.put("k1", sample_result)
        cache.put("k2", sample_result)
        count = cache.clear()
        assert count == 2
        assert cache.get("k1") is None

    def test_stats(self, cache, sample_result):
        cache.put("k1", sample_result)
        cache.put("k2", sample_result)
        stats = cache.stats()
        assert stats["total"] == 2
        assert stats["active"] == 2
        assert stats["expired"] == 0

    def test_ttl_expiration(self, tmp_path, sample_result):
        """Cache entries expire after TTL."""
        # 0-hour TTL expires immediately
        cache = AnalysisCache(db_path=tmp_path / "ttl_test.db", ttl_hours=0)
        cache.put("k1", sample_result)
        time.sleep(0.01)
        assert cache.get("k1") is None
        assert cache.stats()["total"] == 0

    def test_upsert(self, cache, sample_result, scoring_json):
        cache.put("k1", sample_result)
        scoring_json["score"] = 91
        cache.put("k1", AnalysisResult.model_validate(scoring_json))
        assert cache.get("k1").score == 91
        assert cache.stats()["total"] == 1
