"""
Tests for ID generation and metrics collection.
"""
import time

from quickcolor.config import Config
from quickcolor.utils.ids import extract_timestamp_from_palette_id, generate_palette_id
from quickcolor.utils.metrics import MetricsCollector, get_metrics


class TestPaletteIds:
    """Test palette id format."""

    def test_format(self):
        palette_id = generate_palette_id()
        prefix, timestamp, suffix = palette_id.split("_")
        assert prefix == "palette"
        assert abs(int(timestamp) - int(time.time() * 1000)) < 5000
        assert len(suffix) == 9

    def test_unique(self):
        assert len({generate_palette_id() for _ in range(200)}) == 200

    def test_extract_timestamp(self):
        assert extract_timestamp_from_palette_id("palette_1718000000000_abc123def") == 1718000000000
        assert extract_timestamp_from_palette_id("custom-id") == 0


class TestMetrics:
    """Test the in-process metrics collector."""

    def test_counters(self):
        metrics = MetricsCollector()
        metrics.increment_extraction_count()
        metrics.increment_extraction_count()
        metrics.increment_degraded_count()
        metrics.increment_persistence_failure_count("create_palette")

        assert metrics.get_counters() == {
            "extraction_total": 2,
            "extraction_degraded_total": 1,
            "persistence_failures_total_create_palette": 1,
        }

    def test_timing_stats(self):
        metrics = MetricsCollector()
        for value in [10.0, 20.0, 30.0, 40.0, 50.0]:
            metrics.record_timing("extraction", value)

        stats = metrics.get_timing_stats()["extraction_duration_ms"]
        assert stats["count"] == 5
        assert stats["mean"] == 30.0
        assert stats["p50"] == 30.0
        assert stats["min"] == 10.0
        assert stats["max"] == 50.0

    def test_summary_and_reset(self):
        metrics = get_metrics()
        metrics.increment_extraction_failure_count()
        summary = metrics.get_summary()
        assert summary["counters"]["extraction_failed_total"] == 1
        assert summary["uptime_seconds"] >= 0

        metrics.reset()
        assert metrics.get_counters() == {}


class TestConfig:
    """Test configuration validators."""

    def test_validators(self):
        assert Config.validate_quality("high")
        assert not Config.validate_quality("ultra")
        assert Config.validate_store_backend("redis")
        assert not Config.validate_store_backend("async-storage")
        assert Config.validate_extraction_backend("python")
        assert not Config.validate_extraction_backend("opencv")

    def test_defaults(self):
        assert Config.FREE_PALETTE_LIMIT == 5
        assert Config.PRO_PALETTE_LIMIT == 100
        assert Config.MAX_COLORS_PER_PALETTE == 20
        assert Config.MAX_RECENT_COLORS == 20
