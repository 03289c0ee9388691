"""Unit tests for the performance metrics store."""

from mhb_monitor.services.metrics_store import PerformanceMetrics


class TestPerformanceMetrics:
    """Test PerformanceMetrics functionality."""

    def test_record_sample(self):
        """Test recording a sample appends it."""
        metrics = PerformanceMetrics()

        sample = metrics.record("/api/journal", 123.4, 201)

        assert len(metrics) == 1
        assert sample.endpoint == "/api/journal"
        assert sample.response_time_ms == 123.4
        assert sample.status_code == 201
        assert sample.is_error is False

    def test_recent_window(self):
        """Test recent returns the newest samples, oldest first."""
        metrics = PerformanceMetrics()
        for i in range(5):
            metrics.record(f"/api/{i}", i, 200)

        assert [s.endpoint for s in metrics.recent(2)] == ["/api/3", "/api/4"]
        assert len(metrics.recent(10)) == 5
        assert metrics.recent(0) == []

    def test_error_filters(self):
        """Test client and server error filters."""
        metrics = PerformanceMetrics()
        metrics.record("/a", 1, 200)
        metrics.record("/b", 1, 404)
        metrics.record("/c", 1, 500)
        metrics.record("/d", 1, 503)

        assert [s.endpoint for s in metrics.errors()] == ["/b", "/c", "/d"]
        assert [s.endpoint for s in metrics.errors(2)] == ["/c", "/d"]
        assert [s.endpoint for s in metrics.server_errors()] == ["/c", "/d"]

    def test_zero_limit_returns_nothing(self):
        """Test a zero limit behaves like an empty recent window."""
        metrics = PerformanceMetrics()
        metrics.record("/a", 1, 404)
        metrics.record("/b", 1, 500)

        assert metrics.recent(0) == []
        assert metrics.errors(0) == []
        assert metrics.server_errors(0) == []
        assert len(metrics.errors(None)) == 2

    def test_trim(self):
        """Test trim keeps only the most recent samples."""
        metrics = PerformanceMetrics()
        for i in range(10):
            metrics.record(f"/api/{i}", i, 200)

        assert metrics.trim(3) == 7
        assert [s.endpoint for s in metrics] == ["/api/7", "/api/8", "/api/9"]
        assert metrics.trim(5) == 0
