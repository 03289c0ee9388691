"""Unit tests for configuration utilities."""

from mhb_monitor.core.config import Settings


class TestConfigUtilities:
    """Test configuration utility functions."""

    def test_settings_basic_initialization(self):
        """Test that Settings can be initialized with basic values."""
        settings = Settings(
            _env_file=None, app_name="Test App", debug=True, api_port=9000
        )

        assert settings.app_name == "Test App"
        assert settings.debug is True
        assert settings.api_port == 9000

    def test_settings_defaults(self):
        """Test Settings default values."""
        settings = Settings(_env_file=None)

        assert settings.app_name == "MHB Monitor"
        assert settings.version == "0.1.0"
        assert settings.debug is False
        assert settings.api_host == "0.0.0.0"
        assert settings.api_port == 5000
        assert settings.self_healing_enabled is True

    def test_threshold_defaults(self):
        """Test default health check thresholds."""
        settings = Settings(_env_file=None)

        assert settings.memory_threshold_percent == 85.0
        assert settings.runtime_heap_threshold_percent == 90.0
        assert settings.response_time_threshold_ms == 2000.0
        assert settings.error_rate_threshold_percent == 10.0
        assert settings.response_time_window == 10
        assert settings.error_rate_window == 50

    def test_settings_from_environment(self, monkeypatch):
        """Test settings are read from MHB_ prefixed variables."""
        monkeypatch.setenv("MHB_MEMORY_CLEANUP_COOLDOWN_SECONDS", "60")
        monkeypatch.setenv("MHB_SELF_HEALING_ENABLED", "false")

        settings = Settings(_env_file=None)

        assert settings.memory_cleanup_cooldown_seconds == 60.0
        assert settings.self_healing_enabled is False
