"""Configuration settings for the monitoring service."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="MHB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "MHB Monitor"
    version: str = "0.1.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 5000
    api_prefix: str = "/api/v1"
    docs_url: str = "/docs"
    redoc_url: str = "/redoc"
    openapi_url: str = "/openapi.json"

    # Feature toggles
    self_healing_enabled: bool = True
    install_global_error_hooks: bool = True

    # Health check intervals (seconds)
    server_check_interval_seconds: float = Field(default=30.0, gt=0)
    memory_check_interval_seconds: float = Field(default=15.0, gt=0)
    response_time_check_interval_seconds: float = Field(default=45.0, gt=0)
    error_rate_check_interval_seconds: float = Field(default=60.0, gt=0)
    runtime_heap_check_interval_seconds: float = Field(default=30.0, gt=0)

    # Health check thresholds
    memory_threshold_percent: float = 85.0
    memory_critical_percent: float = 95.0
    runtime_heap_threshold_percent: float = 90.0
    response_time_threshold_ms: float = 2000.0
    response_time_window: int = Field(default=10, gt=0)
    error_rate_threshold_percent: float = 10.0
    error_rate_window: int = Field(default=50, gt=0)

    # Repair cooldowns (seconds)
    memory_cleanup_cooldown_seconds: float = 300.0
    response_optimization_cooldown_seconds: float = 600.0
    error_mitigation_cooldown_seconds: float = 900.0
    stability_check_cooldown_seconds: float = 1800.0

    # Performance metric retention
    metrics_cleanup_interval_seconds: float = Field(default=600.0, gt=0)
    metrics_max_samples: int = 2000
    metrics_retain_samples: int = 1000

    # Periodic memory optimizer
    memory_optimize_interval_seconds: float = Field(default=300.0, gt=0)
    memory_optimize_threshold_percent: float = 75.0

    # Error pattern tracking
    max_error_patterns: int = Field(default=1000, gt=0)
    error_pattern_history: int = Field(default=10, gt=0)
    recurring_pattern_threshold: int = Field(default=5, gt=0)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
