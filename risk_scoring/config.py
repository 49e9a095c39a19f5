"""
Configuration management using Pydantic Settings.
Loads from environment variables or .env file.
"""
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Scoring service configuration loaded from environment variables.

    Usage:
        # .env file
        HIGH_RISK_THRESHOLD=0.8
        REDIS_URL=redis://localhost:6379
        MODEL_PATH=data/models/risk_model

        # In code
        from risk_scoring.config import get_settings
        print(get_settings().high_risk_threshold)
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        protected_namespaces=("settings_",)
    )

    # Risk policy
    medium_risk_threshold: float = 0.5
    high_risk_threshold: float = 0.8
    critical_risk_threshold: Optional[float] = None
    fraud_cutoff: float = 0.8

    # Caching
    cache_ttl_minutes: int = 30
    cache_max_entries: int = 100_000

    # Performance
    latency_budget_ms: float = 100.0
    feature_query_timeout_ms: float = 50.0

    # Feature history
    history_retention_days: int = 30
    record_history: bool = True

    # Model
    model_path: Optional[str] = None
    model_enabled: bool = True
    fallback_enabled: bool = True

    # Infrastructure (unset = in-memory / disabled)
    redis_url: Optional[str] = None
    db_url: str = "sqlite+aiosqlite:///./risk_scoring.db"
    auto_create_schema: bool = False
    kafka_bootstrap_servers: Optional[str] = None
    alert_topic: str = "fraud-alerts"

    # API settings
    api_title: str = "Transaction Risk Scoring API"
    api_version: str = "1.0.0"
    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Logging
    log_level: str = "INFO"

    @model_validator(mode="after")
    def check_thresholds(self) -> "Settings":
        for name in ("medium_risk_threshold", "high_risk_threshold", "fraud_cutoff"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")

        if self.medium_risk_threshold > self.high_risk_threshold:
            raise ValueError("medium_risk_threshold must not exceed high_risk_threshold")

        critical = self.critical_risk_threshold
        if critical is not None and not self.high_risk_threshold <= critical <= 1.0:
            raise ValueError("critical_risk_threshold must be within [high_risk_threshold, 1]")

        if self.cache_ttl_minutes <= 0 or self.cache_max_entries <= 0:
            raise ValueError("cache_ttl_minutes and cache_max_entries must be positive")

        return self


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide settings, loaded on first use"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
