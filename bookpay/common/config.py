"""Central environment-driven settings for the gateway process.

Loaded once at import time. Every value can be overridden through environment
variables or a local `.env` file (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "bookings-gateway"
    log_level: str = "INFO"
    port: int = 5000
    stripe_secret_key: str
    stripe_max_network_retries: int = 0
    redis_url: str = "redis://redis:6379/0"
    directory_key_prefix: str = "companies"
    onboarding_lock_timeout_seconds: float = 30.0
    onboarding_lock_wait_seconds: float = 10.0
    public_base_url: str = "http://localhost:5000"
    connect_account_type: str = "express"
    connect_account_country: str = "US"
    charge_payment_method_types: list[str] = ["card"]
    cors_allow_origins: list[str] = ["*"]
    otel_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = CommonSettings()
