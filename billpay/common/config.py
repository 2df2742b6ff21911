"""Central environment-driven settings for the billing service.

The process loads this once at startup. Behavior is controlled by environment
variables (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class BillingSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "billing"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 4242
    static_dir: str = "static"
    stripe_secret_key: str = ""
    stripe_publishable_key: str = ""
    # Unset means webhook bodies are trusted without signature verification.
    stripe_webhook_secret: str | None = None
    stripe_api_version: str = "2020-08-27"
    stripe_max_network_retries: int = 0
    default_customer_name: str = "Test Customer"
    default_customer_email: str = "customer@example.com"
    default_customer_description: str = "Test customer"
    otel_exporter_otlp_endpoint: str | None = None
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = BillingSettings()
