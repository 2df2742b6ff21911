"""Startup-time helpers for safe config logging."""

from pydantic_settings import BaseSettings

from billpay.common.logging import logger

_SECRET_MARKERS = ("key", "secret", "password", "token")


def _safe_value(name: str, value):
    """Return a loggable value, redacting secret-like fields."""

    if value is None or value == "":
        return "<unset>"
    if any(marker in name.lower() for marker in _SECRET_MARKERS):
        return "<redacted>"
    return value


def log_startup_config(settings: BaseSettings, fields: list[str]) -> None:
    """Log selected settings fields for quick troubleshooting."""

    config = {name: _safe_value(name, getattr(settings, name, None)) for name in fields}
    logger.info("startup_config=%s", config)
    if not getattr(settings, "stripe_webhook_secret", None):
        logger.warning("webhook signing secret not configured; webhook bodies will be trusted unverified")
    if not getattr(settings, "stripe_secret_key", None):
        logger.warning("stripe secret key not configured; provider calls will be rejected")
