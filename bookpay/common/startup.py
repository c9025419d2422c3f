"""Startup-time helpers for safe config logging."""

from pydantic_settings import BaseSettings

from bookpay.common.logging import logger


SECRET_MARKERS = ("secret", "password", "token", "api_key")


def redacted_settings(settings: BaseSettings) -> dict:
    """Dump settings with secret-like field names masked."""

    view = {}
    for name, value in settings.model_dump().items():
        if any(marker in name for marker in SECRET_MARKERS):
            view[name] = "<redacted>" if value else "<unset>"
        else:
            view[name] = value
    return view


def log_startup_config(settings: BaseSettings, keys: list[str]) -> None:
    """Log selected startup config keys for quick troubleshooting."""

    view = redacted_settings(settings)
    config = {key: view.get(key, "<unknown>") for key in keys}
    logger.info("startup_config=%s", config)
