"""Startup config logging must never print secrets."""

from bookpay.common.config import CommonSettings
from bookpay.common.startup import redacted_settings


def test_secret_fields_redacted():
    """The Stripe key never appears in the startup log view."""

    view = redacted_settings(CommonSettings(stripe_secret_key="sk_live_abc", redis_url="redis://cache:6379/1"))

    assert view["stripe_secret_key"] == "<redacted>"
    assert view["redis_url"] == "redis://cache:6379/1"
    assert view["directory_key_prefix"] == "companies"
