"""HTTP surface, exercised with in-memory collaborators."""

import asyncio
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from bookpay.services.gateway import main
from bookpay.services.gateway.main import app, get_onboarding, get_payments


@pytest.fixture
def client(payments, onboarding):
    app.dependency_overrides[get_payments] = lambda: payments
    app.dependency_overrides[get_onboarding] = lambda: onboarding
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_healthz_is_plain_text(client):
    """Hosting probe answers plain OK."""

    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.text == "OK"
    assert resp.headers["content-type"].startswith("text/plain")


def test_hello(client):
    """Liveness banner for the mobile client."""

    assert client.get("/api/hello").json() == {"message": "BluCollarBookings backend is running!"}


def test_plain_charge(client, processor, directory):
    """Charge without a company goes through unsplit."""

    resp = client.post(
        "/create-payment-intent",
        json={"amount": 5000, "currency": "usd", "customerId": "cus_1", "paymentMethodId": "pm_1"},
    )

    assert resp.status_code == 200
    assert resp.json() == {"clientSecret": "pi_1_secret_abc", "status": "succeeded"}
    [params] = processor.calls_for("payment_intent.create")
    assert "transfer_data" not in params
    assert directory.reads == []


def test_company_charge_echoes_tokens(client, processor):
    """Linked company charges split and echo tokens."""

    resp = client.post(
        "/create-payment-intent",
        json={
            "amount": 2500,
            "currency": "usd",
            "customerId": "cus_1",
            "paymentMethodId": "pm_1",
            "tokenAmount": 3,
            "companyUUID": "co_linked",
        },
    )

    assert resp.status_code == 200
    assert resp.json()["awardedTokens"] == 3
    [params] = processor.calls_for("payment_intent.create")
    assert params["transfer_data"] == {"destination": "acct_linked"}


def test_charge_missing_params_is_400(client, processor):
    """Missing fields are a client error naming the fields."""

    resp = client.post("/create-payment-intent", json={"amount": 5000, "currency": "usd"})

    assert resp.status_code == 400
    assert "customerId" in resp.json()["detail"]
    assert processor.calls == []


def test_malformed_body_is_400(client, processor):
    """Unparseable fields are a client error, not a 422."""

    resp = client.post("/create-payment-intent", json={"amount": "lots", "currency": "usd"})

    assert resp.status_code == 400
    assert processor.calls == []


def test_processor_error_is_500_with_message(client, processor):
    """Processor failures pass their message through."""

    processor.fail_with = "Your card was declined."
    resp = client.post(
        "/create-payment-intent",
        json={"amount": 5000, "currency": "usd", "customerId": "cus_1", "paymentMethodId": "pm_1"},
    )

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Your card was declined."}


def test_create_customer(client):
    """Customer creation returns the new id."""

    resp = client.post("/create-stripe-customer", json={"email": "a@example.com", "firstName": "Ada"})
    assert resp.status_code == 200
    assert resp.json() == {"customerId": "cus_new"}


def test_create_customer_without_email_is_400(client, processor):
    """Customer creation without email is rejected."""

    resp = client.post("/create-stripe-customer", json={"firstName": "Ada"})
    assert resp.status_code == 400
    assert processor.calls == []


def test_payment_methods(client):
    """Saved cards are returned as the processor lists them."""

    resp = client.get("/customer/cus_1/payment-methods")
    assert resp.status_code == 200
    assert resp.json()[0]["card"]["last4"] == "4242"


def test_setup_intent(client):
    """Setup intent returns its client secret."""

    resp = client.post("/create-setup-intent", json={"customerId": "cus_1"})
    assert resp.json() == {"clientSecret": "seti_1_secret_xyz"}


def test_setup_intent_without_customer_is_400(client):
    """Setup intent needs a customer id."""

    assert client.post("/create-setup-intent", json={}).status_code == 400


def test_connect_twice_creates_one_account(client, processor, directory):
    """First call provisions and records; second only issues a new link."""

    first = client.post("/stripe/connect", json={"companyUUID": "co_1"})
    second = client.post("/stripe/connect", json={"companyUUID": "co_1"})

    assert first.status_code == second.status_code == 200
    assert set(first.json()) == {"url"}
    assert first.json()["url"].startswith("https://connect.stripe.com/")
    assert second.json()["url"].startswith("https://connect.stripe.com/")
    assert len(processor.calls_for("account.create")) == 1
    assert directory.writes == [("co_1", "acct_1")]


def test_connect_without_company_is_400(client, processor):
    """Onboarding needs a company id."""

    assert client.post("/stripe/connect", json={}).status_code == 400
    assert processor.calls == []


def test_connect_pages(client):
    """Callback pages render and escape the company id."""

    success = client.get("/stripe/connect/success", params={"companyUUID": "<co_1>"})
    refresh = client.get("/stripe/connect/refresh")

    assert success.status_code == 200
    assert success.headers["content-type"].startswith("text/html")
    assert "&lt;co_1&gt;" in success.text
    assert refresh.status_code == 200
    assert "expired" in refresh.text


def test_account_status_not_linked_is_404(client, processor):
    """Unlinked companies are not found without a processor call."""

    resp = client.get("/stripe/account-status/co_unknown")
    assert resp.status_code == 404
    assert processor.calls == []


def test_account_status_uses_wire_names(client):
    """Status fields use camelCase wire names."""

    client.post("/stripe/connect", json={"companyUUID": "co_1"})
    resp = client.get("/stripe/account-status/co_1")

    assert resp.status_code == 200
    body = resp.json()
    assert body["accountId"] == "acct_1"
    assert body["chargesEnabled"] is False
    assert set(body) == {
        "accountId",
        "email",
        "businessType",
        "capabilities",
        "chargesEnabled",
        "payoutsEnabled",
        "requirements",
    }


def test_correlation_id_echoed(client):
    """Caller correlation ids come back on the response."""

    resp = client.get("/health", headers={"x-correlation-id": "trace-123"})
    assert resp.headers["x-correlation-id"] == "trace-123"


def test_metrics_exposed(client):
    """Prometheus text includes the HTTP counters."""

    client.get("/healthz")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "http_requests_total" in resp.text


@pytest.mark.parametrize("amount", [True, 50.5, "5000"])
def test_non_integer_amount_is_400(client, processor, amount):
    """Booleans, floats and strings are not coerced into an amount."""

    resp = client.post(
        "/create-payment-intent",
        json={"amount": amount, "currency": "usd", "customerId": "cus_1", "paymentMethodId": "pm_1"},
    )

    assert resp.status_code == 400
    assert processor.calls == []


def test_token_amount_echoed_as_sent(client):
    """The reward token value comes back exactly as the caller sent it."""

    resp = client.post(
        "/create-payment-intent",
        json={
            "amount": 5000,
            "currency": "usd",
            "customerId": "cus_1",
            "paymentMethodId": "pm_1",
            "tokenAmount": "5",
        },
    )

    assert resp.status_code == 200
    assert resp.json()["awardedTokens"] == "5"


def test_store_error_is_500_with_message(client, directory, processor):
    """Directory failures pass their message through without a processor call."""

    directory.fail_with = "account directory read failed: connection refused"
    resp = client.get("/stripe/account-status/co_linked")

    assert resp.status_code == 500
    assert resp.json() == {"detail": "account directory read failed: connection refused"}
    assert processor.calls == []


class ClosableRedis:
    def __init__(self):
        self.closed = False

    async def aclose(self):
        self.closed = True


def test_lifespan_closes_store_when_startup_fails(monkeypatch):
    """The store handle is closed even if the processor client cannot be built."""

    redis_client = ClosableRedis()
    monkeypatch.setattr(main, "Redis", SimpleNamespace(from_url=lambda *args, **kwargs: redis_client))
    monkeypatch.setattr(main.settings, "stripe_secret_key", "")

    async def start():
        async with main.lifespan(main.app):
            pass

    with pytest.raises(ValueError):
        asyncio.run(start())
    assert redis_client.closed is True
