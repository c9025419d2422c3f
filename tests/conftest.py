"""Shared fixtures: in-memory processor and directory fakes.

Environment defaults are set before any `bookpay` import so settings load
without a real Stripe key or collector.
"""

import asyncio
import os
from collections import defaultdict
from contextlib import asynccontextmanager

os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_placeholder")
os.environ["OTEL_ENABLED"] = "false"

import pytest

from bookpay.common.errors import DirectoryError, PaymentProcessorError
from bookpay.services.gateway.onboarding import OnboardingService
from bookpay.services.gateway.service import PaymentGatewayService


class FakeProcessor:
    """Records every processor call; optionally fails them all."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.fail_with: str | None = None
        self.intent_status = "succeeded"
        self.accounts: dict[str, dict] = {}

    def _record(self, operation: str, **params) -> None:
        self.calls.append((operation, params))
        if self.fail_with:
            raise PaymentProcessorError(self.fail_with)

    def calls_for(self, operation: str) -> list[dict]:
        return [params for op, params in self.calls if op == operation]

    async def create_payment_intent(self, **params):
        self._record("payment_intent.create", **params)
        return {"id": "pi_1", "client_secret": "pi_1_secret_abc", "status": self.intent_status}

    async def create_customer(self, *, email, name=None):
        self._record("customer.create", email=email, name=name)
        return {"id": "cus_new", "email": email}

    async def list_payment_methods(self, customer_id):
        self._record("payment_method.list", customer_id=customer_id)
        return [{"id": "pm_1", "type": "card", "card": {"brand": "visa", "last4": "4242"}}]

    async def create_setup_intent(self, customer_id):
        self._record("setup_intent.create", customer_id=customer_id)
        return {"id": "seti_1", "client_secret": "seti_1_secret_xyz"}

    async def create_connected_account(self, company_id):
        self._record("account.create", company_id=company_id)
        await asyncio.sleep(0)
        account_id = f"acct_{len(self.accounts) + 1}"
        self.accounts[account_id] = {
            "id": account_id,
            "email": None,
            "business_type": None,
            "capabilities": {"card_payments": "inactive", "transfers": "inactive"},
            "charges_enabled": False,
            "payouts_enabled": False,
            "requirements": {"currently_due": ["external_account"]},
        }
        return account_id

    async def create_account_link(self, account_id, *, refresh_url, return_url):
        self._record("account_link.create", account_id=account_id, refresh_url=refresh_url, return_url=return_url)
        return f"https://connect.stripe.com/setup/e/{account_id}/onboard"

    async def retrieve_account(self, account_id):
        self._record("account.retrieve", account_id=account_id)
        return dict(self.accounts.get(account_id, {"id": account_id}))


class FakeDirectory:
    """Dict-backed account directory with per-company asyncio locks."""

    def __init__(self, records: dict[str, str] | None = None) -> None:
        self.records = dict(records or {})
        self.reads: list[str] = []
        self.writes: list[tuple[str, str]] = []
        self.fail_with: str | None = None
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def get(self, company_id):
        self.reads.append(company_id)
        if self.fail_with:
            raise DirectoryError(self.fail_with)
        await asyncio.sleep(0)
        return self.records.get(company_id)

    async def set(self, company_id, account_id):
        self.writes.append((company_id, account_id))
        self.records[company_id] = account_id
        return True

    async def set_if_absent(self, company_id, account_id):
        if company_id in self.records:
            return False
        return await self.set(company_id, account_id)

    @asynccontextmanager
    async def lock(self, company_id):
        async with self._locks[company_id]:
            yield


@pytest.fixture
def processor():
    return FakeProcessor()


@pytest.fixture
def directory():
    return FakeDirectory({"co_linked": "acct_linked"})


@pytest.fixture
def payments(directory, processor):
    return PaymentGatewayService(directory, processor)


@pytest.fixture
def onboarding(directory, processor):
    return OnboardingService(directory, processor, public_base_url="https://api.example.test/")
