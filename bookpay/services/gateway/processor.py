"""Payment processor client.

`PaymentProcessor` is the seam the gateway services depend on; `StripeProcessor`
is the production implementation. The Stripe SDK is synchronous, so every
call runs in a worker thread and the event loop stays free for other requests.
"""

import asyncio
from time import perf_counter
from typing import Any, Protocol

import stripe

from bookpay.common.errors import PaymentProcessorError
from bookpay.common.logging import logger
from bookpay.common.metrics import processor_calls_total, processor_latency_seconds
from bookpay.common.tracing import external_call_span


class PaymentProcessor(Protocol):
    """Operations the gateway needs from the payment processor."""

    async def create_payment_intent(self, **params: Any) -> dict[str, Any]: ...

    async def create_customer(self, *, email: str, name: str | None = None) -> dict[str, Any]: ...

    async def list_payment_methods(self, customer_id: str) -> list[dict[str, Any]]: ...

    async def create_setup_intent(self, customer_id: str) -> dict[str, Any]: ...

    async def create_connected_account(self, company_id: str) -> str: ...

    async def create_account_link(self, account_id: str, *, refresh_url: str, return_url: str) -> str: ...

    async def retrieve_account(self, account_id: str) -> dict[str, Any]: ...


def _as_dict(obj) -> dict[str, Any]:
    return obj.to_dict() if hasattr(obj, "to_dict") else dict(obj)


class StripeProcessor:
    """Stripe-backed `PaymentProcessor` using an explicit per-call API key."""

    def __init__(
        self,
        api_key: str,
        service_name: str = "bookings-gateway",
        max_network_retries: int = 0,
        account_type: str = "express",
        account_country: str = "US",
        payment_method_types: list[str] | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("Stripe API key must be configured and non-empty")
        self.api_key = api_key
        self.service_name = service_name
        self.account_type = account_type
        self.account_country = account_country
        self.payment_method_types = list(payment_method_types or ["card"])
        # The SDK only exposes retries as module configuration.
        stripe.max_network_retries = max_network_retries

    async def _call(self, operation: str, func, *args, **params):
        """Run one SDK call, translating Stripe failures to `PaymentProcessorError`."""

        outcome = "error"
        start = perf_counter()
        try:
            with external_call_span("stripe", operation):
                result = await asyncio.to_thread(func, *args, api_key=self.api_key, **params)
            outcome = "ok"
            return result
        except stripe.StripeError as exc:
            message = exc.user_message or str(exc)
            logger.warning("processor call failed operation=%s error=%s", operation, message)
            raise PaymentProcessorError(message) from exc
        finally:
            processor_latency_seconds.labels(service=self.service_name, operation=operation).observe(
                max(0.0, perf_counter() - start)
            )
            processor_calls_total.labels(
                service=self.service_name,
                operation=operation,
                outcome=outcome,
            ).inc()

    async def create_payment_intent(self, **params: Any) -> dict[str, Any]:
        intent = await self._call("payment_intent.create", stripe.PaymentIntent.create, **params)
        return {"id": intent.id, "client_secret": intent.client_secret, "status": intent.status}

    async def create_customer(self, *, email: str, name: str | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {"email": email}
        if name:
            params["name"] = name
        customer = await self._call("customer.create", stripe.Customer.create, **params)
        return {"id": customer.id, "email": customer.email}

    async def list_payment_methods(self, customer_id: str) -> list[dict[str, Any]]:
        methods = await self._call(
            "payment_method.list",
            stripe.PaymentMethod.list,
            customer=customer_id,
            type="card",
        )
        return [_as_dict(method) for method in methods.data]

    async def create_setup_intent(self, customer_id: str) -> dict[str, Any]:
        intent = await self._call(
            "setup_intent.create",
            stripe.SetupIntent.create,
            customer=customer_id,
            payment_method_types=self.payment_method_types,
        )
        return {"id": intent.id, "client_secret": intent.client_secret}

    async def create_connected_account(self, company_id: str) -> str:
        account = await self._call(
            "account.create",
            stripe.Account.create,
            type=self.account_type,
            country=self.account_country,
            capabilities={
                "card_payments": {"requested": True},
                "transfers": {"requested": True},
            },
            metadata={"companyUUID": company_id},
        )
        return account.id

    async def create_account_link(self, account_id: str, *, refresh_url: str, return_url: str) -> str:
        link = await self._call(
            "account_link.create",
            stripe.AccountLink.create,
            account=account_id,
            refresh_url=refresh_url,
            return_url=return_url,
            type="account_onboarding",
        )
        return link.url

    async def retrieve_account(self, account_id: str) -> dict[str, Any]:
        account = await self._call("account.retrieve", stripe.Account.retrieve, account_id)
        return _as_dict(account)
