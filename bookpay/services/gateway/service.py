"""Payment Gateway Adapter.

Translates normalized charge requests into processor calls and owns the
pass-through customer, payment-method and setup-intent operations. The only
decision made here is whether a charge is routed to a company's connected
account.
"""

from typing import Any

from bookpay.common.errors import InvalidRequest, require
from bookpay.common.logging import company_id_ctx, logger
from bookpay.common.metrics import charges_total
from bookpay.services.gateway.directory import AccountDirectory
from bookpay.services.gateway.processor import PaymentProcessor
from bookpay.services.gateway.schemas import ChargeRequest, ChargeResult


class PaymentGatewayService:
    """Charges, customers and saved payment methods against the processor."""

    def __init__(
        self,
        directory: AccountDirectory,
        processor: PaymentProcessor,
        payment_method_types: list[str] | None = None,
        service_name: str = "bookings-gateway",
    ) -> None:
        self.directory = directory
        self.processor = processor
        self.payment_method_types = list(payment_method_types or ["card"])
        self.service_name = service_name

    def _validate_charge(self, req: ChargeRequest) -> None:
        require(
            amount=req.amount,
            currency=req.currency,
            customerId=req.payer_id,
            paymentMethodId=req.payment_method_id,
        )
        if req.amount <= 0:
            raise InvalidRequest("amount must be a positive integer in minor units")

    async def resolve_destination(self, company_id: str | None) -> str | None:
        """Look up the connected account a company's charges are routed to."""

        if not company_id:
            return None
        return await self.directory.get(company_id)

    def build_intent_params(self, req: ChargeRequest, destination: str | None) -> dict[str, Any]:
        """Processor parameters for an immediately confirmed payment intent."""

        params: dict[str, Any] = {
            "amount": req.amount,
            "currency": req.currency.lower(),
            "customer": req.payer_id,
            "payment_method": req.payment_method_id,
            "payment_method_types": self.payment_method_types,
            "confirm": True,
        }
        if req.company_id:
            params["metadata"] = {"companyUUID": req.company_id}
        if destination:
            params["transfer_data"] = {"destination": destination}
        return params

    async def create_charge(self, req: ChargeRequest) -> ChargeResult:
        """Validate, route and confirm one charge.

        A company without a connected account is not an error; the charge
        simply stays on the platform account.
        """

        self._validate_charge(req)
        if req.company_id:
            company_id_ctx.set(req.company_id)

        destination = req.destination_account_id or await self.resolve_destination(req.company_id)
        if req.company_id and not destination:
            logger.info("no connected account for company, charging platform account")

        params = self.build_intent_params(req, destination)
        intent = await self.processor.create_payment_intent(**params)
        charges_total.labels(
            service=self.service_name,
            routing="destination" if destination else "direct",
        ).inc()
        logger.info(
            "payment intent confirmed id=%s status=%s destination=%s",
            intent.get("id"),
            intent.get("status"),
            destination,
        )
        return ChargeResult(
            payment_intent_id=intent.get("id"),
            client_secret=intent.get("client_secret"),
            status=intent["status"],
            destination_account_id=destination,
            awarded_tokens=req.token_amount,
        )

    async def create_customer(
        self,
        email: str | None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> str:
        """Create a processor customer and return its id."""

        require(email=email)
        name = " ".join(part for part in (first_name, last_name) if part) or None
        customer = await self.processor.create_customer(email=email, name=name)
        logger.info("customer created id=%s", customer["id"])
        return customer["id"]

    async def list_payment_methods(self, customer_id: str | None) -> list[dict[str, Any]]:
        require(customerId=customer_id)
        return await self.processor.list_payment_methods(customer_id)

    async def create_setup_intent(self, customer_id: str | None) -> str | None:
        """Start saving a payment method for later; returns the client secret."""

        require(customerId=customer_id)
        intent = await self.processor.create_setup_intent(customer_id)
        return intent.get("client_secret")
