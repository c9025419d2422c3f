"""Request/response schemas for gateway endpoints.

Wire names are camelCase to match the mobile client; Python attributes are
snake_case. Request fields are all optional so that missing values reach the
service layer and come back as 400s rather than validation 422s.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base model accepting either wire aliases or attribute names."""

    model_config = ConfigDict(populate_by_name=True)


class PaymentIntentRequest(WireModel):
    """Payload accepted by `POST /create-payment-intent`."""

    amount: int | None = Field(default=None, strict=True)
    currency: str | None = None
    customer_id: str | None = Field(default=None, alias="customerId")
    payment_method_id: str | None = Field(default=None, alias="paymentMethodId")
    token_amount: Any = Field(default=None, alias="tokenAmount")
    company_uuid: str | None = Field(default=None, alias="companyUUID")

    def to_charge(self) -> "ChargeRequest":
        return ChargeRequest(
            amount=self.amount,
            currency=self.currency,
            payer_id=self.customer_id,
            payment_method_id=self.payment_method_id,
            company_id=self.company_uuid,
            token_amount=self.token_amount,
        )


class ChargeRequest(BaseModel):
    """Normalized request to move funds, consumed once by the gateway."""

    amount: int | None = None
    currency: str | None = None
    payer_id: str | None = None
    payment_method_id: str | None = None
    company_id: str | None = None
    destination_account_id: str | None = None
    token_amount: Any = None


class ChargeResult(BaseModel):
    """Outcome of one confirmed payment intent."""

    payment_intent_id: str | None = None
    client_secret: str | None = None
    status: str
    destination_account_id: str | None = None
    awarded_tokens: Any = None


class PaymentIntentResponse(WireModel):
    client_secret: str | None = Field(alias="clientSecret")
    status: str
    awarded_tokens: Any = Field(default=None, alias="awardedTokens")


class CreateCustomerRequest(WireModel):
    """Payload accepted by `POST /create-stripe-customer`."""

    email: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")


class CustomerResponse(WireModel):
    customer_id: str = Field(alias="customerId")


class SetupIntentRequest(WireModel):
    customer_id: str | None = Field(default=None, alias="customerId")


class SetupIntentResponse(WireModel):
    client_secret: str | None = Field(alias="clientSecret")


class ConnectRequest(WireModel):
    """Payload accepted by `POST /stripe/connect`."""

    company_uuid: str | None = Field(default=None, alias="companyUUID")


class ConnectResponse(WireModel):
    url: str


class OnboardingLink(BaseModel):
    """Hosted onboarding link plus the account it was issued for."""

    url: str
    account_id: str
    created: bool


class AccountStatus(WireModel):
    """Live connected-account status fields, returned verbatim."""

    account_id: str = Field(alias="accountId")
    email: str | None = None
    business_type: str | None = Field(default=None, alias="businessType")
    capabilities: dict[str, Any] | None = None
    charges_enabled: bool | None = Field(default=None, alias="chargesEnabled")
    payouts_enabled: bool | None = Field(default=None, alias="payoutsEnabled")
    requirements: dict[str, Any] | None = None
