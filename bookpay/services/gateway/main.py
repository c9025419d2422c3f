"""HTTP surface of the bookings payment gateway.

Routes are thin: parse the request, call one service method, shape the
response. Collaborators (processor client, directory store) are built in the
lifespan and handed to routes through dependency providers.
"""

from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

from fastapi import Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from redis.asyncio import Redis

from bookpay.common.config import settings
from bookpay.common.errors import GatewayError
from bookpay.common.logging import configure_logging, logger, trace_id_ctx
from bookpay.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from bookpay.common.startup import log_startup_config
from bookpay.common.tracing import instrument_app, setup_tracing
from bookpay.services.gateway.directory import AccountDirectory
from bookpay.services.gateway.onboarding import OnboardingService
from bookpay.services.gateway.pages import render_onboarding_refresh, render_onboarding_success
from bookpay.services.gateway.processor import StripeProcessor
from bookpay.services.gateway.schemas import (
    AccountStatus,
    ConnectRequest,
    ConnectResponse,
    CreateCustomerRequest,
    CustomerResponse,
    PaymentIntentRequest,
    PaymentIntentResponse,
    SetupIntentRequest,
    SetupIntentResponse,
)
from bookpay.services.gateway.service import PaymentGatewayService

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings,
    [
        "service_name",
        "port",
        "redis_url",
        "directory_key_prefix",
        "public_base_url",
        "connect_account_type",
        "connect_account_country",
        "stripe_secret_key",
        "otel_enabled",
    ],
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the store handle and processor client for the app's lifetime."""

    redis_client = Redis.from_url(settings.redis_url, decode_responses=True)
    try:
        directory = AccountDirectory(
            redis_client,
            key_prefix=settings.directory_key_prefix,
            lock_timeout=settings.onboarding_lock_timeout_seconds,
            lock_wait=settings.onboarding_lock_wait_seconds,
        )
        processor = StripeProcessor(
            settings.stripe_secret_key,
            service_name=settings.service_name,
            max_network_retries=settings.stripe_max_network_retries,
            account_type=settings.connect_account_type,
            account_country=settings.connect_account_country,
            payment_method_types=settings.charge_payment_method_types,
        )
        app.state.payments = PaymentGatewayService(
            directory,
            processor,
            payment_method_types=settings.charge_payment_method_types,
            service_name=settings.service_name,
        )
        app.state.onboarding = OnboardingService(
            directory,
            processor,
            public_base_url=settings.public_base_url,
            service_name=settings.service_name,
        )
        yield
    finally:
        await redis_client.aclose()


app = FastAPI(title="BluCollarBookings Payment Gateway", lifespan=lifespan)
instrument_app(app)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_payments(request: Request) -> PaymentGatewayService:
    return request.app.state.payments


def get_onboarding(request: Request) -> OnboardingService:
    return request.app.state.onboarding


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Bind a correlation id and record request count and latency."""

    trace_id = request.headers.get("x-correlation-id") or str(uuid4())
    trace_id_ctx.set(trace_id)
    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        response.headers["x-correlation-id"] = trace_id
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    if exc.status_code >= 500:
        logger.error("request failed path=%s error=%s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": "malformed request", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error path=%s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.get("/healthz", response_class=PlainTextResponse)
def healthz():
    """Plain-text probe for the hosting platform."""

    return "OK"


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}


@app.get("/api/hello")
def hello():
    return {"message": "BluCollarBookings backend is running!"}


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.post(
    "/create-payment-intent",
    response_model=PaymentIntentResponse,
    response_model_exclude_none=True,
)
async def create_payment_intent(
    req: PaymentIntentRequest,
    payments: PaymentGatewayService = Depends(get_payments),
):
    """Confirm a charge, routed to the company's connected account when it has one."""

    result = await payments.create_charge(req.to_charge())
    return PaymentIntentResponse(
        client_secret=result.client_secret,
        status=result.status,
        awarded_tokens=result.awarded_tokens,
    )


@app.post("/create-stripe-customer", response_model=CustomerResponse)
async def create_stripe_customer(
    req: CreateCustomerRequest,
    payments: PaymentGatewayService = Depends(get_payments),
):
    customer_id = await payments.create_customer(req.email, req.first_name, req.last_name)
    return CustomerResponse(customer_id=customer_id)


@app.get("/customer/{customer_id}/payment-methods")
async def list_payment_methods(
    customer_id: str,
    payments: PaymentGatewayService = Depends(get_payments),
):
    """Saved card payment methods for one customer."""

    return await payments.list_payment_methods(customer_id.strip())


@app.post("/create-setup-intent", response_model=SetupIntentResponse)
async def create_setup_intent(
    req: SetupIntentRequest,
    payments: PaymentGatewayService = Depends(get_payments),
):
    client_secret = await payments.create_setup_intent(req.customer_id)
    return SetupIntentResponse(client_secret=client_secret)


@app.post("/stripe/connect", response_model=ConnectResponse)
async def stripe_connect(
    req: ConnectRequest,
    onboarding: OnboardingService = Depends(get_onboarding),
):
    """Return a hosted onboarding link, creating the connected account on first use."""

    link = await onboarding.start_onboarding(req.company_uuid)
    return ConnectResponse(url=link.url)


@app.get("/stripe/connect/success", response_class=HTMLResponse)
def stripe_connect_success(company_uuid: str | None = Query(default=None, alias="companyUUID")):
    return render_onboarding_success(company_uuid)


@app.get("/stripe/connect/refresh", response_class=HTMLResponse)
def stripe_connect_refresh():
    return render_onboarding_refresh()


@app.get("/stripe/account-status/{company_uuid}", response_model=AccountStatus)
async def account_status(
    company_uuid: str,
    onboarding: OnboardingService = Depends(get_onboarding),
):
    """Live connected-account status for a company."""

    return await onboarding.get_status(company_uuid.strip())
