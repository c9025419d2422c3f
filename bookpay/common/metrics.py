"""Prometheus metric definitions for the gateway."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
processor_calls_total = Counter(
    "processor_calls_total",
    "Payment processor API calls by operation and outcome",
    ["service", "operation", "outcome"],
)
processor_latency_seconds = Histogram(
    "processor_latency_seconds",
    "Payment processor API latency seconds",
    ["service", "operation"],
)
charges_total = Counter(
    "charges_total",
    "Charges submitted, split by direct vs destination routing",
    ["service", "routing"],
)
connected_accounts_created_total = Counter(
    "connected_accounts_created_total",
    "Connected accounts provisioned at the processor",
    ["service"],
)
onboarding_races_lost_total = Counter(
    "onboarding_races_lost_total",
    "Onboarding requests whose account write lost a set-if-absent race",
    ["service"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
