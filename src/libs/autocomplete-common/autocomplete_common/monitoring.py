# src/libs/autocomplete-common/autocomplete_common/monitoring.py
import logging
from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------------------
# DB metrics (used by the entity provider around its queries)
# --------------------------------------------------------------------------------------
DB_OPERATION_LATENCY_SECONDS = Histogram(
    "db_operation_latency_seconds",
    "Latency of database operations in seconds",
    labelnames=("repository", "method"),
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10),
)

def db_timer(operation: str, repository: str = "db"):
    """
    Times a DB operation.
    Usage:
        with db_timer("entity_search", repository="Customer"):
            ...
    """
    return DB_OPERATION_LATENCY_SECONDS.labels(repository=repository, method=operation).time()

# --------------------------------------------------------------------------------------
# Autocomplete endpoint metrics
# --------------------------------------------------------------------------------------
AUTOCOMPLETE_REQUESTS_TOTAL = Counter(
    "autocomplete_requests_total",
    "Number of autocomplete requests served, by endpoint and outcome",
    labelnames=("endpoint", "outcome"),
)

AUTOCOMPLETE_PROVIDER_LATENCY_SECONDS = Histogram(
    "autocomplete_provider_latency_seconds",
    "Latency of provider search/get calls in seconds",
    labelnames=("provider_kind", "operation"),
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5),
)

AUTOCOMPLETE_SIGNATURE_REJECTIONS_TOTAL = Counter(
    "autocomplete_signature_rejections_total",
    "Number of requests rejected by signature verification",
    labelnames=("reason",),
)

def observe_request(endpoint: str, outcome: str) -> None:
    AUTOCOMPLETE_REQUESTS_TOTAL.labels(endpoint, outcome).inc()

def observe_signature_rejection(reason: str) -> None:
    AUTOCOMPLETE_SIGNATURE_REJECTIONS_TOTAL.labels(reason).inc()

def provider_timer(provider_kind: str, operation: str):
    return AUTOCOMPLETE_PROVIDER_LATENCY_SECONDS.labels(
        provider_kind=provider_kind, operation=operation
    ).time()
