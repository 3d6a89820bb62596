"""Prometheus metrics for the Bucket Claim Operator."""

from prometheus_client import Counter, Gauge, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "bucket_claim_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "event", "result"],
)

reconcile_duration_seconds = Histogram(
    "bucket_claim_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind", "event"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

inflight_reconciliations = Gauge(
    "bucket_claim_operator_inflight_reconciliations",
    "Number of reconciliations currently running",
    ["kind"],
)

error_total = Counter(
    "bucket_claim_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

# S3 operation metrics
bucket_operations_total = Counter(
    "bucket_claim_operator_bucket_operations_total",
    "Total number of S3 bucket operations",
    ["operation", "result"],
)

# Secret store metrics
secret_lookups_total = Counter(
    "bucket_claim_operator_secret_lookups_total",
    "Total number of credential secret lookups",
    ["method", "result"],
)

# API call metrics
api_call_duration_seconds = Histogram(
    "bucket_claim_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)
