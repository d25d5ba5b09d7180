"""Prometheus metrics for gateway traffic, token refreshes and eligibility outcomes"""

from prometheus_client import Counter, Histogram

# Gateway metrics
gateway_request_histogram = Histogram(
    "firstlend_gateway_request_seconds",
    "Backend request latency as seen by the session gateway",
    ["method", "status"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

gateway_failure_counter = Counter(
    "firstlend_gateway_failures_total",
    "Failed backend calls by error kind",
    ["kind"],  # network | auth | validation | server
)

# Session metrics
token_refresh_counter = Counter(
    "firstlend_token_refresh_total",
    "Access token refresh attempts",
    ["outcome"],  # success | failure
)

forced_logout_counter = Counter(
    "firstlend_forced_logout_total",
    "Sessions cleared because the token could not be refreshed",
)

# Eligibility metrics
eligibility_counter = Counter(
    "firstlend_eligibility_total",
    "Eligibility checks by terminal state",
    ["outcome"],  # unverified | eligible | insufficient_score
)


def record_refresh(success: bool) -> None:
    token_refresh_counter.labels(outcome="success" if success else "failure").inc()
    if not success:
        forced_logout_counter.inc()


def record_eligibility(outcome: str) -> None:
    eligibility_counter.labels(outcome=outcome).inc()
