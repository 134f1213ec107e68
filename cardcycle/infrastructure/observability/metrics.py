"""Prometheus metrics for monitoring cycle regeneration, data corrections, and aggregator health"""

from prometheus_client import Counter, Histogram

# Regeneration metrics
regeneration_counter = Counter(
    "cardcycle_regeneration_total",
    "Billing cycle regenerations",
    ["outcome"],  # success | failure | busy
)

regeneration_duration_histogram = Histogram(
    "cardcycle_regeneration_duration_seconds",
    "Time spent regenerating one card's billing cycles",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

cycles_generated_histogram = Histogram(
    "cardcycle_cycles_generated",
    "Billing cycles produced per regeneration",
    buckets=[1, 2, 4, 8, 12, 14, 20],
)

# Data quality
open_date_corrections_counter = Counter(
    "cardcycle_open_date_corrections_total",
    "Card open dates replaced by heuristics",
    ["method"],  # earliest_transaction | statement_date | default_horizon
)

fallback_windows_counter = Counter(
    "cardcycle_fallback_windows_total",
    "Regenerations that fell back to a single estimated window",
    ["reason"],
)

history_shortfall_counter = Counter(
    "cardcycle_cycle_history_shortfall_total",
    "Regenerations producing fewer historical cycles than the transaction history supports",
)

# Aggregator metrics
aggregator_fetch_failures_counter = Counter(
    "aggregator_fetch_failures_total",
    "Failed aggregator API calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_regeneration(outcome: str, duration_seconds: float, cycle_count: int = 0) -> None:
    """Record regeneration outcome; duration and cycle count only for successful runs"""
    regeneration_counter.labels(outcome=outcome).inc()
    if outcome == "success":
        regeneration_duration_histogram.observe(duration_seconds)
        cycles_generated_histogram.observe(cycle_count)
