"""Prometheus metrics for monitoring engine usage, budget states and projections"""

from prometheus_client import Counter, Histogram

# Engine metrics
computation_counter = Counter(
    "finance_engine_computations_total",
    "Total engine computations served",
    ["engine", "outcome"],  # outcome: ok | invalid
)

computation_duration_histogram = Histogram(
    "finance_engine_duration_seconds",
    "Engine computation time",
    ["engine"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

# Domain outcome metrics
budget_status_counter = Counter(
    "finance_budget_status_total",
    "Budget evaluations by resulting status",
    ["status"],  # ok | warning | exceeded
)

recurring_postings_counter = Counter(
    "finance_recurring_postings_total",
    "Recurring occurrences handled by due-check sweeps",
    ["mode"],  # auto | queued
)

forecast_negative_counter = Counter(
    "finance_forecast_negative_total",
    "Forecasts projecting a negative balance within the horizon",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_computation(engine: str, ok: bool, duration_seconds: float) -> None:
    """Record engine invocation count and latency"""
    computation_counter.labels(engine=engine, outcome="ok" if ok else "invalid").inc()
    computation_duration_histogram.labels(engine=engine).observe(duration_seconds)


def record_schedule_plan(posted: int, queued: int) -> None:
    """Count auto-posted and queued recurring occurrences"""
    if posted:
        recurring_postings_counter.labels(mode="auto").inc(posted)
    if queued:
        recurring_postings_counter.labels(mode="queued").inc(queued)
