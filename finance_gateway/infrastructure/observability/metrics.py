"""Prometheus metrics for transaction volume, installment generation and classifier health"""

from prometheus_client import Counter, Histogram

# Transaction metrics
transaction_counter = Counter(
    "finance_transactions_created_total",
    "Transactions written",
    ["kind", "source"],  # source: manual | installment | continuation | import | bill_payment
)

installments_generated_counter = Counter(
    "finance_installments_generated_total",
    "Installment rows produced by series generation or continuation",
    ["mode"],  # series | continuation
)

recurring_rule_counter = Counter(
    "finance_recurring_rules_created_total",
    "Recurring rules stored",
    ["frequency"],
)

# Budget metrics
budget_upsert_counter = Counter(
    "finance_budget_upserts_total",
    "Monthly budget saves",
    ["rescaled"],  # true when investment + reserve exceeded 100%
)

# Classifier metrics
classifier_batch_failures_counter = Counter(
    "classifier_batch_failures_total",
    "Category suggestion batches that failed",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transactions(kind: str, source: str, count: int = 1) -> None:
    """Count written transactions by kind and origin"""
    transaction_counter.labels(kind=kind, source=source).inc(count)

    if source in ("installment", "continuation"):
        mode = "series" if source == "installment" else "continuation"
        installments_generated_counter.labels(mode=mode).inc(count)
