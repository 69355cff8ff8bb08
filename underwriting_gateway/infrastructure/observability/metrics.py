"""Prometheus metrics for monitoring decision outcomes, authority routing and webhook performance"""

from typing import Iterable

from prometheus_client import Counter, Histogram

from underwriting_gateway.domain.models import AuthorityRouting, SubjectEvaluation

# Decision metrics
subject_outcome_counter = Counter(
    "underwriting_subject_outcome_total",
    "Subject-level decisions made",
    ["outcome"],  # pass | manual_validation | non_pass | unable_to_evaluate
)

authority_counter = Counter(
    "underwriting_required_authority_total",
    "Transactions routed by required approval authority",
    ["authority"],  # automated | underwriter | credit_committee | executive
)

non_delegable_counter = Counter(
    "underwriting_non_delegable_total",
    "Transactions forced to executive approval by a non-delegable exception",
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Escalation webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Vendor API metrics
vendor_fetch_failures_counter = Counter(
    "vendor_fetch_failures_total",
    "Failed background-check vendor API calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_subject(evaluation: SubjectEvaluation) -> None:
    outcome = evaluation.decision.outcome.value if evaluation.evaluated else "unable_to_evaluate"
    subject_outcome_counter.labels(outcome=outcome).inc()


def record_evaluation(subjects: Iterable[SubjectEvaluation], routing: AuthorityRouting) -> None:
    """Record outcome distribution and authority routing for a transaction"""
    for evaluation in subjects:
        record_subject(evaluation)

    authority_counter.labels(authority=routing.required_authority.value).inc()
    if routing.non_delegable_reasons:
        non_delegable_counter.inc()
