"""Evaluation engine - core business logic tying normalize -> classify -> route"""

import logging
from datetime import date
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from underwriting_gateway.domain.classifier import classify
from underwriting_gateway.domain.exceptions import MalformedInputError, MissingRequiredFieldError
from underwriting_gateway.domain.models import (
    ExceptionRecord,
    ExceptionSeverity,
    SubjectEvaluation,
    TransactionEvaluation,
)
from underwriting_gateway.domain.normalizer import normalize
from underwriting_gateway.domain.policy import UnderwritingPolicy
from underwriting_gateway.domain.routing import route

UNABLE_TO_EVALUATE = "Unable to evaluate - manual review required"

CATEGORY_EVALUATION_ERROR = "evaluation_error"
CATEGORY_STALE_REPORT = "stale_report"
CATEGORY_FINANCIAL_RATIO = "financial_ratio"


def evaluate_subject(
    raw_record: Mapping[str, Any],
    policy: UnderwritingPolicy,
    reference_date: date,
) -> SubjectEvaluation:
    """
    Run one subject's vendor record through normalize -> classify.

    Raises:
        MalformedInputError / MissingRequiredFieldError: Record cannot be normalized
    """
    signal = normalize(
        raw_record,
        policy.thresholds,
        policy.status_table,
        reference_date,
        policy.mandatory_fields,
    )
    decision = classify(signal, policy.thresholds)
    return SubjectEvaluation(subject_id=signal.subject_id, signal=signal, decision=decision)


def _subject_label(raw_record: Any, index: int) -> str:
    if isinstance(raw_record, Mapping) and raw_record.get("subject_id"):
        return str(raw_record["subject_id"])
    return f"subject[{index}]"


def supplemental_exceptions(evaluation: SubjectEvaluation) -> List[ExceptionRecord]:
    """
    Exceptions a subject contributes beyond its classifier decision: stale
    supporting reports, failed financial ratio checks, or no evaluation at all.
    """
    subject_id = evaluation.subject_id
    if not evaluation.evaluated:
        return [
            ExceptionRecord(
                exception_id=f"ERR-{subject_id}",
                category=CATEGORY_EVALUATION_ERROR,
                severity=ExceptionSeverity.HARD,
                description=f"{UNABLE_TO_EVALUATE}: {evaluation.error}",
                subject_id=subject_id,
            )
        ]

    exceptions = []
    staleness = evaluation.signal.staleness
    if staleness.is_stale:
        exceptions.append(
            ExceptionRecord(
                exception_id=f"STALE-{subject_id}",
                category=CATEGORY_STALE_REPORT,
                severity=ExceptionSeverity.SOFT,
                description=(
                    f"{staleness.report_type} is {staleness.report_age_days} days old "
                    f"(max {staleness.max_allowed_days})"
                ),
                subject_id=subject_id,
            )
        )
    for ratio in evaluation.signal.financial_ratios:
        if not ratio.passes:
            exceptions.append(
                ExceptionRecord(
                    exception_id=f"RATIO-{subject_id}-{ratio.name}",
                    category=CATEGORY_FINANCIAL_RATIO,
                    severity=ExceptionSeverity.SOFT,
                    description=(
                        f"{ratio.name} {ratio.value:g} fails {ratio.comparison_direction.value} "
                        f"{ratio.threshold:g}"
                    ),
                    subject_id=subject_id,
                )
            )
    return exceptions


def evaluate_transaction(
    transaction_id: str,
    raw_records: Sequence[Mapping[str, Any]],
    policy: UnderwritingPolicy,
    reference_date: date,
    exception_registry: Optional[Iterable[ExceptionRecord]] = None,
) -> TransactionEvaluation:
    """
    Main entry point: evaluate every subject of a transaction and route it.

    A subject whose record cannot be normalized is reported as unable to
    evaluate and raises a hard exception; the other subjects are still
    classified. Policy errors are not caught.
    """
    subjects: List[SubjectEvaluation] = []
    for index, raw_record in enumerate(raw_records):
        try:
            subjects.append(evaluate_subject(raw_record, policy, reference_date))
        except (MalformedInputError, MissingRequiredFieldError) as e:
            subject_id = _subject_label(raw_record, index)
            logging.warning(
                f"Subject could not be evaluated: {e}",
                extra={"transaction_id": transaction_id, "subject_id": subject_id, "step": "normalize"},
            )
            subjects.append(
                SubjectEvaluation(subject_id=subject_id, error=str(e), error_type=type(e).__name__)
            )

    registry = list(exception_registry or [])
    for evaluation in subjects:
        registry.extend(supplemental_exceptions(evaluation))

    routing = route(
        [s.decision for s in subjects if s.evaluated],
        registry,
        policy.exception_categories,
    )

    return TransactionEvaluation(
        transaction_id=transaction_id,
        subjects=tuple(subjects),
        routing=routing,
    )
