"""Unit tests for transaction evaluation"""

import pytest
from factories import make_record
from underwriting_gateway.domain.engine import (
    CATEGORY_EVALUATION_ERROR,
    CATEGORY_FINANCIAL_RATIO,
    CATEGORY_STALE_REPORT,
    UNABLE_TO_EVALUATE,
    evaluate_transaction,
)
from underwriting_gateway.domain.models import (
    ApprovalAuthority,
    ExceptionRecord,
    ExceptionSeverity,
    Outcome,
)


def test_clean_transaction_is_auto_approvable(clean_record, policy, reference_date):
    result = evaluate_transaction("LN-1", [clean_record], policy, reference_date)

    [subject] = result.subjects
    assert subject.decision.outcome is Outcome.PASS
    assert result.routing.required_authority is ApprovalAuthority.AUTOMATED
    assert result.routing.can_ai_auto_approve is True


def test_bad_subject_does_not_stop_the_batch(clean_record, policy, reference_date):
    broken = make_record(subject_id="jane-doe", report_date="not a date")

    result = evaluate_transaction("LN-2", [clean_record, broken], policy, reference_date)

    good, bad = result.subjects
    assert good.evaluated and good.decision.outcome is Outcome.PASS
    assert not bad.evaluated
    assert bad.subject_id == "jane-doe"
    assert bad.error_type == "MalformedInputError"

    [exc] = result.routing.exceptions
    assert exc.category == CATEGORY_EVALUATION_ERROR
    assert exc.severity is ExceptionSeverity.HARD
    assert exc.description.startswith(UNABLE_TO_EVALUATE)
    assert result.routing.required_authority is ApprovalAuthority.CREDIT_COMMITTEE


def test_subject_without_id_is_labelled_by_position(clean_record, policy, reference_date):
    anonymous = make_record()
    del anonymous["subject_id"]

    result = evaluate_transaction("LN-3", [clean_record, anonymous], policy, reference_date)

    assert result.subjects[1].subject_id == "subject[1]"
    assert result.subjects[1].error_type == "MissingRequiredFieldError"


def test_stale_report_raises_soft_exception(policy, reference_date):
    record = make_record(report_age_days=75)

    result = evaluate_transaction("LN-4", [record], policy, reference_date)

    assert result.subjects[0].decision.outcome is Outcome.PASS
    [exc] = result.routing.exceptions
    assert exc.category == CATEGORY_STALE_REPORT
    assert exc.severity is ExceptionSeverity.SOFT
    assert exc.description == "background_check is 75 days old (max 60)"
    assert result.routing.required_authority is ApprovalAuthority.UNDERWRITER


def test_failed_financial_ratio_raises_soft_exception(policy, reference_date):
    record = make_record(
        financial_ratios=[
            {"name": "dscr", "value": 1.1, "threshold": 1.25, "comparison": "gte"},
            {"name": "ltv", "value": 0.7, "threshold": 0.8, "comparison": "lte"},
        ]
    )

    result = evaluate_transaction("LN-5", [record], policy, reference_date)

    [exc] = result.routing.exceptions
    assert exc.exception_id == "RATIO-john-doe-dscr"
    assert exc.category == CATEGORY_FINANCIAL_RATIO


def test_registry_exceptions_are_routed(clean_record, policy, reference_date):
    registry = [
        ExceptionRecord("EXC-77", "fraud_aml", ExceptionSeverity.SOFT, "Unverified wire source"),
    ]

    result = evaluate_transaction("LN-6", [clean_record], policy, reference_date, registry)

    assert result.routing.required_authority is ApprovalAuthority.EXECUTIVE
    assert result.routing.exception_count.hard == 1
    assert result.routing.non_delegable_reasons == ("fraud_aml: Unverified wire source",)


def test_mixed_outcomes(policy, reference_date):
    records = [
        make_record(subject_id="a"),
        make_record(
            subject_id="b",
            extracted={"full_name": "John Doe", "last4_ssn": "9999", "date_of_birth": "06/15/1985"},
            foreclosures=[{"recency_months": 10, "status": "Completed"}],
        ),
    ]

    result = evaluate_transaction("LN-7", records, policy, reference_date)

    assert [s.decision.outcome for s in result.subjects] == [Outcome.PASS, Outcome.MANUAL_VALIDATION]
    assert result.routing.required_authority is ApprovalAuthority.UNDERWRITER
    assert result.routing.can_ai_auto_approve is False


def test_unknown_report_type_fails_that_subject_only(clean_record, policy, reference_date):
    appraisal = make_record(subject_id="jane-doe", report_type="appraisal")

    result = evaluate_transaction("LN-8", [clean_record, appraisal], policy, reference_date)

    good, bad = result.subjects
    assert good.decision.outcome is Outcome.PASS
    assert not bad.evaluated
    assert bad.error_type == "MalformedInputError"
    assert "appraisal" in bad.error
    assert result.routing.exceptions[0].exception_id == "ERR-jane-doe"


@pytest.mark.parametrize("recency", ["nan", "inf", float("inf")])
def test_non_finite_recency_fails_that_subject_only(recency, clean_record, policy, reference_date):
    broken = make_record(subject_id="jane-doe", liens=[{"recency_months": recency, "status": "Active"}])

    result = evaluate_transaction("LN-10", [clean_record, broken], policy, reference_date)

    assert result.subjects[0].evaluated
    assert result.subjects[1].error_type == "MalformedInputError"
    assert result.routing.exception_count.hard == 1


def test_evaluation_is_repeatable(policy, reference_date):
    records = [
        make_record(subject_id="a", judgments=[{"recency_months": 5, "status": "Active"}],
                    foreclosures=[{"recency_months": 20, "status": "Completed"}]),
        make_record(subject_id="b", report_age_days=90),
    ]

    first = evaluate_transaction("LN-9", records, policy, reference_date)
    second = evaluate_transaction("LN-9", records, policy, reference_date)

    assert first == second
