"""Unit tests for policy validation"""

import pytest
from underwriting_gateway.domain.exceptions import PolicyConfigurationError
from underwriting_gateway.domain.policy import StatusResolutionTable, build_policy


def policy_kwargs(**overrides):
    kwargs = dict(
        adverse_record_window_months=120,
        foreclosure_window_months=36,
        staleness_days={"background_check": 60},
        dob_tolerance_years=1,
        resolved_statuses={"Satisfied": True, "Active": False},
        mandatory_fields=["subject_id", "report_date"],
        non_delegable_categories=["fraud_aml"],
        hard_categories=["title_defect"],
    )
    kwargs.update(overrides)
    return kwargs


def test_build_policy():
    policy = build_policy(**policy_kwargs())

    assert policy.thresholds.foreclosure_window_months == 36
    assert policy.thresholds.max_report_age("background_check") == 60
    assert policy.exception_categories.is_non_delegable("fraud_aml")
    assert policy.exception_categories.is_always_hard("title_defect")
    assert not policy.exception_categories.is_always_hard("fraud_aml")
    assert policy.mandatory_fields == ("subject_id", "report_date")


@pytest.mark.parametrize(
    "overrides",
    [
        {"adverse_record_window_months": 0},
        {"adverse_record_window_months": None},
        {"foreclosure_window_months": -12},
        {"foreclosure_window_months": "36"},
        {"dob_tolerance_years": -1},
        {"staleness_days": {}},
        {"staleness_days": {"background_check": 0}},
        {"resolved_statuses": {}},
        {"resolved_statuses": {"Satisfied": "yes"}},
        {"mandatory_fields": ["report_date"]},
        {"non_delegable_categories": []},
        {"non_delegable_categories": None},
        {"hard_categories": [""]},
    ],
)
def test_invalid_configuration_is_rejected(overrides):
    with pytest.raises(PolicyConfigurationError):
        build_policy(**policy_kwargs(**overrides))


def test_unknown_report_type_has_no_threshold():
    policy = build_policy(**policy_kwargs())

    with pytest.raises(PolicyConfigurationError):
        policy.thresholds.max_report_age("credit_report")


def test_status_table_lookup():
    table = StatusResolutionTable({"Satisfied": True, "Active": False})

    assert table.resolve("SATISFIED") is True
    assert table.resolve(" active ") is False
    assert table.resolve("Under Review") is None
    assert table.resolve(None) is None
    assert len(table) == 2
