"""Decision classifier - ordered rule evaluation over a RiskSignal"""

from typing import List

from underwriting_gateway.domain.models import AdverseRecordType, Decision, Outcome, RiskSignal
from underwriting_gateway.domain.policy import PolicyThresholds

REASON_ACTIVE_WITH_FORECLOSURE = "Active derogatory + recent foreclosure"
REASON_AGED_WITH_FORECLOSURE = "Aged/unclear derogatory with recent foreclosure"
REASON_IDENTITY_WITH_FORECLOSURE = "Identity mismatch with recent foreclosure"
REASON_IDENTITY_INCONCLUSIVE = "Identity verification inconclusive"


def _derogatory(signal: RiskSignal):
    # Liens, judgments and bankruptcies; foreclosures only feed the foreclosure window
    return [r for r in signal.adverse_records if r.type is not AdverseRecordType.FORECLOSURE]


def has_active_adverse_record(signal: RiskSignal) -> bool:
    return any(not r.is_satisfied_or_aged for r in _derogatory(signal))


def has_adverse_record_within_policy_window(signal: RiskSignal, thresholds: PolicyThresholds) -> bool:
    return any(
        r.recency_months <= thresholds.adverse_record_window_months and not r.is_satisfied_or_aged
        for r in _derogatory(signal)
    )


def has_satisfied_or_aged_adverse_record(signal: RiskSignal) -> bool:
    return any(r.is_satisfied_or_aged for r in _derogatory(signal))


def classify(signal: RiskSignal, thresholds: PolicyThresholds) -> Decision:
    """
    Classify a normalized signal into pass / manual_validation / non_pass.

    Rules are evaluated in priority order and the first match wins:
    1. active or in-window derogatory AND foreclosure in window -> non_pass
    2. aged/unclear derogatory, or identity mismatch, AND foreclosure in window -> manual_validation
    3. no in-window derogatory AND no foreclosure in window -> pass
    4. identity mismatch -> manual_validation
    5. otherwise -> pass

    Rule 5 is reached by an unresolved in-window derogatory with no recent
    foreclosure and no identity mismatch. It returns pass as the rule table
    is written; see DESIGN.md before changing it.
    """
    in_window = has_adverse_record_within_policy_window(signal, thresholds)
    foreclosure = signal.foreclosure_within_window
    identity = signal.identity_mismatch

    def decide(outcome: Outcome, reasons: List[str]) -> Decision:
        return Decision(
            subject_id=signal.subject_id,
            outcome=outcome,
            reasons=tuple(reasons),
            requires_identity_manual_validation=identity,
        )

    # Rule 1
    if (has_active_adverse_record(signal) or in_window) and foreclosure:
        return decide(Outcome.NON_PASS, [REASON_ACTIVE_WITH_FORECLOSURE])

    # Rule 2
    aged_or_unclear = has_satisfied_or_aged_adverse_record(signal) or signal.unclear_disposition
    if (aged_or_unclear or identity) and foreclosure:
        reasons = []
        if aged_or_unclear:
            reasons.append(REASON_AGED_WITH_FORECLOSURE)
        if identity:
            reasons.append(REASON_IDENTITY_WITH_FORECLOSURE)
        return decide(Outcome.MANUAL_VALIDATION, reasons)

    # Rule 3
    if not in_window and not foreclosure:
        return decide(Outcome.PASS, [])

    # Rule 4
    if identity:
        return decide(Outcome.MANUAL_VALIDATION, [REASON_IDENTITY_INCONCLUSIVE])

    # Rule 5
    return decide(Outcome.PASS, [])
