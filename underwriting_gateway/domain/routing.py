"""Authority router - aggregates exceptions into a required approval tier"""

from dataclasses import replace
from typing import Iterable, List, Sequence

from underwriting_gateway.domain.exceptions import InvalidDecisionError
from underwriting_gateway.domain.models import (
    ApprovalAuthority,
    AuthorityRouting,
    Decision,
    ExceptionCount,
    ExceptionRecord,
    ExceptionSeverity,
    Outcome,
)
from underwriting_gateway.domain.policy import ExceptionCategoryPolicy

CATEGORY_IDENTITY = "identity_verification"
CATEGORY_BACKGROUND = "background_check"

# More than this many soft exceptions needs committee sign-off
UNDERWRITER_SOFT_LIMIT = 2


def _validate(decision: object) -> Decision:
    if not isinstance(decision, Decision):
        raise InvalidDecisionError(f"Expected a Decision, got {type(decision).__name__}")
    if not isinstance(decision.outcome, Outcome):
        raise InvalidDecisionError(f"Decision for {decision.subject_id} has unknown outcome {decision.outcome!r}")
    if decision.outcome is not Outcome.PASS and not decision.reasons:
        raise InvalidDecisionError(f"Non-pass decision for {decision.subject_id} carries no reasons")
    return decision


def exceptions_from_decisions(decisions: Sequence[Decision]) -> List[ExceptionRecord]:
    """
    Flatten every non-pass decision into an exception.

    non_pass is hard, manual_validation is soft. Identity-driven decisions are
    tagged separately so policy can escalate them.
    """
    exceptions = []
    for decision in decisions:
        decision = _validate(decision)
        if decision.outcome is Outcome.PASS:
            continue
        exceptions.append(
            ExceptionRecord(
                exception_id=f"DEC-{decision.subject_id}",
                category=CATEGORY_IDENTITY if decision.requires_identity_manual_validation else CATEGORY_BACKGROUND,
                severity=ExceptionSeverity.HARD if decision.outcome is Outcome.NON_PASS else ExceptionSeverity.SOFT,
                description="; ".join(decision.reasons),
                subject_id=decision.subject_id,
            )
        )
    return exceptions


def determine_authority(soft: int, hard: int, has_non_delegable: bool) -> ApprovalAuthority:
    """Escalation table: non-delegable > any hard or >2 soft > any soft > none"""
    if has_non_delegable:
        return ApprovalAuthority.EXECUTIVE
    if hard > 0 or soft > UNDERWRITER_SOFT_LIMIT:
        return ApprovalAuthority.CREDIT_COMMITTEE
    if soft > 0:
        return ApprovalAuthority.UNDERWRITER
    return ApprovalAuthority.AUTOMATED


def _routing_reason(authority: ApprovalAuthority, count: ExceptionCount, non_delegable: List[str]) -> str:
    if authority is ApprovalAuthority.EXECUTIVE:
        return f"Non-delegable exception present ({len(non_delegable)}); executive approval required regardless of counts"
    if authority is ApprovalAuthority.CREDIT_COMMITTEE:
        return f"{count.hard} hard and {count.soft} soft exception(s) exceed underwriter delegation limits"
    if authority is ApprovalAuthority.UNDERWRITER:
        return f"{count.soft} soft exception(s), within underwriter delegation limits"
    return "No exceptions; eligible for AI auto-approval"


def route(
    decisions: Sequence[Decision],
    exception_registry: Iterable[ExceptionRecord],
    category_policy: ExceptionCategoryPolicy,
) -> AuthorityRouting:
    """
    Determine the approval authority a transaction requires.

    Args:
        decisions: Per-subject decisions for the transaction
        exception_registry: Exceptions raised elsewhere (other review phases,
            stale reports, ratio breaches, subjects that could not be evaluated)
        category_policy: Always-hard and non-delegable category sets

    Raises:
        InvalidDecisionError: If any decision is malformed
    """
    candidates = exceptions_from_decisions(decisions) + list(exception_registry)

    exceptions: List[ExceptionRecord] = []
    for exc in candidates:
        if not isinstance(exc, ExceptionRecord):
            raise InvalidDecisionError(f"Expected an ExceptionRecord, got {type(exc).__name__}")
        if exc.status == "waived":
            continue
        if category_policy.is_always_hard(exc.category) and exc.severity is not ExceptionSeverity.HARD:
            exc = replace(exc, severity=ExceptionSeverity.HARD)
        exceptions.append(exc)

    count = ExceptionCount(
        soft=sum(1 for e in exceptions if e.severity is ExceptionSeverity.SOFT),
        hard=sum(1 for e in exceptions if e.severity is ExceptionSeverity.HARD),
    )
    non_delegable = [
        f"{e.category}: {e.description}" for e in exceptions if category_policy.is_non_delegable(e.category)
    ]
    authority = determine_authority(count.soft, count.hard, bool(non_delegable))

    return AuthorityRouting(
        exception_count=count,
        required_authority=authority,
        can_ai_auto_approve=count.soft == 0 and count.hard == 0,
        non_delegable_reasons=tuple(non_delegable),
        exceptions=tuple(exceptions),
        reason=_routing_reason(authority, count, non_delegable),
    )
