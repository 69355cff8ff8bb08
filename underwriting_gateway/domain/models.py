"""Domain models - immutable dataclasses for signals, decisions and routing"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class AdverseRecordType(str, Enum):
    LIEN = "lien"
    JUDGMENT = "judgment"
    BANKRUPTCY = "bankruptcy"
    FORECLOSURE = "foreclosure"


class MismatchSeverity(str, Enum):
    NONE = "none"
    MINOR = "minor"
    MAJOR = "major"

    @property
    def rank(self) -> int:
        return _MISMATCH_RANK[self]


class Outcome(str, Enum):
    """Subject-level decision, ordered pass < manual_validation < non_pass"""

    PASS = "pass"
    MANUAL_VALIDATION = "manual_validation"
    NON_PASS = "non_pass"

    @property
    def rank(self) -> int:
        return _OUTCOME_RANK[self]


class ApprovalAuthority(str, Enum):
    """Human approval tier, ordered from least to most senior"""

    AUTOMATED = "automated"
    UNDERWRITER = "underwriter"
    CREDIT_COMMITTEE = "credit_committee"
    EXECUTIVE = "executive"

    @property
    def label(self) -> str:
        return _AUTHORITY_LABELS[self]


class ExceptionSeverity(str, Enum):
    SOFT = "soft"  # curable via documentation or compensating factors
    HARD = "hard"  # not curable, forces escalation


class ComparisonDirection(str, Enum):
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"


_MISMATCH_RANK = {MismatchSeverity.NONE: 0, MismatchSeverity.MINOR: 1, MismatchSeverity.MAJOR: 2}

_OUTCOME_RANK = {Outcome.PASS: 0, Outcome.MANUAL_VALIDATION: 1, Outcome.NON_PASS: 2}

_AUTHORITY_LABELS = {
    ApprovalAuthority.AUTOMATED: "AI Auto-Approve",
    ApprovalAuthority.UNDERWRITER: "Underwriter",
    ApprovalAuthority.CREDIT_COMMITTEE: "Credit Committee",
    ApprovalAuthority.EXECUTIVE: "Executive Approval",
}


@dataclass(frozen=True)
class IdentityFieldCheck:
    """Comparison of one identity field between vendor report and system of record"""

    field: str  # full_name | last4_ssn | date_of_birth
    severity: MismatchSeverity
    detail: str = ""


@dataclass(frozen=True)
class AdverseRecord:
    """Lien, judgment, bankruptcy or foreclosure found in a background check"""

    type: AdverseRecordType
    recency_months: int
    is_satisfied_or_aged: bool
    status: Optional[str] = None
    unclear_disposition: bool = False


@dataclass(frozen=True)
class Staleness:
    """Age of the supporting report relative to the transaction reference date"""

    report_type: str
    report_age_days: int
    max_allowed_days: int

    @property
    def is_stale(self) -> bool:
        return self.report_age_days > self.max_allowed_days


@dataclass(frozen=True)
class FinancialRatio:
    """Generic ratio check (utilization, DSCR, LTV)"""

    name: str
    value: float
    threshold: float
    comparison_direction: ComparisonDirection

    @property
    def passes(self) -> bool:
        if self.comparison_direction is ComparisonDirection.LT:
            return self.value < self.threshold
        if self.comparison_direction is ComparisonDirection.LTE:
            return self.value <= self.threshold
        if self.comparison_direction is ComparisonDirection.GT:
            return self.value > self.threshold
        return self.value >= self.threshold


@dataclass(frozen=True)
class RiskSignal:
    """Canonical per-subject risk signals produced by the normalizer"""

    subject_id: str
    identity_checks: Tuple[IdentityFieldCheck, ...]
    identity_mismatch: bool
    identity_mismatch_severity: MismatchSeverity
    missing_identity_fields: Tuple[str, ...]
    adverse_records: Tuple[AdverseRecord, ...]
    foreclosure_within_window: bool
    unclear_disposition: bool
    staleness: Staleness
    financial_ratios: Tuple[FinancialRatio, ...] = ()


@dataclass(frozen=True)
class Decision:
    """Output of the decision classifier for one subject"""

    subject_id: str
    outcome: Outcome
    reasons: Tuple[str, ...] = ()
    requires_identity_manual_validation: bool = False


@dataclass(frozen=True)
class ExceptionRecord:
    """Policy deviation raised for a transaction, from a decision or another review phase"""

    exception_id: str
    category: str
    severity: ExceptionSeverity
    description: str
    subject_id: Optional[str] = None
    status: str = "pending"  # pending | approved | denied | waived | escalated


@dataclass(frozen=True)
class ExceptionCount:
    soft: int = 0
    hard: int = 0

    @property
    def total(self) -> int:
        return self.soft + self.hard


@dataclass(frozen=True)
class AuthorityRouting:
    """Required approval tier for a transaction"""

    exception_count: ExceptionCount
    required_authority: ApprovalAuthority
    can_ai_auto_approve: bool
    non_delegable_reasons: Tuple[str, ...] = ()
    exceptions: Tuple[ExceptionRecord, ...] = ()
    reason: str = ""

    @property
    def authority_label(self) -> str:
        return self.required_authority.label


@dataclass(frozen=True)
class SubjectEvaluation:
    """Result of running one subject through normalize -> classify"""

    subject_id: str
    signal: Optional[RiskSignal] = None
    decision: Optional[Decision] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def evaluated(self) -> bool:
        return self.decision is not None


@dataclass(frozen=True)
class TransactionEvaluation:
    """Per-subject results and authority routing for a whole transaction"""

    transaction_id: str
    subjects: Tuple[SubjectEvaluation, ...]
    routing: AuthorityRouting
