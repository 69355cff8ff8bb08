"""Data access layer for the evaluation audit log"""

import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from underwriting_gateway.domain.engine import UNABLE_TO_EVALUATE
from underwriting_gateway.domain.models import AuthorityRouting, SubjectEvaluation, TransactionEvaluation
from underwriting_gateway.domain.normalizer import summarize_signal
from underwriting_gateway.infrastructure.database.models import UnderwritingEvaluation


def serialize_subject(evaluation: SubjectEvaluation) -> Dict[str, Any]:
    """Flatten a subject evaluation into the JSON shape stored and returned by the API"""
    if not evaluation.evaluated:
        return {
            "subject_id": evaluation.subject_id,
            "status": "unable_to_evaluate",
            "outcome": None,
            "reasons": [UNABLE_TO_EVALUATE],
            "requires_identity_manual_validation": False,
            "error": evaluation.error,
            "error_type": evaluation.error_type,
            "signal": None,
        }

    decision = evaluation.decision
    return {
        "subject_id": evaluation.subject_id,
        "status": "evaluated",
        "outcome": decision.outcome.value,
        "reasons": list(decision.reasons),
        "requires_identity_manual_validation": decision.requires_identity_manual_validation,
        "error": None,
        "error_type": None,
        "signal": summarize_signal(evaluation.signal),
    }


def serialize_routing(routing: AuthorityRouting) -> Dict[str, Any]:
    return {
        "required_authority": routing.required_authority.value,
        "authority_label": routing.authority_label,
        "can_ai_auto_approve": routing.can_ai_auto_approve,
        "exception_count": {
            "soft": routing.exception_count.soft,
            "hard": routing.exception_count.hard,
        },
        "non_delegable_reasons": list(routing.non_delegable_reasons),
        "reason": routing.reason,
        "exceptions": [
            {
                "exception_id": e.exception_id,
                "category": e.category,
                "severity": e.severity.value,
                "description": e.description,
                "subject_id": e.subject_id,
                "status": e.status,
            }
            for e in routing.exceptions
        ],
    }


class EvaluationRepository:
    """Repository for transaction evaluations"""

    def __init__(self, db: Session):
        self.db = db

    def create_evaluation(
        self,
        evaluation: TransactionEvaluation,
        reference_date: date,
    ) -> UnderwritingEvaluation:
        """Persist a transaction evaluation to the audit log"""
        routing = evaluation.routing
        db_evaluation = UnderwritingEvaluation(
            transaction_id=evaluation.transaction_id,
            reference_date=reference_date,
            required_authority=routing.required_authority.value,
            can_ai_auto_approve=routing.can_ai_auto_approve,
            soft_exception_count=routing.exception_count.soft,
            hard_exception_count=routing.exception_count.hard,
            routing=serialize_routing(routing),
            subjects=[serialize_subject(s) for s in evaluation.subjects],
        )
        self.db.add(db_evaluation)
        self.db.flush()  # Get ID without committing
        return db_evaluation

    def get_evaluation_by_id(self, evaluation_id: uuid.UUID) -> Optional[UnderwritingEvaluation]:
        return (
            self.db.query(UnderwritingEvaluation)
            .filter(UnderwritingEvaluation.id == evaluation_id)
            .first()
        )

    def get_evaluations_by_transaction(self, transaction_id: str, limit: int = 10) -> List[UnderwritingEvaluation]:
        """Fetch recent evaluations for a transaction"""
        return (
            self.db.query(UnderwritingEvaluation)
            .filter(UnderwritingEvaluation.transaction_id == transaction_id)
            .order_by(UnderwritingEvaluation.created_at.desc())
            .limit(limit)
            .all()
        )
