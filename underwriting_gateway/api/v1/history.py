"""GET /v1/evaluations/history and /v1/evaluations/{evaluation_id} - audit log reads"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from underwriting_gateway.api.v1.schemas import EvaluationResponse, HistoryItem, HistoryResponse
from underwriting_gateway.infrastructure.database.repositories import EvaluationRepository
from underwriting_gateway.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/evaluations/history", response_model=HistoryResponse)
def get_evaluation_history(
    transaction_id: str = Query(..., description="Loan / transaction identifier"),
    db: Session = Depends(get_db),
):
    """
    Retrieve recent evaluations for a transaction.

    Returns:
        Routing summaries, newest first
    """
    repo = EvaluationRepository(db)
    evaluations = repo.get_evaluations_by_transaction(transaction_id, limit=20)

    history_items = [
        HistoryItem(
            evaluation_id=str(e.id),
            required_authority=e.required_authority,
            can_ai_auto_approve=e.can_ai_auto_approve,
            soft_exception_count=e.soft_exception_count,
            hard_exception_count=e.hard_exception_count,
            created_at=e.created_at.isoformat(),
        )
        for e in evaluations
    ]

    return HistoryResponse(transaction_id=transaction_id, evaluations=history_items)


@router.get("/evaluations/{evaluation_id}", response_model=EvaluationResponse)
def get_evaluation(evaluation_id: str, db: Session = Depends(get_db)):
    """Retrieve a stored evaluation with per-subject results and routing"""
    try:
        evaluation_uuid = uuid.UUID(evaluation_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid evaluation ID format")

    repo = EvaluationRepository(db)
    evaluation = repo.get_evaluation_by_id(evaluation_uuid)

    if not evaluation:
        raise HTTPException(status_code=404, detail="Evaluation not found")

    return EvaluationResponse(
        evaluation_id=str(evaluation.id),
        transaction_id=evaluation.transaction_id,
        reference_date=evaluation.reference_date,
        subjects=evaluation.subjects,
        routing=evaluation.routing,
        created_at=evaluation.created_at.isoformat(),
    )
