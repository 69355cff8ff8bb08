"""POST /v1/decision - single-subject TLO/background-check decision endpoint"""

import logging

from fastapi import APIRouter, HTTPException, Request

from underwriting_gateway.api.dependencies import get_request_id, load_policy
from underwriting_gateway.api.v1.schemas import DecisionRequest, DecisionResponse
from underwriting_gateway.domain.engine import UNABLE_TO_EVALUATE, evaluate_subject
from underwriting_gateway.domain.exceptions import (
    MalformedInputError,
    MissingRequiredFieldError,
    PolicyConfigurationError,
)
from underwriting_gateway.infrastructure.database.repositories import serialize_subject
from underwriting_gateway.infrastructure.observability.metrics import subject_outcome_counter, record_subject

router = APIRouter()


@router.post("/decision", response_model=DecisionResponse)
def create_decision(request_body: DecisionRequest, request: Request):
    """
    Classify one subject's vendor record.

    Returns the decision and a summary of the normalized signal. Nothing is
    persisted; use POST /v1/evaluations for a routed, audited transaction.
    """
    request_id = get_request_id(request)

    try:
        policy = load_policy()
        evaluation = evaluate_subject(request_body.record.to_raw(), policy, request_body.reference_date)

    except PolicyConfigurationError as e:
        logging.error(f"Policy configuration invalid: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Underwriting policy configuration invalid")

    except (MalformedInputError, MissingRequiredFieldError) as e:
        subject_outcome_counter.labels(outcome="unable_to_evaluate").inc()
        logging.warning(f"Subject could not be evaluated: {e}", extra={"request_id": request_id})
        raise HTTPException(
            status_code=422,
            detail={"message": UNABLE_TO_EVALUATE, "error": str(e), "error_type": type(e).__name__},
        )

    record_subject(evaluation)
    logging.info(
        "Subject decision completed",
        extra={
            "request_id": request_id,
            "subject_id": evaluation.subject_id,
            "step": "decision_complete",
            "outcome": evaluation.decision.outcome.value,
        },
    )
    return DecisionResponse(**serialize_subject(evaluation))
