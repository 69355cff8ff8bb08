"""POST /v1/evaluations - transaction evaluation and approval-authority routing endpoint"""

import asyncio
import logging
import time

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from underwriting_gateway.api.dependencies import (
    get_escalation_client,
    get_request_id,
    get_vendor_client,
    load_policy,
)
from underwriting_gateway.api.v1.schemas import EvaluationRequest, EvaluationResponse
from underwriting_gateway.domain.engine import evaluate_transaction
from underwriting_gateway.domain.exceptions import PolicyConfigurationError, VendorAPIError
from underwriting_gateway.domain.models import ApprovalAuthority, ExceptionRecord, ExceptionSeverity
from underwriting_gateway.infrastructure.clients.escalation import EscalationClient
from underwriting_gateway.infrastructure.clients.vendor import BackgroundCheckClient
from underwriting_gateway.infrastructure.database.repositories import EvaluationRepository
from underwriting_gateway.infrastructure.database.session import get_db
from underwriting_gateway.infrastructure.observability.logging import log_evaluation
from underwriting_gateway.infrastructure.observability.metrics import record_evaluation, vendor_fetch_failures_counter

router = APIRouter()

ESCALATED_AUTHORITIES = {ApprovalAuthority.CREDIT_COMMITTEE, ApprovalAuthority.EXECUTIVE}


@router.post("/evaluations", response_model=EvaluationResponse)
async def create_evaluation(
    request_body: EvaluationRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    vendor_client: BackgroundCheckClient = Depends(get_vendor_client),
    escalation_client: EscalationClient = Depends(get_escalation_client),
):
    """
    Evaluate every subject of a transaction and route it to an approval authority.

    Flow:
    1. Validate the underwriting policy (fail fast before any classification)
    2. Fetch background-check reports for subjects given by id only
    3. Normalize and classify each subject; bad records fail that subject only
    4. Aggregate exceptions and determine required authority
    5. Persist the evaluation to the audit log
    6. Send async escalation webhook for committee/executive routing
    7. Return per-subject results and routing
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        # 1. Policy
        policy = load_policy()

        # 2. Vendor reports
        inline = [s.record.to_raw() if s.record is not None else None for s in request_body.subjects]
        to_fetch = [i for i, raw in enumerate(inline) if raw is None]
        fetched = await asyncio.gather(
            *(vendor_client.get_report(request_body.subjects[i].subject_id) for i in to_fetch)
        )
        for i, report in zip(to_fetch, fetched):
            inline[i] = report

        # 3-4. Evaluate and route
        registry = [
            ExceptionRecord(
                exception_id=e.exception_id,
                category=e.category,
                severity=ExceptionSeverity(e.severity),
                description=e.description,
                subject_id=e.subject_id,
                status=e.status,
            )
            for e in request_body.exceptions
        ]
        evaluation = evaluate_transaction(
            request_body.transaction_id,
            inline,
            policy,
            request_body.reference_date,
            registry,
        )
        routing = evaluation.routing

        # 5. Persist
        repo = EvaluationRepository(db)
        db_evaluation = repo.create_evaluation(evaluation, request_body.reference_date)
        db.commit()

        # 6. Escalate
        if routing.required_authority in ESCALATED_AUTHORITIES:
            background_tasks.add_task(
                escalation_client.send_escalation_event,
                {
                    "event": "UNDERWRITING_ESCALATION",
                    "evaluation_id": str(db_evaluation.id),
                    "transaction_id": request_body.transaction_id,
                    "required_authority": routing.required_authority.value,
                    "non_delegable_reasons": list(routing.non_delegable_reasons),
                    "soft_exceptions": routing.exception_count.soft,
                    "hard_exceptions": routing.exception_count.hard,
                },
            )

        # Record metrics and logs
        duration_ms = (time.time() - start_time) * 1000
        record_evaluation(evaluation.subjects, routing)
        log_evaluation(
            request_id,
            request_body.transaction_id,
            routing.required_authority.value,
            routing.can_ai_auto_approve,
            {
                s.subject_id: s.decision.outcome.value if s.evaluated else "unable_to_evaluate"
                for s in evaluation.subjects
            },
            duration_ms,
        )

        return EvaluationResponse(
            evaluation_id=str(db_evaluation.id),
            transaction_id=db_evaluation.transaction_id,
            reference_date=db_evaluation.reference_date,
            subjects=db_evaluation.subjects,
            routing=db_evaluation.routing,
        )

    except VendorAPIError as e:
        vendor_fetch_failures_counter.inc()
        db.rollback()
        logging.error(f"Vendor API error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Background-check vendor unavailable")

    except PolicyConfigurationError as e:
        db.rollback()
        logging.error(f"Policy configuration invalid: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Underwriting policy configuration invalid")

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
