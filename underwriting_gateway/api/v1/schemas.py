"""Pydantic schemas for API request/response validation"""

from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SubjectRecord(BaseModel):
    """
    Raw vendor record for one subject (guarantor or borrower).

    Values are kept loosely typed on purpose: parsing happens in the signal
    normalizer so a bad field fails that subject only, not the whole request.
    """

    model_config = ConfigDict(extra="allow")

    subject_id: Any = None
    report_type: Any = None
    report_date: Any = None
    extracted: Any = None
    system_of_record: Any = None
    background_check: Any = None
    financial_ratios: Any = None

    def to_raw(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class SubjectRef(BaseModel):
    """A subject to evaluate: either an inline vendor record, or an id to fetch from the vendor"""

    subject_id: Optional[str] = Field(None, min_length=1)
    record: Optional[SubjectRecord] = None

    @model_validator(mode="after")
    def require_id_or_record(self) -> "SubjectRef":
        if self.record is None:
            if not self.subject_id:
                raise ValueError("Either subject_id or record is required")
            return self

        if self.subject_id:
            record_id = self.record.subject_id
            if record_id is None:
                self.record.subject_id = self.subject_id
            elif str(record_id) != self.subject_id:
                raise ValueError(
                    f"subject_id '{self.subject_id}' does not match record subject_id '{record_id}'"
                )
        return self


class ExceptionSchema(BaseModel):
    """Exception raised by another review phase (title, fraud, insurance, ...)"""

    exception_id: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    severity: Literal["soft", "hard"]
    description: str = ""
    subject_id: Optional[str] = None
    status: Literal["pending", "approved", "denied", "waived", "escalated"] = "pending"


class DecisionRequest(BaseModel):
    """Request body for POST /v1/decision"""

    reference_date: date = Field(..., description="Transaction reference date, e.g. scheduled closing")
    record: SubjectRecord


class EvaluationRequest(BaseModel):
    """Request body for POST /v1/evaluations"""

    transaction_id: str = Field(..., min_length=1, description="Loan / transaction identifier")
    reference_date: date = Field(..., description="Transaction reference date, e.g. scheduled closing")
    subjects: List[SubjectRef] = Field(..., min_length=1)
    exceptions: List[ExceptionSchema] = Field(default_factory=list)


class SubjectResult(BaseModel):
    subject_id: str
    status: Literal["evaluated", "unable_to_evaluate"]
    outcome: Optional[Literal["pass", "manual_validation", "non_pass"]] = None
    reasons: List[str]
    requires_identity_manual_validation: bool
    error: Optional[str] = None
    error_type: Optional[str] = None
    signal: Optional[Dict[str, Any]] = None


class ExceptionCountSchema(BaseModel):
    soft: int
    hard: int


class RoutingSchema(BaseModel):
    required_authority: Literal["automated", "underwriter", "credit_committee", "executive"]
    authority_label: str
    can_ai_auto_approve: bool
    exception_count: ExceptionCountSchema
    non_delegable_reasons: List[str]
    reason: str
    exceptions: List[ExceptionSchema]


class DecisionResponse(SubjectResult):
    """Response for POST /v1/decision"""

    pass


class EvaluationResponse(BaseModel):
    """Response for POST /v1/evaluations and GET /v1/evaluations/{evaluation_id}"""

    evaluation_id: str
    transaction_id: str
    reference_date: date
    subjects: List[SubjectResult]
    routing: RoutingSchema
    created_at: Optional[str] = None


class HistoryItem(BaseModel):
    """Single evaluation in history"""

    evaluation_id: str
    required_authority: str
    can_ai_auto_approve: bool
    soft_exception_count: int
    hard_exception_count: int
    created_at: str


class HistoryResponse(BaseModel):
    """Response for GET /v1/evaluations/history"""

    transaction_id: str
    evaluations: List[HistoryItem]
