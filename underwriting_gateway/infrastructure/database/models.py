"""SQLAlchemy ORM models for the evaluation audit log"""

import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, JSON, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class UnderwritingEvaluation(Base):
    """One evaluation of a transaction; rows are append-only"""

    __tablename__ = "underwriting_evaluation"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    transaction_id = Column(Text, nullable=False, index=True)
    reference_date = Column(Date, nullable=False)
    required_authority = Column(Text, nullable=False)
    can_ai_auto_approve = Column(Boolean, nullable=False)
    soft_exception_count = Column(Integer, nullable=False, default=0)
    hard_exception_count = Column(Integer, nullable=False, default=0)
    routing = Column(JSON, nullable=False)
    subjects = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
