"""Dependency injection for FastAPI endpoints"""

from fastapi import Request

from underwriting_gateway.config import settings
from underwriting_gateway.domain.policy import UnderwritingPolicy, build_policy
from underwriting_gateway.infrastructure.clients.escalation import EscalationClient
from underwriting_gateway.infrastructure.clients.vendor import BackgroundCheckClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_vendor_client() -> BackgroundCheckClient:
    """Provide background-check vendor client instance"""
    return BackgroundCheckClient()


def get_escalation_client() -> EscalationClient:
    """Provide escalation webhook client instance"""
    return EscalationClient()


def load_policy() -> UnderwritingPolicy:
    """
    Build the underwriting policy from settings.

    Called per request so that no classification runs against an unvalidated
    policy. Raises PolicyConfigurationError.
    """
    return build_policy(
        adverse_record_window_months=settings.adverse_record_window_months,
        foreclosure_window_months=settings.foreclosure_window_months,
        staleness_days=settings.staleness_days,
        dob_tolerance_years=settings.dob_tolerance_years,
        resolved_statuses=settings.resolved_statuses,
        mandatory_fields=settings.mandatory_fields,
        non_delegable_categories=settings.non_delegable_categories,
        hard_categories=settings.hard_categories,
    )
