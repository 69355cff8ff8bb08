"""Vendor record builders shared by unit and integration tests"""

from datetime import date, timedelta
from typing import Any, Dict

REFERENCE_DATE = date(2025, 11, 15)


def make_record(
    subject_id: str = "john-doe",
    liens=None,
    judgments=None,
    bankruptcies=None,
    foreclosures=None,
    extracted: Dict[str, Any] | None = None,
    system_of_record: Dict[str, Any] | None = None,
    report_age_days: int = 20,
    **overrides: Any,
) -> Dict[str, Any]:
    """Background-check vendor record with matching identity and a clean history"""
    identity = {
        "full_name": "John Doe",
        "last4_ssn": "1234",
        "date_of_birth": "06/15/1985",
    }
    record = {
        "subject_id": subject_id,
        "report_type": "background_check",
        "report_date": (REFERENCE_DATE - timedelta(days=report_age_days)).strftime("%m/%d/%Y"),
        "extracted": extracted if extracted is not None else dict(identity),
        "system_of_record": system_of_record if system_of_record is not None else dict(identity),
        "background_check": {
            "liens": liens or [],
            "judgments": judgments or [],
            "bankruptcies": bankruptcies or [],
            "foreclosures": foreclosures or [],
            "unclear_disposition": False,
        },
    }
    record.update(overrides)
    return record


