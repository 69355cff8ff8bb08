"""Signal normalizer - turns a raw vendor record into a canonical RiskSignal"""

import math
import re
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from underwriting_gateway.domain.exceptions import MalformedInputError, MissingRequiredFieldError
from underwriting_gateway.domain.models import (
    AdverseRecord,
    AdverseRecordType,
    ComparisonDirection,
    FinancialRatio,
    IdentityFieldCheck,
    MismatchSeverity,
    RiskSignal,
    Staleness,
)
from underwriting_gateway.domain.policy import PolicyThresholds, StatusResolutionTable
from underwriting_gateway.utils.date_utils import days_between, months_between, parse_date

IDENTITY_FIELDS = ("full_name", "last4_ssn", "date_of_birth")

# background_check key -> record type
ADVERSE_CATEGORIES = {
    "liens": AdverseRecordType.LIEN,
    "judgments": AdverseRecordType.JUDGMENT,
    "bankruptcies": AdverseRecordType.BANKRUPTCY,
    "foreclosures": AdverseRecordType.FORECLOSURE,
}

# Any of these may carry the occurrence date; the most recent one wins
OCCURRENCE_DATE_KEYS = ("date", "recorded_date", "filing_date", "discharge_date")
RECENCY_KEYS = ("recency_months", "months_since_latest")

_NAME_PUNCTUATION = re.compile(r"[^\w\s]")


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _lookup(record: Mapping[str, Any], dotted: str) -> Any:
    current: Any = record
    for part in dotted.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def _parse_date_field(value: Any, field_name: str) -> date:
    try:
        return parse_date(value)
    except ValueError as e:
        raise MalformedInputError(f"{field_name}: {e}") from e


def _parse_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise MalformedInputError(f"{field_name}: expected a number, got a boolean")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise MalformedInputError(f"{field_name}: expected a number, got {value!r}") from e
    if not math.isfinite(number):
        raise MalformedInputError(f"{field_name}: expected a finite number, got {value!r}")
    return number


def _fold_name(name: str) -> List[str]:
    return _NAME_PUNCTUATION.sub(" ", name).lower().split()


def compare_name(vendor: str, record: str) -> MismatchSeverity:
    """Exact after folding -> none; same surname and first initial -> minor; else major"""
    vendor_tokens = _fold_name(vendor)
    record_tokens = _fold_name(record)
    if not vendor_tokens or not record_tokens:
        return MismatchSeverity.MAJOR
    if vendor_tokens == record_tokens:
        return MismatchSeverity.NONE
    if (
        vendor_tokens[-1] == record_tokens[-1]
        and vendor_tokens[0][0] == record_tokens[0][0]
    ):
        return MismatchSeverity.MINOR
    return MismatchSeverity.MAJOR


def _is_missing_identity(field_name: str, value: Any) -> bool:
    # A name with nothing left after folding (".", "--") carries no identity
    if field_name == "full_name" and not _is_missing(value):
        return not _fold_name(str(value))
    return _is_missing(value)


def compare_ssn(vendor: Any, record: Any) -> MismatchSeverity:
    vendor_digits = re.sub(r"\D", "", str(vendor))[-4:]
    record_digits = re.sub(r"\D", "", str(record))[-4:]
    if len(vendor_digits) == 4 and vendor_digits == record_digits:
        return MismatchSeverity.NONE
    return MismatchSeverity.MAJOR


def compare_dob(vendor: date, record: date, tolerance_years: int) -> MismatchSeverity:
    if vendor == record:
        return MismatchSeverity.NONE
    if abs(vendor.year - record.year) <= tolerance_years:
        return MismatchSeverity.MINOR
    return MismatchSeverity.MAJOR


def check_identity(
    extracted: Optional[Mapping[str, Any]],
    system_of_record: Optional[Mapping[str, Any]],
    dob_tolerance_years: int,
) -> Tuple[Tuple[IdentityFieldCheck, ...], Tuple[str, ...]]:
    """
    Compare name, last-4 SSN and DOB between vendor extract and system of record.

    A field missing on either side is a major mismatch for that field and is
    reported in the returned missing-field list; it is never treated as a match.
    """
    extracted = extracted or {}
    system_of_record = system_of_record or {}
    checks: List[IdentityFieldCheck] = []
    missing: List[str] = []

    for field_name in IDENTITY_FIELDS:
        vendor_value = extracted.get(field_name)
        record_value = system_of_record.get(field_name)
        vendor_missing = _is_missing_identity(field_name, vendor_value)
        if vendor_missing or _is_missing_identity(field_name, record_value):
            missing.append(field_name)
            side = "vendor report" if vendor_missing else "system of record"
            checks.append(IdentityFieldCheck(field_name, MismatchSeverity.MAJOR, f"missing from {side}"))
            continue

        if field_name == "full_name":
            severity = compare_name(str(vendor_value), str(record_value))
        elif field_name == "last4_ssn":
            severity = compare_ssn(vendor_value, record_value)
        else:
            vendor_dob = _parse_date_field(vendor_value, "extracted.date_of_birth")
            record_dob = _parse_date_field(record_value, "system_of_record.date_of_birth")
            severity = compare_dob(vendor_dob, record_dob, dob_tolerance_years)

        detail = "match" if severity is MismatchSeverity.NONE else f"{severity.value} mismatch"
        checks.append(IdentityFieldCheck(field_name, severity, detail))

    return tuple(checks), tuple(missing)


def _recency_months(item: Mapping[str, Any], reference_date: date, field_name: str) -> int:
    for key in RECENCY_KEYS:
        if key in item and item[key] is not None:
            months = _parse_number(item[key], f"{field_name}.{key}")
            if months < 0 or months != int(months):
                raise MalformedInputError(f"{field_name}.{key}: must be a non-negative whole number")
            return int(months)

    dates = [
        _parse_date_field(item[key], f"{field_name}.{key}")
        for key in OCCURRENCE_DATE_KEYS
        if not _is_missing(item.get(key))
    ]
    if not dates:
        raise MissingRequiredFieldError(f"{field_name}.date")

    latest = max(dates)
    if latest > reference_date:
        raise MalformedInputError(
            f"{field_name}: occurrence {latest.isoformat()} is after reference date {reference_date.isoformat()}"
        )
    return months_between(latest, reference_date)


def _category_items(value: Any, field_name: str) -> Sequence[Mapping[str, Any]]:
    if value is None:
        return []
    if isinstance(value, Mapping):
        value = value.get("items", [])
    if not isinstance(value, (list, tuple)):
        raise MalformedInputError(f"{field_name}: expected a list of records")
    for i, item in enumerate(value):
        if not isinstance(item, Mapping):
            raise MalformedInputError(f"{field_name}[{i}]: expected an object")
    return value


def extract_adverse_records(
    background_check: Mapping[str, Any],
    reference_date: date,
    status_table: StatusResolutionTable,
) -> Tuple[AdverseRecord, ...]:
    records: List[AdverseRecord] = []
    for key, record_type in ADVERSE_CATEGORIES.items():
        items = _category_items(background_check.get(key), f"background_check.{key}")
        for i, item in enumerate(items):
            field_name = f"background_check.{key}[{i}]"
            status = item.get("status")
            if status is not None and not isinstance(status, str):
                raise MalformedInputError(f"{field_name}.status: expected a string")
            resolved = status_table.resolve(status)
            records.append(
                AdverseRecord(
                    type=record_type,
                    recency_months=_recency_months(item, reference_date, field_name),
                    is_satisfied_or_aged=bool(resolved),
                    status=status,
                    unclear_disposition=resolved is None,
                )
            )
    return tuple(records)


def compute_staleness(report_type: str, report_date: date, reference_date: date, thresholds: PolicyThresholds) -> Staleness:
    age = days_between(report_date, reference_date)
    if age < 0:
        raise MalformedInputError(
            f"report_date {report_date.isoformat()} is after reference date {reference_date.isoformat()}"
        )
    if report_type not in thresholds.staleness_days:
        raise MalformedInputError(f"report_type: no staleness threshold for report type '{report_type}'")
    return Staleness(
        report_type=report_type,
        report_age_days=age,
        max_allowed_days=thresholds.max_report_age(report_type),
    )


def extract_financial_ratios(raw: Any) -> Tuple[FinancialRatio, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        raise MalformedInputError("financial_ratios: expected a list")

    ratios = []
    for i, item in enumerate(raw):
        field_name = f"financial_ratios[{i}]"
        if not isinstance(item, Mapping):
            raise MalformedInputError(f"{field_name}: expected an object")
        for key in ("name", "value", "threshold", "comparison"):
            if _is_missing(item.get(key)):
                raise MissingRequiredFieldError(f"{field_name}.{key}")
        try:
            direction = ComparisonDirection(str(item["comparison"]).lower())
        except ValueError as e:
            raise MalformedInputError(f"{field_name}.comparison: unknown direction {item['comparison']!r}") from e
        ratios.append(
            FinancialRatio(
                name=str(item["name"]),
                value=_parse_number(item["value"], f"{field_name}.value"),
                threshold=_parse_number(item["threshold"], f"{field_name}.threshold"),
                comparison_direction=direction,
            )
        )
    return tuple(ratios)


def normalize(
    raw_record: Mapping[str, Any],
    thresholds: PolicyThresholds,
    status_table: StatusResolutionTable,
    reference_date: date,
    mandatory_fields: Sequence[str] = ("subject_id",),
) -> RiskSignal:
    """
    Normalize a raw identity/background-check vendor record into a RiskSignal.

    Expected shape:
        {
          "subject_id": "...",
          "report_type": "background_check",
          "report_date": "10/20/2025",
          "extracted": {"full_name", "last4_ssn", "date_of_birth"},
          "system_of_record": {"full_name", "last4_ssn", "date_of_birth"},
          "background_check": {"liens": [...], "judgments": [...], "bankruptcies": [...],
                               "foreclosures": [...], "unclear_disposition": false},
          "financial_ratios": [{"name", "value", "threshold", "comparison"}]
        }

    Raises:
        MissingRequiredFieldError: A policy-mandatory field is absent
        MalformedInputError: A field is present but unparsable or impossible,
            including a report type the policy has no staleness threshold for
    """
    if not isinstance(raw_record, Mapping):
        raise MalformedInputError("Vendor record must be an object")

    for field_name in mandatory_fields:
        if _is_missing(_lookup(raw_record, field_name)):
            raise MissingRequiredFieldError(field_name)

    subject_id = str(raw_record["subject_id"])

    background_check = raw_record.get("background_check") or {}
    if not isinstance(background_check, Mapping):
        raise MalformedInputError("background_check: expected an object")

    for side in ("extracted", "system_of_record"):
        if raw_record.get(side) is not None and not isinstance(raw_record[side], Mapping):
            raise MalformedInputError(f"{side}: expected an object")

    identity_checks, missing_identity = check_identity(
        raw_record.get("extracted"),
        raw_record.get("system_of_record"),
        thresholds.dob_tolerance_years,
    )
    worst = max((c.severity for c in identity_checks), key=lambda s: s.rank)

    adverse_records = extract_adverse_records(background_check, reference_date, status_table)
    foreclosure_within_window = any(
        r.type is AdverseRecordType.FORECLOSURE and r.recency_months <= thresholds.foreclosure_window_months
        for r in adverse_records
    )

    unclear_flag = background_check.get("unclear_disposition", False)
    if not isinstance(unclear_flag, bool):
        raise MalformedInputError("background_check.unclear_disposition: expected a boolean")
    unclear_disposition = unclear_flag or any(
        r.unclear_disposition for r in adverse_records if r.type is not AdverseRecordType.FORECLOSURE
    )

    report_type = raw_record.get("report_type")
    if _is_missing(report_type):
        raise MissingRequiredFieldError("report_type")
    report_date_raw = raw_record.get("report_date")
    if _is_missing(report_date_raw):
        raise MissingRequiredFieldError("report_date")
    staleness = compute_staleness(
        str(report_type),
        _parse_date_field(report_date_raw, "report_date"),
        reference_date,
        thresholds,
    )

    return RiskSignal(
        subject_id=subject_id,
        identity_checks=identity_checks,
        identity_mismatch=worst is MismatchSeverity.MAJOR,
        identity_mismatch_severity=worst,
        missing_identity_fields=missing_identity,
        adverse_records=adverse_records,
        foreclosure_within_window=foreclosure_within_window,
        unclear_disposition=unclear_disposition,
        staleness=staleness,
        financial_ratios=extract_financial_ratios(raw_record.get("financial_ratios")),
    )


def summarize_signal(signal: RiskSignal) -> Dict[str, Any]:
    """Flatten a RiskSignal for logging and persistence"""
    return {
        "identity_mismatch": signal.identity_mismatch,
        "identity_mismatch_severity": signal.identity_mismatch_severity.value,
        "missing_identity_fields": list(signal.missing_identity_fields),
        "identity_checks": {c.field: c.severity.value for c in signal.identity_checks},
        "adverse_records": [
            {
                "type": r.type.value,
                "recency_months": r.recency_months,
                "is_satisfied_or_aged": r.is_satisfied_or_aged,
                "status": r.status,
            }
            for r in signal.adverse_records
        ],
        "foreclosure_within_window": signal.foreclosure_within_window,
        "unclear_disposition": signal.unclear_disposition,
        "staleness": {
            "report_type": signal.staleness.report_type,
            "report_age_days": signal.staleness.report_age_days,
            "max_allowed_days": signal.staleness.max_allowed_days,
            "is_stale": signal.staleness.is_stale,
        },
        "financial_ratios": [
            {"name": r.name, "value": r.value, "threshold": r.threshold, "passes": r.passes}
            for r in signal.financial_ratios
        ],
    }
