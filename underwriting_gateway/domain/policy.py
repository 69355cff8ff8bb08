"""
Underwriting policy configuration.

Thresholds, the vendor status-to-resolved table and the exception category
policy are supplied by the caller (see config.Settings). Nothing here falls
back to a built-in value: a missing or invalid setting raises
PolicyConfigurationError before any subject is classified.
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from underwriting_gateway.domain.exceptions import PolicyConfigurationError


@dataclass(frozen=True)
class PolicyThresholds:
    """Windows and limits used by the normalizer and classifier"""

    adverse_record_window_months: int
    foreclosure_window_months: int
    staleness_days: Mapping[str, int]  # report_type -> max allowed age in days
    dob_tolerance_years: int = 1

    def max_report_age(self, report_type: str) -> int:
        try:
            return self.staleness_days[report_type]
        except KeyError:
            raise PolicyConfigurationError(
                f"No staleness threshold configured for report type '{report_type}'"
            ) from None


class StatusResolutionTable:
    """
    Maps vendor disposition strings ("Satisfied", "Active", "Discharged", ...)
    to whether the adverse record counts as satisfied/aged.

    Lookups are case- and whitespace-insensitive. Unknown statuses resolve to
    None so the caller can record an unclear disposition.
    """

    def __init__(self, mapping: Mapping[str, bool]):
        self._mapping: Dict[str, bool] = {
            self._key(status): resolved for status, resolved in mapping.items()
        }

    @staticmethod
    def _key(status: str) -> str:
        return " ".join(status.split()).lower()

    def resolve(self, status: Optional[str]) -> Optional[bool]:
        if status is None:
            return None
        return self._mapping.get(self._key(status))

    def __len__(self) -> int:
        return len(self._mapping)


@dataclass(frozen=True)
class ExceptionCategoryPolicy:
    """Which exception categories are always hard, and which cannot be delegated"""

    non_delegable_categories: FrozenSet[str]
    hard_categories: FrozenSet[str] = frozenset()

    def is_non_delegable(self, category: str) -> bool:
        return category in self.non_delegable_categories

    def is_always_hard(self, category: str) -> bool:
        return category in self.hard_categories


@dataclass(frozen=True)
class UnderwritingPolicy:
    """Everything the pipeline needs, validated once per request"""

    thresholds: PolicyThresholds
    status_table: StatusResolutionTable
    exception_categories: ExceptionCategoryPolicy
    mandatory_fields: Tuple[str, ...]


def _positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise PolicyConfigurationError(f"{name} must be a positive integer, got {value!r}")
    return value


def _category_set(name: str, values: Any) -> FrozenSet[str]:
    if values is None or isinstance(values, str):
        raise PolicyConfigurationError(f"{name} must be a list of category names")
    categories = frozenset(values)
    if any(not isinstance(c, str) or not c.strip() for c in categories):
        raise PolicyConfigurationError(f"{name} contains an empty or non-string category")
    return categories


def build_policy(
    adverse_record_window_months: Any,
    foreclosure_window_months: Any,
    staleness_days: Any,
    dob_tolerance_years: Any,
    resolved_statuses: Any,
    mandatory_fields: Any,
    non_delegable_categories: Any,
    hard_categories: Any = (),
) -> UnderwritingPolicy:
    """
    Validate raw configuration values and assemble an UnderwritingPolicy.

    Raises:
        PolicyConfigurationError: If any value is missing or out of range
    """
    adverse_window = _positive_int("adverse_record_window_months", adverse_record_window_months)
    foreclosure_window = _positive_int("foreclosure_window_months", foreclosure_window_months)

    if dob_tolerance_years is None or isinstance(dob_tolerance_years, bool) \
            or not isinstance(dob_tolerance_years, int) or dob_tolerance_years < 0:
        raise PolicyConfigurationError(
            f"dob_tolerance_years must be a non-negative integer, got {dob_tolerance_years!r}"
        )

    if not isinstance(staleness_days, Mapping) or not staleness_days:
        raise PolicyConfigurationError("staleness_days must map at least one report type to a day limit")
    staleness = {
        str(report_type): _positive_int(f"staleness_days[{report_type}]", days)
        for report_type, days in staleness_days.items()
    }

    if not isinstance(resolved_statuses, Mapping) or not resolved_statuses:
        raise PolicyConfigurationError("resolved_statuses must be a non-empty status-to-resolved table")
    for status, resolved in resolved_statuses.items():
        if not isinstance(status, str) or not isinstance(resolved, bool):
            raise PolicyConfigurationError(f"Invalid status table entry: {status!r} -> {resolved!r}")

    if mandatory_fields is None or isinstance(mandatory_fields, str):
        raise PolicyConfigurationError("mandatory_fields must be a list of field names")
    mandatory = tuple(mandatory_fields)
    if "subject_id" not in mandatory:
        raise PolicyConfigurationError("mandatory_fields must include subject_id")

    non_delegable = _category_set("non_delegable_categories", non_delegable_categories)
    if not non_delegable:
        raise PolicyConfigurationError("non_delegable_categories must not be empty")

    return UnderwritingPolicy(
        thresholds=PolicyThresholds(
            adverse_record_window_months=adverse_window,
            foreclosure_window_months=foreclosure_window,
            staleness_days=staleness,
            dob_tolerance_years=dob_tolerance_years,
        ),
        status_table=StatusResolutionTable(resolved_statuses),
        exception_categories=ExceptionCategoryPolicy(
            non_delegable_categories=non_delegable,
            hard_categories=_category_set("hard_categories", hard_categories),
        ),
        mandatory_fields=mandatory,
    )
