"""
BroadbandBoost - Eligibility Filters

Filter criteria value object and composable eligibility predicates.

Each rule of the eligibility predicate is a named Predicate over a Candidate;
predicates compose with & into an AllOf that reports the first rule a
candidate fails.
"""

import calendar
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

from broadband_boost.aggregators.device_aggregator import DeviceRollups
from broadband_boost.calculators.capacity_advisor import CapacityAdvisor, CapacityAssessment
from broadband_boost.errors import ValidationError
from broadband_boost.models.dimensions import Customer
from broadband_boost.utils.config import EligibilityPolicy


@dataclass(frozen=True)
class FilterCriteria:
    """
    Caller-supplied optional filters for an eligibility evaluation.

    offered_within_days replaces the default promotional cooldown with an
    inclusion window: only customers offered within the last N days match.
    """
    device_id: Optional[str] = None
    technology: Optional[str] = None
    min_usage_percentage: Optional[float] = None
    offered_within_days: Optional[int] = None
    min_current_speed_mbps: Optional[float] = None
    exact_speed_match: bool = False

    def __post_init__(self):
        """Validate field types and ranges."""
        _check_number("min_usage_percentage", self.min_usage_percentage, 0.0, 100.0)
        _check_number("min_current_speed_mbps", self.min_current_speed_mbps, 0.0, None)

        if self.offered_within_days is not None:
            if isinstance(self.offered_within_days, bool) or not isinstance(self.offered_within_days, int):
                raise ValidationError("offered_within_days", "must be an integer number of days")
            if self.offered_within_days < 1:
                raise ValidationError("offered_within_days", "must be at least 1")

        if not isinstance(self.exact_speed_match, bool):
            raise ValidationError("exact_speed_match", "must be a boolean")

    def validate(self, supported_technologies: Sequence[str]) -> None:
        """
        Validate policy-dependent fields.

        Args:
            supported_technologies: Technology allow-list

        Raises:
            ValidationError: If technology is outside the allow-list
        """
        if self.technology is not None and self.technology not in supported_technologies:
            raise ValidationError(
                "technology",
                f"'{self.technology}' is not one of {', '.join(supported_technologies)}"
            )

    def to_dict(self) -> dict:
        """Convert to dictionary for API consumption."""
        return {
            "device_id": self.device_id,
            "technology": self.technology,
            "min_usage_percentage": self.min_usage_percentage,
            "offered_within_days": self.offered_within_days,
            "min_current_speed_mbps": self.min_current_speed_mbps,
            "exact_speed_match": self.exact_speed_match
        }

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "FilterCriteria":
        """
        Create FilterCriteria from raw query parameters.

        Accepts both field names and the short query names used by the
        eligible-customers endpoint (min_usage, last_offer_days,
        current_speed). Blank values are treated as absent.

        Args:
            params: Raw parameter mapping (typically strings)

        Returns:
            FilterCriteria instance

        Raises:
            ValidationError: For non-numeric or out-of-range values
        """
        def pick(*names: str) -> Any:
            for name in names:
                value = params.get(name)
                if value is not None and not (isinstance(value, str) and value.strip() == ""):
                    return value.strip() if isinstance(value, str) else value
            return None

        return cls(
            device_id=pick("device_id"),
            technology=pick("technology"),
            min_usage_percentage=_parse_number(
                "min_usage_percentage", pick("min_usage_percentage", "min_usage")
            ),
            offered_within_days=_parse_days(pick("offered_within_days", "last_offer_days")),
            min_current_speed_mbps=_parse_number(
                "min_current_speed_mbps", pick("min_current_speed_mbps", "current_speed")
            ),
            exact_speed_match=_parse_flag(pick("exact_speed_match"))
        )


def _check_number(field_name: str, value: Any, low: Optional[float], high: Optional[float]) -> None:
    """Raise ValidationError unless value is None or a finite number in range."""
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field_name, "must be numeric")
    if math.isnan(value) or math.isinf(value):
        raise ValidationError(field_name, "must be a finite number")
    if low is not None and value < low:
        raise ValidationError(field_name, f"must be >= {low:g}")
    if high is not None and value > high:
        raise ValidationError(field_name, f"must be <= {high:g}")


def _parse_number(field_name: str, raw: Any) -> Optional[float]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValidationError(field_name, "must be numeric")
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise ValidationError(field_name, f"'{raw}' is not numeric") from None


def _parse_days(raw: Any) -> Optional[int]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValidationError("offered_within_days", "must be an integer number of days")
    try:
        return int(str(raw))
    except ValueError:
        raise ValidationError("offered_within_days", f"'{raw}' is not an integer") from None


def _parse_flag(raw: Any) -> bool:
    if raw is None:
        return False
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in ("true", "1", "yes"):
        return True
    if text in ("false", "0", "no"):
        return False
    raise ValidationError("exact_speed_match", f"'{raw}' is not a boolean")


def subtract_months(day: date, months: int) -> date:
    """
    Step a date back by calendar months, clamping to the last day of month.

    2025-08-31 minus 6 months is 2025-02-28.
    """
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


@dataclass(frozen=True)
class Candidate:
    """A customer joined with its device rollups and capacity assessment."""
    customer: Customer
    rollups: Optional[DeviceRollups]
    assessment: Optional[CapacityAssessment]


class Predicate:
    """
    Named boolean test over a Candidate.

    Predicates combine with & into an AllOf.
    """

    def __init__(self, name: str, test: Callable[[Candidate], bool]):
        self.name = name
        self._test = test

    def __call__(self, candidate: Candidate) -> bool:
        return bool(self._test(candidate))

    def __and__(self, other: "Predicate") -> "AllOf":
        return AllOf((self,)) & other

    def first_failure(self, candidate: Candidate) -> Optional[str]:
        """Name of this predicate if the candidate fails it, else None."""
        return None if self(candidate) else self.name

    def __repr__(self) -> str:
        return f"Predicate({self.name})"


class AllOf(Predicate):
    """Conjunction of predicates, evaluated in order with short-circuit."""

    def __init__(self, predicates: Tuple[Predicate, ...]):
        self.predicates = tuple(predicates)
        super().__init__(
            " & ".join(predicate.name for predicate in self.predicates),
            lambda candidate: self.first_failure(candidate) is None
        )

    def __and__(self, other: Predicate) -> "AllOf":
        others = other.predicates if isinstance(other, AllOf) else (other,)
        return AllOf(self.predicates + others)

    def first_failure(self, candidate: Candidate) -> Optional[str]:
        """Name of the first predicate the candidate fails, else None."""
        for predicate in self.predicates:
            failure = predicate.first_failure(candidate)
            if failure is not None:
                return failure
        return None

    def __repr__(self) -> str:
        return f"AllOf({', '.join(predicate.name for predicate in self.predicates)})"


# Customer rules

def account_active(active_status: str) -> Predicate:
    return Predicate(
        "account_active",
        lambda candidate: candidate.customer.account_status == active_status
    )


def technology_supported(technologies: Sequence[str]) -> Predicate:
    allowed = frozenset(technologies)
    return Predicate(
        "technology_supported",
        lambda candidate: candidate.customer.olt_technology in allowed
    )


def usage_above_floor(floor_pct: float) -> Predicate:
    return Predicate(
        "usage_above_floor",
        lambda candidate: candidate.customer.avg_usage_percentage > floor_pct
    )


def upgrade_cooldown_elapsed(cutoff: date) -> Predicate:
    """Never upgraded, or last upgraded strictly before cutoff."""
    def test(candidate: Candidate) -> bool:
        last_upgrade = candidate.customer.last_upgrade_date
        return last_upgrade is None or last_upgrade < cutoff
    return Predicate("upgrade_cooldown_elapsed", test)


def promo_cooldown_elapsed(cutoff: date) -> Predicate:
    """Never offered, or last offered strictly before cutoff."""
    def test(candidate: Candidate) -> bool:
        last_offer = candidate.customer.last_promo_offer_date
        return last_offer is None or last_offer < cutoff
    return Predicate("promo_cooldown_elapsed", test)


def offered_since(cutoff: date) -> Predicate:
    """Offered on or after cutoff."""
    def test(candidate: Candidate) -> bool:
        last_offer = candidate.customer.last_promo_offer_date
        return last_offer is not None and last_offer >= cutoff
    return Predicate("offered_within_window", test)


# Topology rules

def uplink_below_ceiling(ceiling_pct: float) -> Predicate:
    def test(candidate: Candidate) -> bool:
        uplink = candidate.rollups.uplink if candidate.rollups else None
        return uplink is not None and uplink.avg_utilization_pct < ceiling_pct
    return Predicate("uplink_below_ceiling", test)


def within_capacity_standard(advisor: CapacityAdvisor) -> Predicate:
    """Access rollup exists, its LAG type resolves, and it has headroom."""
    def test(candidate: Candidate) -> bool:
        access = candidate.rollups.access if candidate.rollups else None
        if access is None or candidate.assessment is None or candidate.assessment.excluded:
            return False
        return advisor.within_standard(access, candidate.assessment.standard)
    return Predicate("within_capacity_standard", test)


# Caller filters

def device_matches(device_id: str) -> Predicate:
    return Predicate("device_matches", lambda candidate: candidate.customer.device_id == device_id)


def technology_matches(technology: str) -> Predicate:
    return Predicate(
        "technology_matches",
        lambda candidate: candidate.customer.olt_technology == technology
    )


def usage_at_least(min_pct: float) -> Predicate:
    return Predicate(
        "usage_at_least",
        lambda candidate: candidate.customer.avg_usage_percentage >= min_pct
    )


def speed_at_least(min_mbps: float) -> Predicate:
    return Predicate(
        "speed_at_least",
        lambda candidate: candidate.customer.current_download_mbps >= min_mbps
    )


def speed_equals(mbps: float) -> Predicate:
    return Predicate(
        "speed_equals",
        lambda candidate: candidate.customer.current_download_mbps == mbps
    )


def build_eligibility_predicate(
    criteria: FilterCriteria,
    policy: EligibilityPolicy,
    advisor: CapacityAdvisor,
    today: date
) -> AllOf:
    """
    Assemble the full eligibility predicate for one evaluation.

    Args:
        criteria: Caller filters
        policy: Policy constants
        advisor: Capacity advisor bound to the batch's standards
        today: Evaluation date all cooldowns are measured from

    Returns:
        AllOf predicate; cheap customer rules come before topology rules
    """
    predicate = (
        account_active(policy.active_status)
        & technology_supported(policy.supported_technologies)
        & usage_above_floor(policy.usage_floor_pct)
        & upgrade_cooldown_elapsed(subtract_months(today, policy.upgrade_cooldown_months))
    )

    if criteria.offered_within_days is not None:
        predicate = predicate & offered_since(today - timedelta(days=criteria.offered_within_days))
    else:
        predicate = predicate & promo_cooldown_elapsed(
            subtract_months(today, policy.promo_cooldown_months)
        )

    if criteria.device_id is not None:
        predicate = predicate & device_matches(criteria.device_id)
    if criteria.technology is not None:
        predicate = predicate & technology_matches(criteria.technology)
    if criteria.min_usage_percentage is not None:
        predicate = predicate & usage_at_least(criteria.min_usage_percentage)
    if criteria.min_current_speed_mbps is not None:
        if criteria.exact_speed_match:
            predicate = predicate & speed_equals(criteria.min_current_speed_mbps)
        else:
            predicate = predicate & speed_at_least(criteria.min_current_speed_mbps)

    if policy.enforce_uplink_ceiling:
        predicate = predicate & uplink_below_ceiling(policy.uplink_ceiling_pct)

    return predicate & within_capacity_standard(advisor)
