"""Rule tables for the EngageRisk scoring engine.

A ``RuleSet`` bundles every table the engine consults. It is frozen and
its mappings are read-only, so a single instance can be shared by any
number of engines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from engagerisk_shared.constants import constants as c
from engagerisk_shared.types.enums import ContractType, CountryTier, Industry


REQUIRED_FLAG_RULES = frozenset({
    "regulated_data",
    "regulated_financial",
    "independent_high_value",
    "intellectual_property",
    "financial_data",
    "security_clearance",
    "public_sector",
    "compound_independent_ip",
    "compound_regulated_financial",
})

# Jurisdiction and contract type always contribute one reason each
_BASE_REASONS = 2


def _frozen(mapping: dict) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class RuleSet:
    """Static configuration for the additive point system."""

    country_tiers: Mapping[CountryTier, frozenset[str]]
    tier_points: Mapping[CountryTier, int]
    tier_reasons: Mapping[CountryTier, str]
    regulated_bloc: frozenset[str]
    contract_type_points: Mapping[ContractType, int]
    contract_type_reasons: Mapping[ContractType, str]
    value_tiers: tuple[tuple[float, int, str], ...]
    industry_factors: Mapping[Industry, tuple[float, str]]
    duration_tiers: tuple[tuple[int, int, str], ...]
    flag_rules: Mapping[str, tuple[int, str]]
    independent_high_value_threshold: float = c.INDEPENDENT_HIGH_VALUE_THRESHOLD
    compound_ip_value_threshold: float = c.COMPOUND_IP_VALUE_THRESHOLD
    max_score: int = c.MAX_SCORE
    min_reasons: int = c.MIN_REASONS
    max_reasons: int = c.MAX_REASONS
    # Padding, used in order until min_reasons is reached
    filler_reasons: tuple[str, ...] = c.FILLER_REASONS
    # Tier lookup order: first match wins
    tier_order: tuple[CountryTier, ...] = field(
        default=(
            CountryTier.VERY_LOW,
            CountryTier.LOW,
            CountryTier.MEDIUM,
            CountryTier.HIGH,
            CountryTier.VERY_HIGH,
        )
    )

    def __post_init__(self):
        missing = [ct for ct in ContractType if ct not in self.contract_type_points]
        if missing:
            raise ValueError(
                "Contract type table is missing entries for: "
                + ", ".join(ct.value for ct in missing)
            )
        if CountryTier.UNKNOWN not in self.tier_points:
            raise ValueError("Tier table needs a default entry for unknown countries")

        missing_flags = REQUIRED_FLAG_RULES - set(self.flag_rules)
        if missing_flags:
            raise ValueError(
                "Flag rule table is missing: " + ", ".join(sorted(missing_flags))
            )

        thresholds = [t[0] for t in self.value_tiers]
        if thresholds != sorted(thresholds):
            raise ValueError("Value tiers must be listed in ascending order")

        if self.min_reasons > self.max_reasons:
            raise ValueError("min_reasons cannot exceed max_reasons")

        fillers = set(self.filler_reasons)
        if fillers & (set(self.tier_reasons.values()) | set(self.contract_type_reasons.values())):
            raise ValueError("Filler reasons must differ from tier and contract type reasons")
        if self.min_reasons > _BASE_REASONS + len(fillers):
            raise ValueError(
                f"min_reasons={self.min_reasons} needs at least "
                f"{self.min_reasons - _BASE_REASONS} distinct filler reasons"
            )


def build_default_rules() -> RuleSet:
    """Build the canonical rule set from the shared constants."""
    return RuleSet(
        country_tiers=_frozen({
            tier: frozenset(codes) for tier, codes in c.COUNTRY_TIERS.items()
        }),
        tier_points=_frozen(c.TIER_POINTS),
        tier_reasons=_frozen(c.TIER_REASONS),
        regulated_bloc=frozenset(c.REGULATED_BLOC_COUNTRIES),
        contract_type_points=_frozen(c.CONTRACT_TYPE_POINTS),
        contract_type_reasons=_frozen(c.CONTRACT_TYPE_REASONS),
        value_tiers=tuple(c.VALUE_TIERS),
        industry_factors=_frozen(c.INDUSTRY_FACTORS),
        duration_tiers=tuple(sorted(c.DURATION_TIERS, reverse=True)),
        flag_rules=_frozen(c.FLAG_RULES),
    )


DEFAULT_RULES = build_default_rules()
