"""Jurisdiction classifier for EngageRisk.

Places a country code in one of the risk tiers and reports the points
and reason that tier contributes. Codes that appear in no tier land in
the default tier, which scores like a moderate jurisdiction rather than
a safe one.
"""

from __future__ import annotations

from dataclasses import dataclass

from engagerisk_shared.types.enums import CountryTier

from engagerisk.scoring.rules import DEFAULT_RULES, RuleSet


@dataclass(frozen=True)
class JurisdictionAssessment:
    """Tier placement of a single country code."""

    country: str
    tier: CountryTier
    points: int
    reason: str
    in_regulated_bloc: bool

    @property
    def is_known(self) -> bool:
        return self.tier != CountryTier.UNKNOWN


class JurisdictionClassifier:
    """Classifies country codes against the tier membership lists."""

    def __init__(self, rules: RuleSet | None = None):
        self.rules = rules or DEFAULT_RULES

    def classify(self, country: str) -> JurisdictionAssessment:
        """Classify a country code.

        Args:
            country: Country code; compared upper-cased and stripped.

        Returns:
            JurisdictionAssessment for the first tier that lists the code,
            or for the default tier.
        """
        code = (country or "").strip().upper()
        tier = self._find_tier(code)
        return JurisdictionAssessment(
            country=code,
            tier=tier,
            points=self.rules.tier_points[tier],
            reason=self.rules.tier_reasons[tier],
            in_regulated_bloc=code in self.rules.regulated_bloc,
        )

    def _find_tier(self, code: str) -> CountryTier:
        for tier in self.rules.tier_order:
            if code in self.rules.country_tiers.get(tier, frozenset()):
                return tier
        return CountryTier.UNKNOWN
