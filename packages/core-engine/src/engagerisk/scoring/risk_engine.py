"""Contractor-engagement risk engine for EngageRisk.

Maps an engagement to a 0-15 risk score, a Low/Medium/High level and
an ordered list of reasons by summing rule contributions:
  - Jurisdiction tier
  - Regulated-bloc (EU/EEA/UK) data processing
  - Contract type (EOR is the only rule that subtracts)
  - Contract value tiers (cumulative)
  - Extended factors: industry, duration, IP, financial data,
    security clearance, public sector
  - Compound rules that fire only when several conditions hold

The engine is a pure function of its input and rule set. It never
raises for a well-formed ``EngagementInput``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from engagerisk_shared.types.enums import ContractType, RiskLevel
from engagerisk_shared.types.models import EngagementInput, RiskResult

from engagerisk.scoring.jurisdiction import JurisdictionClassifier
from engagerisk.scoring.rules import DEFAULT_RULES, RuleSet

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


@dataclass
class _Tally:
    """Running sum and reasons for one scoring call."""

    points: int = 0
    reasons: list[str] = field(default_factory=list)

    def add(self, points: int, reason: str) -> None:
        self.points += points
        self.reasons.append(reason)


class RiskEngine:
    """Deterministic rule evaluator for contractor engagements.

    The rule tables are fixed at construction; ``score`` keeps all of its
    working data local, so one engine can be shared freely.
    """

    def __init__(self, rules: RuleSet | None = None):
        self.rules = rules or DEFAULT_RULES
        self._jurisdictions = JurisdictionClassifier(self.rules)

    def score(self, engagement: EngagementInput) -> RiskResult:
        """Score a single engagement.

        Args:
            engagement: Engagement attributes. Absent optional fields
                contribute nothing.

        Returns:
            RiskResult with clamped score, level and consolidated reasons.
        """
        rules = self.rules
        flags = rules.flag_rules
        tally = _Tally()

        value = self._normalize_value(engagement.contract_value)
        contract_type = ContractType.parse(engagement.contract_type)
        financial = bool(engagement.involves_financial_data)
        has_ip = bool(engagement.has_intellectual_property)

        # ── Rule 1: Jurisdiction tier ──────────────────────────────────
        jurisdiction = self._jurisdictions.classify(engagement.country)
        tally.add(jurisdiction.points, jurisdiction.reason)

        # ── Rule 2: Regulated-bloc data processing ─────────────────────
        regulated_processing = jurisdiction.in_regulated_bloc and engagement.data_processing
        if regulated_processing:
            tally.add(*flags["regulated_data"])
            if financial:
                tally.add(*flags["regulated_financial"])

        # ── Rule 3: Contract type ──────────────────────────────────────
        tally.add(
            rules.contract_type_points[contract_type],
            rules.contract_type_reasons[contract_type],
        )
        if (
            contract_type == ContractType.INDEPENDENT
            and value > rules.independent_high_value_threshold
        ):
            tally.add(*flags["independent_high_value"])

        # ── Rule 4: Contract value tiers ───────────────────────────────
        self._apply_value_tiers(tally, value)

        # ── Rule 5: Extended factors ───────────────────────────────────
        self._apply_industry(tally, engagement)
        self._apply_duration(tally, engagement.contract_duration_months)

        if has_ip:
            tally.add(*flags["intellectual_property"])
        if financial:
            tally.add(*flags["financial_data"])
        if engagement.requires_security_clearance:
            tally.add(*flags["security_clearance"])
        if engagement.is_public_sector:
            tally.add(*flags["public_sector"])

        # ── Rule 6: Compound interactions ──────────────────────────────
        if (
            contract_type == ContractType.INDEPENDENT
            and value > rules.compound_ip_value_threshold
            and has_ip
        ):
            tally.add(*flags["compound_independent_ip"])

        if regulated_processing and financial:
            tally.add(*flags["compound_regulated_financial"])

        # ── Consolidation ──────────────────────────────────────────────
        score = max(0, min(rules.max_score, tally.points))
        level = RiskLevel.from_score(score)
        reasons = self._consolidate_reasons(tally.reasons)

        logger.debug(
            "Scored engagement country=%s type=%s value=%.0f: raw=%d score=%d level=%s",
            jurisdiction.country or "-",
            contract_type.value,
            value,
            tally.points,
            score,
            level.value,
        )

        return RiskResult(score=score, level=level, reasons=reasons)

    def score_many(self, engagements: list[EngagementInput]) -> list[RiskResult]:
        """Score several engagements, preserving input order."""
        return [self.score(e) for e in engagements]

    # ─── Rule helpers ─────────────────────────────────────────────────

    @staticmethod
    def _normalize_value(value: float) -> float:
        """Treat negative and NaN values as zero."""
        if value is None or math.isnan(value):
            return 0.0
        return max(float(value), 0.0)

    def _apply_value_tiers(self, tally: _Tally, value: float) -> None:
        """Add every value tier crossed; report only the highest one."""
        crossed = [tier for tier in self.rules.value_tiers if value > tier[0]]
        if not crossed:
            return
        points = sum(tier[1] for tier in crossed)
        tally.add(points, crossed[-1][2])

    def _apply_industry(self, tally: _Tally, engagement: EngagementInput) -> None:
        """Scale the running score by the industry multiplier.

        Multipliers below 1.0 never reduce the score; the industry
        reason is still recorded.
        """
        if engagement.industry is None:
            return
        factor = self.rules.industry_factors.get(engagement.industry)
        if factor is None:
            return

        multiplier, reason = factor
        extra = _round_half_up(tally.points * multiplier - tally.points)
        tally.add(max(0, extra), reason)

    def _apply_duration(self, tally: _Tally, months: int | None) -> None:
        if not months:
            return
        # duration_tiers is ordered longest first
        for threshold, points, reason in self.rules.duration_tiers:
            if months > threshold:
                tally.add(points, reason)
                return

    def _consolidate_reasons(self, reasons: list[str]) -> tuple[str, ...]:
        """Deduplicate, truncate, then pad up to the minimum count."""
        unique = list(dict.fromkeys(reasons))[: self.rules.max_reasons]
        for filler in self.rules.filler_reasons:
            if len(unique) >= self.rules.min_reasons:
                break
            if filler not in unique:
                unique.append(filler)
        return tuple(unique)


_default_engine = RiskEngine()


def score_engagement(engagement: EngagementInput) -> RiskResult:
    """Score an engagement with the default rule set."""
    return _default_engine.score(engagement)
