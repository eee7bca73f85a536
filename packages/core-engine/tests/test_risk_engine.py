"""Tests for the contractor-engagement risk engine."""

import dataclasses
import itertools

import pytest

from engagerisk_shared.constants.constants import (
    FILLER_REASON,
    FLAG_RULES,
    MAX_REASONS,
    MAX_SCORE,
    MIN_REASONS,
)
from engagerisk_shared.types.enums import ContractType, Industry, RiskLevel
from engagerisk_shared.types.models import EngagementInput

from engagerisk.scoring.risk_engine import RiskEngine, score_engagement
from engagerisk.scoring.rules import DEFAULT_RULES

COUNTRIES = ["CH", "US", "DE", "GB", "BR", "IR", "XX", ""]
CONTRACT_TYPES = ["independent", "agency", "eor", "freelance"]
VALUES = [0, 50_000, 50_001, 75_001, 100_001, 250_001, 1_000_000]


@pytest.fixture
def engine():
    return RiskEngine()


def _score(engine, **kwargs):
    return engine.score(EngagementInput(**kwargs))


class TestReferenceScenarios:
    """Known engagements and their expected results."""

    def test_us_independent_moderate_value(self, engine):
        result = _score(engine, country="US", contract_type="independent", contract_value=60_000)
        assert result.score == 4
        assert result.level == RiskLevel.MEDIUM
        assert result.reasons == (
            "Stable jurisdiction with established frameworks",
            "Independent contractor classification requires careful documentation",
            "Moderate contract value requires standard compliance measures",
        )

    def test_germany_eor_with_data_processing(self, engine):
        result = _score(
            engine,
            country="DE",
            contract_type="eor",
            contract_value=20_000,
            data_processing=True,
        )
        assert result.score == 2
        assert result.level == RiskLevel.LOW
        assert result.reasons == (
            "Stable jurisdiction with established frameworks",
            "GDPR compliance required for EU data processing",
            "Employer of Record structure provides compliance protection",
        )

    def test_iran_independent_very_high_value(self, engine):
        result = _score(engine, country="IR", contract_type="independent", contract_value=300_000)
        assert result.score == 14
        assert result.level == RiskLevel.HIGH
        assert result.reasons[0] == "High-risk jurisdiction with sanctions or instability concerns"
        assert "Very high contract value (>$250k) requires enhanced due diligence" in result.reasons
        assert "High-value independent contracts increase misclassification risk" in result.reasons

    def test_score_is_clamped_to_maximum(self, engine):
        result = _score(
            engine,
            country="IR",
            contract_type="independent",
            contract_value=300_000,
            involves_financial_data=True,
            requires_security_clearance=True,
        )
        assert result.score == MAX_SCORE
        assert result.level == RiskLevel.HIGH

    def test_score_is_clamped_to_zero(self, engine):
        """Very low tier plus EOR would be -1 before clamping."""
        result = _score(engine, country="CH", contract_type="eor")
        assert result.score == 0
        assert result.level == RiskLevel.LOW

    def test_module_level_helper_matches_engine(self, engine):
        engagement = EngagementInput(country="BR", contract_type="agency", contract_value=120_000)
        assert score_engagement(engagement) == engine.score(engagement)


class TestRuleContributions:
    """Individual rules, isolated against a neutral baseline."""

    def test_value_tiers_are_cumulative(self, engine):
        base = _score(engine, country="US", contract_type="agency").score
        assert _score(engine, country="US", contract_type="agency", contract_value=50_001).score == base + 1
        assert _score(engine, country="US", contract_type="agency", contract_value=100_001).score == base + 3
        assert _score(engine, country="US", contract_type="agency", contract_value=250_001).score == base + 6

    def test_value_tiers_report_only_highest_tier(self, engine):
        result = _score(engine, country="US", contract_type="agency", contract_value=150_000)
        value_reasons = [r for r in result.reasons if "contract value" in r]
        assert value_reasons == ["High contract value (>$100k) increases commercial exposure"]

    def test_value_thresholds_are_exclusive(self, engine):
        at = _score(engine, country="US", contract_type="agency", contract_value=50_000)
        above = _score(engine, country="US", contract_type="agency", contract_value=50_000.01)
        assert above.score == at.score + 1

    def test_independent_high_value_surcharge(self, engine):
        below = _score(engine, country="US", contract_type="independent", contract_value=75_000)
        above = _score(engine, country="US", contract_type="independent", contract_value=75_001)
        assert above.score == below.score + 1

    def test_regulated_data_requires_bloc_membership(self, engine):
        eu = _score(engine, country="FR", contract_type="agency", data_processing=True)
        non_eu = _score(engine, country="CH", contract_type="agency", data_processing=True)
        assert "GDPR compliance required for EU data processing" in eu.reasons
        assert "GDPR compliance required for EU data processing" not in non_eu.reasons

    def test_regulated_financial_compound(self, engine):
        """DE independent with personal and financial data: 1+2+1+2+2+1."""
        result = _score(
            engine,
            country="DE",
            contract_type="independent",
            contract_value=20_000,
            data_processing=True,
            involves_financial_data=True,
        )
        assert result.score == 9
        assert result.level == RiskLevel.HIGH

    def test_independent_ip_compound(self, engine):
        """US independent 150k with IP: 1+2+1+3+1+1."""
        result = _score(
            engine,
            country="US",
            contract_type="independent",
            contract_value=150_000,
            has_intellectual_property=True,
        )
        assert result.score == 9
        assert FLAG_RULES["compound_independent_ip"][1] in result.reasons

    @pytest.mark.parametrize(
        "field, points",
        [
            ("has_intellectual_property", 1),
            ("involves_financial_data", 2),
            ("requires_security_clearance", 3),
            ("is_public_sector", 1),
        ],
    )
    def test_flag_points(self, engine, field, points):
        base = _score(engine, country="US", contract_type="agency")
        flagged = _score(engine, country="US", contract_type="agency", **{field: True})
        assert flagged.score == base.score + points

    @pytest.mark.parametrize("months, points", [(6, 0), (12, 0), (13, 1), (24, 1), (25, 2)])
    def test_duration(self, engine, months, points):
        base = _score(engine, country="US", contract_type="agency")
        result = _score(engine, country="US", contract_type="agency", contract_duration_months=months)
        assert result.score == base.score + points


class TestIndustryMultiplier:
    """Industry factors scale the running score, never below it."""

    @pytest.mark.parametrize(
        "industry, expected",
        [
            ("finance", 6),      # 4 * 1.5
            ("defense", 7),      # 4 * 1.8 rounded half up
            ("gaming", 5),       # 4 * 1.2 = 4.8
            ("ecommerce", 4),
            ("saas", 4),         # below 1.0 does not reduce
            ("consulting", 4),
        ],
    )
    def test_multiplier(self, engine, industry, expected):
        result = _score(
            engine,
            country="US",
            contract_type="independent",
            contract_value=60_000,
            industry=industry,
        )
        assert result.score == expected

    def test_reason_recorded_even_without_points(self, engine):
        result = _score(engine, country="US", contract_type="independent", industry="consulting")
        assert "Professional consulting has standard compliance patterns" in result.reasons

    def test_unknown_industry_is_ignored(self, engine):
        engagement = EngagementInput(country="US", contract_type="independent", industry="mining")
        assert engagement.industry is None
        assert engine.score(engagement) == _score(engine, country="US", contract_type="independent")


class TestUnrecognisedInput:
    """Unknown values score conservatively instead of failing."""

    def test_unknown_country_uses_default_tier(self, engine):
        result = _score(engine, country="XX", contract_type="agency")
        assert result.score == 3
        assert result.reasons[0] == "Unknown jurisdiction requires research and due diligence"

    def test_country_code_is_normalized(self, engine):
        assert _score(engine, country=" de ", contract_type="agency") == _score(
            engine, country="DE", contract_type="agency"
        )

    def test_unknown_contract_type(self, engine):
        engagement = EngagementInput(country="US", contract_type="freelance")
        assert engagement.contract_type == ContractType.UNKNOWN
        assert engine.score(engagement).score == 3

    @pytest.mark.parametrize("value", [-5_000, float("nan")])
    def test_invalid_value_counts_as_zero(self, engine, value):
        assert _score(engine, country="US", contract_type="agency", contract_value=value) == _score(
            engine, country="US", contract_type="agency", contract_value=0
        )


class TestReasons:
    """Reason list consolidation."""

    def test_filler_reason_pads_to_minimum(self, engine):
        result = _score(engine, country="CH", contract_type="eor")
        assert result.reasons == (
            "Very low regulatory complexity jurisdiction",
            "Employer of Record structure provides compliance protection",
            FILLER_REASON,
        )

    def test_extra_fillers_pad_to_a_higher_minimum(self):
        rules = dataclasses.replace(
            DEFAULT_RULES,
            min_reasons=4,
            filler_reasons=(FILLER_REASON, "Annual classification audit recommended"),
        )
        result = _score(RiskEngine(rules), country="CH", contract_type="eor")
        assert len(result.reasons) == 4
        assert result.reasons[2:] == (FILLER_REASON, "Annual classification audit recommended")

    def test_reasons_are_truncated_in_order(self, engine):
        result = _score(
            engine,
            country="DE",
            contract_type="independent",
            contract_value=300_000,
            data_processing=True,
            industry=Industry.DEFENSE,
            contract_duration_months=36,
            has_intellectual_property=True,
            involves_financial_data=True,
            requires_security_clearance=True,
            is_public_sector=True,
        )
        assert len(result.reasons) == MAX_REASONS
        assert result.reasons[:3] == (
            "Stable jurisdiction with established frameworks",
            "GDPR compliance required for EU data processing",
            "Financial data in EU requires additional privacy safeguards",
        )

    def test_duplicate_reasons_collapse(self):
        country_reason = DEFAULT_RULES.tier_reasons[DEFAULT_RULES.tier_order[1]]
        flags = dict(DEFAULT_RULES.flag_rules)
        flags["public_sector"] = (1, country_reason)
        engine = RiskEngine(dataclasses.replace(DEFAULT_RULES, flag_rules=flags))

        result = engine.score(EngagementInput(country="US", contract_type="agency", is_public_sector=True))
        assert result.reasons.count(country_reason) == 1
        assert result.score == 3


class TestProperties:
    """Properties that hold over a grid of engagements."""

    @pytest.fixture
    def grid(self):
        return [
            EngagementInput(
                country=country,
                contract_type=ct,
                contract_value=value,
                data_processing=dp,
            )
            for country, ct, value, dp in itertools.product(COUNTRIES, CONTRACT_TYPES, VALUES, [False, True])
        ]

    def test_bounds_and_level_partition(self, engine, grid):
        for engagement in grid:
            result = engine.score(engagement)
            assert 0 <= result.score <= MAX_SCORE
            assert result.level == RiskLevel.from_score(result.score)
            assert MIN_REASONS <= len(result.reasons) <= MAX_REASONS
            assert len(set(result.reasons)) == len(result.reasons)

    def test_deterministic(self, engine, grid):
        assert engine.score_many(grid) == RiskEngine().score_many(grid)

    def test_monotonic_in_value(self, engine):
        for country, ct in itertools.product(COUNTRIES, CONTRACT_TYPES):
            scores = [
                _score(
                    engine,
                    country=country,
                    contract_type=ct,
                    contract_value=value,
                    industry="finance",
                    has_intellectual_property=True,
                ).score
                for value in VALUES
            ]
            assert scores == sorted(scores), (country, ct)

    def test_eor_never_scores_above_other_types(self, engine):
        for country, value, dp in itertools.product(COUNTRIES, VALUES, [False, True]):
            eor = _score(engine, country=country, contract_type="eor", contract_value=value, data_processing=dp)
            for other in ("independent", "agency"):
                alt = _score(engine, country=country, contract_type=other, contract_value=value, data_processing=dp)
                assert eor.score <= alt.score

    @pytest.mark.parametrize(
        "score, level",
        [(0, RiskLevel.LOW), (3, RiskLevel.LOW), (4, RiskLevel.MEDIUM), (8, RiskLevel.MEDIUM), (9, RiskLevel.HIGH), (15, RiskLevel.HIGH)],
    )
    def test_level_boundaries(self, score, level):
        assert RiskLevel.from_score(score) == level
