"""Tests for rule tables and the jurisdiction classifier."""

import dataclasses

import pytest

from engagerisk_shared.types.enums import ContractType, CountryTier

from engagerisk.scoring.jurisdiction import JurisdictionClassifier
from engagerisk.scoring.rules import DEFAULT_RULES, build_default_rules


class TestRuleSet:
    """Test suite for RuleSet construction and validation."""

    def test_default_rules_are_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_RULES.tier_points[CountryTier.LOW] = 10
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_RULES.max_score = 20

    def test_build_is_repeatable(self):
        assert build_default_rules() == DEFAULT_RULES

    def test_duration_tiers_longest_first(self):
        thresholds = [t[0] for t in DEFAULT_RULES.duration_tiers]
        assert thresholds == sorted(thresholds, reverse=True)

    def test_missing_contract_type_rejected(self):
        points = dict(DEFAULT_RULES.contract_type_points)
        del points[ContractType.UNKNOWN]
        with pytest.raises(ValueError, match="unknown"):
            dataclasses.replace(DEFAULT_RULES, contract_type_points=points)

    def test_missing_default_tier_rejected(self):
        points = {k: v for k, v in DEFAULT_RULES.tier_points.items() if k != CountryTier.UNKNOWN}
        with pytest.raises(ValueError):
            dataclasses.replace(DEFAULT_RULES, tier_points=points)

    def test_missing_flag_rule_rejected(self):
        flags = dict(DEFAULT_RULES.flag_rules)
        del flags["public_sector"]
        with pytest.raises(ValueError, match="public_sector"):
            dataclasses.replace(DEFAULT_RULES, flag_rules=flags)

    def test_descending_value_tiers_rejected(self):
        with pytest.raises(ValueError, match="ascending"):
            dataclasses.replace(DEFAULT_RULES, value_tiers=tuple(reversed(DEFAULT_RULES.value_tiers)))

    def test_reason_bounds_rejected(self):
        with pytest.raises(ValueError):
            dataclasses.replace(DEFAULT_RULES, min_reasons=7, max_reasons=6)

    def test_minimum_beyond_available_fillers_rejected(self):
        with pytest.raises(ValueError, match="filler"):
            dataclasses.replace(DEFAULT_RULES, min_reasons=4)

    def test_filler_matching_a_base_reason_rejected(self):
        eor_reason = DEFAULT_RULES.contract_type_reasons[ContractType.EOR]
        with pytest.raises(ValueError, match="differ"):
            dataclasses.replace(DEFAULT_RULES, filler_reasons=(eor_reason,))


class TestJurisdictionClassifier:
    """Test suite for country tier placement."""

    @pytest.fixture
    def classifier(self):
        return JurisdictionClassifier()

    @pytest.mark.parametrize(
        "country, tier, points",
        [
            ("SG", CountryTier.VERY_LOW, 0),
            ("CA", CountryTier.LOW, 1),
            ("GB", CountryTier.MEDIUM, 2),
            ("IN", CountryTier.HIGH, 3),
            ("KP", CountryTier.VERY_HIGH, 5),
            ("JP", CountryTier.UNKNOWN, 2),
        ],
    )
    def test_tiers(self, classifier, country, tier, points):
        result = classifier.classify(country)
        assert result.tier == tier
        assert result.points == points

    def test_lowercase_and_whitespace(self, classifier):
        result = classifier.classify("  nz ")
        assert result.country == "NZ"
        assert result.tier == CountryTier.VERY_LOW

    def test_empty_country_is_unknown(self, classifier):
        result = classifier.classify("")
        assert not result.is_known
        assert result.reason == "Unknown jurisdiction requires research and due diligence"

    @pytest.mark.parametrize("country", ["DE", "FR", "GB", "NO", "IS", "PL"])
    def test_regulated_bloc(self, classifier, country):
        assert classifier.classify(country).in_regulated_bloc

    @pytest.mark.parametrize("country", ["CH", "US", "SG", "XX"])
    def test_outside_regulated_bloc(self, classifier, country):
        assert not classifier.classify(country).in_regulated_bloc

    def test_first_matching_tier_wins(self):
        tiers = dict(DEFAULT_RULES.country_tiers)
        tiers[CountryTier.VERY_HIGH] = tiers[CountryTier.VERY_HIGH] | {"US"}
        classifier = JurisdictionClassifier(dataclasses.replace(DEFAULT_RULES, country_tiers=tiers))
        assert classifier.classify("US").tier == CountryTier.LOW
