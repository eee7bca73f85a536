"""Risk scoring module for EngageRisk."""

from engagerisk.scoring.jurisdiction import JurisdictionAssessment, JurisdictionClassifier
from engagerisk.scoring.risk_engine import RiskEngine, score_engagement
from engagerisk.scoring.rules import DEFAULT_RULES, RuleSet, build_default_rules

__all__ = [
    "DEFAULT_RULES",
    "JurisdictionAssessment",
    "JurisdictionClassifier",
    "RiskEngine",
    "RuleSet",
    "build_default_rules",
    "score_engagement",
]
