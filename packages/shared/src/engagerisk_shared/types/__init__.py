"""Shared type definitions for EngageRisk."""

from engagerisk_shared.types.enums import ContractType, CountryTier, Feedback, Industry, RiskLevel
from engagerisk_shared.types.models import (
    AdminAggregates,
    AssessmentRecord,
    EngagementInput,
    FormSubmission,
    RiskResult,
    TimeSeries,
    TrendAnalysis,
)

__all__ = [
    "ContractType",
    "CountryTier",
    "Feedback",
    "Industry",
    "RiskLevel",
    "AdminAggregates",
    "AssessmentRecord",
    "EngagementInput",
    "FormSubmission",
    "RiskResult",
    "TimeSeries",
    "TrendAnalysis",
]
