"""
EngageRisk Shared: common types and constants for EngageRisk.
"""

from engagerisk_shared.types.enums import ContractType, CountryTier, Feedback, Industry, RiskLevel
from engagerisk_shared.types.models import (
    AdminAggregates,
    AssessmentRecord,
    EngagementInput,
    FormSubmission,
    RiskResult,
)
from engagerisk_shared.constants.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_CONFIG,
    EXIT_GENERAL_ERROR,
    EXIT_SUCCESS,
    MAX_REASONS,
    MAX_SCORE,
    MIN_REASONS,
)

__version__ = "0.1.0"

__all__ = [
    # Enums
    "ContractType",
    "CountryTier",
    "Feedback",
    "Industry",
    "RiskLevel",
    # Models
    "AdminAggregates",
    "AssessmentRecord",
    "EngagementInput",
    "FormSubmission",
    "RiskResult",
    # Constants
    "CONFIG_FILE_NAME",
    "DEFAULT_CONFIG",
    "EXIT_SUCCESS",
    "EXIT_GENERAL_ERROR",
    "MAX_REASONS",
    "MAX_SCORE",
    "MIN_REASONS",
]
