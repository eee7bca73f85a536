"""Shared enumerations for EngageRisk."""

from enum import Enum
from typing import Optional


class ContractType(str, Enum):
    """Engagement classifications accepted by the scoring engine."""

    INDEPENDENT = "independent"
    AGENCY = "agency"
    EOR = "eor"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> "ContractType":
        """Map a raw value onto a contract type, falling back to UNKNOWN."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


class Industry(str, Enum):
    """Industry sectors with a dedicated risk multiplier."""

    FINANCE = "finance"
    HEALTHCARE = "healthcare"
    DEFENSE = "defense"
    CRYPTO = "crypto"
    GAMING = "gaming"
    ECOMMERCE = "ecommerce"
    SAAS = "saas"
    CONSULTING = "consulting"

    @classmethod
    def parse(cls, value: object) -> Optional["Industry"]:
        """Map a raw value onto an industry, or None when unrecognised."""
        if value is None or isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class RiskLevel(str, Enum):
    """Discrete risk levels, a fixed partition of the score range."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def from_score(cls, score: int) -> "RiskLevel":
        """Determine the level from a clamped score (0-15 scale)."""
        from engagerisk_shared.constants.constants import LOW_MAX_SCORE, MEDIUM_MAX_SCORE

        if score <= LOW_MAX_SCORE:
            return cls.LOW
        elif score <= MEDIUM_MAX_SCORE:
            return cls.MEDIUM
        return cls.HIGH


class CountryTier(str, Enum):
    """Jurisdiction tiers, ordered from most to least permissive."""

    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"
    UNKNOWN = "unknown"


class Feedback(str, Enum):
    """User answer to "was this result useful?"."""

    YES = "yes"
    NO = "no"
