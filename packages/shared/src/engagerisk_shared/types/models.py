"""Shared Pydantic models for EngageRisk."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from engagerisk_shared.types.enums import ContractType, Feedback, Industry, RiskLevel

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class EngagementInput(BaseModel):
    """Attributes of a contractor engagement, as consumed by the risk engine.

    Unrecognised contract types become ``ContractType.UNKNOWN`` and
    unrecognised industries become ``None``; neither is rejected.
    Optional attributes left as ``None`` contribute no risk.
    """

    model_config = ConfigDict(frozen=True)

    country: str = Field(default="", description="Country code, treated as an opaque key")
    contract_type: ContractType = Field(default=ContractType.UNKNOWN, description="Engagement classification")
    contract_value: float = Field(default=0.0, description="Contract value in USD")
    data_processing: bool = Field(default=False, description="Engagement handles personal data")
    industry: Optional[Industry] = Field(default=None, description="Industry sector")
    contract_duration_months: Optional[int] = Field(default=None, description="Contract duration in months")
    has_intellectual_property: Optional[bool] = Field(default=None)
    involves_financial_data: Optional[bool] = Field(default=None)
    requires_security_clearance: Optional[bool] = Field(default=None)
    is_public_sector: Optional[bool] = Field(default=None)

    @field_validator("country", mode="before")
    @classmethod
    def _normalize_country(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip().upper()

    @field_validator("contract_type", mode="before")
    @classmethod
    def _coerce_contract_type(cls, value: Any) -> ContractType:
        return ContractType.parse(value)

    @field_validator("industry", mode="before")
    @classmethod
    def _coerce_industry(cls, value: Any) -> Optional[Industry]:
        return Industry.parse(value)


class RiskResult(BaseModel):
    """Score, level and ordered justification for one engagement."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(description="Clamped risk score (0-15)")
    level: RiskLevel = Field(description="Risk level derived from the score")
    reasons: tuple[str, ...] = Field(description="Ordered, deduplicated reasons")

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level.value,
            "reasons": list(self.reasons),
        }


class FormSubmission(BaseModel):
    """A submitted assessment form.

    This is the validation layer in front of the engine: anything that
    gets past it is structurally well-formed ``EngagementInput``.
    """

    email: str = Field(description="Submitter email address")
    country: str = Field(min_length=1, description="Selected country code")
    contract_type: ContractType = Field(description="independent, agency or eor")
    contract_value_usd: float = Field(ge=0, description="Contract value in USD")
    data_processing: bool = Field(default=False)
    consent: bool = Field(default=False, description="Agreement to share inputs")
    industry: Optional[Industry] = None
    contract_duration_months: Optional[int] = Field(default=None, ge=0)
    has_intellectual_property: Optional[bool] = None
    involves_financial_data: Optional[bool] = None
    requires_security_clearance: Optional[bool] = None
    is_public_sector: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        value = value.strip()
        if not _EMAIL_RE.match(value):
            raise ValueError("Please enter a valid email address")
        return value

    @field_validator("country")
    @classmethod
    def _validate_country(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("Please select a country")
        return value

    @field_validator("contract_type", mode="before")
    @classmethod
    def _validate_contract_type(cls, value: Any) -> ContractType:
        contract_type = ContractType.parse(value)
        if contract_type == ContractType.UNKNOWN:
            raise ValueError("Please select a contract type")
        return contract_type

    @field_validator("consent")
    @classmethod
    def _validate_consent(cls, value: bool) -> bool:
        if not value:
            raise ValueError("You must agree to share your inputs")
        return value

    def to_engagement(self) -> EngagementInput:
        """Build the engine input from the validated form."""
        return EngagementInput(
            country=self.country,
            contract_type=self.contract_type,
            contract_value=self.contract_value_usd,
            data_processing=self.data_processing,
            industry=self.industry,
            contract_duration_months=self.contract_duration_months,
            has_intellectual_property=self.has_intellectual_property,
            involves_financial_data=self.involves_financial_data,
            requires_security_clearance=self.requires_security_clearance,
            is_public_sector=self.is_public_sector,
        )


class AssessmentRecord(BaseModel):
    """One persisted submission with its scoring result and usage metadata."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=_utcnow)
    email: str
    country: str
    contract_type: ContractType
    contract_value_usd: float
    data_processing: bool
    score: int
    level: RiskLevel
    time_to_result_ms: Optional[int] = None
    downloaded_pdf: bool = False
    feedback: Optional[Feedback] = None
    user_agent: str = ""
    ip_last_octet: str = ""
    reasons: list[str] = Field(default_factory=list)

    @property
    def result(self) -> RiskResult:
        return RiskResult(score=self.score, level=self.level, reasons=tuple(self.reasons))


# ─── Analytics ──────────────────────────────────────────────────────────────────


class TimeDistribution(BaseModel):
    """Time-to-result histogram, in seconds."""

    under_15s: int = 0
    from_15_to_30s: int = 0
    from_30_to_60s: int = 0
    from_60_to_120s: int = 0
    over_120s: int = 0


class FeedbackDistribution(BaseModel):
    useful: int = 0
    not_useful: int = 0
    no_response: int = 0


class AdminAggregates(BaseModel):
    """Dashboard statistics over all stored assessments."""

    total_users: int = 0
    total_submissions: int = 0
    avg_time_to_result: float = Field(default=0.0, description="Average seconds to result")
    avg_score: float = 0.0
    pdf_download_rate: int = Field(default=0, description="Percent of submissions with a report download")
    feedback_useful_rate: int = Field(default=0, description="Percent of answered feedback that was 'yes'")
    time_distribution: TimeDistribution = Field(default_factory=TimeDistribution)
    feedback_distribution: FeedbackDistribution = Field(default_factory=FeedbackDistribution)
    level_distribution: dict[str, int] = Field(
        default_factory=lambda: {level.value: 0 for level in RiskLevel}
    )


class Dataset(BaseModel):
    label: str
    data: list[float] = Field(default_factory=list)


class TimeSeries(BaseModel):
    """Chart-ready series: one label per period, one dataset per line."""

    metric: str
    period: str
    labels: list[str] = Field(default_factory=list)
    datasets: list[Dataset] = Field(default_factory=list)


class Insight(BaseModel):
    type: str
    message: str


class TrendAnalysis(BaseModel):
    analysis_type: str
    trends: list[dict[str, Any]] = Field(default_factory=list)
    insights: list[Insight] = Field(default_factory=list)
