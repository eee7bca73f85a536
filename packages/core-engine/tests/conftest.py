"""Shared pytest fixtures for EngageRisk tests."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from engagerisk_shared.types.enums import ContractType, Feedback, RiskLevel
from engagerisk_shared.types.models import AssessmentRecord

from engagerisk.config import EngageRiskConfig
from engagerisk.storage.assessment_store import AssessmentStore

# ─── Fixed Times ───────────────────────────────────────────────────────────────

# A Wednesday
BASE_TIME = datetime(2024, 3, 13, 10, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock returning aware datetimes."""

    def __init__(self, start: datetime = BASE_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_record(**overrides) -> AssessmentRecord:
    """Build an assessment record with sensible defaults."""
    data = {
        "timestamp": BASE_TIME,
        "email": "jane.doe@example.com",
        "country": "US",
        "contract_type": ContractType.INDEPENDENT,
        "contract_value_usd": 60_000,
        "data_processing": False,
        "score": 4,
        "level": RiskLevel.MEDIUM,
        "reasons": [
            "Stable jurisdiction with established frameworks",
            "Independent contractor classification requires careful documentation",
            "Moderate contract value requires standard compliance measures",
        ],
    }
    data.update(overrides)
    return AssessmentRecord(**data)


# ─── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep user-level environment settings out of tests."""
    monkeypatch.delenv("ENGAGERISK_CONFIG", raising=False)
    monkeypatch.delenv("ENGAGERISK_WEBHOOK_URL", raising=False)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(tmp_path: Path) -> AssessmentStore:
    """Assessment store backed by a temporary database."""
    return AssessmentStore(db_path=tmp_path / "assessments.db")


@pytest.fixture
def config(tmp_path: Path) -> EngageRiskConfig:
    """Config pointing storage at a temporary database."""
    return EngageRiskConfig({"storage": {"db_path": str(tmp_path / "assessments.db")}})


@pytest.fixture
def valid_form() -> dict:
    """Raw form data that passes validation."""
    return {
        "email": "jane.doe@example.com",
        "country": "us",
        "contract_type": "independent",
        "contract_value_usd": 60_000,
        "data_processing": False,
        "consent": True,
    }


@pytest.fixture
def sample_records() -> list[AssessmentRecord]:
    """A small mixed history spread over two days."""
    return [
        make_record(
            email="a@example.com",
            country="US",
            score=2,
            level=RiskLevel.LOW,
            time_to_result_ms=10_000,
            downloaded_pdf=True,
            feedback=Feedback.YES,
        ),
        make_record(
            email="A@Example.com",
            country="DE",
            contract_type=ContractType.EOR,
            score=5,
            level=RiskLevel.MEDIUM,
            time_to_result_ms=45_000,
            feedback=Feedback.NO,
        ),
        make_record(
            timestamp=BASE_TIME + timedelta(days=1),
            email="b@example.com",
            country="IR",
            contract_value_usd=300_000,
            score=14,
            level=RiskLevel.HIGH,
            time_to_result_ms=150_000,
            downloaded_pdf=True,
        ),
        make_record(
            timestamp=BASE_TIME + timedelta(days=1, hours=2),
            email="c@example.com",
            country="US",
            contract_type=ContractType.AGENCY,
            score=3,
            level=RiskLevel.LOW,
        ),
    ]
