"""Tests for the submission service."""

from unittest.mock import MagicMock

import pytest

from engagerisk_shared.types.enums import ContractType, Feedback, RiskLevel

from engagerisk.config import EngageRiskConfig
from engagerisk.errors import AssessmentNotFound, InvalidSubmission, RateLimitExceeded
from engagerisk.ratelimit import RateLimiter
from engagerisk.service.assessment_service import AssessmentService


@pytest.fixture
def service(config, store, clock):
    return AssessmentService(config=config, store=store, clock=clock)


class TestSubmit:
    """Test suite for form submission."""

    def test_valid_submission_is_scored_and_stored(self, service, store, valid_form):
        record = service.submit(valid_form, ip="203.0.113.42", user_agent="pytest")

        assert record.country == "US"
        assert record.contract_type == ContractType.INDEPENDENT
        assert record.score == 4
        assert record.level == RiskLevel.MEDIUM
        assert record.ip_last_octet == "42"
        assert record.user_agent == "pytest"
        assert len(record.reasons) >= 3
        assert store.get(record.id) == record

    def test_invalid_form_reports_every_field(self, service, store, valid_form):
        form = dict(valid_form, email="not-an-email", contract_value_usd=-1, consent=False)

        with pytest.raises(InvalidSubmission) as exc:
            service.submit(form)

        fields = {err["loc"][0] for err in exc.value.errors}
        assert fields == {"email", "contract_value_usd", "consent"}
        assert store.count() == 0

    def test_missing_contract_type_rejected(self, service, valid_form):
        with pytest.raises(InvalidSubmission) as exc:
            service.submit(dict(valid_form, contract_type="freelance"))
        assert any("contract type" in m for m in exc.value.messages())

    def test_blank_country_rejected(self, service, valid_form):
        with pytest.raises(InvalidSubmission):
            service.submit(dict(valid_form, country="   "))

    def test_rate_limited(self, config, store, clock, valid_form):
        limiter = RateLimiter(max_requests=2, window_seconds=60, clock=lambda: 0.0)
        service = AssessmentService(config=config, store=store, rate_limiter=limiter, clock=clock)

        service.submit(valid_form, ip="10.0.0.1")
        service.submit(valid_form, ip="10.0.0.1")
        with pytest.raises(RateLimitExceeded):
            service.submit(valid_form, ip="10.0.0.1")

        # Other clients are unaffected
        service.submit(valid_form, ip="10.0.0.2")
        assert store.count() == 3

    def test_rejected_forms_count_against_rate_limit(self, config, store, clock, valid_form):
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=lambda: 0.0)
        service = AssessmentService(config=config, store=store, rate_limiter=limiter, clock=clock)

        with pytest.raises(InvalidSubmission):
            service.submit(dict(valid_form, consent=False), ip="10.0.0.1")
        with pytest.raises(RateLimitExceeded):
            service.submit(valid_form, ip="10.0.0.1")

    def test_notifier_called_for_every_submission(self, config, store, clock, valid_form):
        notifier = MagicMock()
        service = AssessmentService(config=config, store=store, notifier=notifier, clock=clock)

        record = service.submit(valid_form)
        notifier.notify.assert_called_once_with(record)

    def test_notifier_not_created_when_disabled(self, service):
        assert service.notifier is None


class TestFollowUpEvents:
    """Test suite for result, report and feedback events."""

    def test_time_to_result(self, service, clock, valid_form):
        record = service.submit(valid_form)
        clock.advance(seconds=12, milliseconds=500)

        assert service.mark_result_ready(record.id) == 12_500
        assert service.get(record.id).time_to_result_ms == 12_500

    def test_time_to_result_recorded_once(self, service, clock, valid_form):
        record = service.submit(valid_form)
        clock.advance(seconds=3)
        service.mark_result_ready(record.id)
        clock.advance(seconds=30)

        assert service.mark_result_ready(record.id) == 3_000

    def test_feedback(self, service, valid_form):
        record = service.submit(valid_form)
        assert service.record_feedback(record.id, "no") == Feedback.NO
        assert service.get(record.id).feedback == Feedback.NO

    def test_invalid_feedback(self, service, valid_form):
        record = service.submit(valid_form)
        with pytest.raises(InvalidSubmission):
            service.record_feedback(record.id, "maybe")

    def test_render_report_counts_download(self, service, valid_form, tmp_path):
        record = service.submit(valid_form)
        output = tmp_path / "report.html"

        html = service.render_report(record.id, output_path=str(output))

        assert record.id in html
        assert record.id in output.read_text(encoding="utf-8")
        assert service.get(record.id).downloaded_pdf is True

    @pytest.mark.parametrize(
        "call",
        [
            lambda s: s.get("missing"),
            lambda s: s.mark_result_ready("missing"),
            lambda s: s.record_feedback("missing", "yes"),
            lambda s: s.render_report("missing"),
        ],
    )
    def test_unknown_assessment(self, service, call):
        with pytest.raises(AssessmentNotFound):
            call(service)


class TestAdminViews:
    """Test suite for admin passthroughs."""

    def test_aggregates_and_recent(self, service, valid_form):
        service.submit(valid_form)
        service.submit(dict(valid_form, email="other@example.com", country="IR", contract_value_usd=300_000))

        aggregates = service.aggregates()
        assert aggregates.total_submissions == 2
        assert aggregates.total_users == 2
        assert aggregates.level_distribution["High"] == 1

        assert len(service.recent(limit=1)) == 1

    def test_webhook_notifier_created_when_enabled(self, tmp_path):
        config = EngageRiskConfig({
            "storage": {"db_path": str(tmp_path / "a.db")},
            "notifications": {"enabled": True},
        })
        with AssessmentService(config=config) as service:
            assert service.notifier is not None
            assert service.notifier.active_channels == []
