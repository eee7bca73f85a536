"""Submission service for EngageRisk.

Coordinates the complete submission workflow:
1. Rate limiting per client address
2. Form validation
3. Risk scoring (pure engine call)
4. Persistence of the assessment record
5. High-risk notification

and the follow-up usage events (result shown, report downloaded,
feedback given).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from pydantic import ValidationError

from engagerisk_shared.types.enums import Feedback
from engagerisk_shared.types.models import AdminAggregates, AssessmentRecord, FormSubmission

from engagerisk.analytics.aggregates import compute_aggregates
from engagerisk.config import EngageRiskConfig, load_config
from engagerisk.errors import AssessmentNotFound, InvalidSubmission, RateLimitExceeded
from engagerisk.notifications.alerts import HighRiskNotifier
from engagerisk.privacy import last_ip_octet
from engagerisk.ratelimit import RateLimiter
from engagerisk.reporting.html_report import HTMLReportGenerator
from engagerisk.scoring.risk_engine import RiskEngine
from engagerisk.storage.assessment_store import AssessmentStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class AssessmentService:
    """Handles assessment submissions and their follow-up events."""

    def __init__(
        self,
        config: EngageRiskConfig | None = None,
        store: AssessmentStore | None = None,
        engine: RiskEngine | None = None,
        rate_limiter: RateLimiter | None = None,
        notifier: HighRiskNotifier | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.config = config or load_config()
        self.store = store or AssessmentStore(self.config.db_path)
        self.engine = engine or RiskEngine()
        self.rate_limiter = rate_limiter or RateLimiter(
            max_requests=self.config.rate_limit_max_requests,
            window_seconds=self.config.rate_limit_window_seconds,
            windows=self.store,
        )
        self._notifier = notifier
        self._clock = clock

    @property
    def notifier(self) -> Optional[HighRiskNotifier]:
        """Notifier, created on first use when notifications are enabled."""
        if self._notifier is None and self.config.notifications_enabled:
            self._notifier = HighRiskNotifier(config=self.config, windows=self.store)
        return self._notifier

    def close(self) -> None:
        if self._notifier is not None:
            self._notifier.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    # ─── Submission ───────────────────────────────────────────────────

    def submit(
        self,
        form: FormSubmission | dict[str, Any],
        ip: str = "unknown",
        user_agent: str = "",
    ) -> AssessmentRecord:
        """Validate, score and store a form submission.

        Args:
            form: Validated form, or raw form data to validate.
            ip: Client address, used for rate limiting and stored truncated.
            user_agent: Client user agent string.

        Returns:
            The stored AssessmentRecord.

        Raises:
            RateLimitExceeded: Too many submissions from ``ip``.
            InvalidSubmission: The form data failed validation.
        """
        limit = self.rate_limiter.check(ip)
        if not limit.allowed:
            raise RateLimitExceeded(ip, limit.reset_at)

        submission = self._validate(form)
        result = self.engine.score(submission.to_engagement())

        record = AssessmentRecord(
            timestamp=self._clock(),
            email=submission.email,
            country=submission.country,
            contract_type=submission.contract_type,
            contract_value_usd=submission.contract_value_usd,
            data_processing=submission.data_processing,
            score=result.score,
            level=result.level,
            user_agent=user_agent,
            ip_last_octet=last_ip_octet(ip),
            reasons=list(result.reasons),
        )
        self.store.append(record)

        logger.info(
            "Assessment %s stored: country=%s type=%s score=%d level=%s",
            record.id,
            record.country,
            record.contract_type.value,
            record.score,
            record.level.value,
        )

        notifier = self.notifier
        if notifier is not None:
            notifier.notify(record)

        return record

    def _validate(self, form: FormSubmission | dict[str, Any]) -> FormSubmission:
        if isinstance(form, FormSubmission):
            return form
        try:
            return FormSubmission.model_validate(form)
        except ValidationError as e:
            logger.info("Rejected submission with %d validation errors", e.error_count())
            raise InvalidSubmission(e.errors(include_url=False, include_context=False)) from e

    # ─── Follow-up events ─────────────────────────────────────────────

    def get(self, assessment_id: str) -> AssessmentRecord:
        """Fetch a stored assessment.

        Raises:
            AssessmentNotFound: If no assessment has this id.
        """
        record = self.store.get(assessment_id)
        if record is None:
            raise AssessmentNotFound(assessment_id)
        return record

    def mark_result_ready(self, assessment_id: str) -> int:
        """Record how long the user waited for the result.

        Only the first call counts; later calls return the stored value.

        Returns:
            Time to result in milliseconds.
        """
        record = self.get(assessment_id)
        if record.time_to_result_ms is not None:
            return record.time_to_result_ms

        elapsed = self._clock() - record.timestamp
        elapsed_ms = max(0, int(elapsed.total_seconds() * 1000))
        self.store.update(assessment_id, time_to_result_ms=elapsed_ms)
        return elapsed_ms

    def record_feedback(self, assessment_id: str, feedback: Feedback | str) -> Feedback:
        """Store the user's "was this useful?" answer.

        Raises:
            InvalidSubmission: If the answer is not "yes" or "no".
            AssessmentNotFound: If no assessment has this id.
        """
        try:
            answer = Feedback(feedback)
        except ValueError:
            raise InvalidSubmission(
                [{"loc": ("feedback",), "msg": "Feedback must be 'yes' or 'no'"}]
            ) from None

        if not self.store.update(assessment_id, feedback=answer):
            raise AssessmentNotFound(assessment_id)
        return answer

    def mark_pdf_downloaded(self, assessment_id: str) -> None:
        if not self.store.update(assessment_id, downloaded_pdf=True):
            raise AssessmentNotFound(assessment_id)

    def render_report(self, assessment_id: str, output_path: str | None = None) -> str:
        """Render the HTML report for an assessment and count the download.

        Returns:
            The HTML text.
        """
        record = self.get(assessment_id)
        generator = HTMLReportGenerator()
        html = generator.generate(record)

        if output_path:
            generator.generate_to_file(record, output_path)

        self.mark_pdf_downloaded(assessment_id)
        return html

    # ─── Admin ────────────────────────────────────────────────────────

    def aggregates(self) -> AdminAggregates:
        return compute_aggregates(self.store.all())

    def recent(self, limit: int = 20) -> list[AssessmentRecord]:
        return self.store.recent(limit)
