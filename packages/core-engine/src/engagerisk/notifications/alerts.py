"""High-risk assessment alerts for EngageRisk.

Posts a Slack-style message to a webhook when an assessment scores at
or above the configured threshold. Alerts are capped per clock hour.
The hourly count is kept in a ``WindowStore`` so a shared store caps
alerts across processes.
A failed delivery is logged and never fails the submission.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import httpx

from engagerisk_shared.constants.constants import MAX_SCORE
from engagerisk_shared.types.enums import RiskLevel
from engagerisk_shared.types.models import AssessmentRecord

from engagerisk.config import EngageRiskConfig
from engagerisk.privacy import mask_email
from engagerisk.ratelimit import MemoryWindowStore, Window, WindowStore

logger = logging.getLogger(__name__)

_HOUR = 3600
_ALERT_WINDOW = "notifications:hourly"


class HighRiskNotifier:
    """Sends high-risk alerts to a webhook via httpx."""

    def __init__(
        self,
        config: EngageRiskConfig | None = None,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.time,
        windows: WindowStore | None = None,
    ):
        """Initialize the notifier.

        Args:
            config: Notification settings. Uses defaults if None.
            client: HTTP client to reuse; one is created if None.
            timeout: Request timeout in seconds.
            clock: Time source, seconds since the epoch.
            windows: Where the hourly alert count is kept. In memory if None.
        """
        config = config or EngageRiskConfig()
        self.enabled = config.notifications_enabled
        self.threshold = config.high_risk_threshold
        self.webhook_url = config.webhook_url
        self.rate_limit = config.notification_rate_limit
        self.include_details = config.include_alert_details
        self._client = client or httpx.Client(timeout=timeout)
        self._clock = clock
        self._windows = windows if windows is not None else MemoryWindowStore()

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    @property
    def active_channels(self) -> list[str]:
        return ["webhook"] if self.webhook_url else []

    # ─── Dispatch ─────────────────────────────────────────────────────────

    def notify(self, record: AssessmentRecord) -> bool:
        """Send an alert for the assessment if it qualifies.

        Returns:
            True if an alert was dispatched to the webhook.
        """
        if not self.enabled or record.score < self.threshold:
            return False

        if not self._within_rate_limit():
            logger.info("Notification rate limit exceeded, skipping alert for %s", record.id)
            return False

        logger.info(
            "High-risk alert: assessment=%s level=%s score=%d country=%s channels=%s",
            record.id,
            record.level.value,
            record.score,
            record.country,
            ",".join(self.active_channels) or "log-only",
        )

        if not self.webhook_url:
            return False

        return self._post_webhook(self.build_payload(record))

    def build_payload(self, record: AssessmentRecord) -> dict[str, Any]:
        """Build the Slack-style message body for an assessment."""
        fields = [
            {
                "title": "Risk Level",
                "value": f"{record.level.value} (Score: {record.score}/{MAX_SCORE})",
                "short": True,
            },
            {"title": "Country", "value": record.country, "short": True},
            {"title": "Contract Type", "value": record.contract_type.value.upper(), "short": True},
            {"title": "Contract Value", "value": f"${record.contract_value_usd:,.0f}", "short": True},
            {"title": "Timestamp", "value": record.timestamp.isoformat(), "short": False},
        ]
        if self.include_details:
            fields.append({"title": "Submitted By", "value": mask_email(record.email), "short": True})
            fields.append({
                "title": "Reasons",
                "value": "\n".join(f"• {r}" for r in record.reasons),
                "short": False,
            })

        return {
            "text": f"High Risk Assessment Alert ({record.id})",
            "attachments": [
                {
                    "color": "danger" if record.level == RiskLevel.HIGH else "warning",
                    "fields": fields,
                }
            ],
        }

    # ─── Internals ────────────────────────────────────────────────────────

    def _within_rate_limit(self) -> bool:
        now = self._clock()
        window = self._windows.get_window(_ALERT_WINDOW)
        if window is None or now >= window.reset_at:
            window = Window(count=0, reset_at=(now // _HOUR + 1) * _HOUR)

        if window.count >= self.rate_limit:
            return False

        self._windows.put_window(_ALERT_WINDOW, Window(count=window.count + 1, reset_at=window.reset_at))
        return True

    def _post_webhook(self, payload: dict[str, Any]) -> bool:
        try:
            response = self._client.post(self.webhook_url, json=payload)
            response.raise_for_status()
            return True
        except (httpx.RequestError, httpx.HTTPStatusError) as e:
            logger.warning("Failed to deliver high-risk alert: %s", e)
            return False
