"""High-risk alerting for EngageRisk."""

from engagerisk.notifications.alerts import HighRiskNotifier

__all__ = ["HighRiskNotifier"]
