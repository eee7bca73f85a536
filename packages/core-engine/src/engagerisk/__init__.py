"""EngageRisk: contractor-engagement compliance risk scoring."""

__version__ = "0.1.0"
