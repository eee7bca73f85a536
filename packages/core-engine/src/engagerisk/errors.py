"""Exceptions raised by the EngageRisk submission layer.

The scoring engine itself has no error conditions; these cover the
validation, rate limiting and lookup steps around it.
"""

from __future__ import annotations

from typing import Any


class EngageRiskError(Exception):
    """Base class for EngageRisk errors."""


class InvalidSubmission(EngageRiskError):
    """A form submission failed validation."""

    def __init__(self, errors: list[dict[str, Any]]):
        self.errors = errors
        fields = ", ".join(
            ".".join(str(part) for part in err.get("loc", ())) or "<form>"
            for err in errors
        )
        super().__init__(f"Invalid input data: {fields}")

    def messages(self) -> list[str]:
        """Human-readable message per failed field."""
        out = []
        for err in self.errors:
            loc = ".".join(str(part) for part in err.get("loc", ()))
            msg = err.get("msg", "invalid value")
            out.append(f"{loc}: {msg}" if loc else msg)
        return out


class RateLimitExceeded(EngageRiskError):
    """Too many submissions from one identifier inside the window."""

    def __init__(self, identifier: str, reset_at: float):
        self.identifier = identifier
        self.reset_at = reset_at
        super().__init__("Too many requests. Please try again later.")


class AssessmentNotFound(EngageRiskError):
    """No stored assessment has the requested id."""

    def __init__(self, assessment_id: str):
        self.assessment_id = assessment_id
        super().__init__(f"Assessment not found: {assessment_id}")
