"""Submission handling for EngageRisk."""

from engagerisk.service.assessment_service import AssessmentService

__all__ = ["AssessmentService"]
