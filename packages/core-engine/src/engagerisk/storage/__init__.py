"""Assessment persistence for EngageRisk."""

from engagerisk.storage.assessment_store import UPDATABLE_FIELDS, AssessmentStore

__all__ = ["AssessmentStore", "UPDATABLE_FIELDS"]
