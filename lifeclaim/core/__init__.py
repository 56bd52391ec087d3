# Core module - states and models
from .states import DecisionKind, DocumentRole, PolicyStatus
from .models import (
    AdjudicationDecision,
    AdjudicationResult,
    ClaimantDetails,
    ClaimRecord,
    ClaimSubmission,
    DocumentUpload,
    ExtractedDocument,
    ExtractedDocumentSet,
    IngestionResult,
    Outcome,
    Policy,
)

__all__ = [
    "DecisionKind",
    "DocumentRole",
    "PolicyStatus",
    "AdjudicationDecision",
    "AdjudicationResult",
    "ClaimantDetails",
    "ClaimRecord",
    "ClaimSubmission",
    "DocumentUpload",
    "ExtractedDocument",
    "ExtractedDocumentSet",
    "IngestionResult",
    "Outcome",
    "Policy",
]
