"""
Claim and Policy Pydantic Models

Defines the data models that flow through the adjudication pipeline.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, computed_field

from .states import DecisionKind, DocumentRole, PolicyStatus

T = TypeVar("T")


class Policy(BaseModel):
    """
    Life Insurance Policy Model

    Created out of band; the adjudication core only reads it and moves
    its lifecycle status.
    """
    policy_number: str = Field(..., min_length=1, description="Unique policy number")
    policy_holder_name: Optional[str] = Field(default=None, description="Name of the policy holder")
    date_of_birth: Optional[date] = Field(default=None, description="Holder's date of birth")
    issue_date: Optional[date] = Field(default=None, description="Date the policy was issued")
    maturity_date: Optional[date] = Field(default=None, description="Date the policy matures")
    suicide_coverage_after_years: int = Field(
        default=1,
        ge=0,
        description="Years after issue before suicide is covered"
    )
    covers_accident: bool = True
    covers_natural_death: bool = True
    covers_disease: bool = True
    status: PolicyStatus = Field(default=PolicyStatus.ACTIVE, description="Lifecycle status")


class ClaimantDetails(BaseModel):
    """Facts about the deceased and the nominee, as typed by the claimant."""
    deceased_full_name: Optional[str] = None
    deceased_email: Optional[str] = None
    deceased_mobile: Optional[str] = None
    deceased_address: Optional[str] = None
    nominee_full_name: Optional[str] = None
    nominee_relationship: Optional[str] = None
    nominee_mobile: Optional[str] = None


class DocumentUpload(BaseModel):
    """A scanned document attached to a claim submission."""
    role: DocumentRole
    data: bytes = b""
    filename: str = Field(default="document", description="Original file name")
    content_type: str = Field(default="application/octet-stream", description="MIME type")

    @property
    def is_empty(self) -> bool:
        return not self.data


class ClaimSubmission(BaseModel):
    """Request model for a death claim. Never persisted as-is."""
    policy_number: Optional[str] = None
    policy_holder_name: Optional[str] = None
    cause_of_death: Optional[str] = None
    claimant: ClaimantDetails = Field(default_factory=ClaimantDetails)
    documents: Dict[DocumentRole, DocumentUpload] = Field(default_factory=dict)

    def document(self, role: DocumentRole) -> Optional[DocumentUpload]:
        """Return the supplied document for a role, or None if absent or empty."""
        upload = self.documents.get(role)
        if upload is None or upload.is_empty:
            return None
        return upload


class AdjudicationDecision(BaseModel):
    """A decision and the human-readable reason behind it."""
    kind: DecisionKind
    reason: str = ""

    @classmethod
    def approved(cls, reason: str) -> "AdjudicationDecision":
        return cls(kind=DecisionKind.APPROVED, reason=reason)

    @classmethod
    def rejected(cls, reason: str) -> "AdjudicationDecision":
        return cls(kind=DecisionKind.REJECTED, reason=reason)

    @classmethod
    def manual_review(cls, reason: str) -> "AdjudicationDecision":
        return cls(kind=DecisionKind.MANUAL_REVIEW, reason=reason)


class ExtractedDocument(BaseModel):
    """Storage location and OCR text for one document role."""
    role: DocumentRole
    storage_location: Optional[str] = None
    extracted_text: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)


class ExtractedDocumentSet(BaseModel):
    """
    Per-role ingestion results, always holding every role in processing order.

    Roles that were not supplied keep empty fields.
    """
    documents: Dict[DocumentRole, ExtractedDocument] = Field(
        default_factory=lambda: {role: ExtractedDocument(role=role) for role in DocumentRole}
    )

    def __getitem__(self, role: DocumentRole) -> ExtractedDocument:
        return self.documents[role]

    def locations(self) -> Dict[DocumentRole, Optional[str]]:
        """Storage location per role."""
        return {role: doc.storage_location for role, doc in self.documents.items()}


class IngestionResult(BaseModel):
    """
    Output of document ingestion.

    `document_text` holds only the role-labelled document sections;
    `transcript` is that text prefixed with the claimant and policy echo.
    """
    documents: ExtractedDocumentSet
    document_text: str
    transcript: str


class ClaimRecord(BaseModel):
    """
    Persisted Claim Record

    Written exactly once per adjudication run, on every terminal path
    past structural validation.
    """
    claim_reference: str = Field(..., description="Human-auditable claim reference")
    policy_number: str = Field(..., description="Policy the claim was filed against")
    cause_of_death: Optional[str] = None
    claimant: ClaimantDetails = Field(default_factory=ClaimantDetails)
    document_locations: Dict[DocumentRole, Optional[str]] = Field(default_factory=dict)
    decision: DecisionKind
    reason: str = ""
    created_at: datetime = Field(default_factory=datetime.now)

    @computed_field
    @property
    def status(self) -> DecisionKind:
        """Claim status always mirrors the decision."""
        return self.decision

    def location(self, role: DocumentRole) -> Optional[str]:
        return self.document_locations.get(role)


class AdjudicationResult(BaseModel):
    """Caller-facing result of an adjudication run."""
    decision: DecisionKind
    reason: str
    claim_reference: Optional[str] = None


@dataclass
class Outcome(Generic[T]):
    """
    Result of a collaborator call: a value, or the reason it failed.

    Callers choose their degrade-to-default policy with `value_or`.
    """
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failed(cls, reason: str) -> "Outcome[T]":
        return cls(error=reason)

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def value_or(self, default: T) -> T:
        return self.value if self.succeeded and self.value is not None else default
