"""
Policy and Decision State Definitions

Defines the lifecycle states of a policy, the closed set of adjudication
decisions, and the document roles a death claim may carry.
"""
from enum import Enum


class PolicyStatus(str, Enum):
    """
    Enum representing the lifecycle states of a life-insurance policy.

    Standard Flow: ACTIVE -> CLAIMED
    Rejected Flow: ACTIVE -> REJECTED -> ACTIVE (retry) -> ...
    Escalation:    REJECTED -> UNDER_REVIEW (after repeated rejections)
    """
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    CLAIMED = "CLAIMED"


class DecisionKind(str, Enum):
    """Outcome of an adjudication run."""
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    MANUAL_REVIEW = "MANUAL_REVIEW"


class DocumentRole(str, Enum):
    """
    Documents a claimant can attach to a death claim.

    Declaration order is the processing order, and therefore the order of
    sections in the combined transcript.
    """
    CLAIM_FORM = "claimForm"
    DEATH_CERTIFICATE = "deathCertificate"
    DOCTOR_REPORT = "doctorReport"
    POLICE_REPORT = "policeReport"

    @property
    def section_label(self) -> str:
        """Heading used for this document's section in the transcript."""
        return _SECTION_LABELS[self]


_SECTION_LABELS = {
    DocumentRole.CLAIM_FORM: "CLAIM FORM DOCUMENT",
    DocumentRole.DEATH_CERTIFICATE: "DEATH CERTIFICATE DOCUMENT",
    DocumentRole.DOCTOR_REPORT: "DOCTOR/HOSPITAL REPORT DOCUMENT",
    DocumentRole.POLICE_REPORT: "POLICE REPORT DOCUMENT",
}
