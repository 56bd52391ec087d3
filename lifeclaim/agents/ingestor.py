"""
Document Ingestion Module

Uploads each supplied claim document, extracts its text, and assembles the
role-labelled transcript the fraud checks read.
"""
import logging
from typing import List, Optional

from lifeclaim.agents.ocr_agent import TextExtractor
from lifeclaim.core.models import (
    ClaimSubmission,
    DocumentUpload,
    ExtractedDocument,
    ExtractedDocumentSet,
    IngestionResult,
    Outcome,
    Policy,
)
from lifeclaim.core.states import DocumentRole
from lifeclaim.exceptions import BlobStoreError, MissingClaimFormError
from lifeclaim.storage.blob_store import BlobStore

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"


class DocumentIngestor:
    """
    Processes claim documents one role at a time.

    A failed upload or extraction only empties that role's fields; the
    remaining roles and the claim itself carry on.
    """

    def __init__(self, blob_store: BlobStore, extractor: TextExtractor):
        self.blob_store = blob_store
        self.extractor = extractor

    async def ingest(self, submission: ClaimSubmission, policy: Policy) -> IngestionResult:
        """
        Upload and transcribe every document in the submission.

        Args:
            submission: The claim being adjudicated
            policy: The policy as held by the ledger

        Returns:
            IngestionResult with per-role results and the combined transcript

        Raises:
            MissingClaimFormError: If the claim form is absent or empty. Raised
                before any upload or OCR call is made.
        """
        if submission.document(DocumentRole.CLAIM_FORM) is None:
            raise MissingClaimFormError("Claim form is required.")

        documents = ExtractedDocumentSet()
        sections: List[str] = []

        logger.info(f"Starting document ingestion for policy {policy.policy_number}")

        for role in DocumentRole:
            upload = submission.document(role)
            if upload is None:
                logger.info(f"  - {role.value}: <not provided>")
                continue

            document = await self._ingest_one(upload)
            documents.documents[role] = document
            sections.append(f"=== {role.section_label} ===\n{document.extracted_text or ''}")

        document_text = "\n\n".join(sections)
        transcript = "\n".join([
            render_form_information(submission),
            render_policy_information(policy),
            document_text,
        ])

        processed = [role.value for role in DocumentRole if documents[role].storage_location or documents[role].extracted_text]
        logger.info(
            f"Document ingestion complete for policy {policy.policy_number}. "
            f"Processed: {processed}. Transcript length: {len(transcript)} chars"
        )

        return IngestionResult(documents=documents, document_text=document_text, transcript=transcript)

    async def _ingest_one(self, upload: DocumentUpload) -> ExtractedDocument:
        document = ExtractedDocument(role=upload.role)

        stored = await self._upload(upload)
        if stored.succeeded:
            document.storage_location = stored.value
        else:
            document.warnings.append(stored.error)
            logger.warning(f"Upload failed for {upload.role.value}: {stored.error}")

        extracted = await self.extractor.extract(upload.data, upload.content_type)
        if extracted.succeeded:
            document.extracted_text = extracted.value
            logger.info(f"  - {upload.role.value}: extracted {len(extracted.value)} chars")
        else:
            document.warnings.append(extracted.error)
            logger.warning(f"Text extraction failed for {upload.role.value}: {extracted.error}")

        return document

    async def _upload(self, upload: DocumentUpload) -> Outcome[str]:
        try:
            location = await self.blob_store.upload(upload.data, upload.filename, upload.content_type)
        except BlobStoreError as e:
            return Outcome.failed(str(e))
        return Outcome.ok(location)


def render_form_information(submission: ClaimSubmission) -> str:
    """Echo of every field the claimant typed in."""
    claimant = submission.claimant
    lines = [
        "=== FILLED FORM INFORMATION ===",
        f"Policy Number: {_or_na(submission.policy_number)}",
        f"Policy Holder Name: {_or_na(submission.policy_holder_name)}",
        f"Cause of Death: {_or_na(submission.cause_of_death)}",
        f"Deceased Full Name: {_or_na(claimant.deceased_full_name)}",
        f"Deceased Email: {_or_na(claimant.deceased_email)}",
        f"Deceased Mobile: {_or_na(claimant.deceased_mobile)}",
        f"Deceased Address: {_or_na(claimant.deceased_address)}",
        f"Nominee Full Name: {_or_na(claimant.nominee_full_name)}",
        f"Nominee Relationship: {_or_na(claimant.nominee_relationship)}",
        f"Nominee Mobile: {_or_na(claimant.nominee_mobile)}",
    ]
    return "\n".join(lines) + "\n"


def render_policy_information(policy: Policy) -> str:
    """Echo of the policy fields held by the ledger, for drift detection."""
    lines = [
        "=== POLICY DATABASE INFORMATION ===",
        f"Policy Number (DB): {policy.policy_number}",
        f"Policy Holder Name (DB): {_or_na(policy.policy_holder_name)}",
        f"Policy Status (DB): {policy.status.value}",
        f"Issue Date: {_or_na(policy.issue_date)}",
        f"Maturity Date: {_or_na(policy.maturity_date)}",
    ]
    return "\n".join(lines) + "\n"


def _or_na(value: Optional[object]) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        return NOT_AVAILABLE
    return str(value)
