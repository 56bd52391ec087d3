"""
FastAPI Endpoints for Death Claim Adjudication

Provides the REST API for submitting claims and reading back their records.
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel, ConfigDict, Field

from lifeclaim.agents.orchestrator import AdjudicationOrchestrator
from lifeclaim.core.models import ClaimantDetails, ClaimRecord, ClaimSubmission, DocumentUpload
from lifeclaim.core.states import DecisionKind, DocumentRole
from lifeclaim.dependencies import get_knowledge_base, get_ledger, get_orchestrator
from lifeclaim.exceptions import LedgerError, OLLAMA_ERRORS
from lifeclaim.knowledge.rules import PolicyRulesKnowledgeBase
from lifeclaim.ledger.base import PolicyLedger

logger = logging.getLogger(__name__)

# Initialize router
router = APIRouter(prefix="/api", tags=["claims"])


class ClaimResponse(BaseModel):
    """Response model for a claim submission."""
    model_config = ConfigDict(populate_by_name=True)

    status: DecisionKind
    message: str
    claim_reference: Optional[str] = Field(default=None, alias="claimReference")


class PolicyRuleRequest(BaseModel):
    """Request model for adding a policy rule to the knowledge base."""
    rule: str = Field(..., min_length=1, description="Policy rule text")


class PolicyRuleResponse(BaseModel):
    """Response model for a knowledge base update."""
    segments_added: int
    message: str


@router.post("/claim/submit", response_model=ClaimResponse)
async def submit_claim(
    policy_number: Optional[str] = Form(None, alias="policyNumber"),
    policy_holder_name: Optional[str] = Form(None, alias="policyHolderName"),
    cause_of_death: Optional[str] = Form(None, alias="causeOfDeath"),
    deceased_full_name: Optional[str] = Form(None, alias="deceasedFullName"),
    deceased_email: Optional[str] = Form(None, alias="deceasedEmail"),
    deceased_mobile: Optional[str] = Form(None, alias="deceasedMobile"),
    deceased_address: Optional[str] = Form(None, alias="deceasedAddress"),
    nominee_full_name: Optional[str] = Form(None, alias="nomineeFullName"),
    nominee_relationship: Optional[str] = Form(None, alias="nomineeRelationship"),
    nominee_mobile: Optional[str] = Form(None, alias="nomineeMobile"),
    claim_form: Optional[UploadFile] = File(None, alias="claimForm", description="Completed claim form"),
    death_certificate: Optional[UploadFile] = File(None, alias="deathCertificate"),
    doctor_report: Optional[UploadFile] = File(None, alias="doctorReport"),
    police_report: Optional[UploadFile] = File(None, alias="policeReport"),
    orchestrator: AdjudicationOrchestrator = Depends(get_orchestrator),
) -> ClaimResponse:
    """
    Submit a death claim for adjudication.

    Business outcomes (APPROVED, REJECTED, MANUAL_REVIEW) are all returned
    with 200 so the caller can read the decision and reason.
    """
    files = {
        DocumentRole.CLAIM_FORM: claim_form,
        DocumentRole.DEATH_CERTIFICATE: death_certificate,
        DocumentRole.DOCTOR_REPORT: doctor_report,
        DocumentRole.POLICE_REPORT: police_report,
    }

    logger.info(f"Received claim submission for policy {policy_number}, deceased {deceased_full_name}")
    documents = await _read_uploads(files)

    submission = ClaimSubmission(
        policy_number=policy_number,
        policy_holder_name=policy_holder_name,
        cause_of_death=cause_of_death,
        claimant=ClaimantDetails(
            deceased_full_name=deceased_full_name,
            deceased_email=deceased_email,
            deceased_mobile=deceased_mobile,
            deceased_address=deceased_address,
            nominee_full_name=nominee_full_name,
            nominee_relationship=nominee_relationship,
            nominee_mobile=nominee_mobile,
        ),
        documents=documents,
    )

    try:
        result = await orchestrator.adjudicate(submission)
    except LedgerError as e:
        logger.error(f"Claim submission for policy {policy_number} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Claim could not be recorded: {str(e)}"
        )

    logger.info(f"Response: {result.decision.value} - {result.reason}")

    return ClaimResponse(
        status=result.decision,
        message=result.reason,
        claim_reference=result.claim_reference
    )


@router.get("/claims/{claim_reference}", response_model=ClaimRecord)
async def get_claim(
    claim_reference: str,
    ledger: PolicyLedger = Depends(get_ledger),
) -> ClaimRecord:
    """
    Get the stored record for a claim reference.
    """
    record = await ledger.get_claim(claim_reference)

    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Claim {claim_reference} not found"
        )

    return record


@router.get("/policies/{policy_number}/claims", response_model=List[ClaimRecord])
async def list_policy_claims(
    policy_number: str,
    ledger: PolicyLedger = Depends(get_ledger),
) -> List[ClaimRecord]:
    """
    List every claim filed against a policy, oldest first.
    """
    return await ledger.list_claims(policy_number)


@router.post("/knowledge/rules", response_model=PolicyRuleResponse, status_code=status.HTTP_201_CREATED)
async def add_policy_rule(
    request: PolicyRuleRequest,
    knowledge_base: PolicyRulesKnowledgeBase = Depends(get_knowledge_base),
) -> PolicyRuleResponse:
    """
    Add a policy rule to the knowledge base consulted by the fraud oracle.
    """
    if not knowledge_base.enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Policy rules knowledge base is not available"
        )

    try:
        added = await knowledge_base.add_rule(request.rule)
    except OLLAMA_ERRORS as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Embedding service not available: {str(e)}"
        )

    return PolicyRuleResponse(
        segments_added=added,
        message=f"Policy rule added ({added} segments)"
    )


async def _read_uploads(files: Dict[DocumentRole, Optional[UploadFile]]) -> Dict[DocumentRole, DocumentUpload]:
    """Read every supplied upload; absent or empty files are left out."""
    documents: Dict[DocumentRole, DocumentUpload] = {}

    for role, upload in files.items():
        if upload is None:
            logger.info(f" - {role.value}: <not provided>")
            continue

        data = await upload.read()
        if not data:
            logger.info(f" - {role.value}: <empty>")
            continue

        logger.info(f" - {role.value}: {upload.filename} ({len(data)} bytes)")
        documents[role] = DocumentUpload(
            role=role,
            data=data,
            filename=upload.filename or role.value,
            content_type=upload.content_type or "application/octet-stream",
        )

    return documents
