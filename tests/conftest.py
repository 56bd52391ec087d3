"""Pytest configuration and shared fixtures."""

from datetime import date
from typing import Dict, List, Optional

import pytest

from lifeclaim.agents.decision import DecisionOracleAdapter
from lifeclaim.agents.ingestor import DocumentIngestor
from lifeclaim.agents.ocr_agent import TextExtractor
from lifeclaim.agents.oracle import FraudDecisionOracle
from lifeclaim.agents.orchestrator import AdjudicationOrchestrator
from lifeclaim.agents.validator import CrossFieldFraudValidator
from lifeclaim.core.models import ClaimantDetails, ClaimSubmission, DocumentUpload, Outcome, Policy
from lifeclaim.core.states import DocumentRole, PolicyStatus
from lifeclaim.exceptions import BlobStoreError
from lifeclaim.ledger.memory import InMemoryPolicyLedger
from lifeclaim.storage.blob_store import BlobStore

APPROVED_PAYLOAD = '{"decision": "APPROVED", "reason": "All documents are consistent"}'

MATCHING_CLAIM_FORM = "LIFE CLAIM FORM\nPolicy No: P001\nInsured: Jane Doe\nCause: Heart Attack"


class FakeBlobStore(BlobStore):
    """Blob store that remembers uploads and can fail on chosen file names."""

    def __init__(self, failing_names: Optional[List[str]] = None):
        self.failing_names = set(failing_names or [])
        self.uploads: List[str] = []

    async def upload(self, data: bytes, original_name: str, content_type: str) -> str:
        if original_name in self.failing_names:
            raise BlobStoreError(f"File upload failed for {original_name}: disk full")
        self.uploads.append(original_name)
        return f"blob://claims/{len(self.uploads)}-{original_name}"


class FakeExtractor(TextExtractor):
    """Decodes documents as text; documents listed in `failing` fail OCR."""

    def __init__(self, failing: Optional[List[bytes]] = None):
        self.failing = set(failing or [])
        self.calls: List[bytes] = []

    async def extract(self, data: bytes, content_type: str) -> Outcome[str]:
        self.calls.append(data)
        if data in self.failing:
            return Outcome.failed("OCR extraction failed: model unavailable")
        return Outcome.ok(data.decode("utf-8"))


class StaticOracle(FraudDecisionOracle):
    """Oracle returning a fixed payload, or raising a fixed error."""

    def __init__(self, payload: Optional[str] = APPROVED_PAYLOAD, error: Optional[Exception] = None):
        self.payload = payload
        self.error = error
        self.calls: List[str] = []

    async def decide(self, transcript: str, policy_number: str, policy: Optional[Policy] = None) -> str:
        self.calls.append(transcript)
        if self.error is not None:
            raise self.error
        return self.payload


def make_policy(
    policy_number: str = "P001",
    holder: str = "Jane Doe",
    status: PolicyStatus = PolicyStatus.ACTIVE,
) -> Policy:
    return Policy(
        policy_number=policy_number,
        policy_holder_name=holder,
        date_of_birth=date(1970, 5, 17),
        issue_date=date(2018, 1, 1),
        maturity_date=date(2048, 1, 1),
        status=status,
    )


def make_submission(
    policy_number: Optional[str] = "P001",
    holder: Optional[str] = "Jane Doe",
    documents: Optional[Dict[DocumentRole, str]] = None,
    cause_of_death: str = "Heart Attack",
) -> ClaimSubmission:
    """Build a submission whose documents are plain-text uploads."""
    if documents is None:
        documents = {DocumentRole.CLAIM_FORM: MATCHING_CLAIM_FORM}

    return ClaimSubmission(
        policy_number=policy_number,
        policy_holder_name=holder,
        cause_of_death=cause_of_death,
        claimant=ClaimantDetails(
            deceased_full_name="Jane Doe",
            nominee_full_name="John Doe",
            nominee_relationship="Spouse",
        ),
        documents={
            role: DocumentUpload(
                role=role,
                data=text.encode("utf-8"),
                filename=f"{role.value}.txt",
                content_type="text/plain",
            )
            for role, text in documents.items()
        },
    )


@pytest.fixture
def policy() -> Policy:
    """Active policy P001 held by Jane Doe."""
    return make_policy()


@pytest.fixture
def ledger(policy) -> InMemoryPolicyLedger:
    return InMemoryPolicyLedger([policy])


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def oracle() -> StaticOracle:
    return StaticOracle()


@pytest.fixture
def orchestrator(ledger, blob_store, extractor, oracle) -> AdjudicationOrchestrator:
    """Orchestrator wired to fakes, issuing sequential claim references."""
    counter = iter(range(1, 10000))
    return AdjudicationOrchestrator(
        ledger=ledger,
        ingestor=DocumentIngestor(blob_store, extractor),
        validator=CrossFieldFraudValidator(),
        adapter=DecisionOracleAdapter(oracle, timeout_seconds=5),
        reference_factory=lambda: f"CLM-2026{next(counter):04d}",
    )
