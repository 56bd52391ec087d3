"""Tests for the adjudication orchestrator."""

import asyncio
from typing import List, Optional

import pytest

from conftest import (
    APPROVED_PAYLOAD,
    MATCHING_CLAIM_FORM,
    FakeBlobStore,
    FakeExtractor,
    StaticOracle,
    make_policy,
    make_submission,
)
from lifeclaim.agents.decision import DecisionOracleAdapter
from lifeclaim.agents.ingestor import DocumentIngestor
from lifeclaim.agents.oracle import FraudDecisionOracle
from lifeclaim.agents.orchestrator import AdjudicationOrchestrator, generate_claim_reference
from lifeclaim.agents.tools import PolicyLookupTool
from lifeclaim.agents.validator import CrossFieldFraudValidator
from lifeclaim.core.models import ClaimRecord, Policy
from lifeclaim.core.states import DecisionKind, DocumentRole, PolicyStatus
from lifeclaim.exceptions import LedgerError, OracleError
from lifeclaim.ledger.memory import InMemoryPolicyLedger


async def seed_rejections(ledger: InMemoryPolicyLedger, policy_number: str, count: int) -> None:
    for n in range(count):
        await ledger.save_claim(
            ClaimRecord(
                claim_reference=f"CLM-2025{n:04d}",
                policy_number=policy_number,
                decision=DecisionKind.REJECTED,
                reason="Earlier rejection",
            )
        )


class LookupOracle(FraudDecisionOracle):
    """Calls the policy lookup tool the way the model would, then approves."""

    def __init__(self, lookup: PolicyLookupTool):
        self.lookup = lookup
        self.seen: List[str] = []

    async def decide(self, transcript: str, policy_number: str, policy: Optional[Policy] = None) -> str:
        self.seen.append(await self.lookup.bind(policy)(policy_number=policy_number))
        return APPROVED_PAYLOAD


class TestHappyPath:
    """Active policy, matching documents, oracle approves."""

    @pytest.mark.asyncio
    async def test_approved_claim_marks_policy_claimed(self, orchestrator, ledger, oracle):
        result = await orchestrator.adjudicate(make_submission())

        assert result.decision == DecisionKind.APPROVED
        assert result.reason == "All documents are consistent"
        assert result.claim_reference == "CLM-20260001"

        policy = await ledger.find_policy("P001")
        assert policy.status == PolicyStatus.CLAIMED

        claims = await ledger.list_claims("P001")
        assert len(claims) == 1
        assert claims[0].decision == DecisionKind.APPROVED
        assert claims[0].status == DecisionKind.APPROVED
        assert claims[0].location(DocumentRole.CLAIM_FORM) == "blob://claims/1-claimForm.txt"
        assert len(oracle.calls) == 1

    @pytest.mark.asyncio
    async def test_oracle_sees_form_policy_and_document_sections(self, orchestrator, oracle):
        await orchestrator.adjudicate(make_submission())

        transcript = oracle.calls[0]
        assert "=== FILLED FORM INFORMATION ===" in transcript
        assert "=== POLICY DATABASE INFORMATION ===" in transcript
        assert "Policy Status (DB): ACTIVE" in transcript
        assert "=== CLAIM FORM DOCUMENT ===" in transcript
        assert MATCHING_CLAIM_FORM in transcript

    @pytest.mark.asyncio
    async def test_policy_number_is_trimmed(self, orchestrator, ledger):
        result = await orchestrator.adjudicate(make_submission(policy_number="  P001 "))

        assert result.decision == DecisionKind.APPROVED
        assert len(await ledger.list_claims("P001")) == 1


class TestStructuralRejections:
    """Paths that end without a claim record."""

    @pytest.mark.asyncio
    async def test_missing_policy_number_persists_nothing(self, orchestrator, ledger, oracle):
        result = await orchestrator.adjudicate(make_submission(policy_number="   "))

        assert result.decision == DecisionKind.REJECTED
        assert result.reason == "Policy number is required."
        assert result.claim_reference is None
        assert await ledger.list_claims("") == []
        assert oracle.calls == []

    @pytest.mark.asyncio
    async def test_missing_claim_form_makes_no_calls(self, orchestrator, ledger, blob_store, extractor, oracle):
        submission = make_submission(documents={DocumentRole.DEATH_CERTIFICATE: "Death of Jane Doe, P001"})

        result = await orchestrator.adjudicate(submission)

        assert result.decision == DecisionKind.REJECTED
        assert result.reason == "Claim form is required."
        assert result.claim_reference is None
        assert blob_store.uploads == []
        assert extractor.calls == []
        assert oracle.calls == []
        assert await ledger.list_claims("P001") == []
        assert (await ledger.find_policy("P001")).status == PolicyStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_missing_claim_form_leaves_rejected_policy_untouched(self, orchestrator, ledger):
        await ledger.save_policy(make_policy(status=PolicyStatus.REJECTED))
        await seed_rejections(ledger, "P001", 1)

        result = await orchestrator.adjudicate(make_submission(documents={}))

        assert result.decision == DecisionKind.REJECTED
        assert (await ledger.find_policy("P001")).status == PolicyStatus.REJECTED
        assert len(await ledger.list_claims("P001")) == 1


class TestPolicyGate:
    """Lookup, escalation and the active-status gate."""

    @pytest.mark.asyncio
    async def test_unknown_policy_is_rejected_and_recorded(self, orchestrator, ledger, oracle):
        result = await orchestrator.adjudicate(make_submission(policy_number="P404"))

        assert result.decision == DecisionKind.REJECTED
        assert result.reason == "Policy not found"
        assert result.claim_reference is not None

        claims = await ledger.list_claims("P404")
        assert len(claims) == 1
        assert claims[0].decision == DecisionKind.REJECTED
        assert await ledger.find_policy("P404") is None
        assert (await ledger.find_policy("P001")).status == PolicyStatus.ACTIVE
        assert oracle.calls == []

    @pytest.mark.asyncio
    async def test_repeat_rejections_escalate_to_manual_review(self, orchestrator, ledger, oracle, blob_store):
        await ledger.save_policy(make_policy(status=PolicyStatus.REJECTED))
        await seed_rejections(ledger, "P001", 2)

        result = await orchestrator.adjudicate(make_submission())

        assert result.decision == DecisionKind.MANUAL_REVIEW
        assert result.reason == (
            "Policy has been rejected 2 times previously. This is the 3 attempt. Manual review required."
        )
        assert (await ledger.find_policy("P001")).status == PolicyStatus.UNDER_REVIEW
        assert oracle.calls == []
        assert blob_store.uploads == []

        latest = (await ledger.list_claims("P001"))[-1]
        assert latest.decision == DecisionKind.MANUAL_REVIEW
        assert all(location is None for location in latest.document_locations.values())

    @pytest.mark.asyncio
    async def test_single_prior_rejection_is_reopened(self, orchestrator, ledger, oracle):
        await ledger.save_policy(make_policy(status=PolicyStatus.REJECTED))
        await seed_rejections(ledger, "P001", 1)

        result = await orchestrator.adjudicate(make_submission())

        assert result.decision == DecisionKind.APPROVED
        assert (await ledger.find_policy("P001")).status == PolicyStatus.CLAIMED
        assert len(oracle.calls) == 1
        assert "Policy Status (DB): ACTIVE" in oracle.calls[0]

    @pytest.mark.asyncio
    async def test_reopened_policy_is_looked_up_as_active(self, ledger, blob_store, extractor):
        await ledger.save_policy(make_policy(status=PolicyStatus.REJECTED))
        await seed_rejections(ledger, "P001", 1)
        oracle = LookupOracle(PolicyLookupTool(ledger))
        orchestrator = AdjudicationOrchestrator(
            ledger=ledger,
            ingestor=DocumentIngestor(blob_store, extractor),
            validator=CrossFieldFraudValidator(),
            adapter=DecisionOracleAdapter(oracle),
        )

        result = await orchestrator.adjudicate(make_submission())

        assert result.decision == DecisionKind.APPROVED
        assert "Status: ACTIVE" in oracle.seen[0]
        assert (await ledger.find_policy("P001")).status == PolicyStatus.CLAIMED

    @pytest.mark.asyncio
    async def test_rejected_policy_with_approved_history_is_reopened(self, orchestrator, ledger, oracle):
        await ledger.save_policy(make_policy(status=PolicyStatus.REJECTED))
        await ledger.save_claim(
            ClaimRecord(
                claim_reference="CLM-20250001",
                policy_number="P001",
                decision=DecisionKind.MANUAL_REVIEW,
                reason="Earlier review",
            )
        )

        result = await orchestrator.adjudicate(make_submission())

        assert result.decision == DecisionKind.APPROVED
        assert len(oracle.calls) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [PolicyStatus.UNDER_REVIEW, PolicyStatus.CLAIMED])
    async def test_inactive_policy_is_rejected_at_gate(self, orchestrator, ledger, oracle, status):
        await ledger.save_policy(make_policy(status=status))

        result = await orchestrator.adjudicate(make_submission())

        assert result.decision == DecisionKind.REJECTED
        assert result.reason == f"Policy is not active. Current status: {status.value}"
        assert oracle.calls == []
        assert (await ledger.find_policy("P001")).status == status
        assert len(await ledger.list_claims("P001")) == 1


class TestCrossFieldCheck:
    """Typed identifiers must appear in the uploaded documents."""

    @pytest.mark.asyncio
    async def test_policy_number_missing_from_documents(self, orchestrator, ledger, oracle):
        submission = make_submission(
            documents={DocumentRole.CLAIM_FORM: "LIFE CLAIM FORM\nPolicy No: P999\nInsured: Jane Doe"}
        )

        result = await orchestrator.adjudicate(submission)

        assert result.decision == DecisionKind.REJECTED
        assert result.reason.startswith("Critical fraud detected: Policy number 'P001'")
        assert oracle.calls == []
        assert (await ledger.find_policy("P001")).status == PolicyStatus.REJECTED

        record = (await ledger.list_claims("P001"))[0]
        assert record.location(DocumentRole.CLAIM_FORM) is not None

    @pytest.mark.asyncio
    async def test_form_echo_does_not_satisfy_the_check(self, orchestrator, oracle):
        # The typed policy number is echoed into the transcript header but
        # never appears in a document
        submission = make_submission(documents={DocumentRole.CLAIM_FORM: "Blank form"})

        result = await orchestrator.adjudicate(submission)

        assert result.decision == DecisionKind.REJECTED
        assert "Both policy number 'P001' and policy holder name 'Jane Doe'" in result.reason
        assert oracle.calls == []

    @pytest.mark.asyncio
    async def test_unreadable_claim_form_is_rejected_as_mismatch(self, ledger, blob_store, oracle):
        orchestrator = AdjudicationOrchestrator(
            ledger=ledger,
            ingestor=DocumentIngestor(blob_store, FakeExtractor(failing=[MATCHING_CLAIM_FORM.encode()])),
            validator=CrossFieldFraudValidator(),
            adapter=DecisionOracleAdapter(oracle),
        )

        result = await orchestrator.adjudicate(make_submission())

        assert result.decision == DecisionKind.REJECTED
        assert result.reason.startswith("Critical fraud detected")
        assert oracle.calls == []


class TestOracleOutcomes:
    """The oracle's verdict drives the final decision and policy status."""

    @pytest.mark.asyncio
    async def test_oracle_rejection_marks_policy_rejected(self, ledger):
        orchestrator = AdjudicationOrchestrator(
            ledger=ledger,
            ingestor=DocumentIngestor(FakeBlobStore(), FakeExtractor()),
            validator=CrossFieldFraudValidator(),
            adapter=DecisionOracleAdapter(
                StaticOracle('```json\n{"decision": "REJECTED", "reason": "Cause of death excluded"}\n```')
            ),
        )

        result = await orchestrator.adjudicate(make_submission())

        assert result.decision == DecisionKind.REJECTED
        assert result.reason == "Cause of death excluded"
        assert (await ledger.find_policy("P001")).status == PolicyStatus.REJECTED

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "oracle",
        [
            StaticOracle(error=OracleError("Oracle did not answer within 6 tool rounds")),
            StaticOracle(error=ConnectionError("connection refused")),
            StaticOracle(payload="I think this claim looks fine"),
        ],
    )
    async def test_oracle_failures_go_to_manual_review(self, orchestrator, ledger, oracle):
        result = await orchestrator.adjudicate(make_submission())

        assert result.decision == DecisionKind.MANUAL_REVIEW
        assert result.reason.endswith("Manual review required.")
        assert (await ledger.find_policy("P001")).status == PolicyStatus.UNDER_REVIEW


class TestDocumentFailures:
    """Per-document failures do not abort the claim."""

    @pytest.mark.asyncio
    async def test_failed_optional_upload_leaves_location_empty(self, ledger, oracle):
        blob_store = FakeBlobStore(failing_names=["deathCertificate.txt"])
        orchestrator = AdjudicationOrchestrator(
            ledger=ledger,
            ingestor=DocumentIngestor(blob_store, FakeExtractor()),
            validator=CrossFieldFraudValidator(),
            adapter=DecisionOracleAdapter(oracle),
        )
        submission = make_submission(
            documents={
                DocumentRole.CLAIM_FORM: MATCHING_CLAIM_FORM,
                DocumentRole.DEATH_CERTIFICATE: "Certificate of death: Jane Doe",
                DocumentRole.POLICE_REPORT: "No foul play",
            }
        )

        result = await orchestrator.adjudicate(submission)

        assert result.decision == DecisionKind.APPROVED
        record = (await ledger.list_claims("P001"))[0]
        assert record.location(DocumentRole.CLAIM_FORM) is not None
        assert record.location(DocumentRole.DEATH_CERTIFICATE) is None
        assert record.location(DocumentRole.DOCTOR_REPORT) is None
        assert record.location(DocumentRole.POLICE_REPORT) is not None
        # Text was still extracted from the document that failed to upload
        assert "Certificate of death: Jane Doe" in oracle.calls[0]

    @pytest.mark.asyncio
    async def test_ocr_failure_does_not_abort_claim(self, ledger, oracle):
        orchestrator = AdjudicationOrchestrator(
            ledger=ledger,
            ingestor=DocumentIngestor(FakeBlobStore(), FakeExtractor(failing=[b"smudged"])),
            validator=CrossFieldFraudValidator(),
            adapter=DecisionOracleAdapter(oracle),
        )
        submission = make_submission(
            documents={
                DocumentRole.CLAIM_FORM: MATCHING_CLAIM_FORM,
                DocumentRole.DOCTOR_REPORT: "smudged",
            }
        )

        result = await orchestrator.adjudicate(submission)

        assert result.decision == DecisionKind.APPROVED
        assert "=== DOCTOR/HOSPITAL REPORT DOCUMENT ===\n" in oracle.calls[0]
        record = (await ledger.list_claims("P001"))[0]
        assert record.location(DocumentRole.DOCTOR_REPORT) is not None


class TestPersistence:
    """Commit behaviour and concurrency."""

    @pytest.mark.asyncio
    async def test_ledger_failure_propagates(self, orchestrator, ledger, monkeypatch):
        async def broken_commit(record, policy=None, new_status=None):
            raise LedgerError("database is locked")

        monkeypatch.setattr(ledger, "commit", broken_commit)

        with pytest.raises(LedgerError):
            await orchestrator.adjudicate(make_submission())

        assert (await ledger.find_policy("P001")).status == PolicyStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_concurrent_claims_on_one_policy_are_serialized(self, orchestrator, ledger, oracle):
        first, second = await asyncio.gather(
            orchestrator.adjudicate(make_submission()),
            orchestrator.adjudicate(make_submission()),
        )

        decisions = sorted([first.decision, second.decision], key=lambda d: d.value)
        assert decisions == [DecisionKind.APPROVED, DecisionKind.REJECTED]
        assert len(oracle.calls) == 1

        rejected = first if first.decision == DecisionKind.REJECTED else second
        assert rejected.reason == "Policy is not active. Current status: CLAIMED"
        assert (await ledger.find_policy("P001")).status == PolicyStatus.CLAIMED


def test_generate_claim_reference_format():
    reference = generate_claim_reference()

    assert reference.startswith("CLM-")
    assert len(reference) == len("CLM-") + 8
    assert reference[4:].isdigit()
