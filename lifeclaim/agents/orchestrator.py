"""
Adjudication Orchestrator

Sequences policy lookup, escalation, document ingestion, the cross-field
fraud check and the oracle decision, then commits the claim record and
the policy's new status.
"""
import asyncio
import logging
import random
import weakref
from datetime import date
from typing import Callable, Optional

from lifeclaim.agents.decision import DecisionOracleAdapter
from lifeclaim.agents.ingestor import DocumentIngestor
from lifeclaim.agents.validator import CrossFieldFraudValidator
from lifeclaim.core.models import (
    AdjudicationDecision,
    AdjudicationResult,
    ClaimRecord,
    ClaimSubmission,
    ExtractedDocumentSet,
    Policy,
)
from lifeclaim.core.states import DecisionKind, PolicyStatus
from lifeclaim.exceptions import MissingClaimFormError
from lifeclaim.ledger.base import PolicyLedger
from lifeclaim.state_machine.machine import PolicyLifecycle

logger = logging.getLogger(__name__)


def generate_claim_reference() -> str:
    """Short auditable reference: CLM-<year><4 random digits>. Not guaranteed unique."""
    return f"CLM-{date.today().year}{random.randrange(10000):04d}"


class AdjudicationOrchestrator:
    """
    Runs one claim submission through the adjudication pipeline.

    Decision logic, in order:
    - Missing policy number -> REJECTED, nothing persisted
    - Unknown policy -> REJECTED
    - Previously rejected policy -> MANUAL_REVIEW once the rejection count
      reaches the escalation threshold, otherwise re-opened for a full run
    - Policy not ACTIVE -> REJECTED
    - Missing claim form -> REJECTED, nothing persisted
    - Typed identifiers absent from the documents -> REJECTED
    - Otherwise the oracle decides

    Every other path persists exactly one claim record.
    """

    def __init__(
        self,
        ledger: PolicyLedger,
        ingestor: DocumentIngestor,
        validator: CrossFieldFraudValidator,
        adapter: DecisionOracleAdapter,
        lifecycle: Optional[PolicyLifecycle] = None,
        escalation_threshold: int = 2,
        reference_factory: Callable[[], str] = generate_claim_reference,
    ):
        self.ledger = ledger
        self.ingestor = ingestor
        self.validator = validator
        self.adapter = adapter
        self.lifecycle = lifecycle or PolicyLifecycle()
        self.escalation_threshold = escalation_threshold
        self.reference_factory = reference_factory
        self._policy_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    async def adjudicate(self, submission: ClaimSubmission) -> AdjudicationResult:
        """
        Adjudicate a claim submission.

        Runs for the same policy number are serialized within this process.

        Args:
            submission: The claim submission

        Returns:
            AdjudicationResult with the decision, reason and claim reference
        """
        policy_number = (submission.policy_number or "").strip()
        logger.info(f"Evaluating claim for policy: {policy_number or '<missing>'}")

        if not policy_number:
            logger.info("Policy number is missing")
            return AdjudicationResult(decision=DecisionKind.REJECTED, reason="Policy number is required.")

        async with self._lock_for(policy_number):
            return await self._run(submission, policy_number)

    async def _run(self, submission: ClaimSubmission, policy_number: str) -> AdjudicationResult:
        policy = await self.ledger.find_policy(policy_number)
        if policy is None:
            logger.warning(f"Policy not found: {policy_number}")
            return await self._conclude(
                submission, policy_number, AdjudicationDecision.rejected("Policy not found")
            )

        logger.info(f"Policy found - Status: {policy.status.value}, Holder: {policy.policy_holder_name}")

        if policy.status is PolicyStatus.REJECTED:
            rejections = await self.ledger.count_prior_claims(policy_number, DecisionKind.REJECTED)
            logger.info(f"Policy status is REJECTED. Previous rejection count: {rejections}")

            if rejections >= self.escalation_threshold:
                logger.warning(f"Claim attempt {rejections + 1} after {rejections} rejections - escalating to MANUAL_REVIEW")
                decision = AdjudicationDecision.manual_review(
                    f"Policy has been rejected {rejections} times previously. "
                    f"This is the {rejections + 1} attempt. Manual review required."
                )
                return await self._conclude(submission, policy_number, decision, policy=policy)

            logger.info(f"Policy was previously rejected (attempt {rejections + 1}). Re-opening for full analysis")
            self.lifecycle.transition(policy, PolicyStatus.ACTIVE)

        if not self.lifecycle.is_open_for_claims(policy):
            logger.warning(f"Policy is not active: {policy.status.value}")
            return await self._conclude(
                submission,
                policy_number,
                AdjudicationDecision.rejected(f"Policy is not active. Current status: {policy.status.value}"),
            )

        try:
            ingestion = await self.ingestor.ingest(submission, policy)
        except MissingClaimFormError as e:
            # No claim record on this path
            logger.warning(f"Claim for policy {policy_number} rejected without record: {e}")
            return AdjudicationResult(decision=DecisionKind.REJECTED, reason=str(e))

        mismatch = self.validator.validate(
            ingestion.document_text, policy_number, submission.policy_holder_name
        )
        if mismatch is not None:
            return await self._conclude(
                submission, policy_number, mismatch, policy=policy, documents=ingestion.documents
            )

        logger.info(f"Cross-field validation passed for policy {policy_number}; consulting oracle")
        decision = await self.adapter.decide(ingestion.transcript, policy_number, policy)

        return await self._conclude(
            submission, policy_number, decision, policy=policy, documents=ingestion.documents
        )

    async def _conclude(
        self,
        submission: ClaimSubmission,
        policy_number: str,
        decision: AdjudicationDecision,
        policy: Optional[Policy] = None,
        documents: Optional[ExtractedDocumentSet] = None,
    ) -> AdjudicationResult:
        """Persist the claim record, move the policy if one is given, and build the result."""
        record = ClaimRecord(
            claim_reference=self.reference_factory(),
            policy_number=policy_number,
            cause_of_death=submission.cause_of_death,
            claimant=submission.claimant,
            document_locations=documents.locations() if documents else {},
            decision=decision.kind,
            reason=decision.reason,
        )

        new_status = None
        if policy is not None:
            new_status = self.lifecycle.status_for(decision.kind)
            self.lifecycle.transition(policy, new_status)

        await self.ledger.commit(record, policy, new_status)

        logger.info(
            f"Claim {record.claim_reference} for policy {policy_number}: {decision.kind.value}"
            + (f", policy now {new_status.value}" if new_status else "")
        )

        return AdjudicationResult(
            decision=decision.kind,
            reason=decision.reason,
            claim_reference=record.claim_reference,
        )

    def _lock_for(self, policy_number: str) -> asyncio.Lock:
        lock = self._policy_locks.get(policy_number)
        if lock is None:
            lock = asyncio.Lock()
            self._policy_locks[policy_number] = lock
        return lock
