"""
In-Memory Policy Ledger

Dict-backed ledger for tests, demos and single-process deployments.
"""
import asyncio
import logging
from typing import Dict, List, Optional

from lifeclaim.core.models import ClaimRecord, Policy
from lifeclaim.core.states import DecisionKind, PolicyStatus
from lifeclaim.exceptions import LedgerError
from lifeclaim.ledger.base import PolicyLedger

logger = logging.getLogger(__name__)


class InMemoryPolicyLedger(PolicyLedger):
    """Keeps policies and claims in process memory, guarded by one lock."""

    def __init__(self, policies: Optional[List[Policy]] = None):
        self._policies: Dict[str, Policy] = {}
        self._claims: List[ClaimRecord] = []
        self._lock = asyncio.Lock()
        for policy in policies or []:
            self._policies[policy.policy_number] = policy.model_copy(deep=True)

    async def find_policy(self, policy_number: str) -> Optional[Policy]:
        async with self._lock:
            policy = self._policies.get(policy_number)
            return policy.model_copy(deep=True) if policy else None

    async def count_prior_claims(self, policy_number: str, status: DecisionKind) -> int:
        async with self._lock:
            return sum(
                1 for c in self._claims
                if c.policy_number == policy_number and c.status == status
            )

    async def save_claim(self, record: ClaimRecord) -> None:
        async with self._lock:
            self._store_claim(record)

    async def update_policy_status(self, policy: Policy, new_status: PolicyStatus) -> None:
        async with self._lock:
            self._store_status(policy, new_status)

    async def commit(
        self,
        record: ClaimRecord,
        policy: Optional[Policy] = None,
        new_status: Optional[PolicyStatus] = None,
    ) -> None:
        async with self._lock:
            # Validate before writing anything so the pair lands together
            if policy is not None and policy.policy_number not in self._policies:
                raise LedgerError(f"Policy {policy.policy_number} does not exist")
            self._store_claim(record)
            if policy is not None and new_status is not None:
                self._store_status(policy, new_status)

    async def get_claim(self, claim_reference: str) -> Optional[ClaimRecord]:
        async with self._lock:
            for record in reversed(self._claims):
                if record.claim_reference == claim_reference:
                    return record.model_copy(deep=True)
            return None

    async def list_claims(self, policy_number: str) -> List[ClaimRecord]:
        async with self._lock:
            return [
                c.model_copy(deep=True) for c in self._claims
                if c.policy_number == policy_number
            ]

    async def save_policy(self, policy: Policy) -> None:
        async with self._lock:
            self._policies[policy.policy_number] = policy.model_copy(deep=True)

    def _store_claim(self, record: ClaimRecord) -> None:
        self._claims.append(record.model_copy(deep=True))
        logger.info(f"Saved claim {record.claim_reference} ({record.status.value}) for policy {record.policy_number}")

    def _store_status(self, policy: Policy, new_status: PolicyStatus) -> None:
        stored = self._policies.get(policy.policy_number)
        if stored is None:
            raise LedgerError(f"Policy {policy.policy_number} does not exist")
        stored.status = new_status
        policy.status = new_status
        logger.info(f"Policy {policy.policy_number} status set to {new_status.value}")
