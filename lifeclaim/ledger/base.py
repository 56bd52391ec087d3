"""
Policy Ledger Interface

Read/write contract the adjudication core needs from persistence.
No business logic lives behind it.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from lifeclaim.core.models import ClaimRecord, Policy
from lifeclaim.core.states import DecisionKind, PolicyStatus


class PolicyLedger(ABC):
    """
    Storage for policies and the claim records filed against them.

    Policies handed out are detached copies: changing one does not change
    stored state until it is written back through the ledger.
    """

    @abstractmethod
    async def find_policy(self, policy_number: str) -> Optional[Policy]:
        """Look up a policy by number, or None if unknown."""

    @abstractmethod
    async def count_prior_claims(self, policy_number: str, status: DecisionKind) -> int:
        """Count claims on a policy that ended with the given status."""

    @abstractmethod
    async def save_claim(self, record: ClaimRecord) -> None:
        """Persist a claim record."""

    @abstractmethod
    async def update_policy_status(self, policy: Policy, new_status: PolicyStatus) -> None:
        """Persist a new lifecycle status for a policy."""

    @abstractmethod
    async def commit(
        self,
        record: ClaimRecord,
        policy: Optional[Policy] = None,
        new_status: Optional[PolicyStatus] = None,
    ) -> None:
        """
        Persist a claim record and, if given, the policy status it triggered.

        The claim is written first, and both writes are applied as one unit.
        """

    @abstractmethod
    async def get_claim(self, claim_reference: str) -> Optional[ClaimRecord]:
        """Fetch a claim record by reference."""

    @abstractmethod
    async def list_claims(self, policy_number: str) -> List[ClaimRecord]:
        """All claim records for a policy, oldest first."""

    @abstractmethod
    async def save_policy(self, policy: Policy) -> None:
        """Insert or replace a policy. Used for out-of-band seeding."""

    async def close(self) -> None:
        """Release any held resources."""
