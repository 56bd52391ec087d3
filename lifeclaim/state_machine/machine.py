"""
Policy Lifecycle State Machine

Validates policy status transitions and maps adjudication decisions
onto the status a policy should end up in.
"""
from typing import Dict, List, Set

from lifeclaim.core.models import Policy
from lifeclaim.core.states import DecisionKind, PolicyStatus
from lifeclaim.exceptions import InvalidTransitionError


class PolicyLifecycle:
    """
    State machine for policy status changes made by adjudication.

    Only the orchestrator drives it, and only on its own copy of the policy;
    nothing here touches storage.
    """

    # Define valid transitions (from_state -> set of valid to_states)
    TRANSITIONS: Dict[PolicyStatus, Set[PolicyStatus]] = {
        PolicyStatus.ACTIVE: {
            PolicyStatus.CLAIMED,
            PolicyStatus.UNDER_REVIEW,
            PolicyStatus.REJECTED,
        },
        PolicyStatus.REJECTED: {
            PolicyStatus.ACTIVE,        # Retry re-open
            PolicyStatus.UNDER_REVIEW,  # Escalation
            PolicyStatus.REJECTED,
        },
        PolicyStatus.UNDER_REVIEW: set(),  # Awaiting a human
        PolicyStatus.CLAIMED: set(),       # Terminal state
    }

    # Where a policy lands after a committed decision
    DECISION_OUTCOMES: Dict[DecisionKind, PolicyStatus] = {
        DecisionKind.APPROVED: PolicyStatus.CLAIMED,
        DecisionKind.MANUAL_REVIEW: PolicyStatus.UNDER_REVIEW,
        DecisionKind.REJECTED: PolicyStatus.REJECTED,
    }

    def get_valid_transitions(self, policy: Policy) -> List[PolicyStatus]:
        """Get list of valid next statuses for a policy."""
        return sorted(self.TRANSITIONS.get(policy.status, set()), key=lambda s: s.value)

    def can_transition(self, policy: Policy, target: PolicyStatus) -> bool:
        """Check if a transition to target is valid."""
        return target in self.TRANSITIONS.get(policy.status, set())

    def transition(self, policy: Policy, target: PolicyStatus) -> Policy:
        """
        Execute a status transition on the given policy object.

        Args:
            policy: The policy to transition
            target: The desired next status

        Returns:
            The same policy with its status updated

        Raises:
            InvalidTransitionError: If the transition is not valid
        """
        if not self.can_transition(policy, target):
            valid = self.get_valid_transitions(policy)
            raise InvalidTransitionError(
                f"Invalid transition for policy {policy.policy_number} from "
                f"{policy.status.value} to {target.value}. "
                f"Valid transitions: {[s.value for s in valid]}"
            )

        policy.status = target
        return policy

    def status_for(self, decision: DecisionKind) -> PolicyStatus:
        """Policy status implied by a committed decision."""
        return self.DECISION_OUTCOMES[decision]

    def is_open_for_claims(self, policy: Policy) -> bool:
        return policy.status is PolicyStatus.ACTIVE
