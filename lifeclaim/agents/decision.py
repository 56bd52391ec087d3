"""
Decision Oracle Adapter

Consults the fraud oracle and turns its untrusted payload into an
AdjudicationDecision. Any failure degrades to MANUAL_REVIEW.
"""
import asyncio
import json
import logging
from typing import Optional

from pydantic import BaseModel

from lifeclaim.agents.oracle import FraudDecisionOracle
from lifeclaim.core.models import AdjudicationDecision, Outcome, Policy
from lifeclaim.core.states import DecisionKind

logger = logging.getLogger(__name__)

MISSING_REASON = "Unable to parse AI response"
UNPARSEABLE_REASON = "Failed to parse AI response. Manual review required."


class OracleContext(BaseModel):
    """What the oracle gets to see about a claim."""
    transcript: str
    policy_number: str
    policy: Optional[Policy] = None


class DecisionOracleAdapter:
    """
    Single-shot oracle consultation with safe fallbacks.

    Never raises and never retries: a failed call becomes MANUAL_REVIEW.
    """

    def __init__(self, oracle: FraudDecisionOracle, timeout_seconds: Optional[float] = None):
        self.oracle = oracle
        self.timeout_seconds = timeout_seconds

    async def decide(
        self, transcript: str, policy_number: str, policy: Optional[Policy] = None
    ) -> AdjudicationDecision:
        """
        Obtain a decision for a claim.

        Args:
            transcript: Full role-labelled claim transcript
            policy_number: Policy the claim is filed against
            policy: Working copy of the policy, including any uncommitted re-open

        Returns:
            The oracle's decision, or MANUAL_REVIEW if it could not be trusted
        """
        context = OracleContext(transcript=transcript, policy_number=policy_number, policy=policy)

        outcome = await self._consult(context)
        if not outcome.succeeded:
            return AdjudicationDecision.manual_review(
                f"AI analysis failed: {outcome.error}. Manual review required."
            )

        decision = parse_oracle_response(outcome.value)
        logger.info(f"AI Decision for policy {policy_number}: {decision.kind.value} - {decision.reason}")
        return decision

    async def _consult(self, context: OracleContext) -> Outcome[str]:
        try:
            raw = await asyncio.wait_for(
                self.oracle.decide(context.transcript, context.policy_number, context.policy),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(f"Oracle timed out after {self.timeout_seconds}s for policy {context.policy_number}")
            return Outcome.failed(f"oracle timed out after {self.timeout_seconds} seconds")
        except Exception as e:
            logger.error(f"Error calling oracle for policy {context.policy_number}: {e}")
            return Outcome.failed(str(e) or type(e).__name__)

        if raw is None:
            return Outcome.failed("oracle returned no payload")
        if not isinstance(raw, str):
            logger.error(f"Oracle returned a {type(raw).__name__} payload for policy {context.policy_number}")
            return Outcome.failed(f"oracle returned a non-text payload ({type(raw).__name__})")
        return Outcome.ok(raw)


def strip_code_fences(payload: str) -> str:
    """Remove leading ```json / ``` and trailing ``` markers."""
    clean = payload.strip()
    if clean.lower().startswith("```json"):
        clean = clean[7:]
    elif clean.startswith("```"):
        clean = clean[3:]
    if clean.endswith("```"):
        clean = clean[:-3]
    return clean.strip()


def parse_oracle_response(payload: str) -> AdjudicationDecision:
    """
    Parse and validate the oracle's response.

    Expects a JSON object with `decision` and `reason`. A decision outside
    APPROVED / REJECTED / MANUAL_REVIEW, or a payload that is not such an
    object, is coerced to MANUAL_REVIEW.
    """
    try:
        data = json.loads(strip_code_fences(payload))
    except (ValueError, RecursionError):
        logger.warning(f"Failed to parse AI response: {payload[:200]}")
        return AdjudicationDecision.manual_review(UNPARSEABLE_REASON)

    if not isinstance(data, dict):
        logger.warning(f"AI response is not a JSON object: {payload[:200]}")
        return AdjudicationDecision.manual_review(UNPARSEABLE_REASON)

    label = data.get("decision", DecisionKind.MANUAL_REVIEW.value)
    reason = data.get("reason")
    reason = MISSING_REASON if reason is None else str(reason)

    try:
        kind = DecisionKind(label)
    except ValueError:
        logger.warning(f"Invalid decision from AI: {label!r}")
        return AdjudicationDecision.manual_review(f"Invalid decision from AI: {label}. {reason}")

    return AdjudicationDecision(kind=kind, reason=reason)
