"""
Oracle Tools

Read-only tools the fraud oracle may call while reasoning about a claim.
"""
import logging
from typing import Any, Dict, Optional

from lifeclaim.core.models import Policy
from lifeclaim.exceptions import OLLAMA_ERRORS
from lifeclaim.knowledge.rules import PolicyRulesKnowledgeBase
from lifeclaim.ledger.base import PolicyLedger

logger = logging.getLogger(__name__)


FALLBACK_GUIDELINES = """General Insurance Policy Guidelines (RAG unavailable):
- Active policies required for claims
- Claims must be filed within 30 days of death
- Suicide generally excluded in first year
- Accidental death requires police report
- Natural death requires death certificate
- All documents must be genuine and verifiable
- Non-existent hospitals/police stations indicate fraud"""

NO_RULES_FOUND = "No specific policy rules found for this query. Apply general insurance claim guidelines."
RETRIEVAL_ERROR = "Error retrieving policy rules. Using general insurance guidelines."


class OracleTool:
    """A named async function exposed to the oracle model."""

    name: str = ""
    description: str = ""
    parameters: Dict[str, Any] = {}

    def schema(self) -> Dict[str, Any]:
        """Tool definition in the Ollama chat API format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def bind(self, policy: Optional[Policy]) -> "OracleTool":
        """Tool instance to use while judging a claim against `policy`."""
        return self

    async def __call__(self, **kwargs: Any) -> str:
        raise NotImplementedError


class PolicyLookupTool(OracleTool):
    """Fetches a formatted policy summary from the ledger."""

    name = "get_policy_details"
    description = "Fetch policy details by policy number. Returns policy rules and coverage information."
    parameters = {
        "type": "object",
        "properties": {
            "policy_number": {"type": "string", "description": "The policy number to look up"},
        },
        "required": ["policy_number"],
    }

    def __init__(self, ledger: PolicyLedger, in_flight: Optional[Policy] = None):
        self.ledger = ledger
        self.in_flight = in_flight

    def bind(self, policy: Optional[Policy]) -> "PolicyLookupTool":
        return PolicyLookupTool(self.ledger, in_flight=policy)

    async def __call__(self, policy_number: str) -> str:
        logger.info(f"[{self.name}] Looking up policy {policy_number}")
        policy = await self.ledger.find_policy(policy_number)

        if policy is None:
            return f"Policy not found for number: {policy_number}"

        # A re-opened policy is only ACTIVE in memory until the claim commits
        if self.in_flight is not None and self.in_flight.policy_number == policy.policy_number:
            policy = policy.model_copy(update={"status": self.in_flight.status})

        return (
            f"Policy Number: {policy.policy_number}\n"
            f"Policy Holder: {policy.policy_holder_name}\n"
            f"Date of Birth: {policy.date_of_birth}\n"
            f"Issue Date: {policy.issue_date}\n"
            f"Maturity Date: {policy.maturity_date}\n"
            f"Status: {policy.status.value}\n"
            f"Suicide Coverage After: {policy.suicide_coverage_after_years} years\n"
            f"Covers Accident: {policy.covers_accident}\n"
            f"Covers Natural Death: {policy.covers_natural_death}\n"
            f"Covers Disease: {policy.covers_disease}\n"
        )


class KnowledgeRetrievalTool(OracleTool):
    """Retrieves policy rules relevant to a query from the knowledge base."""

    name = "retrieve_policy_rules"
    description = (
        "Retrieve relevant policy rules and constraints based on the query. Use this to understand "
        "what the policy covers, exclusions, required documents, and processing rules."
    )
    parameters = {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "What to look up, e.g. 'suicide coverage' or 'accidental death documents'",
            },
        },
        "required": ["query"],
    }

    def __init__(self, knowledge_base: PolicyRulesKnowledgeBase):
        self.knowledge_base = knowledge_base

    async def __call__(self, query: str) -> str:
        logger.info(f"[{self.name}] Query: {query}")

        if not self.knowledge_base.enabled:
            logger.warning(f"[{self.name}] Knowledge base is disabled - returning general guidelines")
            return FALLBACK_GUIDELINES

        try:
            segments = await self.knowledge_base.retrieve(query)
        except OLLAMA_ERRORS as e:
            logger.warning(f"[{self.name}] Error retrieving policy rules: {e}")
            return RETRIEVAL_ERROR

        if not segments:
            return NO_RULES_FOUND

        return "Relevant Policy Rules:\n\n" + "\n\n".join(segments)
