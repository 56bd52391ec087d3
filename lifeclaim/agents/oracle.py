"""
Fraud Decision Oracle Module

Issues the residual APPROVED / REJECTED / MANUAL_REVIEW judgment on a claim
using a tool-calling Ollama chat model that can look up the policy and
retrieve policy rules.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import ollama

from lifeclaim.agents.tools import OracleTool
from lifeclaim.core.models import Policy
from lifeclaim.exceptions import OracleError

logger = logging.getLogger(__name__)


# System prompt for the Claim Fraud Analyst role
FRAUD_ANALYST_PROMPT = """You are a Life Insurance Claim Fraud Detection AI with access to policy knowledge.
Validate death claim documents by analyzing ALL provided information.

You will receive:
1. FILLED FORM INFORMATION: Information submitted by the claimant via web form
2. POLICY DATABASE INFORMATION: Policy details from the database
3. OCR-extracted text from uploaded documents, each clearly labeled:
   - CLAIM FORM DOCUMENT: Main claim application (scanned/uploaded)
   - DEATH CERTIFICATE DOCUMENT: Official death certificate
   - DOCTOR/HOSPITAL REPORT DOCUMENT: Medical report from treating physician/hospital
   - POLICE REPORT DOCUMENT: Police investigation report (for accidental death)

Available Tools:
1. retrieve_policy_rules(query): Retrieve relevant policy rules, constraints, and guidelines
2. get_policy_details(policy_number): Get specific policy information from the database

ANALYSIS STEPS:

STEP 1: VERIFY FILLED INFORMATION MATCHES DOCUMENT INFORMATION
- Compare the filled form data (names, policy number, cause of death, nominee details)
  with the OCR-extracted text from the documents
- Flag ANY mismatch in names, dates or policy numbers as potential fraud

STEP 2: VERIFY POLICY DATABASE INFORMATION
- The policy number and holder name must match across form, database and documents
- The policy status must be ACTIVE

STEP 3: CROSS-DOCUMENT VERIFICATION
- Names and dates must agree across all documents
- Cause of death must be consistent across death certificate and medical reports
- For disease deaths, the EXACT disease named in the form must appear in the hospital/doctor
  report and be confirmed by the death certificate. Example: form says "Heart Attack" but the
  hospital says "Kidney Failure" -> MISMATCH/FRAUD
- Hospital and police station names must match across documents

STEP 4: POLICY RULES VERIFICATION
- Use retrieve_policy_rules() for the cause of death, document requirements, exclusions and timelines
- Use get_policy_details() for coverage flags and the suicide exclusion window
- Check the claim is covered under the retrieved rules

STEP 5: FRAUD INDICATORS
- Meaningless or gibberish OCR text
- Inconsistent information across documents
- Disease named in the form differs from the medical records
- Missing required documents per policy rules
- Claim filed outside the allowed timeline
- Cause of death in the exclusion list

Decision Guidelines:
- APPROVED: All verifications passed, policy covers the cause, no fraud
- REJECTED: Clear fraud detected, information mismatch, policy does not cover, or critical issues
- MANUAL_REVIEW: Uncertain, missing documents, edge cases, or needs human verification

Always reference specific mismatches or verification results in your reason.

You MUST respond with ONLY a valid JSON object in this exact format:
{"decision": "APPROVED" or "REJECTED" or "MANUAL_REVIEW", "reason": "..."}

Do not include any text outside the JSON object. Do not use markdown code blocks."""


class FraudDecisionOracle(ABC):
    """External reasoning service that returns a raw decision payload."""

    @abstractmethod
    async def decide(self, transcript: str, policy_number: str, policy: Optional[Policy] = None) -> str:
        """
        Judge a claim.

        Args:
            transcript: Full role-labelled claim transcript
            policy_number: Policy the claim is filed against
            policy: The policy as adjudication currently sees it, which may
                be ahead of the ledger

        Returns:
            The raw, untrusted response payload

        Raises:
            OracleError: If no response could be produced
        """


class OllamaFraudOracle(FraudDecisionOracle):
    """
    Tool-calling fraud analyst over the Ollama chat API.

    The model may call its tools for a bounded number of rounds before it
    has to answer.
    """

    def __init__(
        self,
        client: ollama.AsyncClient,
        tools: Sequence[OracleTool],
        model: str = "llama3.1",
        max_tool_rounds: int = 6,
        temperature: float = 0.2,
    ):
        self.client = client
        self.model = model
        self.max_tool_rounds = max_tool_rounds
        self.temperature = temperature
        self._tools: Dict[str, OracleTool] = {tool.name: tool for tool in tools}

    async def decide(self, transcript: str, policy_number: str, policy: Optional[Policy] = None) -> str:
        user_prompt = f"Extracted text from claim documents: {transcript}\nPolicy number: {policy_number}"

        messages: List[Any] = [
            {
                "role": "system",
                "content": FRAUD_ANALYST_PROMPT
            },
            {
                "role": "user",
                "content": user_prompt
            }
        ]

        logger.info(f"Sending claim for policy {policy_number} to Ollama model '{self.model}' for fraud analysis")
        logger.info(f"Transcript length: {len(transcript)} chars, tools: {list(self._tools)}")

        tools = {name: tool.bind(policy) for name, tool in self._tools.items()}

        for round_number in range(1, self.max_tool_rounds + 1):
            response = await self.client.chat(
                model=self.model,
                messages=messages,
                tools=[tool.schema() for tool in tools.values()],
                options={"temperature": self.temperature}
            )

            message = response["message"]
            tool_calls = message.get("tool_calls") or []

            if not tool_calls:
                raw_response = message.get("content") or ""
                logger.info(f"Received response from Ollama: {raw_response[:200]}...")
                return raw_response

            messages.append(message)
            for call in tool_calls:
                name = call["function"]["name"]
                result = await self._run_tool(tools, name, call["function"].get("arguments") or {})
                messages.append({"role": "tool", "content": result, "tool_name": name})

            logger.info(f"Oracle round {round_number}: ran {len(tool_calls)} tool call(s)")

        raise OracleError(f"Oracle did not answer within {self.max_tool_rounds} tool rounds")

    async def _run_tool(self, tools: Dict[str, OracleTool], name: str, arguments: Dict[str, Any]) -> str:
        tool = tools.get(name)
        if tool is None:
            logger.warning(f"Oracle requested unknown tool '{name}'")
            return f"Unknown tool: {name}"

        try:
            return await tool(**arguments)
        except TypeError as e:
            logger.warning(f"Oracle called '{name}' with invalid arguments {arguments}: {e}")
            return f"Invalid arguments for {name}: {e}"
