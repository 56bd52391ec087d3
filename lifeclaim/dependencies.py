"""
Service Wiring

Builds the adjudication collaborators explicitly from settings and exposes
them to the API through FastAPI dependencies.
"""
import logging
from dataclasses import dataclass

import ollama
from fastapi import Request

from lifeclaim.agents.decision import DecisionOracleAdapter
from lifeclaim.agents.ingestor import DocumentIngestor
from lifeclaim.agents.ocr_agent import OllamaTextExtractor
from lifeclaim.agents.oracle import OllamaFraudOracle
from lifeclaim.agents.orchestrator import AdjudicationOrchestrator
from lifeclaim.agents.tools import KnowledgeRetrievalTool, PolicyLookupTool
from lifeclaim.agents.validator import CrossFieldFraudValidator
from lifeclaim.config import Settings
from lifeclaim.knowledge.rules import PolicyRulesKnowledgeBase
from lifeclaim.ledger.base import PolicyLedger
from lifeclaim.ledger.sql import SqlPolicyLedger
from lifeclaim.state_machine.machine import PolicyLifecycle
from lifeclaim.storage.blob_store import LocalBlobStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Long-lived collaborators shared by all requests."""
    ledger: PolicyLedger
    knowledge_base: PolicyRulesKnowledgeBase
    orchestrator: AdjudicationOrchestrator

    async def start(self) -> None:
        if isinstance(self.ledger, SqlPolicyLedger):
            await self.ledger.create_schema()
        await self.knowledge_base.load()

    async def stop(self) -> None:
        await self.ledger.close()


def build_container(settings: Settings) -> ServiceContainer:
    """
    Construct every collaborator from settings.

    Args:
        settings: Application settings

    Returns:
        ServiceContainer ready to be started
    """
    client = ollama.AsyncClient(host=settings.ollama_host)

    ledger = SqlPolicyLedger.from_url(settings.database_url, echo=settings.database_echo)
    knowledge_base = PolicyRulesKnowledgeBase(
        client,
        model=settings.embedding_model,
        chunk_size=settings.rules_chunk_size,
        chunk_overlap=settings.rules_chunk_overlap,
        top_k=settings.rules_top_k,
    )

    ingestor = DocumentIngestor(
        blob_store=LocalBlobStore(settings.blob_storage_dir),
        extractor=OllamaTextExtractor(client, model=settings.ocr_model),
    )
    oracle = OllamaFraudOracle(
        client,
        tools=[PolicyLookupTool(ledger), KnowledgeRetrievalTool(knowledge_base)],
        model=settings.oracle_model,
        max_tool_rounds=settings.oracle_max_tool_rounds,
    )
    orchestrator = AdjudicationOrchestrator(
        ledger=ledger,
        ingestor=ingestor,
        validator=CrossFieldFraudValidator(),
        adapter=DecisionOracleAdapter(oracle, timeout_seconds=settings.oracle_timeout_seconds),
        lifecycle=PolicyLifecycle(),
        escalation_threshold=settings.escalation_threshold,
    )

    logger.info(
        f"Services configured: ocr={settings.ocr_model}, oracle={settings.oracle_model}, "
        f"embeddings={settings.embedding_model}, ollama={settings.ollama_host}"
    )
    return ServiceContainer(ledger=ledger, knowledge_base=knowledge_base, orchestrator=orchestrator)


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_orchestrator(request: Request) -> AdjudicationOrchestrator:
    return get_container(request).orchestrator


def get_ledger(request: Request) -> PolicyLedger:
    return get_container(request).ledger


def get_knowledge_base(request: Request) -> PolicyRulesKnowledgeBase:
    return get_container(request).knowledge_base
