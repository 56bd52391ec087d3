# Agents module
from .ocr_agent import OllamaTextExtractor, TextExtractor
from .ingestor import DocumentIngestor
from .validator import CrossFieldFraudValidator
from .tools import KnowledgeRetrievalTool, OracleTool, PolicyLookupTool
from .oracle import FraudDecisionOracle, OllamaFraudOracle
from .decision import DecisionOracleAdapter, parse_oracle_response
from .orchestrator import AdjudicationOrchestrator, generate_claim_reference

__all__ = [
    "TextExtractor",
    "OllamaTextExtractor",
    "DocumentIngestor",
    "CrossFieldFraudValidator",
    "OracleTool",
    "PolicyLookupTool",
    "KnowledgeRetrievalTool",
    "FraudDecisionOracle",
    "OllamaFraudOracle",
    "DecisionOracleAdapter",
    "parse_oracle_response",
    "AdjudicationOrchestrator",
    "generate_claim_reference",
]
