"""
Policy Rules Knowledge Base

In-memory vector store of life-insurance policy rules, embedded through
Ollama and searched by cosine similarity.
"""
import logging
from typing import Iterable, List, Optional

import numpy as np
import ollama

from lifeclaim.exceptions import OLLAMA_ERRORS

logger = logging.getLogger(__name__)


DEFAULT_POLICY_RULES: List[str] = [
    # General Policy Rules
    """
    General Policy Rules:
    - All policies must be active to process claims.
    - Policy holder must have paid all premiums up to date.
    - Claims must be filed within 30 days of the incident.
    - Claim form must be filled completely with all required documents.
    """,

    # Suicide Coverage
    """
    Suicide Coverage Rules:
    - Suicide is NOT covered within the suicide exclusion window after policy issuance (typically 1 year).
    - If suicide occurs after the exclusion window, the claim may be processed.
    - Death certificate must clearly state cause as suicide.
    - Police report and medical examination required for suicide claims.
    """,

    # Accidental Death Coverage
    """
    Accidental Death Coverage Rules:
    - Accidental death is covered if the policy includes accident coverage.
    - Police FIR (First Information Report) is mandatory for accidental death claims.
    - Hospital admission records and doctor reports required.
    - Accident must be verified and not related to illegal activities.
    - Death must occur within 180 days of the accident.
    """,

    # Natural Death Coverage
    """
    Natural Death Coverage Rules:
    - Natural death due to disease or medical conditions is covered.
    - Death certificate from registered medical practitioner required.
    - Hospital discharge summary or doctor's report required if hospitalized.
    - Pre-existing conditions may be excluded for first 2 years unless disclosed.
    """,

    # Disease Coverage
    """
    Disease Death Coverage Rules:
    - Death due to disease is covered under natural death coverage.
    - Medical history and treatment records required.
    - Hospital bills and discharge summary required if hospitalized.
    - Terminal illness claims require specialist doctor certification.
    """,

    # Document Requirements
    """
    Required Documents for Claims:
    - Death Certificate (mandatory for all claims)
    - Completed Claim Form with nominee details (mandatory)
    - Original Policy Document (mandatory)
    - For Accidental Death: Police FIR, Postmortem Report, Hospital Records
    - For Natural Death: Doctor's Certificate, Hospital Records (if applicable)
    - For Disease Death: Medical Records, Treatment History, Hospital Bills
    - Identity proof of nominee and claimant (mandatory)
    """,

    # Exclusions
    """
    Policy Exclusions:
    - Death due to war, terrorism, or riot (excluded)
    - Death due to drug overdose or alcohol poisoning (excluded unless accidental)
    - Self-inflicted injuries (excluded)
    - Death during illegal activities (excluded)
    - Aviation accidents (excluded unless passenger in commercial flight)
    - Pre-existing conditions not disclosed at policy purchase (may be excluded)
    """,

    # Claim Process Timeline
    """
    Claim Processing Timeline:
    - Claim notification must be given within 7 days of death.
    - All documents must be submitted within 30 days of death.
    - Claim processing takes 15-30 days after document verification.
    - If investigation required, additional 30-60 days may be needed.
    - Approved claims paid within 7 days of approval.
    """,

    # Fraud Detection Rules
    """
    Fraud Detection Guidelines:
    - Claims with fake or forged documents will be rejected.
    - Non-existent hospitals or police stations indicate fraud.
    - Inconsistent information across documents requires investigation.
    - Claims with gibberish or meaningless OCR text are suspicious.
    - Multiple claims for same policy number require verification.
    - Claims filed immediately after policy purchase require extra scrutiny.
    """,
]


class PolicyRulesKnowledgeBase:
    """
    Embeds policy rules once and answers similarity queries against them.

    If the embedding model is unreachable when rules are loaded, the base
    stays disabled and callers fall back to general guidelines.
    """

    def __init__(
        self,
        client: ollama.AsyncClient,
        model: str = "nomic-embed-text",
        chunk_size: int = 300,
        chunk_overlap: int = 50,
        top_k: int = 5,
    ):
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError("chunk_overlap must be non-negative and smaller than chunk_size")
        self.client = client
        self.model = model
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.top_k = top_k
        self._segments: List[str] = []
        self._vectors: Optional[np.ndarray] = None
        self._enabled = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def segment_count(self) -> int:
        return len(self._segments)

    async def load(self, rules: Iterable[str] = DEFAULT_POLICY_RULES) -> None:
        """Embed the given rules into a fresh store, enabling retrieval on success."""
        segments = [s for rule in rules for s in split_rule(rule, self.chunk_size, self.chunk_overlap)]
        if not segments:
            self._segments, self._vectors, self._enabled = [], None, True
            logger.info("Policy rules knowledge base started empty")
            return

        try:
            vectors = await self._embed(segments)
        except OLLAMA_ERRORS as e:
            logger.warning(f"Failed to initialize policy rules knowledge base, RAG disabled: {e}")
            self._enabled = False
            return

        self._segments = segments
        self._vectors = vectors
        self._enabled = True
        logger.info(f"Loaded {len(segments)} policy rule segments into vector store")

    async def add_rule(self, rule: str) -> int:
        """
        Add a policy rule to the store.

        Returns:
            Number of segments added (0 when the store is disabled)
        """
        if not self._enabled:
            logger.warning("Knowledge base is disabled - cannot add policy rule")
            return 0

        segments = split_rule(rule, self.chunk_size, self.chunk_overlap)
        if not segments:
            return 0

        vectors = await self._embed(segments)
        self._segments.extend(segments)
        self._vectors = vectors if self._vectors is None else np.vstack([self._vectors, vectors])
        logger.info(f"Added policy rule ({len(segments)} segments)")
        return len(segments)

    async def retrieve(self, query: str, max_results: Optional[int] = None) -> List[str]:
        """
        Most relevant rule segments for a query, best match first.

        Raises:
            ollama.ResponseError, httpx.HTTPError, ConnectionError: If the
                query cannot be embedded
        """
        if not self._enabled or self._vectors is None or not self._segments:
            return []

        limit = max_results or self.top_k
        query_vector = (await self._embed([query]))[0]
        scores = self._vectors @ query_vector
        best = np.argsort(scores)[::-1][:limit]

        logger.info(f"Retrieved {len(best)} policy rule segments for query '{query}'")
        return [self._segments[i] for i in best]

    async def _embed(self, texts: List[str]) -> np.ndarray:
        """Embed texts as unit-length rows, so a dot product is cosine similarity."""
        response = await self.client.embed(model=self.model, input=texts)
        vectors = np.asarray(response["embeddings"], dtype=np.float32)
        norms = np.linalg.norm(vectors, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        return vectors / norms


def split_rule(text: str, chunk_size: int = 300, overlap: int = 50) -> List[str]:
    """
    Split a rule into segments of at most `chunk_size` characters.

    Lines are packed greedily; each new segment starts with the last
    `overlap` characters of the previous one.
    """
    lines = [line.strip() for line in text.strip().splitlines() if line.strip()]
    segments: List[str] = []
    current = ""

    for line in lines:
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) <= chunk_size:
            current = candidate
            continue

        if current:
            segments.append(current)
            tail = current[-overlap:] if overlap else ""
            current = f"{tail}\n{line}" if tail else line
        else:
            current = line

        while len(current) > chunk_size:
            segments.append(current[:chunk_size])
            current = current[chunk_size - overlap:]

    if current:
        segments.append(current)
    return segments
