"""
OCR Agent Module

Transcribes scanned claim documents using a local Ollama vision model
(Llama 3.2-Vision by default).
"""
import base64
import logging
from abc import ABC, abstractmethod

import ollama

from lifeclaim.core.models import Outcome
from lifeclaim.exceptions import OLLAMA_ERRORS

logger = logging.getLogger(__name__)


# System prompt for the OCR role
OCR_SYSTEM_PROMPT = """You are an expert OCR system. Extract ALL text from the document image exactly as it appears.
Preserve formatting, line breaks, and structure.
Return ONLY the extracted text, no explanations or additional commentary."""

OCR_USER_PROMPT = "Extract all text from this document image. Return the exact text as it appears in the document."


class TextExtractor(ABC):
    """Turns a document's bytes into text."""

    @abstractmethod
    async def extract(self, data: bytes, content_type: str) -> Outcome[str]:
        """Extract text, reporting failure as a reason instead of raising."""

    async def extract_text(self, data: bytes, content_type: str) -> str:
        """
        Extract text from a document.

        Never raises: any failure yields an empty string.
        """
        outcome = await self.extract(data, content_type)
        return outcome.value_or("")


class OllamaTextExtractor(TextExtractor):
    """
    Vision-model OCR over the Ollama chat API.

    Images go through the vision model; plain-text uploads are decoded
    directly. Other content types are reported as unsupported.
    """

    def __init__(self, client: ollama.AsyncClient, model: str = "llama3.2-vision"):
        self.client = client
        self.model = model

    async def extract(self, data: bytes, content_type: str) -> Outcome[str]:
        if not data:
            return Outcome.failed("Document is empty")

        content_type = (content_type or "").lower()

        if content_type.startswith("text/"):
            return _non_empty(data.decode("utf-8", errors="replace"))

        if not content_type.startswith("image/"):
            return Outcome.failed(f"Unsupported content type for OCR: {content_type or 'unknown'}")

        image_base64 = base64.b64encode(data).decode("utf-8")

        logger.info(f"Sending {len(data)} byte {content_type} document to Ollama model '{self.model}' for OCR")

        try:
            response = await self.client.chat(
                model=self.model,
                messages=[
                    {
                        "role": "system",
                        "content": OCR_SYSTEM_PROMPT
                    },
                    {
                        "role": "user",
                        "content": OCR_USER_PROMPT,
                        "images": [image_base64]
                    }
                ],
                options={"temperature": 0.0}
            )
        except OLLAMA_ERRORS as e:
            logger.warning(f"OCR extraction failed: {e}")
            return Outcome.failed(f"OCR extraction failed: {e}")

        extracted = response["message"]["content"] or ""
        logger.info(f"OCR completed - {len(extracted)} chars")

        return _non_empty(extracted)


def _non_empty(text: str) -> Outcome[str]:
    text = text.strip()
    if not text:
        return Outcome.failed("No text could be extracted")
    return Outcome.ok(text)
