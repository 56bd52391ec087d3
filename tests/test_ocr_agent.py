"""Tests for OCR text extraction and blob storage."""

import base64
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from lifeclaim.agents.ocr_agent import OCR_SYSTEM_PROMPT, OllamaTextExtractor
from lifeclaim.exceptions import BlobStoreError
from lifeclaim.storage import LocalBlobStore


@pytest.fixture
def chat_client() -> AsyncMock:
    client = AsyncMock()
    client.chat.return_value = {"message": {"role": "assistant", "content": "  DEATH CERTIFICATE\nName: Jane Doe  "}}
    return client


class TestOllamaTextExtractor:

    @pytest.mark.asyncio
    async def test_image_is_sent_to_vision_model(self, chat_client):
        extractor = OllamaTextExtractor(chat_client, model="llama3.2-vision")

        outcome = await extractor.extract(b"\x89PNG fake", "image/png")

        assert outcome.succeeded
        assert outcome.value == "DEATH CERTIFICATE\nName: Jane Doe"
        kwargs = chat_client.chat.call_args.kwargs
        assert kwargs["model"] == "llama3.2-vision"
        assert kwargs["messages"][0]["content"] == OCR_SYSTEM_PROMPT
        assert kwargs["messages"][1]["images"] == [base64.b64encode(b"\x89PNG fake").decode("utf-8")]
        assert kwargs["options"] == {"temperature": 0.0}

    @pytest.mark.asyncio
    async def test_plain_text_is_decoded_without_model(self, chat_client):
        extractor = OllamaTextExtractor(chat_client)

        outcome = await extractor.extract(b"Policy P001\n", "text/plain; charset=utf-8")

        assert outcome.value == "Policy P001"
        chat_client.chat.assert_not_called()

    @pytest.mark.asyncio
    async def test_unsupported_type_fails(self, chat_client):
        extractor = OllamaTextExtractor(chat_client)

        outcome = await extractor.extract(b"%PDF-1.7", "application/pdf")

        assert not outcome.succeeded
        assert outcome.error == "Unsupported content type for OCR: application/pdf"
        chat_client.chat.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_document_fails(self, chat_client):
        outcome = await OllamaTextExtractor(chat_client).extract(b"", "image/png")

        assert outcome.error == "Document is empty"

    @pytest.mark.asyncio
    async def test_model_failure_yields_empty_text(self, chat_client):
        chat_client.chat.side_effect = ConnectionError("Failed to connect to Ollama")
        extractor = OllamaTextExtractor(chat_client)

        outcome = await extractor.extract(b"image", "image/jpeg")

        assert outcome.error.startswith("OCR extraction failed")
        assert await extractor.extract_text(b"image", "image/jpeg") == ""

    @pytest.mark.asyncio
    async def test_blank_model_output_fails(self, chat_client):
        chat_client.chat.return_value = {"message": {"role": "assistant", "content": "   "}}

        outcome = await OllamaTextExtractor(chat_client).extract(b"image", "image/jpeg")

        assert outcome.error == "No text could be extracted"


class TestLocalBlobStore:

    @pytest.mark.asyncio
    async def test_upload_writes_file_and_returns_uri(self, tmp_path):
        store = LocalBlobStore(tmp_path / "blobs")

        location = await store.upload(b"scan", "death certificate.png", "image/png")

        assert location.startswith("file://")
        stored = list((tmp_path / "blobs").iterdir())
        assert len(stored) == 1
        assert stored[0].name.endswith("-death_certificate.png")
        assert stored[0].read_bytes() == b"scan"

    @pytest.mark.asyncio
    async def test_repeated_uploads_do_not_overwrite(self, tmp_path):
        store = LocalBlobStore(tmp_path)

        first = await store.upload(b"one", "form.png", "image/png")
        second = await store.upload(b"two", "form.png", "image/png")

        assert first != second
        assert len(list(tmp_path.iterdir())) == 2

    @pytest.mark.asyncio
    async def test_path_components_are_stripped(self, tmp_path):
        store = LocalBlobStore(tmp_path / "blobs")

        await store.upload(b"x", "../../etc/passwd", "text/plain")

        stored = list((tmp_path / "blobs").iterdir())
        assert stored[0].name.endswith("-passwd")

    @pytest.mark.asyncio
    async def test_write_failure_raises_blob_store_error(self, tmp_path):
        blocked = tmp_path / "blocked"
        blocked.write_text("not a directory")
        store = LocalBlobStore(Path(blocked))

        with pytest.raises(BlobStoreError, match="File upload failed for form.png"):
            await store.upload(b"x", "form.png", "image/png")
