"""
Blob Store

Persists raw claim documents and hands back a location string for the
claim record.
"""
import asyncio
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from uuid import uuid4

from lifeclaim.exceptions import BlobStoreError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class BlobStore(ABC):
    """Write-only document storage."""

    @abstractmethod
    async def upload(self, data: bytes, original_name: str, content_type: str) -> str:
        """
        Store a document.

        Returns:
            Location of the stored document

        Raises:
            BlobStoreError: If the document could not be written
        """


class LocalBlobStore(BlobStore):
    """
    Stores documents as files under a root directory.

    Every upload gets a fresh name, so repeating an upload never
    overwrites an earlier one.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    async def upload(self, data: bytes, original_name: str, content_type: str) -> str:
        blob_name = f"{uuid4()}-{_safe_name(original_name)}"
        target = self.root / blob_name

        try:
            await asyncio.to_thread(self._write, target, data)
        except OSError as e:
            raise BlobStoreError(f"File upload failed for {original_name}: {e}", e)

        logger.info(f"Stored {original_name} ({content_type}, {len(data)} bytes) as {blob_name}")
        return target.resolve().as_uri()

    def _write(self, target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)


def _safe_name(name: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("_", Path(name or "").name).strip("._")
    return cleaned or "document"
