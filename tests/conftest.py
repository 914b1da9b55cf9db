"""
Shared fixtures for the upload client tests.

``FakeTransport`` is an in-memory stand-in for the media server that
records every call and lets tests inject failures or hold a chunk
request in flight.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import pytest

from lexicon_upload.core.domain.upload import (
    ChunkReceipt, InitResult, UploadArtifact, UploadMetadata
)
from lexicon_upload.core.interfaces.upload import IUploadTransport
from lexicon_upload.infrastructure.sources.files import BytesUploadSource


class FakeTransport(IUploadTransport):
    """In-memory chunked upload server."""

    def __init__(self) -> None:
        self.uploads: Dict[str, Dict[str, Any]] = {}
        self.init_calls: List[Dict[str, Any]] = []
        self.sent: List[Tuple[int, int, Optional[str]]] = []
        self.missing_calls: List[str] = []
        self.finalize_calls: List[str] = []
        self.cancel_calls: List[str] = []
        self.started = False
        self.stopped = False

        # Failure injection
        self.init_error: Optional[Exception] = None
        self.chunk_errors: Dict[int, Exception] = {}
        self.missing_errors: List[Exception] = []
        self.finalize_errors: List[Exception] = []
        self.cancel_error: Optional[Exception] = None
        self.total_chunks_override: Optional[int] = None
        self.complete_after: Optional[int] = None
        self.missing_override: Optional[List[int]] = None

        # Called with the chunk index while its request is in flight
        self.on_chunk: Optional[Callable[[int], None]] = None

        # Hold one chunk request until released
        self.block_index: Optional[int] = None
        self.block_error: Optional[Exception] = None
        self.reached = asyncio.Event()
        self.release = asyncio.Event()

        self._next_id = 0

    @property
    def sent_indices(self) -> List[int]:
        return [index for index, _, _ in self.sent]

    def seed_upload(self, upload_id: str, total: int, received: Set[int]) -> None:
        """Pretend an earlier process already uploaded some chunks."""
        self.uploads[upload_id] = {"total": total, "received": set(received), "finalized": False}

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    async def init_upload(self, filename: str, content_type: str, total_size: int,
                          chunk_size: int, metadata: UploadMetadata) -> InitResult:
        self.init_calls.append({
            "filename": filename,
            "content_type": content_type,
            "total_size": total_size,
            "chunk_size": chunk_size,
            "metadata": metadata,
        })
        await asyncio.sleep(0)
        if self.init_error is not None:
            error, self.init_error = self.init_error, None
            raise error

        self._next_id += 1
        upload_id = f"upload-{self._next_id}"
        total = (total_size + chunk_size - 1) // chunk_size
        self.seed_upload(upload_id, total, set())
        return InitResult(upload_id=upload_id, total_chunks=self.total_chunks_override or total)

    async def upload_chunk(self, upload_id: str, chunk_index: int, data: bytes,
                           checksum: Optional[str] = None) -> ChunkReceipt:
        if self.on_chunk is not None:
            self.on_chunk(chunk_index)

        if chunk_index == self.block_index:
            self.reached.set()
            await self.release.wait()
            if self.block_error is not None:
                raise self.block_error
        else:
            await asyncio.sleep(0)

        if chunk_index in self.chunk_errors:
            raise self.chunk_errors.pop(chunk_index)

        self.sent.append((chunk_index, len(data), checksum))
        upload = self.uploads[upload_id]
        upload["received"].add(chunk_index)

        is_complete = len(upload["received"]) == upload["total"]
        if self.complete_after is not None and len(self.sent) >= self.complete_after:
            is_complete = True
        return ChunkReceipt(index=chunk_index, accepted=True, is_complete=is_complete)

    async def query_missing(self, upload_id: str) -> List[int]:
        self.missing_calls.append(upload_id)
        await asyncio.sleep(0)
        if self.missing_errors:
            raise self.missing_errors.pop(0)
        if self.missing_override is not None:
            return list(self.missing_override)

        upload = self.uploads[upload_id]
        return sorted(set(range(upload["total"])) - upload["received"])

    async def finalize(self, upload_id: str) -> UploadArtifact:
        self.finalize_calls.append(upload_id)
        await asyncio.sleep(0)
        if self.finalize_errors:
            raise self.finalize_errors.pop(0)

        self.uploads[upload_id]["finalized"] = True
        return UploadArtifact(upload_id=upload_id, data={"id": 7, "title": "Finished"})

    async def cancel(self, upload_id: str) -> None:
        self.cancel_calls.append(upload_id)
        await asyncio.sleep(0)
        if self.cancel_error is not None:
            raise self.cancel_error
        if upload_id in self.uploads:
            self.uploads[upload_id]["cancelled"] = True


@pytest.fixture
async def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def metadata() -> UploadMetadata:
    return UploadMetadata(title="Holiday footage", owner_id="user-1", description="Beach", is_public=True)


@pytest.fixture
def source_25() -> BytesUploadSource:
    """25 bytes, which splits into chunks of 10, 10 and 5 with chunk_size=10."""
    return BytesUploadSource(bytes(range(25)), name="clip.mp4", content_type="video/mp4")


