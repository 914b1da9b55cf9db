"""
Upload service interfaces for the Lexicon upload client.

This module defines the contracts between the upload session state
machine, the byte source it slices, and the transport that talks to the
media server.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..domain.upload import (
    ChunkReceipt, InitResult, UploadArtifact, UploadMetadata, UploadProgress,
    UploadState
)
from .lifecycle import IStartable, IStoppable


class IUploadSource(ABC):
    """Read-only byte source sliced into chunks."""

    @property
    @abstractmethod
    def name(self) -> str:
        """File name reported to the server."""
        pass

    @property
    @abstractmethod
    def size(self) -> int:
        """Total byte length of the source."""
        pass

    @property
    @abstractmethod
    def content_type(self) -> str:
        """MIME type reported to the server."""
        pass

    @abstractmethod
    async def read(self, start: int, end: int) -> bytes:
        """Return the bytes in ``[start, end)``."""
        pass


class IUploadTransport(IStartable, IStoppable):
    """
    Remote operations of the chunked upload protocol.

    Implementations only serialize requests and parse responses; every
    failure is reported as the matching ``UploadError`` subclass.
    """

    @abstractmethod
    async def init_upload(
        self,
        filename: str,
        content_type: str,
        total_size: int,
        chunk_size: int,
        metadata: UploadMetadata
    ) -> InitResult:
        """
        Create a server-side upload.

        Raises:
            InitError: If the server rejects the upload
        """
        pass

    @abstractmethod
    async def upload_chunk(
        self,
        upload_id: str,
        chunk_index: int,
        data: bytes,
        checksum: Optional[str] = None
    ) -> ChunkReceipt:
        """
        Send one chunk.

        Raises:
            ChunkUploadError: If the chunk was not persisted
        """
        pass

    @abstractmethod
    async def query_missing(self, upload_id: str) -> List[int]:
        """
        List chunk indices the server has not durably accepted.

        Raises:
            MissingQueryError: If the query fails
        """
        pass

    @abstractmethod
    async def finalize(self, upload_id: str) -> UploadArtifact:
        """
        Assemble the accepted chunks into the stored artifact.

        Raises:
            FinalizeError: If assembly fails
        """
        pass

    @abstractmethod
    async def cancel(self, upload_id: str) -> None:
        """
        Ask the server to discard an upload.

        Raises:
            CancelError: If the request fails
        """
        pass


class IUploadSession(ABC):
    """Interface for one resumable chunked transfer."""

    @abstractmethod
    async def start(self, metadata: UploadMetadata) -> UploadState:
        """Initialize the upload and transfer every chunk."""
        pass

    @abstractmethod
    async def resume(self) -> UploadState:
        """Continue a paused, failed or restored upload."""
        pass

    @abstractmethod
    def pause(self) -> None:
        """Stop after the chunk currently in flight."""
        pass

    @abstractmethod
    async def cancel(self) -> None:
        """Drop local state and ask the server to discard the upload."""
        pass

    @abstractmethod
    def progress(self) -> UploadProgress:
        """Get a progress snapshot."""
        pass

    @abstractmethod
    def get_info(self) -> Dict[str, Any]:
        """Get a serializable description of the session."""
        pass
