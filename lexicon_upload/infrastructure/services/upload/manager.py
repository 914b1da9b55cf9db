"""
Upload Manager implementation for the Lexicon upload client.

This module keeps the registry of upload sessions, applies the
large-file threshold and shares the transport, hasher and event bus
between sessions.
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional

from ....core.domain.upload import (
    DEFAULT_CHUNK_SIZE, LARGE_FILE_THRESHOLD, UploadMetadata, UploadState
)
from ....core.interfaces.lifecycle import IComponent
from ....core.interfaces.messaging import IEventBus
from ....core.interfaces.upload import IUploadSource, IUploadTransport
from ...chunking.hasher import DEFAULT_ALGORITHM, ChunkHasher
from .session import UploadSession

logger = logging.getLogger(__name__)


class UploadManager(IComponent):
    """
    Upload manager service.

    Files below the large-file threshold are not accepted: they belong to
    the single-request upload endpoint, which callers handle themselves.
    """

    def __init__(
        self,
        transport: IUploadTransport,
        event_bus: Optional[IEventBus] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        large_file_threshold: int = LARGE_FILE_THRESHOLD,
        checksum_algorithm: Optional[str] = DEFAULT_ALGORITHM
    ):
        """
        Initialize upload manager.

        Args:
            transport: Transport shared by every session
            event_bus: Event bus for publishing upload events
            chunk_size: Chunk size for new sessions
            large_file_threshold: Minimum size handled by chunked upload
            checksum_algorithm: hashlib algorithm for chunk checksums, None to disable
        """
        if chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")

        self._transport = transport
        self._event_bus = event_bus
        self._chunk_size = chunk_size
        self._large_file_threshold = large_file_threshold
        self._hasher = ChunkHasher(checksum_algorithm)

        self._sessions: Dict[str, UploadSession] = {}
        self._running = False

    @property
    def name(self) -> str:
        return "UploadManager"

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def large_file_threshold(self) -> int:
        return self._large_file_threshold

    async def start(self) -> None:
        """Start the upload manager service."""
        if self._running:
            return

        await self._transport.start()
        self._running = True
        logger.info("Upload manager started")

    async def stop(self) -> None:
        """
        Stop the upload manager service.

        Transferring sessions are paused rather than cancelled so their
        server-side uploads stay resumable.
        """
        if not self._running:
            return

        paused = self.pause_all()
        if paused:
            logger.info(f"Pausing {paused} active upload(s) before shutdown")
        await asyncio.gather(*(s.wait_idle() for s in self._sessions.values()))

        await self._transport.stop()
        self._running = False
        logger.info("Upload manager stopped")

    async def check_health(self) -> Dict[str, Any]:
        stats = self.statistics()
        return {
            "healthy": self._running,
            "status": "running" if self._running else "stopped",
            "details": {
                "chunk_size": self._chunk_size,
                "large_file_threshold": self._large_file_threshold,
                "checksums_enabled": self._hasher.available,
                "statistics": stats,
            }
        }

    def should_use_chunked(self, file_size: int) -> bool:
        """Whether a file of this size goes through the chunked protocol."""
        return file_size >= self._large_file_threshold

    def create_session(self, source: IUploadSource, force: bool = False) -> UploadSession:
        """
        Register a new upload session for ``source``.

        Args:
            source: File to upload
            force: Accept files below the large-file threshold

        Raises:
            ValueError: If the file is empty or below the threshold
        """
        if source.size <= 0:
            raise ValueError(f"Cannot upload empty file {source.name}")
        if not force and not self.should_use_chunked(source.size):
            raise ValueError(
                f"{source.name} is {source.size} bytes, below the chunked upload "
                f"threshold of {self._large_file_threshold} bytes"
            )

        session = self._new_session(source)
        logger.info(f"Created upload session {session.key} for {source.name} ({source.size} bytes)")
        return session

    def restore_session(self, source: IUploadSource, upload_id: str) -> UploadSession:
        """
        Rebuild a session for an upload interrupted by a restart.

        The returned session is continued with ``resume()``.
        """
        for session in self._sessions.values():
            if session.session_id == upload_id and not session.state.is_terminal:
                return session

        session = self._new_session(source, session_id=upload_id)
        logger.info(f"Restored upload session {session.key} for upload {upload_id}")
        return session

    async def upload(self, source: IUploadSource, metadata: UploadMetadata,
                     force: bool = False) -> UploadSession:
        """Create a session and run it until it settles."""
        session = self.create_session(source, force=force)
        await session.start(metadata)
        return session

    def get_session(self, key: str) -> Optional[UploadSession]:
        return self._sessions.get(key)

    def find_by_upload_id(self, upload_id: str) -> Optional[UploadSession]:
        for session in self._sessions.values():
            if session.session_id == upload_id:
                return session
        return None

    def list_sessions(self, state: Optional[UploadState] = None) -> List[UploadSession]:
        """List sessions, optionally filtered by state."""
        return [
            session for session in self._sessions.values()
            if state is None or session.state == state
        ]

    def remove_session(self, key: str) -> bool:
        """Forget a session that is no longer running."""
        session = self._sessions.get(key)
        if session is None:
            return False
        if session.is_running:
            raise ValueError(f"Upload session {key} is still running")
        del self._sessions[key]
        return True

    def pause_all(self) -> int:
        """Pause every transferring session; returns how many were paused."""
        paused = 0
        for session in self._sessions.values():
            if session.state == UploadState.TRANSFERRING:
                session.pause()
                paused += 1
        return paused

    def cleanup_finished(self) -> int:
        """Drop completed and cancelled sessions from the registry."""
        finished = [
            key for key, session in self._sessions.items()
            if session.state.is_terminal and not session.is_running
        ]
        for key in finished:
            del self._sessions[key]

        if finished:
            logger.info(f"Cleaned up {len(finished)} finished upload session(s)")
        return len(finished)

    def statistics(self) -> Dict[str, Any]:
        """Get upload statistics."""
        by_state = {state.value: 0 for state in UploadState}
        bytes_uploaded = 0
        for session in self._sessions.values():
            by_state[session.state.value] += 1
            bytes_uploaded += session.progress().bytes_transferred

        return {
            "total_sessions": len(self._sessions),
            "sessions_by_state": by_state,
            "bytes_uploaded": bytes_uploaded,
        }

    def _new_session(self, source: IUploadSource, session_id: Optional[str] = None) -> UploadSession:
        session = UploadSession(
            transport=self._transport,
            source=source,
            chunk_size=self._chunk_size,
            hasher=self._hasher,
            session_id=session_id,
            event_bus=self._event_bus,
            key=str(uuid.uuid4())
        )
        self._sessions[session.key] = session
        return session
