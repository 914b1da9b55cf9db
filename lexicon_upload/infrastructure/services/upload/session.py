"""
Resumable upload session for the Lexicon upload client.

An ``UploadSession`` drives one file from "not started" to "finalized":
it initializes the server-side upload, sends chunks strictly in ascending
index order with at most one request in flight, reconciles with the
server's missing-chunk list on resume, and finalizes. Failures stop the
loop and leave the session FAILED; retrying is always an explicit
``resume()`` call.
"""

import asyncio
import logging
import time
import uuid
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional

from ....core.domain.events import UploadEvents
from ....core.domain.upload import (
    DEFAULT_CHUNK_SIZE, UploadArtifact, UploadedChunks, UploadMetadata,
    UploadProgress, UploadState
)
from ....core.exceptions import (
    ChunkUploadError, FinalizeError, InitError, InvalidStateError,
    MissingQueryError, UploadError
)
from ....core.interfaces.messaging import IEventBus
from ....core.interfaces.upload import IUploadSession, IUploadSource, IUploadTransport
from ...chunking.hasher import ChunkHasher
from ...chunking.splitter import chunk_range, split
from ...progress.reporter import ProgressReporter

logger = logging.getLogger(__name__)

_RESUMABLE_STATES = (UploadState.UNINITIALIZED, UploadState.PAUSED, UploadState.FAILED)


class UploadSession(IUploadSession):
    """
    State machine for one resumable chunked transfer.

    A session restored after a reload is built with the ``session_id`` the
    server assigned earlier and continued with ``resume()``.
    """

    def __init__(
        self,
        transport: IUploadTransport,
        source: IUploadSource,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        hasher: Optional[ChunkHasher] = None,
        session_id: Optional[str] = None,
        event_bus: Optional[IEventBus] = None,
        key: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize an upload session.

        Args:
            transport: Transport used for every server call
            source: Byte source to upload
            chunk_size: Fixed chunk length in bytes
            hasher: Checksum provider (MD5 by default)
            session_id: Server upload id of an interrupted upload
            event_bus: Event bus for progress notifications
            key: Local identifier of the session
            clock: Monotonic clock used for rate sampling
        """
        if source.size <= 0:
            raise ValueError("Cannot upload an empty source")

        self._transport = transport
        self._source = source
        self._chunk_size = chunk_size
        self._total_chunks = split(source.size, chunk_size)
        self._hasher = hasher if hasher is not None else ChunkHasher()
        self._event_bus = event_bus
        self._key = key or str(uuid.uuid4())
        self._clock = clock

        self._session_id = session_id
        self._uploaded = UploadedChunks(self._total_chunks)
        self._state = UploadState.UNINITIALIZED
        self._last_error: Optional[UploadError] = None
        self._artifact: Optional[UploadArtifact] = None
        self._metadata: Optional[UploadMetadata] = None
        self._reporter = ProgressReporter(source.size)

        # Bumped by cancel(); responses from an older generation are dropped.
        self._generation = 0
        self._running = False
        self._draining = False
        self._idle = asyncio.Event()
        self._idle.set()

        self._created_at = time.time()
        self._updated_at = self._created_at

    @property
    def key(self) -> str:
        return self._key

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def source(self) -> IUploadSource:
        return self._source

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def total_chunks(self) -> int:
        return self._total_chunks

    @property
    def uploaded_chunks(self) -> FrozenSet[int]:
        return self._uploaded.snapshot()

    @property
    def last_error(self) -> Optional[UploadError]:
        return self._last_error

    @property
    def artifact(self) -> Optional[UploadArtifact]:
        return self._artifact

    @property
    def metadata(self) -> Optional[UploadMetadata]:
        return self._metadata

    @property
    def is_running(self) -> bool:
        return self._running

    async def wait_idle(self) -> None:
        """Wait until no start()/resume() run is active."""
        await self._idle.wait()

    async def start(self, metadata: UploadMetadata) -> UploadState:
        """
        Initialize the upload on the server and transfer every chunk.

        Returns:
            The state the session settled in (COMPLETED, PAUSED, FAILED or CANCELLED)

        Raises:
            ValueError: If the metadata is incomplete
            InvalidStateError: If the session was already started
        """
        metadata.validate()

        if self._running:
            logger.warning(f"Upload {self._key} is already running, ignoring start()")
            return self._state

        retry_init = self._state == UploadState.FAILED and self._session_id is None
        if self._state != UploadState.UNINITIALIZED and not retry_init:
            raise InvalidStateError(f"Cannot start upload from state {self._state.value}")

        self._metadata = metadata
        self._last_error = None
        generation = self._generation
        self._begin_run()
        try:
            self._set_state(UploadState.INITIALIZING)
            if await self._initialize(generation):
                self._set_state(UploadState.TRANSFERRING)
                await self._transfer(self._uploaded.missing(), generation)
        finally:
            self._end_run()

        return self._state

    async def resume(self) -> UploadState:
        """
        Continue an interrupted upload.

        Valid from PAUSED, from FAILED once a server upload exists, and on a
        fresh session built with a known ``session_id``. The server's
        missing-chunk list decides what is sent next.

        Raises:
            InvalidStateError: If there is nothing to resume
        """
        while self._running and self._draining:
            await self._idle.wait()

        if self._running:
            logger.warning(f"Upload {self._key} is already running, ignoring resume()")
            return self._state

        if self._state not in _RESUMABLE_STATES:
            raise InvalidStateError(f"Cannot resume upload from state {self._state.value}")
        if self._session_id is None:
            raise InvalidStateError("Cannot resume an upload that has no server upload id")

        upload_id = self._session_id
        self._last_error = None
        generation = self._generation
        self._begin_run()
        try:
            await self._publish(UploadEvents.RESUMED, {"upload_id": upload_id})

            try:
                missing = await self._transport.query_missing(upload_id)
            except Exception as e:
                if not self._is_stale(generation):
                    error = e if isinstance(e, MissingQueryError) else MissingQueryError(
                        f"Missing-chunk query for {upload_id} failed", e)
                    await self._fail(error)
                return self._state

            if self._is_stale(generation):
                return self._state

            missing = self._normalize_missing(missing)
            self._uploaded.add_complement(missing)
            logger.info(
                f"Resuming upload {upload_id}: {len(missing)} of {self._total_chunks} chunks missing"
            )

            if not missing:
                await self._finalize(generation)
            else:
                self._set_state(UploadState.TRANSFERRING)
                await self._transfer(missing, generation)
        finally:
            self._end_run()

        return self._state

    def pause(self) -> None:
        """
        Stop the transfer at the next chunk boundary.

        The request in flight is allowed to finish. Calling this outside
        TRANSFERRING has no effect.
        """
        if self._state != UploadState.TRANSFERRING:
            logger.debug(f"Ignoring pause() for upload {self._key} in state {self._state.value}")
            return

        self._set_state(UploadState.PAUSED)
        if self._running:
            self._draining = True
        logger.info(f"Pausing upload {self._key} after the current chunk")

    async def cancel(self) -> None:
        """
        Cancel the upload.

        Local state is reset before any network call; the server-side delete
        is best effort and its failure is only logged.
        """
        if self._state.is_terminal:
            logger.debug(f"Ignoring cancel() for upload {self._key} in state {self._state.value}")
            return

        upload_id = self._session_id
        self._generation += 1
        self._session_id = None
        self._uploaded.clear()
        self._last_error = None
        self._reporter.reset(self._source.size, 0, self._clock())
        self._set_state(UploadState.CANCELLED)
        logger.info(f"Cancelled upload {self._key}")

        await self._publish(UploadEvents.CANCELLED, {"upload_id": upload_id})

        if upload_id is not None:
            await self._discard_remote(upload_id)

    def progress(self) -> UploadProgress:
        """Get a progress snapshot without blocking."""
        bytes_transferred = self._bytes_transferred()
        rate = self._reporter.rate
        eta: Optional[float] = None
        if self._state == UploadState.COMPLETED:
            eta = 0.0
        elif rate > 0:
            eta = (self._source.size - bytes_transferred) / rate

        return UploadProgress(
            state=self._state,
            chunks_uploaded=len(self._uploaded),
            total_chunks=self._total_chunks,
            bytes_transferred=bytes_transferred,
            total_bytes=self._source.size,
            speed_bytes_per_sec=rate,
            eta_seconds=eta
        )

    def get_info(self) -> Dict[str, Any]:
        """Get a serializable description of the session."""
        return {
            "key": self._key,
            "upload_id": self._session_id,
            "filename": self._source.name,
            "content_type": self._source.content_type,
            "file_size": self._source.size,
            "chunk_size": self._chunk_size,
            "total_chunks": self._total_chunks,
            "uploaded_chunks": sorted(self._uploaded),
            "state": self._state.value,
            "last_error": str(self._last_error) if self._last_error else None,
            "artifact": self._artifact.data if self._artifact else None,
            "checksum_algorithm": self._hasher.algorithm if self._hasher.available else None,
            "created_at": self._created_at,
            "updated_at": self._updated_at,
        }

    async def _initialize(self, generation: int) -> bool:
        """Create the server-side upload; returns False if the run must stop."""
        metadata = self._metadata
        assert metadata is not None
        content_type = metadata.content_type or self._source.content_type

        try:
            result = await self._transport.init_upload(
                filename=self._source.name,
                content_type=content_type,
                total_size=self._source.size,
                chunk_size=self._chunk_size,
                metadata=metadata
            )
        except Exception as e:
            if not self._is_stale(generation):
                error = e if isinstance(e, InitError) else InitError("Upload initialization failed", e)
                await self._fail(error)
            return False

        if self._is_stale(generation):
            # Cancelled while init was in flight; the new server upload is orphaned.
            await self._discard_remote(result.upload_id)
            return False

        if result.total_chunks != self._total_chunks:
            await self._discard_remote(result.upload_id)
            await self._fail(InitError(
                f"Server expects {result.total_chunks} chunks, client computed {self._total_chunks}"
            ))
            return False

        self._session_id = result.upload_id
        self._uploaded.reset(self._total_chunks)
        logger.info(
            f"Upload {self._key} initialized as {result.upload_id} "
            f"({self._total_chunks} chunks of {self._chunk_size} bytes)"
        )
        await self._publish(UploadEvents.INITIALIZED, {
            "upload_id": result.upload_id,
            "filename": self._source.name,
            "file_size": self._source.size,
            "total_chunks": self._total_chunks,
        })
        return not self._is_stale(generation)

    async def _transfer(self, indices: Iterable[int], generation: int) -> None:
        """Send the given chunks in ascending order, then finalize."""
        upload_id = self._session_id
        assert upload_id is not None
        self._reporter.reset(self._source.size, self._bytes_transferred(), self._clock())

        for index in sorted(set(indices)):
            if self._is_stale(generation):
                return
            if self._state == UploadState.PAUSED:
                await self._on_paused()
                return

            chunk = chunk_range(index, self._source.size, self._chunk_size)
            try:
                data = await self._source.read(chunk.start, chunk.end)
                checksum = self._hasher.digest(data)
                receipt = await self._transport.upload_chunk(upload_id, index, data, checksum)
            except Exception as e:
                if not self._is_stale(generation):
                    error = e if isinstance(e, ChunkUploadError) else ChunkUploadError(index, e)
                    await self._fail(error)
                return

            if self._is_stale(generation):
                logger.debug(f"Discarding response for chunk {index} of cancelled upload {upload_id}")
                return

            self._uploaded.add(index)
            self._reporter.record(self._bytes_transferred(), self._clock())
            self._touch()
            logger.debug(f"Upload {upload_id}: chunk {index + 1}/{self._total_chunks} sent")
            await self._publish(UploadEvents.CHUNK_COMPLETED, {
                "upload_id": upload_id,
                "chunk_index": index,
                **self.progress().to_dict(),
            })

            if receipt.is_complete:
                break

        if self._is_stale(generation):
            return
        if self._state == UploadState.PAUSED:
            await self._on_paused()
            return

        await self._finalize(generation)

    async def _finalize(self, generation: int) -> None:
        upload_id = self._session_id
        assert upload_id is not None
        self._set_state(UploadState.FINALIZING)
        await self._publish(UploadEvents.FINALIZING, {"upload_id": upload_id})

        try:
            artifact = await self._transport.finalize(upload_id)
        except Exception as e:
            if not self._is_stale(generation):
                error = e if isinstance(e, FinalizeError) else FinalizeError(
                    f"Finalizing upload {upload_id} failed", e)
                await self._fail(error)
            return

        if self._is_stale(generation):
            return

        self._uploaded.fill()
        self._artifact = artifact
        self._reporter.record(self._source.size, self._clock())
        self._set_state(UploadState.COMPLETED)
        logger.info(f"Upload {upload_id} completed ({self._source.name})")
        await self._publish(UploadEvents.COMPLETED, {
            "upload_id": upload_id,
            "filename": self._source.name,
            "artifact": artifact.data,
        })

    async def _on_paused(self) -> None:
        logger.info(
            f"Upload {self._session_id} paused at {len(self._uploaded)}/{self._total_chunks} chunks"
        )
        await self._publish(UploadEvents.PAUSED, {
            "upload_id": self._session_id,
            **self.progress().to_dict(),
        })

    async def _fail(self, error: UploadError) -> None:
        self._last_error = error
        self._set_state(UploadState.FAILED)
        logger.error(f"Upload {self._session_id or self._key} failed: {error}")
        await self._publish(UploadEvents.FAILED, {
            "upload_id": self._session_id,
            "error": str(error),
            "error_type": type(error).__name__,
            "retryable": error.retryable,
            **self.progress().to_dict(),
        })

    async def _discard_remote(self, upload_id: str) -> None:
        try:
            await self._transport.cancel(upload_id)
        except Exception as e:
            logger.warning(f"Server cleanup of upload {upload_id} failed: {e}")

    async def _publish(self, event_name: str, data: Dict[str, Any]) -> None:
        if self._event_bus is None:
            return
        try:
            await self._event_bus.publish(event_name, data, source=self._key)
        except RuntimeError as e:
            logger.warning(f"Could not publish {event_name} for upload {self._key}: {e}")

    def _normalize_missing(self, missing: Iterable[int]) -> List[int]:
        indices = sorted(set(missing))
        in_range = [i for i in indices if 0 <= i < self._total_chunks]
        if len(in_range) != len(indices):
            logger.warning(
                f"Server reported chunk indices outside [0, {self._total_chunks}), ignoring them"
            )
        return in_range

    def _bytes_transferred(self) -> int:
        count = len(self._uploaded)
        if count == 0:
            return 0
        last = self._total_chunks - 1
        if last in self._uploaded:
            last_length = self._source.size - last * self._chunk_size
            return (count - 1) * self._chunk_size + last_length
        return count * self._chunk_size

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    def _begin_run(self) -> None:
        self._running = True
        self._draining = False
        self._idle.clear()

    def _end_run(self) -> None:
        self._running = False
        self._draining = False
        self._idle.set()

    def _set_state(self, state: UploadState) -> None:
        if state != self._state:
            logger.debug(f"Upload {self._key}: {self._state.value} -> {state.value}")
        self._state = state
        self._touch()

    def _touch(self) -> None:
        self._updated_at = time.time()
