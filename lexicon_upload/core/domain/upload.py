"""
Upload domain models.

This module defines the value types shared by the chunked upload client:
session states, upload metadata, chunk ranges, the confirmed-chunk set and
progress snapshots.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional


MIB = 1024 * 1024
DEFAULT_CHUNK_SIZE = 10 * MIB
LARGE_FILE_THRESHOLD = 100 * MIB


class UploadState(Enum):
    """Upload session state enumeration."""
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    TRANSFERRING = "transferring"
    PAUSED = "paused"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """COMPLETED and CANCELLED end a session for good."""
        return self in (UploadState.COMPLETED, UploadState.CANCELLED)

    @property
    def is_active(self) -> bool:
        """States in which the session is talking to the server."""
        return self in (
            UploadState.INITIALIZING,
            UploadState.TRANSFERRING,
            UploadState.FINALIZING,
        )


@dataclass
class UploadMetadata:
    """Descriptive fields sent to the server when an upload is initialized."""
    title: str
    owner_id: str = ""
    description: str = ""
    is_public: bool = False
    media_type: str = "video"
    content_type: Optional[str] = None

    def validate(self) -> None:
        """Raise ``ValueError`` if the metadata cannot start an upload."""
        if not self.title or not self.title.strip():
            raise ValueError("Upload title must not be empty")


@dataclass(frozen=True)
class ChunkRange:
    """Byte range ``[start, end)`` covered by one chunk."""
    index: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class InitResult:
    """Server answer to an init request."""
    upload_id: str
    total_chunks: int


@dataclass(frozen=True)
class ChunkReceipt:
    """Server answer to a chunk upload."""
    index: int
    accepted: bool = True
    is_complete: bool = False


class UploadedChunks:
    """
    Set of chunk indices the server has confirmed.

    Indices are bounded by ``[0, total)``; adding an index twice is a no-op
    and the set only shrinks through ``clear()``.
    """

    def __init__(self, total: int = 0, indices: Iterable[int] = ()) -> None:
        self._total = total
        self._indices: set = set()
        for index in indices:
            self.add(index)

    @property
    def total(self) -> int:
        return self._total

    def add(self, index: int) -> bool:
        """
        Record a confirmed chunk.

        Returns:
            True if the index was not already recorded
        """
        if not 0 <= index < self._total:
            raise ValueError(f"Chunk index {index} out of range [0, {self._total})")
        if index in self._indices:
            return False
        self._indices.add(index)
        return True

    def add_complement(self, missing: Iterable[int]) -> None:
        """Record every index the server did not report as missing."""
        missing_set = set(missing)
        for index in range(self._total):
            if index not in missing_set:
                self._indices.add(index)

    def fill(self) -> None:
        """Record every chunk of the upload."""
        self._indices.update(range(self._total))

    def clear(self) -> None:
        self._indices.clear()

    def reset(self, total: int) -> None:
        """Drop all indices and rebind the set to a new chunk count."""
        self._indices.clear()
        self._total = total

    def missing(self) -> List[int]:
        """Indices not yet confirmed, ascending."""
        return [i for i in range(self._total) if i not in self._indices]

    def snapshot(self) -> FrozenSet[int]:
        return frozenset(self._indices)

    @property
    def is_complete(self) -> bool:
        return self._total > 0 and len(self._indices) == self._total

    def __contains__(self, index: object) -> bool:
        return index in self._indices

    def __len__(self) -> int:
        return len(self._indices)

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._indices))

    def __repr__(self) -> str:
        return f"UploadedChunks({len(self._indices)}/{self._total})"


@dataclass(frozen=True)
class UploadProgress:
    """Point-in-time progress snapshot of an upload session."""
    state: UploadState
    chunks_uploaded: int
    total_chunks: int
    bytes_transferred: int
    total_bytes: int
    speed_bytes_per_sec: float = 0.0
    eta_seconds: Optional[float] = None

    @property
    def fraction(self) -> float:
        """Share of chunks confirmed, between 0.0 and 1.0."""
        if self.total_chunks == 0:
            return 0.0
        return self.chunks_uploaded / self.total_chunks

    @property
    def percentage(self) -> float:
        return self.fraction * 100.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "chunks_uploaded": self.chunks_uploaded,
            "total_chunks": self.total_chunks,
            "fraction": self.fraction,
            "percentage": self.percentage,
            "bytes_transferred": self.bytes_transferred,
            "total_bytes": self.total_bytes,
            "speed_bytes_per_sec": self.speed_bytes_per_sec,
            "eta_seconds": self.eta_seconds,
        }


@dataclass
class UploadArtifact:
    """Stored-object descriptor returned by a successful finalize."""
    upload_id: str
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def media_id(self) -> Optional[Any]:
        return self.data.get("id")
