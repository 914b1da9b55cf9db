"""
Domain models for uploads and upload events.
"""

from .events import Event, EventPriority, UploadEvents
from .upload import (
    DEFAULT_CHUNK_SIZE, LARGE_FILE_THRESHOLD, ChunkRange, ChunkReceipt,
    InitResult, UploadArtifact, UploadedChunks, UploadMetadata, UploadProgress,
    UploadState
)

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "LARGE_FILE_THRESHOLD",
    "ChunkRange",
    "ChunkReceipt",
    "Event",
    "EventPriority",
    "InitResult",
    "UploadArtifact",
    "UploadEvents",
    "UploadMetadata",
    "UploadProgress",
    "UploadState",
    "UploadedChunks",
]
