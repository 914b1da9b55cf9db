"""
Lexicon Upload - resumable chunked upload client for the Lexicon media platform.

Large media files are split into fixed-size chunks, uploaded one at a time
with per-chunk checksums, and finalized on the server. Interrupted uploads
resume from the server's list of missing chunks.
"""

__version__ = "0.1.0"

from .core.domain.upload import (
    ChunkRange, UploadArtifact, UploadMetadata, UploadProgress, UploadState
)
from .core.exceptions import (
    CancelError, ChunkUploadError, FinalizeError, InitError, InvalidStateError,
    MissingQueryError, UploadError
)
from .core.services.event_bus import EventBus
from .infrastructure.services.upload import UploadManager, UploadSession
from .infrastructure.sources import BytesUploadSource, FileUploadSource
from .infrastructure.transport import HttpUploadTransport

__all__ = [
    "BytesUploadSource",
    "CancelError",
    "ChunkRange",
    "ChunkUploadError",
    "EventBus",
    "FileUploadSource",
    "FinalizeError",
    "HttpUploadTransport",
    "InitError",
    "InvalidStateError",
    "MissingQueryError",
    "UploadArtifact",
    "UploadError",
    "UploadManager",
    "UploadMetadata",
    "UploadProgress",
    "UploadSession",
    "UploadState",
]
