"""
Upload error taxonomy for the Lexicon upload client.

Every failure the chunked upload protocol can surface is an ``UploadError``
subclass. Protocol failures are recorded on the session as its last error
rather than raised to the caller; ``InvalidStateError`` is the only one
raised directly out of session operations.
"""

from typing import Optional


class UploadError(Exception):
    """Base class for chunked upload failures."""

    retryable: bool = False

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class InitError(UploadError):
    """The server rejected upload initialization (quota, content type, ...)."""

    retryable = False


class ChunkUploadError(UploadError):
    """A single chunk could not be uploaded."""

    retryable = True

    def __init__(self, index: int, cause: Optional[BaseException] = None,
                 message: Optional[str] = None):
        super().__init__(message or f"Failed to upload chunk {index}", cause)
        self.index = index


class MissingQueryError(UploadError):
    """The missing-chunk query failed."""

    retryable = True


class FinalizeError(UploadError):
    """The server failed to assemble the uploaded chunks."""

    retryable = True


class CancelError(UploadError):
    """Server-side cleanup of a cancelled upload failed."""

    retryable = False


class InvalidStateError(UploadError):
    """An operation was invoked from a state where it is not allowed."""

    retryable = False
