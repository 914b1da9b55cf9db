"""
Byte sources for chunked uploads.
"""

from .files import BytesUploadSource, FileUploadSource

__all__ = [
    "BytesUploadSource",
    "FileUploadSource",
]
