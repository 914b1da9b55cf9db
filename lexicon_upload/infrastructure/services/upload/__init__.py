"""
Upload services for the Lexicon upload client.

This module provides the resumable upload session and the manager that
keeps track of sessions.
"""

from .manager import UploadManager
from .session import UploadSession

__all__ = [
    "UploadManager",
    "UploadSession",
]
