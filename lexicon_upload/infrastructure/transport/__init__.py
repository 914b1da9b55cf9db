"""
Transports for the chunked upload protocol.
"""

from .http import HttpUploadTransport

__all__ = [
    "HttpUploadTransport",
]
