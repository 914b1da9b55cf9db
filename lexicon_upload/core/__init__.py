"""
Core module containing the upload domain models, errors and interfaces.

Nothing in this package performs I/O; transports, sources and the session
state machine live in the infrastructure layer.
"""

from .domain.events import Event, EventPriority, UploadEvents
from .domain.upload import UploadMetadata, UploadProgress, UploadState
from .interfaces.messaging import IEventBus
from .interfaces.upload import IUploadSession, IUploadSource, IUploadTransport

__all__ = [
    "Event",
    "EventPriority",
    "IEventBus",
    "IUploadSession",
    "IUploadSource",
    "IUploadTransport",
    "UploadEvents",
    "UploadMetadata",
    "UploadProgress",
    "UploadState",
]
