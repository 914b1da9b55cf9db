"""
Event domain models for upload notifications.

Upload sessions report their lifecycle through events so callers can
render progress, success and failure without polling the session.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional


class EventPriority(IntEnum):
    """Delivery priority; larger values are delivered first."""
    LOW = 1
    NORMAL = 2
    HIGH = 3
    CRITICAL = 4


@dataclass(frozen=True)
class Event:
    """
    Immutable notification about an upload session.

    ``source`` carries the local key of the session that published it and
    ``data`` a JSON-friendly payload whose shape depends on ``name``.
    """

    name: str
    data: Any = None
    priority: EventPriority = EventPriority.NORMAL
    timestamp: float = field(default_factory=time.time)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    source: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Event name cannot be empty")
        if not isinstance(self.priority, EventPriority):
            raise ValueError(f"Invalid event priority: {self.priority!r}")

    def __lt__(self, other: 'Event') -> bool:
        # Higher priority first, then oldest first.
        if not isinstance(other, Event):
            return NotImplemented
        return (-self.priority, self.timestamp) < (-other.priority, other.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_id': self.event_id,
            'name': self.name,
            'source': self.source,
            'priority': self.priority.name,
            'timestamp': self.timestamp,
            'data': self.data,
        }


class UploadEvents:
    """Names of the events published by upload sessions."""

    INITIALIZED = "upload.initialized"
    CHUNK_COMPLETED = "upload.chunk_completed"
    PAUSED = "upload.paused"
    RESUMED = "upload.resumed"
    FINALIZING = "upload.finalizing"
    COMPLETED = "upload.completed"
    FAILED = "upload.failed"
    CANCELLED = "upload.cancelled"
