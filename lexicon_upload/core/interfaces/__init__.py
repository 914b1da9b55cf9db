"""
Core interfaces defining the contracts between upload components.
"""

from .lifecycle import IComponent, IHealthCheckable, IStartable, IStoppable
from .messaging import IEventBus
from .upload import IUploadSession, IUploadSource, IUploadTransport

__all__ = [
    "IComponent",
    "IEventBus",
    "IHealthCheckable",
    "IStartable",
    "IStoppable",
    "IUploadSession",
    "IUploadSource",
    "IUploadTransport",
]
