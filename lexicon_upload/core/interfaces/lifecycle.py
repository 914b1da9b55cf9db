"""
Lifecycle interfaces for components that own resources.

Transports hold HTTP connection pools and the event bus runs a worker
task; both are started before use and stopped on shutdown.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class IStartable(ABC):

    @abstractmethod
    async def start(self) -> None:
        """Acquire resources. Calling it on a started component is a no-op."""


class IStoppable(ABC):

    @abstractmethod
    async def stop(self) -> None:
        """Release resources. Calling it on a stopped component is a no-op."""


class IHealthCheckable(ABC):

    @abstractmethod
    async def check_health(self) -> Dict[str, Any]:
        """
        Report component health.

        Returns:
            Mapping with ``healthy`` (bool), ``status`` (str) and ``details`` (dict)
        """


class IComponent(IStartable, IStoppable, IHealthCheckable):
    """A named long-lived service with a start/stop lifecycle."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass
