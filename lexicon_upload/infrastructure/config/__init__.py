"""
Configuration management infrastructure.
"""

from .loader import ConfigLoader
from .models import ApplicationConfig, LoggingConfig, ServerConfig, UploadConfig

__all__ = [
    "ApplicationConfig",
    "ConfigLoader",
    "LoggingConfig",
    "ServerConfig",
    "UploadConfig",
]
