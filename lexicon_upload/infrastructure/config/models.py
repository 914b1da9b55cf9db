"""
Configuration models and data structures.

This module defines the configuration models used by the upload client,
providing defaults and validation for configuration values.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

from ...core.domain.upload import DEFAULT_CHUNK_SIZE, LARGE_FILE_THRESHOLD


@dataclass
class ServerConfig:
    """Media API connection settings."""
    api_url: str = "http://localhost:36568"
    timeout: float = 300.0
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class UploadConfig:
    """Chunked upload settings."""
    chunk_size: int = DEFAULT_CHUNK_SIZE
    large_file_threshold: int = LARGE_FILE_THRESHOLD
    checksum_algorithm: Optional[str] = "md5"
    owner_id: str = ""
    media_type: str = "video"
    is_public: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_directory: str = "logs"
    max_file_size: str = "10 MB"
    backup_count: int = 5
    console_enabled: bool = True
    file_enabled: bool = False


_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ApplicationConfig:
    """Main application configuration."""

    name: str = "Lexicon Upload"
    version: str = "0.1.0"
    debug: bool = False

    server: ServerConfig = field(default_factory=ServerConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    config_file_path: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate_server()
        self._validate_upload()
        self._validate_logging()

    def _validate_server(self) -> None:
        if not self.server.api_url.startswith(("http://", "https://")):
            raise ValueError(f"API URL must be an http(s) URL, got {self.server.api_url!r}")
        if self.server.timeout <= 0:
            raise ValueError(f"Server timeout must be positive, got {self.server.timeout}")

    def _validate_upload(self) -> None:
        if self.upload.chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {self.upload.chunk_size}")
        if self.upload.large_file_threshold < 0:
            raise ValueError(
                f"Large file threshold must not be negative, got {self.upload.large_file_threshold}")

    def _validate_logging(self) -> None:
        if self.logging.level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.logging.level}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary."""
        return cls(
            name=data.get('name', 'Lexicon Upload'),
            version=data.get('version', '0.1.0'),
            debug=data.get('debug', False),
            server=ServerConfig(**data.get('server', {})),
            upload=UploadConfig(**data.get('upload', {})),
            logging=LoggingConfig(**data.get('logging', {})),
            config_file_path=data.get('config_file_path'),
        )
