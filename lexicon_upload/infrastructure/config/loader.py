"""
Configuration loading and saving utilities.

Settings are layered: built-in defaults, then an optional YAML or JSON
file, then ``LEXICON_*`` environment variables.
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import yaml

from .models import ApplicationConfig

_TRUE_VALUES = ('true', '1', 'yes', 'on', 'enabled')
_DISABLED_VALUES = ('', 'none', 'off', 'disabled')


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _parse_algorithm(value: str) -> Optional[str]:
    value = value.strip()
    return None if value.lower() in _DISABLED_VALUES else value


# Environment suffix -> (dotted config path, converter)
ENV_OVERRIDES: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "DEBUG": ("debug", _parse_bool),
    "API_URL": ("server.api_url", str),
    "TIMEOUT": ("server.timeout", float),
    "CHUNK_SIZE": ("upload.chunk_size", int),
    "LARGE_FILE_THRESHOLD": ("upload.large_file_threshold", int),
    "CHECKSUM_ALGORITHM": ("upload.checksum_algorithm", _parse_algorithm),
    "OWNER_ID": ("upload.owner_id", str),
    "LOG_LEVEL": ("logging.level", str),
    "LOG_DIR": ("logging.log_directory", str),
}


class ConfigLoader:
    """Builds an ``ApplicationConfig`` from files and the environment."""

    def __init__(self, env_prefix: str = "LEXICON_") -> None:
        self._env_prefix = env_prefix

    def load_config(self, config_file: Optional[str] = None) -> ApplicationConfig:
        """
        Load configuration.

        Args:
            config_file: Optional YAML (``.yaml``/``.yml``) or JSON file

        Raises:
            FileNotFoundError: If ``config_file`` does not exist
            ValueError: If the file or an environment value is invalid
        """
        data = self._read_file(config_file) if config_file else {}
        data = self._merge_configs(data, self._read_environment())

        config = ApplicationConfig.from_dict(data)
        config.config_file_path = config_file
        return config

    def save_config(self, config: ApplicationConfig, file_path: str, format: str = "yaml") -> None:
        """Write ``config`` as YAML or JSON, without the runtime-only file path."""
        data = config.to_dict()
        data.pop("config_file_path", None)

        fmt = format.lower()
        if fmt not in ("yaml", "json"):
            raise ValueError(f"Unsupported format: {format}")

        with open(file_path, 'w', encoding='utf-8') as f:
            if fmt == "yaml":
                yaml.safe_dump(data, f, default_flow_style=False, indent=2, sort_keys=False)
            else:
                json.dump(data, f, indent=2)

    def _read_file(self, file_path: str) -> Dict[str, Any]:
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        suffix = path.suffix.lower()
        if suffix not in ('.yaml', '.yml', '.json'):
            raise ValueError(f"Unsupported configuration file format: {path.suffix}")

        text = path.read_text(encoding='utf-8')
        try:
            data = json.loads(text) if suffix == '.json' else (yaml.safe_load(text) or {})
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValueError(f"Cannot parse {file_path}: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Configuration in {file_path} must be a mapping")
        return data

    def _read_environment(self) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}

        for suffix, (config_path, converter) in ENV_OVERRIDES.items():
            env_var = f"{self._env_prefix}{suffix}"
            raw = os.getenv(env_var)
            if raw is None:
                continue
            try:
                self._set_nested_value(overrides, config_path, converter(raw))
            except (ValueError, TypeError) as e:
                raise ValueError(f"Invalid value for {env_var}: {raw!r} ({e})")

        token = os.getenv(f"{self._env_prefix}AUTH_TOKEN")
        if token:
            self._set_nested_value(overrides, "server.headers", {"Authorization": f"Bearer {token}"})

        return overrides

    @staticmethod
    def _set_nested_value(config: Dict[str, Any], path: str, value: Any) -> None:
        *parents, leaf = path.split('.')
        for key in parents:
            config = config.setdefault(key, {})
        config[leaf] = value

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge ``override`` into a copy of ``base``."""
        merged = dict(base)
        for key, value in override.items():
            if isinstance(merged.get(key), dict) and isinstance(value, dict):
                merged[key] = self._merge_configs(merged[key], value)
            else:
                merged[key] = value
        return merged
