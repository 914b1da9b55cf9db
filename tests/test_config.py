"""
Tests for configuration models and the configuration loader.

This module tests defaults, validation, file loading, environment
variable overrides and saving.
"""

import json
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

from lexicon_upload.core.domain.upload import DEFAULT_CHUNK_SIZE, LARGE_FILE_THRESHOLD
from lexicon_upload.infrastructure.config.loader import ConfigLoader
from lexicon_upload.infrastructure.config.models import (
    ApplicationConfig, LoggingConfig, ServerConfig, UploadConfig
)

ENV_VARS = (
    "DEBUG", "API_URL", "TIMEOUT", "CHUNK_SIZE", "LARGE_FILE_THRESHOLD",
    "CHECKSUM_ALGORITHM", "OWNER_ID", "LOG_LEVEL", "LOG_DIR", "AUTH_TOKEN",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(f"LEXICON_{name}", raising=False)


class TestApplicationConfig:
    """Test configuration defaults and validation."""

    def test_defaults(self):
        config = ApplicationConfig()

        assert config.server.api_url == "http://localhost:36568"
        assert config.upload.chunk_size == DEFAULT_CHUNK_SIZE
        assert config.upload.large_file_threshold == LARGE_FILE_THRESHOLD
        assert config.upload.checksum_algorithm == "md5"
        assert config.logging.level == "INFO"

    @pytest.mark.parametrize("kwargs", [
        {"server": ServerConfig(api_url="ftp://media")},
        {"server": ServerConfig(timeout=0)},
        {"upload": UploadConfig(chunk_size=0)},
        {"upload": UploadConfig(large_file_threshold=-1)},
        {"logging": LoggingConfig(level="LOUD")},
    ])
    def test_invalid_values(self, kwargs: Dict[str, Any]):
        with pytest.raises(ValueError):
            ApplicationConfig(**kwargs)

    def test_from_dict_round_trip(self):
        config = ApplicationConfig.from_dict({
            "debug": True,
            "server": {"api_url": "https://media.example.org", "timeout": 30},
            "upload": {"chunk_size": 5 * 1024 * 1024, "checksum_algorithm": None},
        })

        assert config.debug is True
        assert config.server.timeout == 30
        assert config.upload.checksum_algorithm is None
        assert ApplicationConfig.from_dict(config.to_dict()) == config


class TestConfigLoader:
    """Test cases for ConfigLoader class."""

    @pytest.fixture
    def config_loader(self) -> ConfigLoader:
        return ConfigLoader()

    @pytest.fixture
    def yaml_file(self, tmp_path: Path) -> Path:
        path = tmp_path / "upload.yaml"
        path.write_text(
            "server:\n"
            "  api_url: https://media.example.org\n"
            "upload:\n"
            "  chunk_size: 1048576\n"
            "  owner_id: user-7\n"
            "logging:\n"
            "  level: DEBUG\n",
            encoding="utf-8"
        )
        return path

    def test_load_defaults_without_file(self, config_loader: ConfigLoader):
        config = config_loader.load_config()

        assert config == ApplicationConfig()
        assert config.config_file_path is None

    def test_load_yaml(self, config_loader: ConfigLoader, yaml_file: Path):
        config = config_loader.load_config(str(yaml_file))

        assert config.server.api_url == "https://media.example.org"
        assert config.upload.chunk_size == 1048576
        assert config.upload.owner_id == "user-7"
        assert config.logging.level == "DEBUG"
        assert config.config_file_path == str(yaml_file)

    def test_load_json(self, config_loader: ConfigLoader, tmp_path: Path):
        path = tmp_path / "upload.json"
        path.write_text(json.dumps({"upload": {"large_file_threshold": 0}}), encoding="utf-8")

        assert config_loader.load_config(str(path)).upload.large_file_threshold == 0

    def test_missing_file(self, config_loader: ConfigLoader, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            config_loader.load_config(str(tmp_path / "absent.yaml"))

    def test_unsupported_format(self, config_loader: ConfigLoader, tmp_path: Path):
        path = tmp_path / "upload.toml"
        path.write_text("debug = true", encoding="utf-8")

        with pytest.raises(ValueError):
            config_loader.load_config(str(path))

    def test_invalid_yaml(self, config_loader: ConfigLoader, tmp_path: Path):
        path = tmp_path / "broken.yaml"
        path.write_text("server: [unclosed", encoding="utf-8")

        with pytest.raises(ValueError):
            config_loader.load_config(str(path))

    def test_non_mapping_document(self, config_loader: ConfigLoader, tmp_path: Path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(ValueError):
            config_loader.load_config(str(path))

    def test_environment_overrides_file(self, config_loader: ConfigLoader, yaml_file: Path,
                                        monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("LEXICON_API_URL", "http://staging:36568")
        monkeypatch.setenv("LEXICON_CHUNK_SIZE", "2048")
        monkeypatch.setenv("LEXICON_DEBUG", "yes")
        monkeypatch.setenv("LEXICON_TIMEOUT", "12.5")

        config = config_loader.load_config(str(yaml_file))

        assert config.server.api_url == "http://staging:36568"
        assert config.upload.chunk_size == 2048
        assert config.upload.owner_id == "user-7"
        assert config.debug is True
        assert config.server.timeout == 12.5

    def test_auth_token_becomes_header(self, config_loader: ConfigLoader, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("LEXICON_AUTH_TOKEN", "abc123")

        config = config_loader.load_config()

        assert config.server.headers == {"Authorization": "Bearer abc123"}

    @pytest.mark.parametrize("value,expected", [("none", None), ("off", None), ("sha1", "sha1")])
    def test_checksum_algorithm_from_environment(self, config_loader: ConfigLoader,
                                                 monkeypatch: pytest.MonkeyPatch, value, expected):
        monkeypatch.setenv("LEXICON_CHECKSUM_ALGORITHM", value)

        assert config_loader.load_config().upload.checksum_algorithm == expected

    def test_invalid_environment_value(self, config_loader: ConfigLoader, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("LEXICON_CHUNK_SIZE", "ten megabytes")

        with pytest.raises(ValueError):
            config_loader.load_config()

    @pytest.mark.parametrize("fmt,suffix", [("yaml", ".yaml"), ("json", ".json")])
    def test_save_and_reload(self, config_loader: ConfigLoader, tmp_path: Path, fmt: str, suffix: str):
        config = ApplicationConfig()
        config.upload.owner_id = "user-9"
        path = tmp_path / f"saved{suffix}"

        config_loader.save_config(config, str(path), format=fmt)
        reloaded = config_loader.load_config(str(path))

        assert reloaded.upload.owner_id == "user-9"
        assert reloaded.server == config.server

    def test_saved_yaml_omits_file_path(self, config_loader: ConfigLoader, tmp_path: Path):
        path = tmp_path / "saved.yaml"
        config_loader.save_config(ApplicationConfig(config_file_path="/etc/x.yaml"), str(path))

        assert "config_file_path" not in yaml.safe_load(path.read_text(encoding="utf-8"))

    def test_save_unsupported_format(self, config_loader: ConfigLoader, tmp_path: Path):
        with pytest.raises(ValueError):
            config_loader.save_config(ApplicationConfig(), str(tmp_path / "x.ini"), format="ini")

    def test_merge_configs_is_recursive(self, config_loader: ConfigLoader):
        merged = config_loader._merge_configs(
            {"server": {"api_url": "http://a", "timeout": 5}},
            {"server": {"timeout": 10}}
        )

        assert merged == {"server": {"api_url": "http://a", "timeout": 10}}
