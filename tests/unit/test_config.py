"""Unit tests for ClipVaultConfig configuration system."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from clipvault.config import ClipVaultConfig


class TestClipVaultConfigDefaults:
    """Tests for ClipVaultConfig default values."""

    def test_default_database_url(self):
        """Default database URL should use aiosqlite."""
        config = ClipVaultConfig()
        assert config.database_url == "sqlite+aiosqlite:///./clipvault.db"

    def test_default_api_settings(self):
        """Default API host and port should be 0.0.0.0:8742."""
        config = ClipVaultConfig()
        assert config.api_host == "0.0.0.0"
        assert config.api_port == 8742

    def test_default_limits(self):
        config = ClipVaultConfig()
        assert config.default_max_upload_bytes == 500 * 1024 * 1024
        assert config.verify_received_size is True
        assert config.stream_chunk_size == 64 * 1024
        assert config.link_sweep_enabled is False

    def test_storage_root_is_absolute(self):
        config = ClipVaultConfig()
        assert Path(config.storage_root).is_absolute()

    def test_relative_storage_root_resolves_against_repo_root(self):
        config = ClipVaultConfig(storage_root="media-test")

        root = Path(config.storage_root)
        assert root.is_absolute()
        assert root.name == "media-test"
        assert (root.parent / "pyproject.toml").exists()


class TestClipVaultConfigValidation:
    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            ClipVaultConfig(error_log_level="LOUD")

    def test_log_level_normalized(self):
        assert ClipVaultConfig(error_log_level=" error ").error_log_level == "ERROR"

    @pytest.mark.parametrize(
        "field", ["default_max_upload_bytes", "stream_chunk_size", "incoming_retention_hours"]
    )
    def test_non_positive_limits_rejected(self, field: str):
        with pytest.raises(ValidationError):
            ClipVaultConfig(**{field: 0})


class TestClipVaultConfigEnvOverride:
    def test_env_var_overrides_default(self, monkeypatch):
        monkeypatch.setenv("CLIPVAULT_PUBLIC_BASE_URL", "https://media.example")
        config = ClipVaultConfig()
        assert config.public_base_url == "https://media.example"

    def test_env_bool(self, monkeypatch):
        monkeypatch.setenv("CLIPVAULT_LINK_SWEEP_ENABLED", "true")
        assert ClipVaultConfig().link_sweep_enabled is True


class TestClipVaultConfigFromJsonFile:
    def test_loads_json(self, tmp_path: Path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"api_port": 9000, "ffmpeg_binary": "/opt/ffmpeg"}))

        config = ClipVaultConfig.from_json_file(
            str(config_file), str(tmp_path / "missing.yml")
        )

        assert config.api_port == 9000
        assert config.ffmpeg_binary == "/opt/ffmpeg"

    def test_yaml_overlay_wins_over_json(self, tmp_path: Path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"api_port": 9000, "api_host": "127.0.0.1"}))
        overlay = tmp_path / "config.yml"
        overlay.write_text("api_port: 9100\n")

        config = ClipVaultConfig.from_json_file(str(config_file), str(overlay))

        assert config.api_port == 9100
        assert config.api_host == "127.0.0.1"

    def test_env_wins_over_files(self, tmp_path: Path, monkeypatch):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"api_port": 9000}))
        monkeypatch.setenv("CLIPVAULT_API_PORT", "9200")

        config = ClipVaultConfig.from_json_file(
            str(config_file), str(tmp_path / "missing.yml")
        )

        assert config.api_port == 9200

    def test_non_mapping_overlay_is_ignored(self, tmp_path: Path):
        overlay = tmp_path / "config.yml"
        overlay.write_text("- just\n- a list\n")

        config = ClipVaultConfig.from_json_file(str(tmp_path / "none.json"), str(overlay))

        assert config.api_port == 8742

    def test_missing_files_use_defaults(self, tmp_path: Path):
        config = ClipVaultConfig.from_json_file(
            str(tmp_path / "none.json"), str(tmp_path / "none.yml")
        )

        assert config.api_port == 8742
