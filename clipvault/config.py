"""Configuration with JSON file, YAML overlay and env variable support."""

import json
import logging
from pathlib import Path

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX = "CLIPVAULT_"


def _find_repo_root(*, start: Path) -> Path:
    """Best-effort repository root discovery.

    Relative config paths are resolved against the repo root so the service
    can be launched from any working directory:
    - first directory containing `pyproject.toml`
    - otherwise fall back to the current working directory
    """
    start = start.resolve()
    for p in [start, *start.parents]:
        if (p / "pyproject.toml").exists():
            return p

    return Path.cwd()


def _resolve_path(raw: str) -> str:
    p = Path(raw).expanduser()
    if not p.is_absolute():
        p = _find_repo_root(start=Path(__file__)) / p
    return str(p.resolve())


class ClipVaultConfig(BaseSettings):
    """Service configuration.

    Load order (later overrides earlier):
    1. config.json - base configuration
    2. config.yml - optional overlay
    3. Environment variables - runtime overrides

    Prefix: CLIPVAULT_ (e.g., CLIPVAULT_DATABASE_URL)
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database settings
    database_url: str = Field(default="sqlite+aiosqlite:///./clipvault.db")
    auto_create_tables: bool = Field(
        default=False,
        description=(
            "If true, create tables from ORM metadata on startup instead of "
            "relying on Alembic migrations. Convenient for local runs only."
        ),
    )

    # Storage settings
    storage_root: str = Field(default="./media")
    default_max_upload_bytes: int = Field(
        default=500 * 1024 * 1024,
        gt=0,
        description="Server-wide upload ceiling applied on top of request constraints.",
    )
    verify_received_size: bool = Field(
        default=True,
        description="Reject uploads whose stored size differs from the bytes received.",
    )
    incoming_retention_hours: int = Field(
        default=24,
        gt=0,
        description="Age after which abandoned transient uploads are deleted.",
    )

    # Transcoding gateway
    ffmpeg_binary: str = Field(default="ffmpeg")
    ffprobe_binary: str = Field(default="ffprobe")
    gateway_timeout_seconds: float | None = Field(
        default=None,
        description="Optional per-invocation limit for ffmpeg/ffprobe.",
    )

    # Sharing and streaming
    public_base_url: str = Field(default="http://localhost:8742")
    stream_chunk_size: int = Field(default=64 * 1024, gt=0)
    link_sweep_enabled: bool = Field(
        default=False,
        description=(
            "Periodically delete expired links. Off by default: expired links "
            "are otherwise invalidated lazily on their next validation."
        ),
    )
    link_sweep_interval_seconds: int = Field(default=3600, gt=0)

    # Error log file
    error_log_file_enabled: bool = Field(default=True)
    error_log_file_path: str = Field(default="./logs/errors.log")
    error_log_level: str = Field(default="WARNING")
    error_log_max_bytes: int = Field(default=10_485_760)
    error_log_backup_count: int = Field(default=5)

    # API settings
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8742)

    @field_validator("storage_root")
    @classmethod
    def _absolute_storage_root(cls, v: str) -> str:
        return _resolve_path(v)

    @field_validator("error_log_level")
    @classmethod
    def _known_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def from_json_file(
        cls,
        config_path: str = "config.json",
        overlay_path: str = "config.yml",
    ) -> "ClipVaultConfig":
        """Load config from JSON + YAML overlay with env var overrides.

        Args:
            config_path: Path to JSON config file.
            overlay_path: Path to optional YAML overlay.

        Returns:
            Configured ClipVaultConfig instance.
        """
        import os

        config_data: dict = {}

        json_path = Path(config_path)
        if json_path.exists():
            with open(json_path) as f:
                config_data = json.load(f)

        yml_path = Path(overlay_path)
        if yml_path.exists() and yml_path.is_file():
            with yml_path.open("r", encoding="utf-8") as f:
                yml_data = yaml.safe_load(f) or {}
            if isinstance(yml_data, dict):
                config_data.update(yml_data)
            else:
                logger.warning("Ignoring %s: top level is not a mapping", yml_path)

        # Drop file values that an env var overrides, so pydantic-settings
        # can apply the env value (init kwargs would otherwise win)
        for key in list(config_data):
            if f"{ENV_PREFIX}{key.upper()}" in os.environ:
                del config_data[key]

        return cls(**config_data)
