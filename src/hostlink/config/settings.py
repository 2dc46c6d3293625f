"""Configuration management for hostlink.

Loads settings from a YAML configuration file with environment variable
overrides (``HOSTLINK_`` prefix, ``__`` for nested sections). Supports
.env files.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from hostlink.domain.models import Capability

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/hostlink.yaml")
DEFAULT_STATE_DIR = Path("~/.hostlink")


class SocketConfig(BaseModel):
    path: str = Field(
        default=str(DEFAULT_STATE_DIR / "control.sock"),
        description="Filesystem path of the control socket",
    )
    default_timeout: float = Field(default=10.0, gt=0)
    shell_timeout_cap: float = Field(default=300.0, gt=0)
    max_request_bytes: int = Field(default=4 * 1024 * 1024, gt=0)

    @property
    def resolved_path(self) -> Path:
        return Path(self.path).expanduser()


class HostConfig(BaseModel):
    start_paused: bool = Field(default=False)
    canvas_enabled: bool = Field(default=True)
    camera_enabled: bool = Field(default=True)
    canvas_root: str = Field(default=str(DEFAULT_STATE_DIR / "canvas"))
    geometry_file: str = Field(default=str(DEFAULT_STATE_DIR / "canvas-geometry.yaml"))
    granted_capabilities: list[Capability] = Field(
        default_factory=lambda: [Capability.NOTIFICATIONS],
    )
    notify_command: str = Field(default="notify-send")
    agent_base_url: str = Field(default="http://127.0.0.1:18789")
    bridge_base_url: str = Field(default="http://127.0.0.1:18790")
    http_timeout: float = Field(default=30.0, gt=0)


class A2UIConfig(BaseModel):
    ready_timeout: float = Field(default=2.0, gt=0)
    poll_interval: float = Field(default=0.06, gt=0)


class CameraConfig(BaseModel):
    device_index: int = Field(default=0, ge=0)
    back_device_index: int | None = Field(default=None, ge=0)
    default_clip_ms: int = Field(default=3000, gt=0)
    max_clip_ms: int = Field(default=60_000, gt=0)
    default_quality: float = Field(default=0.9, ge=0.0, le=1.0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for hostlink.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "HOSTLINK_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    socket: SocketConfig = Field(default_factory=SocketConfig)
    host: HostConfig = Field(default_factory=HostConfig)
    a2ui: A2UIConfig = Field(default_factory=A2UIConfig)
    camera: CameraConfig = Field(default_factory=CameraConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML arrives as init values and sits below the environment
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML > defaults. Nested sections are
    merged key by key, so ``HOSTLINK_SOCKET__PATH`` replaces only the
    socket path from the YAML file.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.debug("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
