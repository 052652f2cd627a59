"""Configuration management for cmdbridge.

Loads settings from a YAML configuration file. Environment variables
prefixed with ``CMDBRIDGE_`` (nested with ``__``) and a ``.env`` file
override values from the file.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/cmdbridge.yaml")

# Maximum message size allowed from the peer.
MAX_MESSAGE_SIZE = 8192
# Time allowed to write a message to the peer.
WRITE_WAIT = 10.0
# Time allowed to read the next pong message from the peer.
PONG_WAIT = 60.0
# Time to wait for the child to finish after SIGINT before sending SIGKILL.
KILL_GRACE_PERIOD = 1.0
# Time to keep the connection open after sending the close frame.
CLOSE_GRACE_PERIOD = 10.0
# Longest output line the child may print.
OUTPUT_LINE_LIMIT = 64 * 1024


class ServerConfig(BaseModel):
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080, ge=0, le=65535)
    ws_path: str = Field(default="/ws", pattern=r"^/")
    home_page: str | None = Field(
        default=None, description="HTML file served at '/' instead of the bundled page"
    )


class BridgeConfig(BaseModel):
    """Timing and size limits of the bridging protocol.

    Immutable: one instance is shared by every session of a server.
    """

    model_config = ConfigDict(frozen=True)

    max_message_size: int = Field(default=MAX_MESSAGE_SIZE, gt=0)
    write_wait: float = Field(default=WRITE_WAIT, gt=0)
    pong_wait: float = Field(default=PONG_WAIT, gt=0)
    ping_period: float | None = Field(
        default=None, gt=0, description="Defaults to 9/10 of pong_wait"
    )
    kill_grace_period: float = Field(default=KILL_GRACE_PERIOD, gt=0)
    close_grace_period: float = Field(default=CLOSE_GRACE_PERIOD, ge=0)
    output_line_limit: int = Field(default=OUTPUT_LINE_LIMIT, gt=0)

    @model_validator(mode="after")
    def _check_ping_period(self) -> BridgeConfig:
        if self.keepalive_period >= self.pong_wait:
            raise ValueError("ping_period must be less than pong_wait")
        return self

    @property
    def keepalive_period(self) -> float:
        """Interval between pings; short enough that one lands before pong_wait."""
        if self.ping_period is not None:
            return self.ping_period
        return self.pong_wait * 9 / 10


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for cmdbridge.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "CMDBRIDGE_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    server: ServerConfig = Field(default_factory=ServerConfig)
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)
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
        # YAML values arrive as init kwargs; environment wins over them.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
