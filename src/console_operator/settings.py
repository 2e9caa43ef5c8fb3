"""Operator settings loaded from the environment and an optional YAML file.

Environment variables use the ``TJOCLOUD_`` prefix and ``__`` as the nested
delimiter, e.g.::

    TJOCLOUD_S3__URL=https://garage-admin.example.com
    TJOCLOUD_S3__TOKEN=...
    TJOCLOUD_POSTGRESQL__PG1__HOST=pg1.example.com
    TJOCLOUD_POSTGRESQL__PG1__USER=console
    TJOCLOUD_POSTGRESQL__PG1__PASSWORD=...

The same structure can be written to ``settings.yaml`` (or the file named by
``TJOCLOUD_SETTINGS_FILE``); environment variables win over the file.
"""

from __future__ import annotations

import os
from typing import Literal

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .constants import POSTGRESQL_DEFAULT_PORT

SslMode = Literal["disable", "allow", "prefer", "require", "verify-ca", "verify-full"]


class PostgresqlSettings(BaseModel):
    """Connection settings for one PostgreSQL backend."""

    host: str
    port: int = Field(default=POSTGRESQL_DEFAULT_PORT, ge=1, le=65535)
    database: str = "postgres"
    user: str
    password: SecretStr
    sslmode: SslMode = "require"
    ssl_accept_invalid_cert: bool = False


class S3Settings(BaseModel):
    """Garage admin API settings."""

    url: str
    token: SecretStr
    timeout: float = Field(default=30.0, gt=0)


class Settings(BaseSettings):
    """Operator settings."""

    model_config = SettingsConfigDict(
        env_prefix="TJOCLOUD_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        yaml_file=os.getenv("TJOCLOUD_SETTINGS_FILE", "settings.yaml"),
    )

    s3: S3Settings | None = None
    postgresql: dict[str, PostgresqlSettings] = Field(default_factory=dict)

    # Terminate the process when a backend connection is lost instead of only
    # reporting the backend as not ready.
    exit_on_connection_loss: bool = True

    metrics_port: int = Field(default=8080, ge=1, le=65535)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )
