from functools import lru_cache
from typing import Any, Literal

import httpx
from pydantic import ValidationInfo, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from container_proxy.utils.settings_utils import DockerSecretsSettingsSource


class ServerConfig(BaseSettings):
    HOST: str = "127.0.0.1"
    PORT: int = 10000

    REQUEST_TIMEOUT_SECONDS: float = 30.0
    """Deadline applied to every inbound request, streamed bodies included."""


class UpstreamConfig(BaseSettings):
    UPSTREAM_URL: str = "https://ghcr.io"

    @field_validator("UPSTREAM_URL")
    @classmethod
    def validate_upstream_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as e:
            raise ValueError(f"UPSTREAM_URL is not a valid URL: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(
                f"UPSTREAM_URL must be an absolute http(s) URL, got {value!r}"
            )
        return value


class GitHubConfig(BaseSettings):
    GITHUB_TOKEN: str = ""
    GITHUB_API_URL: str = "https://api.github.com"

    GITHUB_USERS: str = ""
    """Comma separated namespaces queried after the authenticated user.
    Entries are not trimmed.
    """


class LogConfig(BaseSettings):
    LOG_FORMAT: Literal["json", "console"] = "json"
    LOG_LEVEL: str = "INFO"


class Settings(
    ServerConfig,
    UpstreamConfig,
    GitHubConfig,
    LogConfig,
    BaseSettings,
):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("HOST", "PORT", "UPSTREAM_URL", mode="before")
    @classmethod
    def empty_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        """An exported but empty variable falls back to the default."""
        if value == "":
            return cls.model_fields[info.field_name].default
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """
        Define the priority order for settings sources.

        Priority (highest to lowest):
        1. Init arguments
        2. Docker secrets from files (reads *_FILE env vars)
        3. Environment variables
        4. .env file
        5. Default values
        """
        return (
            init_settings,
            DockerSecretsSettingsSource(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
