from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, ClassVar, Literal
from urllib.parse import urlparse

from pydantic import AfterValidator, BaseModel, Field, HttpUrl, TypeAdapter, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from domain.models import CURRENT_SCHEMA_VERSION
from domain.services.backup import BackupConfig
from domain.services.image_storage import MAX_IMAGE_STORAGE_BYTES
from domain.services.network import DEFAULT_RETRYABLE_CODES, RetryConfig

DEFAULT_CONFIG_PATH = Path("config/admin.yaml")
CONFIG_PATH_ENV = "PORTFOLIO_ADMIN_CONFIG_PATH"

_HTTP_URL_ADAPTER = TypeAdapter(HttpUrl)


def _validate_optional_url(value: str) -> str:
    normalized = str(value or "").strip()
    if not normalized:
        return ""
    _HTTP_URL_ADAPTER.validate_python(normalized)
    return normalized.rstrip("/")


OptionalUrl = Annotated[str, AfterValidator(_validate_optional_url)]


class StorageSettings(BaseModel):
    backend: Literal["memory", "file"] = "file"
    path: Path = Path("data/admin_store.json")
    capacity_bytes: int | None = Field(default=5 * 1024 * 1024, gt=0)
    image_budget_bytes: int = Field(default=MAX_IMAGE_STORAGE_BYTES, gt=0)
    downloads_dir: Path = Path("data/exports")


class BackupSettings(BaseModel):
    max_backups: int = Field(default=10, ge=1)
    include_messages: bool = True
    schema_version: str = CURRENT_SCHEMA_VERSION

    def to_config(self) -> BackupConfig:
        return BackupConfig(
            include_messages=self.include_messages,
            max_backups=self.max_backups,
            schema_version=self.schema_version,
            supported_versions=(self.schema_version,),
        )


class RetrySettings(BaseModel):
    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=10.0, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1)
    retryable_errors: list[str] = Field(default_factory=lambda: list(DEFAULT_RETRYABLE_CODES))

    def to_config(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            backoff_multiplier=self.backoff_multiplier,
            retryable_errors=tuple(self.retryable_errors),
        )


class NetworkSettings(BaseModel):
    max_reconnect_attempts: int = Field(default=5, ge=1)
    reconnect_delay: float = Field(default=2.0, ge=0)
    probe_url: OptionalUrl = ""


class ApiSettings(BaseModel):
    base_url: OptionalUrl = ""
    token: str | None = None
    timeout: float = Field(default=10.0, gt=0)


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PORTFOLIO_ADMIN_", env_nested_delimiter="__")

    log_level: str = "INFO"
    storage: StorageSettings = StorageSettings()
    backup: BackupSettings = BackupSettings()
    retry: RetrySettings = RetrySettings()
    network: NetworkSettings = NetworkSettings()
    api: ApiSettings = ApiSettings()

    _yaml_path: ClassVar[Path | None] = None

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> str:
        return str(value).upper() if value else "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)

    def probe_url(self) -> str:
        """Connectivity checks hit the explicit probe URL, else the API origin."""
        if self.network.probe_url:
            return self.network.probe_url
        if is_absolute_url(self.api.base_url):
            parsed = urlparse(self.api.base_url)
            return f"{parsed.scheme}://{parsed.netloc}/"
        return ""


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv(CONFIG_PATH_ENV)
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous


def is_absolute_url(value: str) -> bool:
    raw = str(value or "").strip()
    if not raw:
        return False
    parsed = urlparse(raw)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)
