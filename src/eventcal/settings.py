from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .domain.models import DEFAULT_COLOR, EVENT_COLORS

PROJECT_ROOT = Path(__file__).resolve().parents[2]

_HEX_COLOR_PATTERN = re.compile(r"^#[0-9a-f]{6}$")


class UiSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = "Event Calendar"

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("ui.title must not be empty")
        return text


class ServiceSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    host: str = "127.0.0.1"
    port: int = Field(default=5006, ge=1, le=65535)
    base_url: str = "http://127.0.0.1:5006"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    timeout_seconds: float = Field(default=10.0, gt=0, le=120)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        text = value.strip().rstrip("/")
        parsed = urlparse(text)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("service.base_url must be an absolute http(s) URL")
        return text


class UiServerSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    host: str = "127.0.0.1"
    port: int = Field(default=5173, ge=1, le=65535)


class EventsSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    default_color: str = DEFAULT_COLOR
    palette: list[str] = Field(default_factory=lambda: list(EVENT_COLORS))

    @field_validator("default_color")
    @classmethod
    def validate_default_color(cls, value: str) -> str:
        color = value.strip().lower()
        if not _HEX_COLOR_PATTERN.match(color):
            raise ValueError("events.default_color must be a hex color like '#4285f4'")
        return color

    @field_validator("palette")
    @classmethod
    def validate_palette(cls, values: list[str]) -> list[str]:
        normalized: list[str] = []
        for raw_color in values:
            if not isinstance(raw_color, str):
                raise ValueError("events.palette entries must be strings")
            color = raw_color.strip().lower()
            if not _HEX_COLOR_PATTERN.match(color):
                raise ValueError(f"events.palette entry is not a hex color: {raw_color!r}")
            normalized.append(color)

        deduplicated = list(dict.fromkeys(normalized))
        if not deduplicated:
            raise ValueError("events.palette must contain at least one color")
        return deduplicated

    @model_validator(mode="after")
    def validate_default_in_palette(self) -> EventsSettings:
        if self.default_color not in self.palette:
            raise ValueError("events.default_color must be one of events.palette")
        return self


class EventcalYamlSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ui: UiSettings = Field(default_factory=UiSettings)
    service: ServiceSettings = Field(default_factory=ServiceSettings)
    ui_server: UiServerSettings = Field(default_factory=UiServerSettings)
    events: EventsSettings = Field(default_factory=EventsSettings)


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    eventcal_env: Literal["dev", "test", "prod"] = "dev"
    eventcal_timezone: str = "Europe/Berlin"
    eventcal_config_path: Path = Path("config/eventcal.yaml")
    eventcal_data_path: Path = Path("data/events.json")
    eventcal_log_level: Literal["debug", "info", "warning", "error"] = "info"

    @field_validator("eventcal_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except ZoneInfoNotFoundError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("eventcal_log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class AppSettings(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    env: EnvSettings
    yaml: EventcalYamlSettings
    project_root: Path
    config_path: Path
    data_path: Path
    timezone: ZoneInfo


def _resolve_project_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return (PROJECT_ROOT / path).resolve()


def _load_yaml_settings(path: Path) -> EventcalYamlSettings:
    if not path.exists():
        raise FileNotFoundError(f"Event calendar config file not found: {path}")

    raw_config = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ValueError("Event calendar config must be a YAML mapping/object at the top level")
    return EventcalYamlSettings.model_validate(raw_config)


def build_settings(
    env: EnvSettings | None = None,
    yaml_settings: EventcalYamlSettings | None = None,
) -> AppSettings:
    env = env or EnvSettings()
    config_path = _resolve_project_path(env.eventcal_config_path)
    data_path = _resolve_project_path(env.eventcal_data_path)
    if yaml_settings is None:
        yaml_settings = _load_yaml_settings(config_path)
    return AppSettings(
        env=env,
        yaml=yaml_settings,
        project_root=PROJECT_ROOT,
        config_path=config_path,
        data_path=data_path,
        timezone=ZoneInfo(env.eventcal_timezone),
    )


@lru_cache(maxsize=1)
def load_settings() -> AppSettings:
    return build_settings()
