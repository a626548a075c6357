"""Layered configuration loader for lingokey."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Mapping, Sequence, Tuple

import yaml
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    SettingsError,
)

from .errors import ConfigurationError, TranslationProviderConfigurationError
from .metadata import DEFAULT_LANGUAGES

APP_NAME = "lingokey"
CONFIG_FILENAMES = ("lingokey.yaml", "lingokey.yml")


class LingokeyConfig(BaseSettings):
    """Schema describing all supported configuration options."""

    model_config = SettingsConfigDict(extra="ignore", env_file_encoding="utf-8")

    # Directory searched for lingokey.yaml; None means the working directory.
    config_dir: ClassVar[Path | None] = None

    LINGOKEY_LANGUAGES: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_LANGUAGES),
        description="Language codes whose translations are tracked per element.",
    )
    LINGOKEY_APPLY_OFFSET: float = Field(
        default=100.0,
        description="Horizontal gap between an element and its translated copy.",
    )
    LINGOKEY_LOG_LEVEL: str = Field(default="WARNING")
    LINGOKEY_MODEL: str | None = Field(default=None)
    LINGOKEY_PROVIDER_DEBUG: bool = Field(default=False)
    LLM_PROVIDER: Literal["azure_openai", "openai"] = Field(
        default="openai",
        description="Large language model provider selection.",
    )
    AZURE_OPENAI_API_KEY: str | None = Field(default=None)
    AZURE_OPENAI_ENDPOINT: str | None = Field(default=None)
    AZURE_OPENAI_API_VERSION: str | None = Field(default=None)
    AZURE_OPENAI_DEPLOYMENT_NAME: str | None = Field(default=None)
    OPENAI_API_KEY: str | None = Field(default=None)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSource(settings_cls, app_dir=cls.config_dir),
        )

    @model_validator(mode="before")
    @classmethod
    def _normalise_provider(cls, data: Any) -> Any:
        if isinstance(data, dict):
            raw_value = data.get("LLM_PROVIDER")
            if isinstance(raw_value, str):
                normalized = raw_value.strip().lower().replace("-", "_")
                synonyms = {
                    "azure_open_ai": "azure_openai",
                    "azureopenai": "azure_openai",
                }
                normalized = synonyms.get(normalized, normalized)
                if normalized not in {"openai", "azure_openai"}:
                    normalized = "openai"
                data["LLM_PROVIDER"] = normalized
        return data

    @field_validator("LINGOKEY_LANGUAGES", mode="before")
    @classmethod
    def _split_languages(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple)):
            seen: List[str] = []
            for entry in value:
                code = str(entry).strip().lower()
                if code and code not in seen:
                    seen.append(code)
            if not seen:
                raise ValueError("at least one language code is required")
            return seen
        return value

    @field_validator("LINGOKEY_LOG_LEVEL")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level '{value}'")
        return level


class YamlConfigSource(PydanticBaseSettingsSource):
    """Settings from ``~/.config/lingokey/config.yaml`` then ``lingokey.yaml``.

    Keys are matched case-insensitively against the field names. This is
    the lowest-priority layer, below ``.env`` and the process environment.
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        *,
        app_dir: Path | None = None,
    ) -> None:
        super().__init__(settings_cls)
        self.app_dir = app_dir or Path.cwd()
        self._values = _load_discovered_yaml(app_dir=self.app_dir)

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> Tuple[Any, str, bool]:
        return self._values.get(field_name), field_name, False

    def __call__(self) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for field_name, field in self.settings_cls.model_fields.items():
            value, key, _ = self.get_field_value(field, field_name)
            if value is not None:
                values[key] = value
        return values


def _settings_class_for(app_dir: Path) -> type[LingokeyConfig]:
    class ScopedLingokeyConfig(LingokeyConfig):
        config_dir: ClassVar[Path | None] = app_dir

    return ScopedLingokeyConfig


@lru_cache(maxsize=1)
def _load_settings(app_dir: Path | None = None) -> LingokeyConfig:
    """Load configuration layers once and cache the validated model."""

    base_dir = app_dir or Path.cwd()
    settings_cls = _settings_class_for(base_dir)
    try:
        return settings_cls(_env_file=base_dir / ".env")
    except ValidationError as exc:
        raise ConfigurationError(_format_validation_errors(exc.errors())) from exc
    except SettingsError as exc:
        raise ConfigurationError(f"Configuration could not be loaded: {exc}") from exc


def _discover_file_paths(app_dir: Path) -> List[Path]:
    candidates = [Path.home() / ".config" / APP_NAME / "config.yaml"]
    candidates.extend(app_dir / name for name in CONFIG_FILENAMES)
    return [path for path in candidates if path.is_file()]


def _load_discovered_yaml(*, app_dir: Path) -> dict[str, Any]:
    """Merge YAML files from the home config directory, then the app directory."""

    result: dict[str, Any] = {}
    for path in _discover_file_paths(app_dir):
        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(
                f"Configuration file {path} could not be read: {exc}"
            ) from exc
        if not isinstance(parsed, Mapping):
            raise ConfigurationError(
                f"Invalid configuration file {path}: expected a mapping at the root."
            )
        result.update({str(key).upper(): value for key, value in parsed.items()})
    return result


def validate_provider_settings(settings: LingokeyConfig) -> None:
    """Ensure the selected LLM provider has the credentials it needs."""

    provider = settings.LLM_PROVIDER
    errors: list[str] = []

    if provider == "openai":
        if not settings.OPENAI_API_KEY:
            errors.append(
                "OPENAI_API_KEY is required when LLM_PROVIDER is 'openai'."
            )
    elif provider == "azure_openai":
        missing = [
            name
            for name, value in {
                "AZURE_OPENAI_API_KEY": settings.AZURE_OPENAI_API_KEY,
                "AZURE_OPENAI_ENDPOINT": settings.AZURE_OPENAI_ENDPOINT,
                "AZURE_OPENAI_API_VERSION": settings.AZURE_OPENAI_API_VERSION,
                "AZURE_OPENAI_DEPLOYMENT_NAME": settings.AZURE_OPENAI_DEPLOYMENT_NAME,
            }.items()
            if not value
        ]
        if missing:
            errors.append(
                "The following Azure OpenAI settings must be provided when "
                f"LLM_PROVIDER is 'azure_openai': {', '.join(missing)}."
            )

    if errors:
        bullet_list = "\n".join(f"- {message}" for message in errors)
        raise TranslationProviderConfigurationError(
            "Configuration validation errors detected:\n" + bullet_list
        )


def _format_validation_errors(entries: Sequence[Mapping[str, Any]]) -> str:
    details: list[str] = []
    for entry in entries:
        path = entry.get("loc") or []
        if isinstance(path, (list, tuple)):
            location = ".".join(str(part) for part in path if part not in {None, ""})
        else:
            location = str(path)
        message = str(entry.get("msg") or "Invalid value")
        prefix = f"{location}: " if location else ""
        details.append(f"- {prefix}{message}")
    return "Configuration validation errors detected:\n" + "\n".join(details)


def get_settings(app_dir: Path | None = None) -> LingokeyConfig:
    """Return the validated settings, loading them on first use."""

    return _load_settings(app_dir=app_dir)


get_settings.cache_clear = _load_settings.cache_clear  # type: ignore[attr-defined]
