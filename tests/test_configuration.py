from __future__ import annotations

import pytest

from lingokey.configuration import (
    LingokeyConfig,
    get_settings,
    validate_provider_settings,
)
from lingokey.errors import ConfigurationError, TranslationProviderConfigurationError

ENV_KEYS = [name for name in LingokeyConfig.model_fields]


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    for name in ENV_KEYS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(tmp_path):
    settings = get_settings(tmp_path)

    assert settings.LINGOKEY_LANGUAGES == ["fr", "de", "hi", "es"]
    assert settings.LINGOKEY_APPLY_OFFSET == 100.0
    assert settings.LINGOKEY_LOG_LEVEL == "WARNING"
    assert settings.LLM_PROVIDER == "openai"


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("LINGOKEY_LANGUAGES", " FR, ja ,fr,")
    monkeypatch.setenv("LINGOKEY_APPLY_OFFSET", "48")
    monkeypatch.setenv("LLM_PROVIDER", "Azure-Open-AI")

    settings = get_settings(tmp_path)

    assert settings.LINGOKEY_LANGUAGES == ["fr", "ja"]
    assert settings.LINGOKEY_APPLY_OFFSET == 48.0
    assert settings.LLM_PROVIDER == "azure_openai"


def test_yaml_then_dotenv_then_environment(tmp_path, monkeypatch):
    (tmp_path / "lingokey.yaml").write_text(
        "lingokey_languages: [de, es]\nLINGOKEY_LOG_LEVEL: info\nLINGOKEY_APPLY_OFFSET: 10\n",
        encoding="utf-8",
    )
    (tmp_path / ".env").write_text("LINGOKEY_APPLY_OFFSET=20\n", encoding="utf-8")
    monkeypatch.setenv("LINGOKEY_LOG_LEVEL", "debug")

    settings = get_settings(tmp_path)

    assert settings.LINGOKEY_LANGUAGES == ["de", "es"]
    assert settings.LINGOKEY_APPLY_OFFSET == 20.0
    assert settings.LINGOKEY_LOG_LEVEL == "DEBUG"


def test_settings_are_cached(tmp_path, monkeypatch):
    first = get_settings(tmp_path)
    monkeypatch.setenv("LINGOKEY_APPLY_OFFSET", "5")

    assert get_settings(tmp_path) is first


def test_invalid_values_are_reported(tmp_path, monkeypatch):
    monkeypatch.setenv("LINGOKEY_LOG_LEVEL", "chatty")
    monkeypatch.setenv("LINGOKEY_LANGUAGES", ",")

    with pytest.raises(ConfigurationError) as excinfo:
        get_settings(tmp_path)

    message = str(excinfo.value)
    assert "LINGOKEY_LOG_LEVEL" in message
    assert "LINGOKEY_LANGUAGES" in message


def test_yaml_must_be_a_mapping(tmp_path):
    (tmp_path / "lingokey.yaml").write_text("- fr\n- de\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        get_settings(tmp_path)


def test_provider_credentials_are_checked():
    with pytest.raises(TranslationProviderConfigurationError, match="OPENAI_API_KEY"):
        validate_provider_settings(LingokeyConfig())

    with pytest.raises(TranslationProviderConfigurationError, match="AZURE_OPENAI_ENDPOINT"):
        validate_provider_settings(
            LingokeyConfig(LLM_PROVIDER="azure_openai", AZURE_OPENAI_API_KEY="k")
        )

    validate_provider_settings(LingokeyConfig(OPENAI_API_KEY="sk-test"))


def test_model_reads_environment_directly(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("LINGOKEY_LANGUAGES", "ja,ko")

    settings = LingokeyConfig()

    assert settings.OPENAI_API_KEY == "sk-env"
    assert settings.LINGOKEY_LANGUAGES == ["ja", "ko"]


def test_explicit_values_beat_the_environment(monkeypatch):
    monkeypatch.setenv("LINGOKEY_APPLY_OFFSET", "48")

    assert LingokeyConfig(LINGOKEY_APPLY_OFFSET=12).LINGOKEY_APPLY_OFFSET == 12.0


def test_dotenv_lists_and_unknown_keys(tmp_path):
    (tmp_path / ".env").write_text(
        "LINGOKEY_LANGUAGES=pt, it\nUNRELATED_SETTING=1\n", encoding="utf-8"
    )

    settings = get_settings(tmp_path)

    assert settings.LINGOKEY_LANGUAGES == ["pt", "it"]
    assert not hasattr(settings, "UNRELATED_SETTING")


def test_home_yaml_is_overridden_by_project_yaml(tmp_path):
    home_config = tmp_path / "home" / ".config" / "lingokey"
    home_config.mkdir(parents=True)
    (home_config / "config.yaml").write_text(
        "LINGOKEY_MODEL: home-model\nLINGOKEY_APPLY_OFFSET: 7\n", encoding="utf-8"
    )
    (tmp_path / "lingokey.yml").write_text("lingokey_model: project-model\n", encoding="utf-8")

    settings = get_settings(tmp_path)

    assert settings.LINGOKEY_MODEL == "project-model"
    assert settings.LINGOKEY_APPLY_OFFSET == 7.0
