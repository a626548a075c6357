from __future__ import annotations

from types import SimpleNamespace

import pytest

from lingokey.configuration import LingokeyConfig
from lingokey.errors import (
    TranslationProviderConfigurationError,
    TranslationProviderError,
)
from lingokey.providers import (
    EchoTranslationProvider,
    LegacyOpenAITranslationProvider,
    OpenAITranslationProvider,
    TranslationProvider,
    build_provider,
    generate_translations,
)
from lingokey.structures import ScanRecord

RECORDS = [
    ScanRecord("1:3", "Submit", "home.button.submit", "button"),
    ScanRecord(
        "1:4",
        "Welcome back",
        "home.text.welcome.back",
        "text",
        translations={"fr": "Content de vous revoir"},
        manual_flags={"fr": True},
    ),
]


class RecordingProvider(TranslationProvider):
    def __init__(self):
        self.seen = []

    def translate(self, records, *, source_language, target_language, model=None):
        self.seen.extend(record.id for record in records)
        return {record.id: record.text.upper() for record in records}


def test_echo_provider_returns_source_text():
    provider = build_provider("echo")

    assert isinstance(provider, EchoTranslationProvider)
    assert provider.translate(RECORDS, source_language=None, target_language="fr") == {
        "1:3": "Submit",
        "1:4": "Welcome back",
    }


def test_manual_overrides_are_not_retranslated():
    provider = RecordingProvider()

    items = generate_translations(RECORDS, provider, target_language="fr")

    assert provider.seen == ["1:3"]
    assert [(i.id, i.translated_text) for i in items] == [
        ("1:3", "SUBMIT"),
        ("1:4", "Content de vous revoir"),
    ]


def test_manual_flag_for_other_language_is_ignored():
    provider = RecordingProvider()

    generate_translations(RECORDS, provider, target_language="de")

    assert provider.seen == ["1:3", "1:4"]


def test_missing_translations_are_dropped():
    class PartialProvider(RecordingProvider):
        def translate(self, records, **kwargs):
            return {}

    assert generate_translations(RECORDS[:1], PartialProvider(), target_language="es") == []


def test_unknown_provider():
    with pytest.raises(TranslationProviderConfigurationError):
        build_provider("babelfish")


def test_openai_provider_requires_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("LLM_PROVIDER", raising=False)
    with pytest.raises(TranslationProviderConfigurationError):
        build_provider("openai", settings=LingokeyConfig())


def make_openai(cls=OpenAITranslationProvider):
    return cls(LingokeyConfig(OPENAI_API_KEY="sk-test"))


def test_openai_provider_parses_fenced_json():
    provider = make_openai()
    calls = []

    def create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(
            output_text='```json\n{"translations": [{"id": "1:3", "translated": "Envoyer"}]}\n```'
        )

    provider._client = SimpleNamespace(responses=SimpleNamespace(create=create))

    mapping = provider.translate(RECORDS[:1], source_language="en", target_language="fr")

    assert mapping == {"1:3": "Envoyer"}
    assert calls[0]["model"] == OpenAITranslationProvider.DEFAULT_MODEL
    assert "home.button.submit" in calls[0]["input"][1]["content"][0]["text"]


def test_openai_provider_rejects_malformed_items():
    provider = make_openai()
    provider._client = SimpleNamespace(
        responses=SimpleNamespace(
            create=lambda **kwargs: SimpleNamespace(output_text='[{"id": "1:3"}]')
        )
    )

    with pytest.raises(TranslationProviderError):
        provider.translate(RECORDS[:1], source_language=None, target_language="fr")


def test_legacy_provider_reads_chat_choices():
    provider = make_openai(LegacyOpenAITranslationProvider)
    response = SimpleNamespace(
        choices=[
            SimpleNamespace(
                message=SimpleNamespace(
                    content='{"translations": [{"id": "1:3", "translated": "Senden"}]}'
                )
            )
        ]
    )
    provider._client = SimpleNamespace(
        chat=SimpleNamespace(completions=SimpleNamespace(create=lambda **kwargs: response))
    )

    assert provider.translate(
        RECORDS[:1], source_language=None, target_language="de", model="gpt-4o-mini"
    ) == {"1:3": "Senden"}


def test_empty_records_skip_the_network():
    provider = make_openai()
    provider._client = None

    assert provider.translate([], source_language=None, target_language="fr") == {}
