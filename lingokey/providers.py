"""Translation provider abstractions.

Providers turn scanned text elements into translated text. The semantic key
and role label of each element travel with the request as context.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence

from .configuration import LingokeyConfig, get_settings, validate_provider_settings
from .errors import (
    TranslationProviderConfigurationError,
    TranslationProviderError,
)
from .logger import get_logger
from .structures import ScanRecord, TranslationItem

logger = get_logger(__name__)


class TranslationProvider(ABC):
    """Abstract adapter for translation providers."""

    @abstractmethod
    def translate(
        self,
        records: Sequence[ScanRecord],
        *,
        source_language: str | None,
        target_language: str,
        model: str | None = None,
    ) -> Dict[str, str]:
        """Translate the provided records and return a mapping by element id."""


class EchoTranslationProvider(TranslationProvider):
    """A provider that returns the original text (useful for testing)."""

    def translate(
        self,
        records: Sequence[ScanRecord],
        *,
        source_language: str | None,
        target_language: str,
        model: str | None = None,
    ) -> Dict[str, str]:
        return {record.id: record.text for record in records}


class OpenAITranslationProvider(TranslationProvider):
    """Translation provider that uses OpenAI chat models."""

    DEFAULT_MODEL = "gpt-5-mini"

    def __init__(self, settings: LingokeyConfig, *, debug: bool = False) -> None:
        self.settings = settings
        self.debug = debug
        validate_provider_settings(settings)
        self._client, self._default_model = self._build_client()

    def _build_client(self) -> tuple[Any, str]:
        from openai import AzureOpenAI, OpenAI

        settings = self.settings
        if settings.LLM_PROVIDER == "azure_openai":
            client = AzureOpenAI(
                api_key=settings.AZURE_OPENAI_API_KEY,
                api_version=settings.AZURE_OPENAI_API_VERSION,
                azure_endpoint=settings.AZURE_OPENAI_ENDPOINT,
            )
            return client, settings.AZURE_OPENAI_DEPLOYMENT_NAME  # type: ignore[return-value]
        return OpenAI(api_key=settings.OPENAI_API_KEY), self.DEFAULT_MODEL

    def translate(
        self,
        records: Sequence[ScanRecord],
        *,
        source_language: str | None,
        target_language: str,
        model: str | None = None,
    ) -> Dict[str, str]:
        if not records:
            return {}

        payload = [
            {
                "id": record.id,
                "text": record.text,
                "key": record.key,
                "role": record.context,
            }
            for record in records
        ]
        system_prompt = (
            "You are a professional UI localiser. Return only JSON. "
            "Translate the provided interface strings into the requested language. "
            "Each entry carries a dotted key (screen.role.words) and a role such as "
            "button, heading, label, input or helper; keep translations about as "
            "short as the source so they fit the same layout. "
            "Preserve placeholders, numbers and punctuation style. "
            "Respond strictly with an object shaped as "
            '{"translations": [{"id": "...", "translated": "..."}]}. '
            "Do not add commentary. Do not wrap the JSON in markdown code fences."
        )
        user_prompt = {
            "target_language": target_language,
            "source_language": source_language,
            "strings": payload,
        }
        self._log_debug("provider.request.payload", user_prompt)

        response_items = self._invoke_model(
            system_prompt=system_prompt,
            user_payload=user_prompt,
            model=model or self._default_model,
        )
        self._log_debug("provider.response.items", response_items)

        mapping: Dict[str, str] = {}
        for item in response_items:
            if not isinstance(item, dict):
                raise TranslationProviderError(
                    "Translation provider response malformed: expected objects."
                )
            element_id = item.get("id")
            translated = item.get("translated")
            if not isinstance(element_id, str) or not isinstance(translated, str):
                raise TranslationProviderError(
                    "Translation provider response malformed: missing fields."
                )
            mapping[element_id] = translated
        return mapping

    def _invoke_model(
        self,
        *,
        system_prompt: str,
        user_payload: dict,
        model: str,
    ) -> list[dict[str, Any]]:
        """Call the OpenAI Responses API and return structured JSON data."""

        try:
            response = self._client.responses.create(
                model=model,
                input=[
                    {
                        "role": "system",
                        "content": [{"type": "input_text", "text": system_prompt}],
                    },
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "input_text",
                                "text": json.dumps(user_payload, ensure_ascii=False),
                            }
                        ],
                    },
                ],
            )
        except Exception as exc:  # pragma: no cover - network call
            raise TranslationProviderError(
                f"Translation service temporarily unavailable: {exc}"
            ) from exc

        output_text = getattr(response, "output_text", None)
        if not output_text:
            raise TranslationProviderError(
                "Translation provider response empty or unrecognised."
            )
        return self._normalise_translations(str(output_text))

    def _log_debug(self, label: str, payload: Any) -> None:
        if not self.debug:
            return
        try:
            message = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError):
            message = repr(payload)
        logger.debug("%s:\n%s", label, message)

    @staticmethod
    def _strip_code_fence(text: str) -> str:
        """Remove leading/trailing markdown code fences if present."""

        stripped = text.strip()
        if not stripped.startswith("```"):
            return stripped
        first_newline = stripped.find("\n")
        if first_newline == -1:
            return stripped
        body = stripped[first_newline + 1 :]
        closing_index = body.rfind("```")
        if closing_index != -1:
            body = body[:closing_index]
        return body.strip()

    def _normalise_translations(self, payload: Any) -> list[dict[str, Any]]:
        """Normalise raw payloads into a list of translation dictionaries."""

        if isinstance(payload, str):
            payload = self._strip_code_fence(payload)
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError as exc:
                raise TranslationProviderError(
                    f"Translation provider returned invalid JSON: {exc}"
                ) from exc

        if isinstance(payload, dict):
            translations = payload.get("translations")
            if isinstance(translations, list):
                return translations

        if isinstance(payload, list):
            return payload

        raise TranslationProviderError(
            "Translation provider response malformed: could not find translations list."
        )


class LegacyOpenAITranslationProvider(OpenAITranslationProvider):
    """Translation provider that uses the Chat Completions API for compatibility."""

    def _invoke_model(
        self,
        *,
        system_prompt: str,
        user_payload: dict,
        model: str,
    ) -> list[dict[str, Any]]:
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=0,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {
                        "role": "user",
                        "content": json.dumps(user_payload, ensure_ascii=False),
                    },
                ],
            )
        except Exception as exc:  # pragma: no cover - network call
            raise TranslationProviderError(
                f"Translation service temporarily unavailable: {exc}"
            ) from exc

        choices = getattr(response, "choices", None) or []
        for choice in choices:
            message = getattr(choice, "message", None)
            content = getattr(message, "content", None) if message is not None else None
            if content:
                return self._normalise_translations(str(content))

        raise TranslationProviderError(
            "Translation provider response empty or unrecognised."
        )


def build_provider(
    name: str | None,
    *,
    settings: LingokeyConfig | None = None,
    debug: bool = False,
) -> TranslationProvider:
    """Factory to create providers by name."""

    normalized = (name or "openai").strip().lower()
    if normalized in {"echo", "noop", "mock"}:
        return EchoTranslationProvider()
    if normalized in {"openai", "gpt", "default"}:
        return OpenAITranslationProvider(settings or get_settings(), debug=debug)
    if normalized in {"legacy-openai", "legacy_openai", "legacy", "openai-legacy"}:
        return LegacyOpenAITranslationProvider(settings or get_settings(), debug=debug)
    raise TranslationProviderConfigurationError(
        f"Unknown translation provider '{name}'."
    )


def generate_translations(
    records: Sequence[ScanRecord],
    provider: TranslationProvider,
    *,
    target_language: str,
    source_language: str | None = None,
    model: str | None = None,
) -> List[TranslationItem]:
    """Produce translation items for scanned records.

    Records carrying a manual override for ``target_language`` keep their
    stored text and are not sent to the provider.
    """

    manual = {
        record.id: record.translations[target_language]
        for record in records
        if record.manual_flags.get(target_language)
        and target_language in record.translations
    }
    pending = [record for record in records if record.id not in manual]
    translated = provider.translate(
        pending,
        source_language=source_language,
        target_language=target_language,
        model=model,
    )

    items: List[TranslationItem] = []
    for record in records:
        if record.id in manual:
            items.append(TranslationItem(record.id, manual[record.id]))
        elif record.id in translated:
            items.append(TranslationItem(record.id, translated[record.id]))
        else:
            logger.warning("No translation returned for %s (%s)", record.id, record.key)
    return items
