"""Typed view over the per-element plugin data owned by the host.

The host persists plain strings and treats the empty string as "unset".
``ElementMetadata`` uses ``None`` and missing mapping entries for the unset
variant instead, and ``MetadataStore`` translates between the two.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Sequence, Set, Tuple

from .scene import BaseNode

ORIGINAL_TEXT_FIELD = "originalText"
NODE_KEY_FIELD = "nodeKey"
TRANSLATION_PREFIX = "translation-"
MANUAL_PREFIX = "isManual-"
MANUAL_TRUE = "true"
UNSET = ""

DEFAULT_LANGUAGES: Tuple[str, ...] = ("fr", "de", "hi", "es")


def translation_field(language: str) -> str:
    return TRANSLATION_PREFIX + language


def manual_field(language: str) -> str:
    return MANUAL_PREFIX + language


@dataclass
class ElementMetadata:
    original_text: Optional[str] = None
    key: Optional[str] = None
    translations: Dict[str, str] = field(default_factory=dict)
    manual_flags: Set[str] = field(default_factory=set)

    @property
    def is_empty(self) -> bool:
        return (
            self.original_text is None
            and self.key is None
            and not self.translations
            and not self.manual_flags
        )


class MetadataStore:
    """Schema and write policy for element metadata."""

    def __init__(self, languages: Sequence[str] = DEFAULT_LANGUAGES) -> None:
        self.languages: Tuple[str, ...] = tuple(languages)

    @staticmethod
    def _get(node: BaseNode, name: str) -> Optional[str]:
        value = node.get_plugin_data(name)
        return value if value != UNSET else None

    def read(self, node: BaseNode) -> ElementMetadata:
        metadata = ElementMetadata(
            original_text=self._get(node, ORIGINAL_TEXT_FIELD),
            key=self._get(node, NODE_KEY_FIELD),
        )
        for language in self.languages:
            translated = self._get(node, translation_field(language))
            if translated is not None:
                metadata.translations[language] = translated
            if node.get_plugin_data(manual_field(language)) == MANUAL_TRUE:
                metadata.manual_flags.add(language)
        return metadata

    def original_text(self, node: BaseNode) -> Optional[str]:
        return self._get(node, ORIGINAL_TEXT_FIELD)

    def key(self, node: BaseNode) -> Optional[str]:
        return self._get(node, NODE_KEY_FIELD)

    def remember_original(self, node: BaseNode, text: str) -> bool:
        """Store ``text`` as the original unless one is already recorded."""

        if self._get(node, ORIGINAL_TEXT_FIELD) is not None:
            return False
        node.set_plugin_data(ORIGINAL_TEXT_FIELD, text)
        return True

    def write_key(self, node: BaseNode, key: str) -> None:
        node.set_plugin_data(NODE_KEY_FIELD, key)

    def write_translation(self, node: BaseNode, language: str, text: str) -> None:
        node.set_plugin_data(translation_field(language), text)

    def mark_manual(self, node: BaseNode, language: str, text: str) -> None:
        self.write_translation(node, language, text)
        node.set_plugin_data(manual_field(language), MANUAL_TRUE)

    def clear(self, node: BaseNode, languages: Iterable[str] | None = None) -> None:
        node.set_plugin_data(ORIGINAL_TEXT_FIELD, UNSET)
        node.set_plugin_data(NODE_KEY_FIELD, UNSET)
        for language in languages if languages is not None else self.languages:
            node.set_plugin_data(translation_field(language), UNSET)
            node.set_plugin_data(manual_field(language), UNSET)
