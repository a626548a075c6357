"""Translation state operations: scan, preview, revert, apply and clear.

Per element, the state is inferred from its metadata rather than held
anywhere: no metadata means unscanned, a stored key and original text mean
scanned, visible text differing from the stored original means previewed,
and visible text equal to it means reverted. Every operation re-reads the
metadata it needs so overlapping operations stay consistent.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .errors import EmptySelectionError, ErrorCategory
from .host import Host
from .keys import semantic_key
from .logger import get_logger
from .metadata import DEFAULT_LANGUAGES, MetadataStore
from .policy import ErrorPolicy
from .scene import BaseNode, ContainerNode, TextNode
from .structures import (
    ApplyResult,
    PreviewResult,
    RevertResult,
    ScanRecord,
    ScanResult,
    TranslationItem,
)
from .traversal import (
    collect_all,
    collect_text_leaves,
    collect_visible_text,
    load_font_quietly,
    load_fonts,
    scan_roots,
)

logger = get_logger(__name__)

DEFAULT_APPLY_OFFSET = 100.0
SELECTION_REQUIRED = "Please select elements to duplicate."


class TranslationStateMachine:
    """Coordinates metadata and visible text for one host document."""

    def __init__(
        self,
        host: Host,
        *,
        languages: Sequence[str] = DEFAULT_LANGUAGES,
        apply_offset: float = DEFAULT_APPLY_OFFSET,
    ) -> None:
        self.host = host
        self.store = MetadataStore(languages)
        self.apply_offset = apply_offset

    @property
    def languages(self) -> Sequence[str]:
        return self.store.languages

    async def scan(self) -> ScanResult:
        """Key every visible text element and report its stored state."""

        policy = ErrorPolicy()
        text_nodes = collect_visible_text(scan_roots(self.host))
        logger.info("Found %d text nodes", len(text_nodes))
        fonts = await load_fonts(self.host, text_nodes, policy)

        records: List[ScanRecord] = []
        for node in text_nodes:
            try:
                record = self._scan_node(node)
            except Exception as exc:
                policy.handle_error(
                    ErrorCategory.OTHER,
                    f"Error processing node {node.id}",
                    str(exc),
                )
                continue
            if record is not None:
                records.append(record)
        return ScanResult(records=records, fonts=fonts, errors=policy.records)

    def _scan_node(self, node: TextNode) -> Optional[ScanRecord]:
        text = node.characters
        if not text or not text.strip():
            return None

        key, context = semantic_key(node, text)
        self.store.remember_original(node, text)
        self.store.write_key(node, key)

        metadata = self.store.read(node)
        return ScanRecord(
            id=node.id,
            text=text,
            key=key,
            context=context,
            translations=dict(metadata.translations),
            manual_flags={language: True for language in metadata.manual_flags},
        )

    async def _resolve_text(
        self, node_id: str, policy: ErrorPolicy
    ) -> Optional[TextNode]:
        node = await self.host.get_node_by_id(node_id)
        if node is None:
            policy.handle_error(ErrorCategory.RESOLUTION, f"Element {node_id} not found; skipping.")
            return None
        if not isinstance(node, TextNode):
            policy.handle_error(
                ErrorCategory.RESOLUTION,
                f"Element {node_id} is not a text element; skipping.",
            )
            return None
        return node

    async def preview(
        self, items: Iterable[TranslationItem], language: str
    ) -> PreviewResult:
        """Show translated text in place, keeping the original for revert."""

        policy = ErrorPolicy()
        result = PreviewResult(language=language)
        for item in items:
            node = await self._resolve_text(item.id, policy)
            if node is None:
                result.skipped.append(item.id)
                continue
            self.store.remember_original(node, node.characters)
            await load_font_quietly(self.host, node.font_name, result.fonts, policy)
            node.characters = item.translated_text
            result.updated.append(node.id)
        result.errors = policy.records
        return result

    async def revert(self) -> RevertResult:
        """Restore every text element on the page to its stored original."""

        policy = ErrorPolicy()
        result = RevertResult()
        for node in collect_text_leaves(self.host.current_page.children):
            original = self.store.original_text(node)
            if original is None or node.characters == original:
                continue
            await load_font_quietly(self.host, node.font_name, result.fonts, policy)
            # Re-read after the suspension in case a clear ran meanwhile.
            original = self.store.original_text(node)
            if original is None:
                continue
            node.characters = original
            result.reverted.append(node.id)
        result.errors = policy.records
        return result

    async def update_manual(self, node_id: str, language: str, text: str) -> bool:
        """Record a user-confirmed translation without touching visible text."""

        node = await self.host.get_node_by_id(node_id)
        if node is None:
            logger.debug("Manual override target %s not found", node_id)
            return False
        self.store.mark_manual(node, language, text)
        logger.info("Manual override saved for %s in %s", node_id, language)
        return True

    async def store_translations(
        self, data: Mapping[str, Mapping[str, str]]
    ) -> int:
        """Persist translations per language and element id; returns writes made."""

        written = 0
        for language, entries in data.items():
            for node_id, text in entries.items():
                node = await self.host.get_node_by_id(node_id)
                if node is None:
                    logger.debug("Translation target %s not found", node_id)
                    continue
                self.store.write_translation(node, language, text)
                written += 1
        return written

    async def _key_map(
        self, items: Iterable[TranslationItem], policy: ErrorPolicy
    ) -> Dict[str, str]:
        """Map the semantic key of each item's originating element to its text."""

        mapping: Dict[str, str] = {}
        for item in items:
            origin = await self.host.get_node_by_id(item.id)
            if origin is None:
                policy.handle_error(
                    ErrorCategory.RESOLUTION, f"Element {item.id} not found; skipping."
                )
                continue
            key = self.store.key(origin)
            if key is None:
                continue
            mapping.setdefault(key, item.translated_text)
        return mapping

    async def apply(
        self,
        items: Sequence[TranslationItem],
        language: str,
        selection: Optional[Sequence[BaseNode]] = None,
    ) -> ApplyResult:
        """Duplicate the selection and write translations into the copies.

        Raises ``EmptySelectionError`` before touching anything when there is
        nothing to duplicate. Any other failure stops the operation and is
        returned in ``ApplyResult.error``; duplicates made so far remain.
        """

        targets = list(selection if selection is not None else self.host.selection)
        if not targets:
            raise EmptySelectionError(SELECTION_REQUIRED)

        policy = ErrorPolicy()
        result = ApplyResult(language=language)
        suffix = language.upper()
        try:
            translations = await self._key_map(items, policy)
            for original in targets:
                clone = self.host.clone(original)
                clone.name = f"{original.name} ({suffix})"
                clone.x = original.x + original.width + self.apply_offset
                clone.y = original.y
                result.clones.append(clone)
                await self._relink(clone, translations, language, result, policy)
        except Exception as exc:
            logger.exception("Apply failed")
            policy.handle_error(ErrorCategory.APPLY, str(exc))
            result.error = str(exc)
        else:
            self.host.selection = result.clones
            self.host.scroll_and_zoom_into_view(result.clones)
        result.errors = policy.records
        return result

    async def _relink(
        self,
        clone: BaseNode,
        translations: Mapping[str, str],
        language: str,
        result: ApplyResult,
        policy: ErrorPolicy,
    ) -> None:
        if isinstance(clone, ContainerNode):
            leaves = clone.find_all(lambda n: isinstance(n, TextNode))
        elif isinstance(clone, TextNode):
            leaves = [clone]
        else:
            leaves = []

        for leaf in leaves:
            key = self.store.key(leaf)
            if key is None or key not in translations:
                continue
            translated = translations[key]
            await load_font_quietly(self.host, leaf.font_name, result.fonts, policy)
            leaf.characters = translated
            # The copy carries the translation; the original stays untagged.
            self.store.write_translation(leaf, language, translated)
            result.relinked.append(leaf.id)

    def clear_storage(self) -> int:
        """Reset every field on every element of the page; returns nodes touched."""

        nodes = collect_all(self.host.current_page.children)
        for node in nodes:
            self.store.clear(node)
        return len(nodes)

