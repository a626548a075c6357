"""Command protocol between the panel and the localisation core."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from .host import Host
from .logger import get_logger
from .metadata import DEFAULT_LANGUAGES
from .structures import ApplyResult, PreviewResult, RevertResult, ScanRecord, TranslationItem
from .translator import DEFAULT_APPLY_OFFSET, SELECTION_REQUIRED, TranslationStateMachine

logger = get_logger(__name__)

Handler = Callable[[Mapping[str, Any]], Awaitable[Any]]


# Fields a command cannot run without; messages missing one are ignored.
REQUIRED_FIELDS: Dict[str, Sequence[str]] = {
    "preview-translation": ("language", "translations"),
    "apply-translation": ("language",),
    "store-translations": ("data",),
    "update-manual-translation": ("id", "lang", "text"),
}


def parse_items(payload: Sequence[Mapping[str, Any]]) -> List[TranslationItem]:
    """Translation items from a message; malformed entries are dropped."""

    items: List[TranslationItem] = []
    for entry in payload:
        if not isinstance(entry, Mapping) or not {"id", "translatedText"} <= entry.keys():
            logger.warning("Malformed translation item %r ignored", entry)
            continue
        items.append(TranslationItem.from_message(entry))
    return items


class TranslationSession:
    """Dispatches inbound commands one at a time, in arrival order.

    Handlers suspend on host round-trips; the session lock keeps a second
    command from starting until the previous one has finished with the
    metadata and the document.
    """

    def __init__(
        self,
        host: Host,
        *,
        languages: Sequence[str] = DEFAULT_LANGUAGES,
        apply_offset: float = DEFAULT_APPLY_OFFSET,
    ) -> None:
        self.host = host
        self.machine = TranslationStateMachine(
            host, languages=languages, apply_offset=apply_offset
        )
        self.closed = False
        self._lock = asyncio.Lock()
        self._handlers: Dict[str, Handler] = {
            "scan": self._handle_scan,
            "preview-translation": self._handle_preview,
            "revert-preview": self._handle_revert,
            "apply-translation": self._handle_apply,
            "store-translations": self._handle_store,
            "update-manual-translation": self._handle_update_manual,
            "clear-storage": self._handle_clear,
            "close": self._handle_close,
        }

    @classmethod
    def from_settings(cls, host: Host, settings: Any) -> "TranslationSession":
        return cls(
            host,
            languages=settings.LINGOKEY_LANGUAGES,
            apply_offset=settings.LINGOKEY_APPLY_OFFSET,
        )

    async def dispatch(self, message: Mapping[str, Any]) -> Any:
        """Run the handler for ``message["type"]`` and return its result."""

        command = message.get("type")
        logger.debug("Message received: %s", command)
        if self.closed:
            logger.info("Session closed; ignoring %s", command)
            return None
        handler = self._handlers.get(command)  # type: ignore[arg-type]
        if handler is None:
            logger.warning("Unknown command %r ignored", command)
            return None
        missing = [
            name for name in REQUIRED_FIELDS.get(command, ()) if message.get(name) is None
        ]
        if missing:
            logger.warning("Ignoring %s without %s", command, ", ".join(missing))
            return None
        async with self._lock:
            if self.closed:
                return None
            return await handler(message)

    async def dispatch_all(self, messages: Sequence[Mapping[str, Any]]) -> List[Any]:
        """Start every command at once; the lock keeps them in order."""

        return list(await asyncio.gather(*(self.dispatch(m) for m in messages)))

    async def _handle_scan(self, message: Mapping[str, Any]) -> List[ScanRecord]:
        self.host.notify("Scanning design for text...", timeout=1000)
        result = await self.machine.scan()
        self.host.post_message(
            {"type": "scan-results", "data": [r.to_message() for r in result.records]}
        )
        return result.records

    async def _handle_preview(self, message: Mapping[str, Any]) -> PreviewResult:
        language = str(message.get("language"))
        self.host.notify(f"Previewing {language.upper()}...")
        return await self.machine.preview(parse_items(message.get("translations") or []), language)

    async def _handle_revert(self, message: Mapping[str, Any]) -> RevertResult:
        self.host.notify("Reverting design...")
        result = await self.machine.revert()
        self.host.notify("Design reverted")
        return result

    async def _handle_apply(self, message: Mapping[str, Any]) -> Optional[ApplyResult]:
        language = str(message.get("language"))
        if not self.host.selection:
            self.host.notify(SELECTION_REQUIRED, error=True)
            return None

        self.host.notify(f"Creating {language.upper()} copy...")
        result = await self.machine.apply(
            parse_items(message.get("translations") or []), language
        )
        if result.ok:
            self.host.notify(f"{language.upper()} copies generated!")
            self.host.post_message({"type": "apply-complete"})
        else:
            self.host.notify(f"Error: {result.error}", error=True)
            self.host.post_message({"type": "apply-error", "message": result.error})
        return result

    async def _handle_store(self, message: Mapping[str, Any]) -> int:
        data = message.get("data")
        if not isinstance(data, Mapping):
            logger.warning("Ignoring store-translations with non-mapping data")
            return 0
        valid = {lang: entries for lang, entries in data.items() if isinstance(entries, Mapping)}
        return await self.machine.store_translations(valid)

    async def _handle_update_manual(self, message: Mapping[str, Any]) -> bool:
        return await self.machine.update_manual(
            str(message.get("id")), str(message.get("lang")), str(message.get("text"))
        )

    async def _handle_clear(self, message: Mapping[str, Any]) -> int:
        self.host.notify("Cleaning up all design metadata...", timeout=2000)
        cleared = self.machine.clear_storage()
        self.host.notify("All plugin data cleared from design!")
        return cleared

    async def _handle_close(self, message: Mapping[str, Any]) -> None:
        self.closed = True
        self.host.close()
