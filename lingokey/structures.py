"""Records exchanged between the localisation core and its callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Tuple

from .errors import ErrorRecord
from .scene import BaseNode, FontName


@dataclass
class ScanRecord:
    """A text element discovered by a scan."""

    id: str
    text: str
    key: str
    context: str
    translations: Dict[str, str] = field(default_factory=dict)
    manual_flags: Dict[str, bool] = field(default_factory=dict)

    def to_message(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "key": self.key,
            "context": self.context,
            "translations": dict(self.translations),
            "manualFlags": dict(self.manual_flags),
        }


@dataclass
class TranslationItem:
    """Translated text destined for the element with the given id."""

    id: str
    translated_text: str

    @classmethod
    def from_message(cls, payload: Mapping[str, Any]) -> "TranslationItem":
        return cls(id=str(payload["id"]), translated_text=str(payload["translatedText"]))


@dataclass
class FontLoadReport:
    """Outcome of a best-effort font batch."""

    loaded: List[FontName] = field(default_factory=list)
    failures: List[Tuple[FontName, BaseException]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class ScanResult:
    records: List[ScanRecord]
    fonts: FontLoadReport = field(default_factory=FontLoadReport)
    errors: List[ErrorRecord] = field(default_factory=list)


@dataclass
class PreviewResult:
    language: str
    updated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    fonts: FontLoadReport = field(default_factory=FontLoadReport)
    errors: List[ErrorRecord] = field(default_factory=list)


@dataclass
class RevertResult:
    reverted: List[str] = field(default_factory=list)
    fonts: FontLoadReport = field(default_factory=FontLoadReport)
    errors: List[ErrorRecord] = field(default_factory=list)


@dataclass
class ApplyResult:
    """Report returned by apply; ``error`` is set when it stopped early."""

    language: str
    clones: List[BaseNode] = field(default_factory=list)
    relinked: List[str] = field(default_factory=list)
    fonts: FontLoadReport = field(default_factory=FontLoadReport)
    errors: List[ErrorRecord] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
