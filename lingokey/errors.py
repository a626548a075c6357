"""Error definitions for the lingokey localisation core."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class ErrorCategory(Enum):
    """Categorises failures recorded while an operation runs."""

    FONT = auto()
    RESOLUTION = auto()
    APPLY = auto()
    OTHER = auto()


class LingokeyError(Exception):
    """Base exception for all custom errors."""


class FontLoadError(LingokeyError):
    """Raised by a host when a font resource cannot be loaded."""


class ElementResolutionError(LingokeyError):
    """Raised when an element id does not resolve to a usable node."""


class EmptySelectionError(LingokeyError):
    """Raised when an operation requires a selection and none exists."""


class UnsupportedFileTypeError(LingokeyError):
    """Raised when a given file extension is not supported."""


class DocumentFormatError(LingokeyError):
    """Raised when a scene document cannot be parsed."""


class OverwriteRefusedError(LingokeyError):
    """Raised when attempting to overwrite an output without consent."""


class ConfigurationError(LingokeyError):
    """Raised when configuration sources are invalid."""


class TranslationProviderConfigurationError(LingokeyError):
    """Raised when the translation provider is misconfigured."""


class TranslationProviderError(LingokeyError):
    """Raised when the translation provider fails permanently."""


@dataclass
class ErrorRecord:
    """Stores context for a handled error."""

    category: ErrorCategory
    message: str
    details: Optional[str] = None
