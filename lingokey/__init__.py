"""Semantic keys and translation state for text in design documents."""

from .host import Host, InMemoryHost
from .keys import classify_context, classify_screen, compose_key, slugify
from .metadata import ElementMetadata, MetadataStore
from .scene import MIXED, ContainerNode, FontName, NodeType, PageNode, TextNode
from .session import TranslationSession
from .structures import ScanRecord, TranslationItem
from .translator import TranslationStateMachine

__version__ = "0.1.0"

__all__ = [
    "MIXED",
    "ContainerNode",
    "ElementMetadata",
    "FontName",
    "Host",
    "InMemoryHost",
    "MetadataStore",
    "NodeType",
    "PageNode",
    "ScanRecord",
    "TextNode",
    "TranslationItem",
    "TranslationSession",
    "TranslationStateMachine",
    "classify_context",
    "classify_screen",
    "compose_key",
    "slugify",
]
