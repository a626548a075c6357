"""Semantic key derivation for text elements."""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

from .scene import BaseNode, ContainerNode, NodeType

# Word characters are ASCII only; any Unicode whitespace still separates words.
_DISALLOWED_PATTERN = re.compile(r"[^A-Za-z0-9_\s-]")
_SEPARATOR_PATTERN = re.compile(r"[\s_-]+")
_WHITESPACE_PATTERN = re.compile(r"\s+")

SLUG_SEGMENTS = 3
DEFAULT_SCREEN = "general"
GLOBAL_CONTEXT = "global"
DEFAULT_CONTEXT = "text"

# Checked in order; the first rule with a matching needle wins.
CONTEXT_RULES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("button",), "button"),
    (("header", "title"), "heading"),
    (("label",), "label"),
    (("input", "text field"), "input"),
    (("helper", "hint"), "helper"),
)


def slugify(text: str) -> str:
    """Reduce text to at most three lowercase dot-joined word segments.

    >>> slugify("Hello, World! This is a test")
    'hello.world.this'
    """

    lowered = text.lower()
    cleaned = _DISALLOWED_PATTERN.sub("", lowered)
    dotted = _SEPARATOR_PATTERN.sub(".", cleaned).strip(".")
    segments: List[str] = [part for part in dotted.split(".") if part]
    return ".".join(segments[:SLUG_SEGMENTS])


def nearest_boundary(node: BaseNode) -> Optional[ContainerNode]:
    for ancestor in node.ancestors():
        if ancestor.is_boundary:
            return ancestor
    return None


def classify_name(name: str) -> str:
    """Map a boundary container name to a role label."""

    lowered = name.lower()
    for needles, label in CONTEXT_RULES:
        if any(needle in lowered for needle in needles):
            return label
    return DEFAULT_CONTEXT


def classify_context(node: BaseNode) -> str:
    boundary = nearest_boundary(node)
    return classify_name(boundary.name if boundary is not None else GLOBAL_CONTEXT)


def classify_screen(node: BaseNode) -> str:
    """Name of the outermost boundary container below the page."""

    screen = DEFAULT_SCREEN
    for ancestor in node.ancestors():
        if ancestor.type is NodeType.PAGE:
            break
        if ancestor.is_boundary:
            screen = ancestor.name
    return _WHITESPACE_PATTERN.sub(".", screen.lower())


def compose_key(screen: str, context: str, slug: str) -> str:
    return f"{screen}.{context}.{slug}"


def semantic_key(node: BaseNode, text: str) -> Tuple[str, str]:
    """Return ``(key, context)`` for a text element holding ``text``."""

    context = classify_context(node)
    return compose_key(classify_screen(node), context, slugify(text)), context
