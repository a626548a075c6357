"""Tree traversal, text collection and best-effort font loading."""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Optional, Sequence

from .errors import ErrorCategory
from .host import Host
from .logger import get_logger
from .policy import ErrorPolicy
from .scene import BaseNode, ContainerNode, FontName, NodeVisitor, TextNode
from .structures import FontLoadReport

logger = get_logger(__name__)


class VisibleTextCollector(NodeVisitor[None]):
    """Collect visible text leaves in pre-order, pruning hidden subtrees."""

    def __init__(self) -> None:
        self.nodes: List[TextNode] = []

    def visit_text(self, node: TextNode) -> None:
        if node.visible:
            self.nodes.append(node)

    def visit_container(self, node: ContainerNode) -> None:
        if not node.visible:
            return
        for child in node.children:
            child.accept(self)


class TextLeafCollector(NodeVisitor[None]):
    """Collect every text leaf regardless of visibility."""

    def __init__(self) -> None:
        self.nodes: List[TextNode] = []

    def visit_text(self, node: TextNode) -> None:
        self.nodes.append(node)

    def visit_container(self, node: ContainerNode) -> None:
        for child in node.children:
            child.accept(self)


class SubtreeCollector(NodeVisitor[None]):
    """Collect every element of a subtree."""

    def __init__(self) -> None:
        self.nodes: List[BaseNode] = []

    def visit_text(self, node: TextNode) -> None:
        self.nodes.append(node)

    def visit_container(self, node: ContainerNode) -> None:
        self.nodes.append(node)
        for child in node.children:
            child.accept(self)


def scan_roots(host: Host) -> List[BaseNode]:
    """The selection when there is one, otherwise the page's children."""

    selection = host.selection
    if selection:
        return selection
    return host.current_page.children


def collect_visible_text(roots: Iterable[BaseNode]) -> List[TextNode]:
    collector = VisibleTextCollector()
    for root in roots:
        root.accept(collector)
    return collector.nodes


def collect_text_leaves(roots: Iterable[BaseNode]) -> List[TextNode]:
    collector = TextLeafCollector()
    for root in roots:
        root.accept(collector)
    return collector.nodes


def collect_all(roots: Iterable[BaseNode]) -> List[BaseNode]:
    collector = SubtreeCollector()
    for root in roots:
        root.accept(collector)
    return collector.nodes


def unique_fonts(nodes: Iterable[TextNode]) -> List[FontName]:
    """Distinct concrete fonts in first-seen order; mixed fonts are skipped."""

    fonts: Dict[str, FontName] = {}
    for node in nodes:
        font = node.font_name
        if isinstance(font, FontName) and font.family:
            fonts.setdefault(font.cache_key, font)
    return list(fonts.values())


async def load_font_quietly(
    host: Host,
    font: object,
    report: FontLoadReport,
    policy: Optional[ErrorPolicy] = None,
) -> bool:
    """Load one font, recording rather than raising a failure."""

    if not isinstance(font, FontName):
        return False
    try:
        await host.load_font(font)
    except Exception as exc:
        report.failures.append((font, exc))
        message = f"Failed to load font {font.family} {font.style}"
        if policy is not None:
            policy.handle_error(ErrorCategory.FONT, message, str(exc))
        else:
            logger.warning("%s: %s", message, exc)
        return False
    if font not in report.loaded:
        report.loaded.append(font)
    return True


async def load_fonts(
    host: Host,
    nodes: Sequence[TextNode],
    policy: Optional[ErrorPolicy] = None,
) -> FontLoadReport:
    """Load every distinct font used by ``nodes`` concurrently."""

    report = FontLoadReport()
    fonts = unique_fonts(nodes)
    await asyncio.gather(
        *(load_font_quietly(host, font, report, policy) for font in fonts)
    )
    if report.failures:
        logger.warning(
            "Loaded %d of %d fonts", len(report.loaded), len(fonts)
        )
    return report
