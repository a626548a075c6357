"""Host runtime interface and an in-memory implementation of it."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from .errors import ElementResolutionError, FontLoadError
from .scene import BaseNode, ContainerNode, FontName, PageNode, walk


@dataclass
class Notification:
    message: str
    error: bool = False
    timeout: Optional[int] = None


class Host(ABC):
    """What the localisation core needs from the design tool runtime."""

    @property
    @abstractmethod
    def current_page(self) -> PageNode:
        """Root of the document being edited."""

    @property
    @abstractmethod
    def selection(self) -> List[BaseNode]:
        """Currently selected elements, in selection order."""

    @selection.setter
    @abstractmethod
    def selection(self, nodes: Sequence[BaseNode]) -> None:
        ...

    @abstractmethod
    async def get_node_by_id(self, node_id: str) -> Optional[BaseNode]:
        """Resolve an element id, or ``None`` when it no longer exists."""

    @abstractmethod
    async def load_font(self, font: FontName) -> None:
        """Make a font available for text mutation; raises ``FontLoadError``."""

    @abstractmethod
    def clone(self, node: BaseNode) -> BaseNode:
        """Duplicate a subtree with fresh ids and copied plugin data."""

    @abstractmethod
    def notify(self, message: str, *, error: bool = False, timeout: Optional[int] = None) -> None:
        ...

    @abstractmethod
    def scroll_and_zoom_into_view(self, nodes: Sequence[BaseNode]) -> None:
        ...

    @abstractmethod
    def post_message(self, message: Dict[str, Any]) -> None:
        """Send a response to the panel that issued the command."""

    @abstractmethod
    def close(self) -> None:
        ...


class InMemoryHost(Host):
    """A host backed by an in-process element tree.

    ``available_fonts`` restricts which fonts load successfully; ``None``
    accepts every font.
    """

    def __init__(
        self,
        page: Optional[PageNode] = None,
        *,
        available_fonts: Optional[Iterable[FontName]] = None,
        resolve_delay: float = 0.0,
    ) -> None:
        self._page = page or PageNode()
        self._selection: List[BaseNode] = []
        self.available_fonts: Optional[Set[FontName]] = (
            set(available_fonts) if available_fonts is not None else None
        )
        self.loaded_fonts: Set[FontName] = set()
        self.resolve_delay = resolve_delay
        self.notifications: List[Notification] = []
        self.messages: List[Dict[str, Any]] = []
        self.viewport: List[BaseNode] = []
        self.closed = False
        self._counter = self._highest_suffix()

    @property
    def current_page(self) -> PageNode:
        return self._page

    @property
    def selection(self) -> List[BaseNode]:
        return list(self._selection)

    @selection.setter
    def selection(self, nodes: Sequence[BaseNode]) -> None:
        self._selection = list(nodes)

    def select_ids(self, node_ids: Iterable[str]) -> None:
        node_ids = list(node_ids)
        index = self.index()
        missing = [node_id for node_id in node_ids if node_id not in index]
        if missing:
            raise ElementResolutionError(
                "Selection references unknown elements: " + ", ".join(missing)
            )
        self._selection = [index[node_id] for node_id in node_ids]

    def index(self) -> Dict[str, BaseNode]:
        return {node.id: node for node in walk(self._page)}

    def find_by_id(self, node_id: str) -> Optional[BaseNode]:
        return self.index().get(node_id)

    async def get_node_by_id(self, node_id: str) -> Optional[BaseNode]:
        await asyncio.sleep(self.resolve_delay)
        return self.find_by_id(node_id)

    async def load_font(self, font: FontName) -> None:
        await asyncio.sleep(0)
        if font in self.loaded_fonts:
            return
        if self.available_fonts is not None and font not in self.available_fonts:
            raise FontLoadError(f"Font '{font.family} {font.style}' is not available.")
        self.loaded_fonts.add(font)

    def _highest_suffix(self) -> int:
        highest = 0
        for node in walk(self._page):
            _, _, suffix = node.id.rpartition(":")
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return highest

    def allocate_id(self) -> str:
        self._counter += 1
        prefix = self._page.id.partition(":")[0] or "0"
        return f"{prefix}:{self._counter}"

    def clone(self, node: BaseNode) -> BaseNode:
        duplicate = node.copy_with_ids(self.allocate_id)
        parent = node.parent
        container: ContainerNode = parent if parent is not None else self._page
        container.append_child(duplicate)
        return duplicate

    def notify(self, message: str, *, error: bool = False, timeout: Optional[int] = None) -> None:
        self.notifications.append(Notification(message, error, timeout))

    def scroll_and_zoom_into_view(self, nodes: Sequence[BaseNode]) -> None:
        self.viewport = list(nodes)

    def post_message(self, message: Dict[str, Any]) -> None:
        self.messages.append(message)

    def close(self) -> None:
        self.closed = True
