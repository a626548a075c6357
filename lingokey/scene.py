"""Element tree model: text leaves, containers and a visitor over both."""

from __future__ import annotations

import weakref
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Generic, Iterator, List, Optional, TypeVar, Union

T = TypeVar("T")


class NodeType(str, Enum):
    TEXT = "TEXT"
    FRAME = "FRAME"
    COMPONENT = "COMPONENT"
    INSTANCE = "INSTANCE"
    GROUP = "GROUP"
    SECTION = "SECTION"
    PAGE = "PAGE"


BOUNDARY_TYPES = frozenset({NodeType.FRAME, NodeType.COMPONENT, NodeType.INSTANCE})


@dataclass(frozen=True)
class FontName:
    family: str
    style: str = "Regular"

    @property
    def cache_key(self) -> str:
        return f"{self.family}_{self.style}"


class _MixedFont:
    """Marker for text whose runs use more than one font."""

    _instance: Optional["_MixedFont"] = None

    def __new__(cls) -> "_MixedFont":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MIXED"


MIXED = _MixedFont()
FontRef = Union[FontName, _MixedFont]


class BaseNode(ABC):
    """Common attributes shared by every element in the tree."""

    type: NodeType

    def __init__(
        self,
        node_id: str,
        name: str = "",
        *,
        visible: bool = True,
        x: float = 0.0,
        y: float = 0.0,
        width: float = 0.0,
        height: float = 0.0,
        plugin_data: Optional[Dict[str, str]] = None,
    ) -> None:
        self.id = node_id
        self.name = name
        self.visible = visible
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self._plugin_data: Dict[str, str] = dict(plugin_data or {})
        self._parent_ref: Optional[weakref.ReferenceType[ContainerNode]] = None

    @property
    def parent(self) -> Optional["ContainerNode"]:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    def ancestors(self) -> Iterator["ContainerNode"]:
        """Yield parents from the nearest one up to the root."""

        current = self.parent
        while current is not None:
            yield current
            current = current.parent

    def get_plugin_data(self, key: str) -> str:
        return self._plugin_data.get(key, "")

    def set_plugin_data(self, key: str, value: str) -> None:
        if value == "":
            self._plugin_data.pop(key, None)
        else:
            self._plugin_data[key] = value

    def plugin_data_keys(self) -> List[str]:
        return sorted(self._plugin_data)

    @abstractmethod
    def accept(self, visitor: "NodeVisitor[T]") -> T:
        """Dispatch to the visitor method for this variant."""

    @abstractmethod
    def copy_with_ids(self, allocate_id: Callable[[], str]) -> "BaseNode":
        """Deep-copy the subtree, assigning fresh ids from ``allocate_id``."""

    def _copy_common(self, target: "BaseNode") -> None:
        target.visible = self.visible
        target.x, target.y = self.x, self.y
        target.width, target.height = self.width, self.height
        target._plugin_data = dict(self._plugin_data)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id} {self.name!r}>"


class TextNode(BaseNode):
    type = NodeType.TEXT

    def __init__(
        self,
        node_id: str,
        name: str = "",
        characters: str = "",
        font_name: FontRef = FontName("Inter"),
        **kwargs,
    ) -> None:
        super().__init__(node_id, name, **kwargs)
        self.characters = characters
        self.font_name = font_name

    def accept(self, visitor: "NodeVisitor[T]") -> T:
        return visitor.visit_text(self)

    def copy_with_ids(self, allocate_id: Callable[[], str]) -> "TextNode":
        clone = TextNode(allocate_id(), self.name, self.characters, self.font_name)
        self._copy_common(clone)
        return clone


class ContainerNode(BaseNode):
    """Frame, component, instance, group, section or page."""

    def __init__(
        self,
        node_id: str,
        name: str = "",
        node_type: NodeType = NodeType.FRAME,
        children: Optional[List[BaseNode]] = None,
        **kwargs,
    ) -> None:
        if node_type is NodeType.TEXT:
            raise ValueError("Containers cannot have the TEXT type.")
        super().__init__(node_id, name, **kwargs)
        self.type = node_type
        self._children: List[BaseNode] = []
        for child in children or []:
            self.append_child(child)

    @property
    def children(self) -> List[BaseNode]:
        return list(self._children)

    @property
    def is_boundary(self) -> bool:
        return self.type in BOUNDARY_TYPES

    def append_child(self, child: BaseNode) -> BaseNode:
        previous = child.parent
        if previous is not None:
            previous._children.remove(child)
        child._parent_ref = weakref.ref(self)
        self._children.append(child)
        return child

    def find_all(self, predicate: Callable[[BaseNode], bool]) -> List[BaseNode]:
        """Return every matching descendant in pre-order, visible or not."""

        found: List[BaseNode] = []
        for child in self._children:
            if predicate(child):
                found.append(child)
            if isinstance(child, ContainerNode):
                found.extend(child.find_all(predicate))
        return found

    def accept(self, visitor: "NodeVisitor[T]") -> T:
        return visitor.visit_container(self)

    def copy_with_ids(self, allocate_id: Callable[[], str]) -> "ContainerNode":
        clone = ContainerNode(allocate_id(), self.name, self.type)
        self._copy_common(clone)
        for child in self._children:
            clone.append_child(child.copy_with_ids(allocate_id))
        return clone


class PageNode(ContainerNode):
    def __init__(self, node_id: str = "0:1", name: str = "Page 1", **kwargs) -> None:
        super().__init__(node_id, name, NodeType.PAGE, **kwargs)


class NodeVisitor(ABC, Generic[T]):
    """Double-dispatch visitor over the two element variants."""

    @abstractmethod
    def visit_text(self, node: TextNode) -> T:
        ...

    @abstractmethod
    def visit_container(self, node: ContainerNode) -> T:
        ...


def walk(node: BaseNode) -> Iterator[BaseNode]:
    """Pre-order iteration over a subtree, including the node itself."""

    yield node
    if isinstance(node, ContainerNode):
        for child in node.children:
            yield from walk(child)
