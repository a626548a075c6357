"""Scene document files: loading element trees into a host and saving them back."""

from __future__ import annotations

import json
import pathlib
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Tuple

from .errors import DocumentFormatError, UnsupportedFileTypeError
from .host import InMemoryHost
from .scene import (
    MIXED,
    BaseNode,
    ContainerNode,
    FontName,
    NodeType,
    PageNode,
    TextNode,
)

MIXED_FONT_MARKER = "mixed"


def _font_from_data(data: Any) -> Any:
    if data == MIXED_FONT_MARKER:
        return MIXED
    if not isinstance(data, Mapping) or "family" not in data:
        raise DocumentFormatError(f"Invalid fontName entry: {data!r}")
    return FontName(str(data["family"]), str(data.get("style", "Regular")))


def _font_to_data(font: Any) -> Any:
    if isinstance(font, FontName):
        return {"family": font.family, "style": font.style}
    return MIXED_FONT_MARKER


def node_from_data(data: Mapping[str, Any]) -> BaseNode:
    """Build an element subtree from its JSON representation."""

    try:
        node_id = str(data["id"])
        raw_type = str(data.get("type", "FRAME")).upper()
        node_type = NodeType(raw_type)
    except KeyError as exc:
        raise DocumentFormatError(f"Node is missing the {exc} field.") from exc
    except ValueError as exc:
        raise DocumentFormatError(f"Unknown node type in {data!r}.") from exc

    common = dict(
        visible=bool(data.get("visible", True)),
        x=float(data.get("x", 0)),
        y=float(data.get("y", 0)),
        width=float(data.get("width", 0)),
        height=float(data.get("height", 0)),
        plugin_data={str(k): str(v) for k, v in (data.get("pluginData") or {}).items()},
    )
    name = str(data.get("name", ""))

    if node_type is NodeType.TEXT:
        font = _font_from_data(data.get("fontName", {"family": "Inter"}))
        return TextNode(node_id, name, str(data.get("characters", "")), font, **common)

    children = [node_from_data(child) for child in data.get("children") or []]
    if node_type is NodeType.PAGE:
        return PageNode(node_id, name, children=children, **common)
    return ContainerNode(node_id, name, node_type, children=children, **common)


def node_to_data(node: BaseNode) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": node.id,
        "type": node.type.value,
        "name": node.name,
        "visible": node.visible,
        "x": node.x,
        "y": node.y,
        "width": node.width,
        "height": node.height,
    }
    plugin_data = {key: node.get_plugin_data(key) for key in node.plugin_data_keys()}
    if plugin_data:
        data["pluginData"] = plugin_data
    if isinstance(node, TextNode):
        data["characters"] = node.characters
        data["fontName"] = _font_to_data(node.font_name)
    elif isinstance(node, ContainerNode):
        data["children"] = [node_to_data(child) for child in node.children]
    return data


class BaseDocumentHandler(ABC):
    """Common base class for scene document handlers."""

    def __init__(self, source_path: pathlib.Path):
        self.source_path = source_path
        self.host = self.load()

    @abstractmethod
    def load(self) -> InMemoryHost:
        """Read the document into a host."""

    @abstractmethod
    def save(self, destination: pathlib.Path) -> None:
        """Persist the document, including element metadata."""


class JsonDocumentHandler(BaseDocumentHandler):
    """Reads and writes ``{"page", "selection", "fonts"}`` JSON files."""

    def load(self) -> InMemoryHost:
        try:
            raw = json.loads(self.source_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise DocumentFormatError(
                f"{self.source_path.name} is not valid JSON: {exc}"
            ) from exc
        if not isinstance(raw, Mapping) or "page" not in raw:
            raise DocumentFormatError("Scene documents need a top-level 'page' object.")

        page = node_from_data({"type": "PAGE", **raw["page"]})
        if not isinstance(page, PageNode):
            raise DocumentFormatError("The 'page' object must be a PAGE node.")

        fonts = raw.get("fonts")
        available = [_font_from_data(entry) for entry in fonts] if fonts is not None else None
        host = InMemoryHost(page, available_fonts=available)
        host.select_ids([str(node_id) for node_id in raw.get("selection") or []])
        return host

    def save(self, destination: pathlib.Path) -> None:
        payload: Dict[str, Any] = {
            "page": node_to_data(self.host.current_page),
            "selection": [node.id for node in self.host.selection],
        }
        if self.host.available_fonts is not None:
            payload["fonts"] = [
                _font_to_data(font)
                for font in sorted(
                    self.host.available_fonts, key=lambda f: (f.family, f.style)
                )
            ]
        destination.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2) + "\n",
            encoding="utf-8",
        )


def detect_handler(path: pathlib.Path) -> Tuple[str, BaseDocumentHandler]:
    """Select an appropriate handler for the provided file."""

    suffix = path.suffix.lower()
    if suffix == ".json":
        return "json", JsonDocumentHandler(path)
    raise UnsupportedFileTypeError(
        "This file type isn't supported. Please use a .json scene document."
    )

