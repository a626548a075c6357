from __future__ import annotations

import pytest

from lingokey.host import InMemoryHost
from lingokey.scene import ContainerNode, FontName, NodeType, PageNode, TextNode

INTER = FontName("Inter", "Regular")
ROBOTO_BOLD = FontName("Roboto", "Bold")


def build_page() -> PageNode:
    """A small screen: a button, loose copy, hidden text and a labelled field."""

    return PageNode(
        "0:1",
        "Page 1",
        children=[
            ContainerNode(
                "1:1",
                "Home",
                NodeType.FRAME,
                x=0,
                y=0,
                width=400,
                height=800,
                children=[
                    ContainerNode(
                        "1:2",
                        "Primary Button",
                        NodeType.INSTANCE,
                        children=[TextNode("1:3", "Label", "Submit", INTER)],
                    ),
                    TextNode("1:4", "Greeting", "Welcome back", INTER),
                    ContainerNode(
                        "1:5",
                        "Hidden",
                        NodeType.GROUP,
                        visible=False,
                        children=[TextNode("1:6", "Secret", "Secret text", INTER)],
                    ),
                    ContainerNode(
                        "1:7",
                        "Email Label",
                        NodeType.FRAME,
                        children=[TextNode("1:8", "Email", "Email address", ROBOTO_BOLD)],
                    ),
                    TextNode("1:10", "Spacer", "   ", INTER),
                ],
            ),
            TextNode("1:9", "Note", "Loose note", INTER),
        ],
    )


@pytest.fixture
def host() -> InMemoryHost:
    return InMemoryHost(build_page())


@pytest.fixture
def node(host):
    def lookup(node_id: str):
        found = host.find_by_id(node_id)
        assert found is not None, node_id
        return found

    return lookup


SCENE = {
    "page": {
        "id": "0:1",
        "name": "Page 1",
        "children": [
            {
                "id": "1:1",
                "type": "FRAME",
                "name": "Login",
                "width": 360,
                "children": [
                    {
                        "id": "1:2",
                        "type": "TEXT",
                        "name": "Title",
                        "characters": "Sign in",
                        "fontName": {"family": "Inter", "style": "Bold"},
                        "pluginData": {"nodeKey": "login.text.sign.in"},
                    },
                    {
                        "id": "1:3",
                        "type": "TEXT",
                        "characters": "Forgot password?",
                        "fontName": "mixed",
                        "visible": False,
                    },
                ],
            }
        ],
    },
    "selection": ["1:1"],
    "fonts": [{"family": "Inter", "style": "Bold"}],
}
