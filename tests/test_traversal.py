from __future__ import annotations

import pytest

from lingokey.errors import FontLoadError
from lingokey.host import InMemoryHost
from lingokey.scene import MIXED, FontName, TextNode
from lingokey.traversal import (
    collect_all,
    collect_text_leaves,
    collect_visible_text,
    load_fonts,
    scan_roots,
    unique_fonts,
)

from .conftest import INTER, ROBOTO_BOLD, build_page


def ids(nodes):
    return [n.id for n in nodes]


def test_visible_text_in_document_order(host):
    nodes = collect_visible_text(scan_roots(host))

    assert ids(nodes) == ["1:3", "1:4", "1:8", "1:10", "1:9"]


def test_moving_a_node_reparents_it(host, node):
    moved = node("1:4")
    node("1:7").append_child(moved)

    assert moved.parent is node("1:7")
    assert "1:4" not in ids(node("1:1").children)
    assert ids(collect_visible_text(scan_roots(host))) == ["1:3", "1:8", "1:4", "1:10", "1:9"]


def test_hidden_subtrees_are_pruned(host, node):
    node("1:7").visible = False

    assert "1:8" not in ids(collect_visible_text(scan_roots(host)))


def test_hidden_text_root_is_skipped(host, node):
    node("1:3").visible = False
    host.selection = [node("1:3")]

    assert collect_visible_text(scan_roots(host)) == []


def test_selection_limits_roots(host, node):
    host.selection = [node("1:7"), node("1:2")]

    assert ids(collect_visible_text(scan_roots(host))) == ["1:8", "1:3"]


def test_text_leaves_include_hidden(host):
    assert "1:6" in ids(collect_text_leaves(host.current_page.children))


def test_collect_all_is_preorder(host):
    assert ids(collect_all(host.current_page.children)) == [
        "1:1", "1:2", "1:3", "1:4", "1:5", "1:6", "1:7", "1:8", "1:10", "1:9",
    ]


def test_unique_fonts_dedupes_and_skips_mixed():
    nodes = [
        TextNode("1", characters="a", font_name=INTER),
        TextNode("2", characters="b", font_name=MIXED),
        TextNode("3", characters="c", font_name=FontName("Inter", "Regular")),
        TextNode("4", characters="d", font_name=ROBOTO_BOLD),
    ]

    assert unique_fonts(nodes) == [INTER, ROBOTO_BOLD]


@pytest.mark.asyncio
async def test_font_failures_are_collected_not_raised():
    host = InMemoryHost(build_page(), available_fonts=[INTER])
    nodes = collect_visible_text(scan_roots(host))

    report = await load_fonts(host, nodes)

    assert report.loaded == [INTER]
    assert [font for font, _ in report.failures] == [ROBOTO_BOLD]
    assert isinstance(report.failures[0][1], FontLoadError)
    assert not report.ok
    assert host.loaded_fonts == {INTER}
