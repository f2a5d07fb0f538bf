"""
document.py

HTML tree transformation for one Markdown document.

Pipeline (process_html_tree):

1. parse, pull <attributes> into document.attributes (title is mandatory)
2. drain <template> nodes
3. drain <directory> nodes
4. drain <table> nodes
5. one pre-order walk: <body> grid, <head> stylesheets, per-tag rules
6. render

Special-node handlers may move or remove ancestors of the node they are
given, so every special node is handled on a freshly parsed tree and the
result is serialized before the next one is searched for.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from bs4 import BeautifulSoup, Tag

from config_loader import SiteConfig
from html_tree import parse_html, render_html
from node_handlers import (
    apply_rules,
    process_body_node,
    process_directory_node,
    process_head_node,
    process_table_node,
    process_template_node,
)
from site_errors import MissingTitleAttribute

ATTRIBUTE_TAG = "attributes"
TITLE_ATTRIBUTE = "title"

TEMPLATE_NODE = "template"
DIRECTORY_NODE = "directory"
TABLE_NODE = "table"
BODY_NODE = "body"
HEAD_NODE = "head"


@dataclass
class Document:
    """
    One source file on its way to a served page.

    attributes follows last-write-wins across <attributes> markers, so a later
    title="" can blank attributes["title"]; title keeps the last non-empty
    title seen, which is what made the document valid.
    """

    file_name: str
    config: SiteConfig
    directory: Optional[Sequence[str]] = None
    document_name: str = ""
    id: str = ""
    title: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    rendered: str = ""


@dataclass(frozen=True)
class SpecialNode:
    tag: str
    handler: Callable[[Document, Tag, BeautifulSoup], None]
    # False when the handler leaves its operand in the tree (e.g. wrapped),
    # so the next search has to skip the nodes already handled.
    consumes: bool = True


# Order matters: templates may produce directory and table nodes.
SPECIAL_NODES: tuple[SpecialNode, ...] = (
    SpecialNode(TEMPLATE_NODE, process_template_node),
    SpecialNode(DIRECTORY_NODE, process_directory_node),
    SpecialNode(TABLE_NODE, process_table_node, consumes=False),
)

_SPECIAL_BY_TAG = {s.tag: s for s in SPECIAL_NODES}


def _tag_children(node: Tag) -> list[Tag]:
    """Element children in reverse, ready to be pushed on a pre-order stack."""
    return [c for c in reversed(node.contents) if isinstance(c, Tag)]


def extract_attributes(document: Document, root: Tag) -> None:
    """
    Move every <attributes> marker into document.attributes.

    Markers are removed from the tree. Later markers overwrite earlier keys.
    Raises MissingTitleAttribute unless some marker carried a non-empty title.
    """
    title = ""

    # explicit stack: documents may nest deeper than the recursion limit
    stack = _tag_children(root)
    while stack:
        node = stack.pop()
        if node.name == ATTRIBUTE_TAG:
            for key, value in node.attrs.items():
                document.attributes[key] = value
                if key == TITLE_ATTRIBUTE and value != "":
                    title = value
            node.decompose()
            continue
        stack.extend(_tag_children(node))

    if not title:
        raise MissingTitleAttribute()
    document.title = title


def _find_nth(soup: BeautifulSoup, tag: str, index: int) -> Optional[Tag]:
    found = soup.find_all(tag, limit=index + 1)
    if len(found) <= index:
        return None
    return found[index]


def process_nodes_of_type(document: Document, html_text: str, tag: str) -> str:
    """
    Handle every node of one special type, one node per parse.

    Returns the rendered HTML once no unhandled node of that type is left.
    """
    special = _SPECIAL_BY_TAG[tag]
    handled = 0

    while True:
        soup = parse_html(html_text)
        node = _find_nth(soup, tag, 0 if special.consumes else handled)
        if node is None:
            return html_text

        special.handler(document, node, soup)
        handled += 1
        html_text = render_html(soup)


def apply_rule_engine(document: Document, soup: BeautifulSoup) -> None:
    """
    Walk the whole tree once, pre-order.

    <body> and <head> get their layout treatment, tables are skipped (their
    rules were applied while wrapping them) and every other element gets the
    configured attribute rules. Children are visited after their parent has
    been rewritten.
    """
    cfg = document.config

    stack = _tag_children(soup)
    while stack:
        node = stack.pop()
        if node.name == BODY_NODE:
            process_body_node(node, soup, cfg)
        elif node.name == HEAD_NODE:
            process_head_node(node, soup, cfg)
        elif node.name != TABLE_NODE:
            apply_rules(node, cfg)

        # children are read after the rewrite so new wrappers are visited too
        stack.extend(_tag_children(node))


def process_html_tree(document: Document, html_text: str) -> str:
    """
    Turn renderer output into the final page for document.

    document.rendered is only set when every step succeeded.
    """
    soup = parse_html(html_text)
    extract_attributes(document, soup)
    html_text = render_html(soup)

    for special in SPECIAL_NODES:
        html_text = process_nodes_of_type(document, html_text, special.tag)

    soup = parse_html(html_text)
    apply_rule_engine(document, soup)
    output = render_html(soup)

    document.rendered = output
    return output
