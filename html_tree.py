# html_tree.py
"""
Thin adapter around BeautifulSoup.

Everything else in lightsite only talks to the tree through these helpers:

- parse_html()   text -> full document tree (<html><head/><body/></html>)
- render_html()  tree -> text
- find_first()   pre-order search for the first element of a tag
- new_element()  element factory with ordered attributes

Attribute values are kept as plain strings (no multi-valued 'class' lists),
so rules that append to an attribute work on the literal text.
"""
from __future__ import annotations

from typing import Iterable, Optional

from bs4 import BeautifulSoup, Comment, Doctype, NavigableString, Tag
from bs4.builder import ParserRejectedMarkup

from site_errors import HTMLParseError, HTMLRenderError

PARSER = "html.parser"

# Elements that belong in <head> when a bare fragment is promoted to a document.
HEAD_ONLY_TAGS = {"base", "link", "meta", "style", "title"}


def _is_text(node) -> bool:
    return type(node) is NavigableString


def _is_blank(node) -> bool:
    return _is_text(node) and node.strip() == ""


def _is_movable(node) -> bool:
    """Tags and real text move into <body>; doctypes, comments and blanks stay put."""
    if isinstance(node, Tag):
        return True
    return _is_text(node) and node.strip() != ""


def _absorb_doctype_newline(soup: BeautifulSoup) -> None:
    # Doctype renders with its own trailing newline; drop the parsed one so
    # parse/render cycles do not keep adding blank lines.
    for node in soup.contents:
        if not isinstance(node, Doctype):
            continue
        following = node.next_sibling
        if _is_text(following) and following.startswith("\n"):
            rest = str(following)[1:]
            if rest:
                following.replace_with(NavigableString(rest))
            else:
                following.extract()
        return


def _ensure_document(soup: BeautifulSoup) -> BeautifulSoup:
    """
    Make sure the tree has an <html> root with exactly one <head> and <body>.

    Stray top-level content ends up inside <body>, in document order, which is
    what an HTML5 parser does with a fragment or with nodes after </body>.
    """
    _absorb_doctype_newline(soup)

    html_el = soup.find("html")
    if html_el is None:
        html_el = soup.new_tag("html")
        for node in list(soup.contents):
            if isinstance(node, (Doctype, Comment)) or _is_blank(node):
                continue
            html_el.append(node.extract())
        soup.append(html_el)

    head = soup.find("head")
    if head is None:
        head = soup.new_tag("head")
        html_el.insert(0, head)

    body = soup.find("body")
    if body is None:
        body = soup.new_tag("body")
        html_el.append(body)

    # content before <body> goes to the front of it, content after to the end
    before: list = []
    after: list = []
    seen_body = False
    for node in list(html_el.contents) + [n for n in soup.contents if n is not html_el]:
        if node is body:
            seen_body = True
            continue
        if node is head:
            continue
        if isinstance(node, Tag) and node.name in HEAD_ONLY_TAGS and not seen_body:
            head.append(node.extract())
            continue
        if _is_movable(node):
            (after if seen_body else before).append(node)

    for offset, node in enumerate(before):
        body.insert(offset, node.extract())
    for node in after:
        body.append(node.extract())

    return soup


def parse_html(text: str) -> BeautifulSoup:
    """
    Parse HTML text into a full document tree.

    Raises HTMLParseError if the parser rejects the markup.
    """
    try:
        soup = BeautifulSoup(text, PARSER, multi_valued_attributes=None)
    except ParserRejectedMarkup as e:
        raise HTMLParseError(str(e)) from e
    return _ensure_document(soup)


def render_html(soup: Tag) -> str:
    """
    Render a tree (or subtree) back to text.

    Raises HTMLRenderError if serialization fails.
    """
    try:
        return soup.decode()
    except (RecursionError, UnicodeError) as e:
        raise HTMLRenderError(str(e)) from e


def find_first(root: Tag, tag: str) -> Optional[Tag]:
    """Return the first element named `tag` below root in pre-order, or None."""
    return root.find(tag)


def new_element(
    soup: BeautifulSoup,
    tag: str,
    attrs: Iterable[tuple[str, str]] = (),
) -> Tag:
    """Create a detached element; attributes keep the order they are given in."""
    el = soup.new_tag(tag)
    for key, value in attrs:
        el[key] = value
    return el
