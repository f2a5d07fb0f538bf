"""
node_handlers.py

Rewrite handlers for single elements of a parsed page.

Special nodes (each handler may restructure ancestors of its operand, so the
caller re-parses the page after every call):

- <template file="x.html" heading="true" key="value">  -> included fragment
- <directory></directory>                             -> <ul> of documents
- <table>                                             -> responsive wrapper

Rule-engine nodes (applied during one final walk):

- <body>  -> container > row > column grid
- <head>  -> stylesheet links
- any tag -> configured attribute rules
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from bs4 import BeautifulSoup, Tag

from config_loader import SiteConfig
from html_tree import find_first, new_element, parse_html
from site_errors import (
    DirectoryNotInitialized,
    HTMLParseError,
    InvalidTemplateOutput,
    MissingTemplateFile,
    NoParentForTableNode,
    TemplateFileReadError,
    TemplateParseError,
)

if TYPE_CHECKING:
    from document import Document

TEMPLATE_FILE_KEY = "file"
TEMPLATE_HEADING_KEY = "heading"

LINK_REL = "noopener noreferrer"

_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}


def parse_bool(value: str) -> bool:
    """
    Return True only for the accepted spellings of boolean true.

    '1', 't', 'T', 'TRUE', 'true' and 'True' are true; everything else
    (including malformed values) is treated as false.
    """
    return value in _TRUE_VALUES


# ---------------- Rules ------------------------------------------------------


def apply_rules(node: Tag, cfg: SiteConfig) -> None:
    """
    Apply the configured attribute rules for node's tag.

    An existing attribute gets the configured value appended after a single
    space; a missing one is added.
    """
    for key, value in cfg.rules_for(node.name):
        existing = node.get(key)
        if existing is not None:
            node[key] = f"{existing} {value}"
        else:
            node[key] = value


def process_body_node(node: Tag, soup: BeautifulSoup, cfg: SiteConfig) -> None:
    """
    Wrap all body content in a bootstrap-style grid.

    Afterwards <body> has exactly one child: the container div.
    """
    container = new_element(soup, "div", [("class", cfg.container_class)])
    row = new_element(soup, "div", [("class", cfg.row_class)])
    col = new_element(soup, "div", [("class", cfg.col_class)])
    row.append(col)
    container.append(row)

    for child in list(node.contents):
        col.append(child.extract())

    node.append(container)


def process_head_node(node: Tag, soup: BeautifulSoup, cfg: SiteConfig) -> None:
    """Append one stylesheet <link> per configured CSS import."""
    for css_import in cfg.css_imports:
        node.append(
            new_element(
                soup,
                "link",
                [
                    ("href", f"{cfg.assets_prefix}{css_import}"),
                    ("rel", "stylesheet"),
                    ("crossorigin", "anonymous"),
                ],
            )
        )


# ---------------- Special nodes ----------------------------------------------


def _read_template(cfg: SiteConfig, file_name: str) -> str:
    path = cfg.templates_dir / file_name
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateFileReadError(file_name, str(e)) from e


def substitute_placeholders(text: str, values: dict[str, str]) -> str:
    """
    Replace every literal '{{key}}' in text with its value.

    Keys are substituted in the order given, one key at a time.
    """
    for key, value in values.items():
        text = text.replace(f"{{{{{key}}}}}", value)
    return text


def process_template_node(document: Document, node: Tag, soup: BeautifulSoup) -> None:
    """
    Replace a <template> element with the rendered template file.

    With heading="true" the fragment becomes the first child of <body>,
    wherever the <template> element itself was nested.
    """
    attrs = dict(node.attrs)
    file_name = attrs.get(TEMPLATE_FILE_KEY)
    if file_name is None:
        raise MissingTemplateFile()

    content = _read_template(document.config, file_name)
    content = substitute_placeholders(
        content,
        {k: v for k, v in attrs.items() if k != TEMPLATE_FILE_KEY},
    )

    try:
        template_soup = parse_html(content.strip())
    except HTMLParseError as e:
        raise TemplateParseError(file_name, str(e)) from e

    template_body = find_first(template_soup, "body")
    if template_body is None or not template_body.contents:
        raise InvalidTemplateOutput(file_name)
    rendered = template_body.contents[0].extract()

    heading = attrs.get(TEMPLATE_HEADING_KEY)
    if heading is None or not parse_bool(heading):
        node.insert_before(rendered)
        node.decompose()
        return

    body = find_first(soup, "body")
    body.insert(0, rendered)
    node.decompose()


def process_directory_node(document: Document, node: Tag, soup: BeautifulSoup) -> None:
    """Replace a <directory> element with a link list of all visible documents."""
    if document.directory is None:
        raise DirectoryNotInitialized()

    cfg = document.config
    listing = new_element(soup, "ul")
    for name in document.directory:
        # hidden documents
        if name.startswith("."):
            continue
        link = new_element(
            soup,
            "a",
            [
                ("href", f"{cfg.route_prefix}{name}{cfg.url_file_suffix}"),
                ("rel", LINK_REL),
            ],
        )
        link.string = name
        item = new_element(soup, "li")
        item.append(link)
        listing.append(item)

    node.replace_with(listing)


def process_table_node(document: Document, node: Tag, soup: BeautifulSoup) -> None:
    """
    Wrap a <table> in a responsive div and apply the table rules to it.

    Tables are skipped by the generic rule walk, so this is the only place
    their rules are applied.
    """
    if node.parent is None:
        raise NoParentForTableNode()

    cfg = document.config
    wrapper = new_element(soup, "div", [("class", cfg.table_responsive_class)])
    node.wrap(wrapper)

    apply_rules(node, cfg)
