#!/usr/bin/env python3
"""
md_to_html.py

Markdown -> complete HTML page, ready for document.process_html_tree().

- Python-Markdown with tables, fenced code, footnotes, definition lists,
  heading ids and smart punctuation
- <attributes>, <template> and <directory> are treated as block-level raw
  HTML, so they are passed through without a wrapping <p>
- external links open in a new tab with rel="noopener noreferrer"

Run as a script to convert a single file with the full site pipeline.
"""
from __future__ import annotations

from pathlib import Path
from xml.etree import ElementTree as ET
import argparse
import sys

import markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

from config_loader import load_config
from helper import print_error

MARKDOWN_FILE_SUFFIX = ".md"

MARKDOWN_EXTENSIONS = ["extra", "toc", "sane_lists", "smarty"]

# Tags consumed by the page transformation; they must reach it as raw HTML blocks.
SPECIAL_BLOCK_TAGS = ("attributes", "template", "directory")

EXTERNAL_LINK_PREFIXES = ("http://", "https://", "//")
EXTERNAL_LINK_REL = "noopener noreferrer"


class ExternalLinkTreeprocessor(Treeprocessor):
    """Open absolute links in a new tab without leaking the opener/referrer."""

    def run(self, root: ET.Element):
        for a in root.iter("a"):
            href = a.get("href") or ""
            if not href.startswith(EXTERNAL_LINK_PREFIXES):
                continue
            a.set("target", "_blank")
            a.set("rel", EXTERNAL_LINK_REL)
        return root


class ExternalLinkExtension(Extension):
    def extendMarkdown(self, md):
        md.treeprocessors.register(ExternalLinkTreeprocessor(md), "external_links", 5)


def build_markdown() -> markdown.Markdown:
    """
    Create a configured Markdown converter.

    Instances keep state between conversions, so use one per document.
    """
    md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS + [ExternalLinkExtension()])
    for tag in SPECIAL_BLOCK_TAGS:
        if tag not in md.block_level_elements:
            md.block_level_elements.append(tag)
    return md


def open_html_document() -> str:
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head>\n"
        '<meta charset="utf-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1">\n'
        "</head>\n"
        "<body>\n"
    )


def close_html_document() -> str:
    return "\n</body>\n</html>\n"


def render_markdown_page(text: str) -> str:
    """Render Markdown source into a complete, untransformed HTML page."""
    body_html = build_markdown().convert(text)
    return open_html_document() + body_html + close_html_document()


def main(argv: list[str] | None = None) -> int:
    # imported here: site_index imports this module
    from document import Document, process_html_tree
    from site_index import walk_documents
    from site_errors import LightsiteError

    parser = argparse.ArgumentParser(description="Convert one Markdown document to a finished HTML page.")
    parser.add_argument("input", help="Markdown file to convert")
    parser.add_argument("-o", "--output", default="out.html", help="Output HTML file (default: out.html)")
    parser.add_argument("-c", "--config", default="config.yml", help="Config YAML file (default: config.yml)")
    parser.add_argument(
        "--documents",
        default=None,
        help="Comma-separated document names for <directory> listings "
        "(default: scan the configured documents directory)",
    )
    args = parser.parse_args(argv)

    try:
        cfg = load_config(Path(args.config))
    except Exception as e:
        print_error(f"Failed to load config: {e}")
        return 2

    input_path = Path(args.input)
    try:
        if args.documents is not None:
            directory = [d for d in args.documents.split(",") if d]
        else:
            directory = walk_documents(cfg.documents_dir)
        source = input_path.read_text(encoding="utf-8").lstrip("\n")
    except OSError as e:
        print_error(f"Error while reading: {e}")
        return 2

    name = input_path.name.removesuffix(MARKDOWN_FILE_SUFFIX)
    document = Document(file_name=name, config=cfg, directory=directory, document_name=name, id=name)
    try:
        output = process_html_tree(document, render_markdown_page(source))
    except LightsiteError as e:
        print_error(f"failed to process HTML tree for file {input_path}: {e}")
        return 1

    Path(args.output).write_text(output, encoding="utf-8")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
