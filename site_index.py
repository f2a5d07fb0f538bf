"""
site_index.py

Keeps the rendered site in memory.

- walk_documents() finds every *.md below the documents directory
- parse_document() renders and transforms one of them
- SiteIndex.refresh() rebuilds the whole snapshot; a broken document is
  reported and skipped, never fatal for the rest
- start_refresh() repeats refresh() on the configured interval
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence
import threading

from apscheduler.schedulers.background import BackgroundScheduler

from config_loader import SiteConfig
from document import Document, process_html_tree
from helper import print_error, print_event_gray
from md_to_html import MARKDOWN_FILE_SUFFIX, render_markdown_page
from site_errors import DocumentReadError, LightsiteError


def walk_documents(path: Path) -> list[str]:
    """
    Return the names of all Markdown documents below path.

    Names are relative to path, use '/' separators and carry no '.md'
    suffix: 'guides/setup.md' -> 'guides/setup'. Order is a depth-first walk
    in lexical order.
    """
    if not path.is_dir():
        raise FileNotFoundError(f"Documents directory not found: {path}")

    names: list[str] = []
    for p in sorted(path.rglob(f"*{MARKDOWN_FILE_SUFFIX}")):
        if not p.is_file():
            continue
        rel = p.relative_to(path).as_posix()
        names.append(rel[: -len(MARKDOWN_FILE_SUFFIX)])
    return names


def parse_document(
    cfg: SiteConfig,
    directory: Optional[Sequence[str]],
    file_name: str,
) -> Document:
    """
    Read <documents>/<file_name>.md and run it through the full pipeline.
    """
    path = cfg.documents_dir / f"{file_name}{MARKDOWN_FILE_SUFFIX}"
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentReadError(file_name, str(e)) from e

    document = Document(
        file_name=file_name,
        config=cfg,
        directory=directory,
        document_name=file_name,
        id=file_name,
    )
    process_html_tree(document, render_markdown_page(content.lstrip("\n")))
    return document


class SiteIndex:
    """
    Current set of rendered documents, keyed by document name.

    refresh() builds a complete new snapshot and swaps it in at once, so
    readers never see a half-refreshed site.
    """

    def __init__(self, cfg: SiteConfig):
        self.cfg = cfg
        self._lock = threading.Lock()
        self._documents: dict[str, Document] = {}

    def refresh(self) -> int:
        """Re-render every document; return how many succeeded."""
        print_event_gray("reading directory...")
        names = tuple(walk_documents(self.cfg.documents_dir))

        documents: dict[str, Document] = {}
        for name in names:
            try:
                documents[name] = parse_document(self.cfg, names, name)
            except LightsiteError as e:
                print_error(f"failed to process document {name}: {e}")
            except Exception as e:
                print_error(f"failed to process document {name}: {type(e).__name__}: {e}")

        with self._lock:
            self._documents = documents

        print_event_gray(
            f"done reading directory. {len(documents)} documents found. "
            f"sleeping {self.cfg.refresh_interval:g}s."
        )
        return len(documents)

    def get(self, name: str) -> Optional[Document]:
        with self._lock:
            return self._documents.get(name)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._documents)


def _scheduled_refresh(index: SiteIndex) -> None:
    try:
        index.refresh()
    except OSError as e:
        print_error(f"failed to read directory {index.cfg.documents_dir}: {e}")


def start_refresh(index: SiteIndex) -> BackgroundScheduler:
    """Refresh the index every refresh_interval seconds in a background thread."""
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        _scheduled_refresh,
        "interval",
        seconds=index.cfg.refresh_interval,
        args=[index],
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    return scheduler
