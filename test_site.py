# test_site.py
#
# Run:
#   python -m unittest -v
#
# Markdown rendering, the site index refresh and the Flask routes, all on a
# temporary site directory.

import tempfile
import unittest
from pathlib import Path
from unittest import mock

import site_index
from config_loader import TABLE_CLASSES, config_from_mapping
from html_tree import parse_html
from md_to_html import render_markdown_page
from site_errors import DocumentReadError, MissingTitleAttribute
from site_index import SiteIndex, parse_document, walk_documents
from webapp import create_app

TITLE = '<attributes title="Home"></attributes>'


class SiteTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        for d in ("content", "templates", "assets"):
            (self.root / d).mkdir()
        self.cfg = config_from_mapping(
            {
                "directories": {
                    "documents": str(self.root / "content"),
                    "templates": str(self.root / "templates"),
                    "assets": str(self.root / "assets"),
                },
            }
        )

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def write(self, rel: str, content: str) -> Path:
        p = self.root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
        return p


class TestRenderMarkdown(unittest.TestCase):
    def test_page_skeleton_and_special_tags(self):
        page = render_markdown_page(
            "\n".join([
                TITLE,
                "",
                "# Hello",
                "",
                "<directory></directory>",
                "",
                "See [docs](https://example.com) and [home](/content/index.html).",
            ])
        )
        self.assertTrue(page.startswith("<!DOCTYPE html>"))
        self.assertIn(TITLE, page)
        self.assertNotIn("<p><attributes", page)
        self.assertNotIn("<p><directory", page)
        self.assertIn('id="hello"', page)

        soup = parse_html(page)
        external, internal = soup.find_all("a")
        self.assertEqual(external["target"], "_blank")
        self.assertEqual(external["rel"], "noopener noreferrer")
        self.assertIsNone(internal.get("target"))

    def test_tables_are_rendered(self):
        page = render_markdown_page("| a | b |\n|---|---|\n| 1 | 2 |\n")
        self.assertIsNotNone(parse_html(page).find("table"))


class TestSiteIndex(SiteTestCase):
    def test_walk_documents(self):
        self.write("content/b.md", "")
        self.write("content/a.md", "")
        self.write("content/guides/setup.md", "")
        self.write("content/notes.txt", "")
        self.assertEqual(walk_documents(self.root / "content"), ["a", "b", "guides/setup"])

    def test_walk_missing_directory(self):
        with self.assertRaises(FileNotFoundError):
            walk_documents(self.root / "nope")

    def test_parse_document_full_pipeline(self):
        self.write(
            "content/index.md",
            "\n\n"
            + "\n".join([
                TITLE,
                "",
                "<directory></directory>",
                "",
                "| a | b |",
                "|---|---|",
                "| 1 | 2 |",
            ]),
        )
        doc = parse_document(self.cfg, ["index", "other", ".draft"], "index")
        self.assertEqual(doc.title, "Home")
        self.assertEqual(doc.document_name, "index")

        soup = parse_html(doc.rendered)
        hrefs = [a["href"] for a in soup.find_all("a")]
        self.assertEqual(hrefs, ["/content/index.html", "/content/other.html"])
        table = soup.find("table")
        self.assertEqual(table["class"], TABLE_CLASSES)
        self.assertEqual(table.parent["class"], "table-responsive")
        self.assertEqual(len(soup.find("body").contents), 1)

    def test_parse_document_missing_file(self):
        with self.assertRaises(DocumentReadError):
            parse_document(self.cfg, [], "missing")

    def test_parse_document_without_title(self):
        self.write("content/untitled.md", "# No attributes here\n")
        with self.assertRaises(MissingTitleAttribute):
            parse_document(self.cfg, ["untitled"], "untitled")

    def test_refresh_skips_broken_documents(self):
        self.write("content/good.md", f"{TITLE}\n\ntext\n")
        self.write("content/bad.md", "no title\n")
        self.write("content/templated.md", f'{TITLE}\n\n<template file="missing.html"></template>\n')
        index = SiteIndex(self.cfg)
        self.assertEqual(index.refresh(), 1)
        self.assertEqual(index.names(), ["good"])
        self.assertIsNotNone(index.get("good"))
        self.assertIsNone(index.get("bad"))

    def test_refresh_publishes_deeply_nested_document(self):
        depth = 3000
        self.write("content/good.md", f"{TITLE}\n\nhello\n")
        self.write("content/deep.md", f"{TITLE}\n\n" + "<div>" * depth + "x" + "</div>" * depth + "\n")
        index = SiteIndex(self.cfg)
        self.assertEqual(index.refresh(), 2)
        self.assertIsNotNone(index.get("good"))
        self.assertIsNotNone(parse_html(index.get("deep").rendered).find(string="x"))

    def test_refresh_survives_unexpected_errors(self):
        self.write("content/good.md", f"{TITLE}\n\nhello\n")
        self.write("content/broken.md", f"{TITLE}\n\nhello\n")
        real = site_index.process_html_tree

        def process(document, html_text):
            if document.file_name == "broken":
                raise RecursionError("maximum recursion depth exceeded")
            return real(document, html_text)

        index = SiteIndex(self.cfg)
        with mock.patch("site_index.process_html_tree", side_effect=process):
            self.assertEqual(index.refresh(), 1)
        self.assertEqual(index.names(), ["good"])
        self.assertIsNone(index.get("broken"))

    def test_refresh_replaces_snapshot(self):
        page = self.write("content/good.md", f"{TITLE}\n\nfirst\n")
        index = SiteIndex(self.cfg)
        index.refresh()
        self.assertIn("first", index.get("good").rendered)

        page.write_text(f"{TITLE}\n\nsecond\n", encoding="utf-8")
        self.write("content/new.md", f"{TITLE}\n\nnew\n")
        index.refresh()
        self.assertIn("second", index.get("good").rendered)
        self.assertEqual(sorted(index.names()), ["good", "new"])


class TestWebApp(SiteTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.write("content/index.md", f"{TITLE}\n\nwelcome\n")
        self.write("content/guides/setup.md", '<attributes title="Setup"></attributes>\n\nsteps\n')
        self.write("assets/custom.css", "body { color: red; }\n")
        self.index = SiteIndex(self.cfg)
        self.index.refresh()
        self.client = create_app(self.cfg, self.index).test_client()

    def test_serves_document(self):
        resp = self.client.get("/content/guides/setup.html")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.mimetype, "text/html")
        self.assertIn(b"steps", resp.data)
        self.assertIn(b'href="/assets/custom.css"', resp.data)

    def test_bare_prefix_serves_index(self):
        resp = self.client.get("/content/")
        self.assertEqual(resp.status_code, 200)
        self.assertIn(b"welcome", resp.data)

    def test_unknown_document(self):
        for path in ("/content/nope.html", "/content/index", "/content/index.htm"):
            with self.subTest(path=path):
                resp = self.client.get(path)
                self.assertEqual(resp.status_code, 404)
                self.assertEqual(resp.mimetype, "text/plain")
                self.assertEqual(resp.data, b"")

    def test_options_preflight(self):
        resp = self.client.options("/content/index.html")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.mimetype, "text/plain")

    def test_assets(self):
        resp = self.client.get("/assets/custom.css")
        self.assertEqual(resp.status_code, 200)
        self.assertIn(b"color: red", resp.data)
        resp.close()

        self.assertEqual(self.client.get("/assets/missing.css").status_code, 404)


if __name__ == "__main__":
    unittest.main(verbosity=2)
