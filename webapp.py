#!/usr/bin/env python3
from __future__ import annotations
from pathlib import Path
import argparse

from flask import Flask, Response, abort, request, send_from_directory

from config_loader import SiteConfig, load_config
from helper import print_error, print_event_gray
from site_index import SiteIndex, start_refresh

CONFIG_PATH = Path("config.yml")
INDEX_DOCUMENT = "index"


def _plain(status: int) -> Response:
    return Response(b"", status=status, mimetype="text/plain")


def create_app(cfg: SiteConfig, index: SiteIndex) -> Flask:
    """
    Build the Flask app serving rendered documents and static assets.

    Documents live under cfg.route_prefix as '<name><url_file_suffix>';
    the bare prefix serves the 'index' document.
    """
    app = Flask(__name__, static_folder=None)
    assets_root = cfg.assets_dir.resolve()

    def content(name: str = ""):
        # preflight requests
        if request.method == "OPTIONS":
            return _plain(200)

        if name == "":
            name = f"{INDEX_DOCUMENT}{cfg.url_file_suffix}"

        document = None
        if name.endswith(cfg.url_file_suffix):
            stem = name[: len(name) - len(cfg.url_file_suffix)] if cfg.url_file_suffix else name
            document = index.get(stem)

        if document is None:
            print_event_gray(f"{request.path} transferred 0 bytes")
            return _plain(404)

        body = document.rendered.encode("utf-8")
        print_event_gray(f"{request.path} transferred {len(body)} bytes")
        return Response(body, status=200, mimetype="text/html")

    app.add_url_rule(cfg.route_prefix, "content_index", content, methods=["GET", "OPTIONS"])
    app.add_url_rule(
        f"{cfg.route_prefix}<path:name>", "content", content, methods=["GET", "OPTIONS"]
    )

    def assets(subpath: str):
        # Prevent directory traversal
        asset_path = (assets_root / subpath).resolve()
        try:
            asset_path.relative_to(assets_root)
        except ValueError:
            abort(404)

        if not asset_path.is_file():
            abort(404)

        return send_from_directory(assets_root, subpath)

    app.add_url_rule(f"{cfg.assets_prefix}<path:subpath>", "assets", assets)

    return app


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Serve a directory of Markdown documents as HTML.")
    parser.add_argument(
        "-c", "--config", default=str(CONFIG_PATH), help="Config YAML file (default: config.yml)"
    )
    args = parser.parse_args(argv)

    try:
        cfg = load_config(Path(args.config))
        host, port = cfg.listen_host_port()
    except Exception as e:
        print_error(f"failed to process config: {e}")
        return 2

    index = SiteIndex(cfg)
    try:
        index.refresh()
    except OSError as e:
        print_error(f"failed to read directory {cfg.documents_dir}: {e}")
        return 2

    scheduler = start_refresh(index)
    app = create_app(cfg, index)

    print_event_gray(f"begin listening on {cfg.listen_addr}")
    try:
        app.run(host=host, port=port, debug=False)
    finally:
        scheduler.shutdown(wait=False)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
