# config_loader.py
from __future__ import annotations

from pathlib import Path
from typing import Any
import re

try:
    import yaml  # PyYAML
except ImportError as e:
    raise SystemExit(
        "Missing dependency: PyYAML\n"
        "Install with: python -m pip install pyyaml"
    ) from e


class SiteConfig:
    """
    Immutable-ish container for site configuration.

    One instance is shared read-only by every document of a refresh run, so
    nothing in the pipeline may mutate it.
    """

    def __init__(
        self,
        *,
        refresh_interval: float,
        assets_dir: Path,
        documents_dir: Path,
        templates_dir: Path,
        route_prefix: str,
        assets_prefix: str,
        url_file_suffix: str,
        css_imports: tuple[str, ...],
        container_class: str,
        row_class: str,
        col_class: str,
        table_responsive_class: str,
        rules: dict[str, tuple[tuple[str, str], ...]],
        listen_addr: str,
    ):
        self.refresh_interval = refresh_interval
        self.assets_dir = assets_dir
        self.documents_dir = documents_dir
        self.templates_dir = templates_dir
        self.route_prefix = route_prefix
        self.assets_prefix = assets_prefix
        self.url_file_suffix = url_file_suffix
        self.css_imports = css_imports
        self.container_class = container_class
        self.row_class = row_class
        self.col_class = col_class
        self.table_responsive_class = table_responsive_class
        self.rules = rules
        self.listen_addr = listen_addr

    def rules_for(self, tag: str) -> tuple[tuple[str, str], ...]:
        """Return the ordered (attribute, value) rules configured for a tag."""
        return self.rules.get(tag, ())

    def listen_host_port(self) -> tuple[str, int]:
        """
        Split listen_addr into (host, port).

        ':8099' listens on all interfaces, like a Go-style listen address.
        """
        host, sep, port = self.listen_addr.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"listenAddr must look like 'host:port' or ':port', got {self.listen_addr!r}")
        return (host or "0.0.0.0"), int(port)


# ---------------- Defaults ---------------------------------------------------

TABLE_CLASSES = "table table-bordered table-striped table-hover table-sm"
IMG_STYLES = "max-width: 100%;"

DEFAULT_CONFIG = SiteConfig(
    refresh_interval=30 * 60.0,
    assets_dir=Path("./src/assets"),
    documents_dir=Path("./src/content"),
    templates_dir=Path("./src/templates"),
    route_prefix="/content/",
    assets_prefix="/assets/",
    url_file_suffix=".html",
    css_imports=("bootstrap.min.css", "custom.css"),
    container_class="container",
    row_class="row",
    col_class="col-lg-12",
    table_responsive_class="table-responsive",
    rules={
        "table": (("class", TABLE_CLASSES),),
        "img": (("style", IMG_STYLES),),
    },
    listen_addr=":8099",
)

# ---------------- Loader -----------------------------------------------------

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$", re.IGNORECASE)
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: Any, name: str) -> float:
    """
    Parse a refresh interval into seconds.

    Accepts plain numbers (seconds) or strings like '90s', '30m', '1h'.
    """
    if isinstance(value, bool):
        raise TypeError(f"{name} must be a number or a duration string")
    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        m = _DURATION_RE.match(value)
        if not m:
            raise ValueError(f"{name} is not a valid duration: {value!r}")
        unit = (m.group(2) or "s").lower()
        seconds = float(m.group(1)) * _DURATION_UNITS[unit]
    else:
        raise TypeError(f"{name} must be a number or a duration string")

    if seconds <= 0:
        raise ValueError(f"{name} must be positive")
    return seconds


def _as_mapping(value: Any, name: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"{name} must be a mapping")
    return value


def _as_str(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    return value


def _as_str_tuple(value: Any, name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise TypeError(f"{name} must be a list of strings")
    return tuple(str(v) for v in value)


def _as_rules(value: Any, name: str) -> dict[str, tuple[tuple[str, str], ...]]:
    """
    Convert the YAML rules mapping into ordered (attribute, value) pairs.

    YAML mappings keep their file order, which fixes the order in which
    attributes are injected.
    """
    rules: dict[str, tuple[tuple[str, str], ...]] = {}
    for tag, attrs in _as_mapping(value, name).items():
        attrs = _as_mapping(attrs, f"{name}.{tag}")
        rules[str(tag).lower()] = tuple((str(k), str(v)) for k, v in attrs.items())
    return rules


def config_from_mapping(raw: dict[str, Any]) -> SiteConfig:
    """
    Build a SiteConfig from an already-parsed mapping, falling back to
    DEFAULT_CONFIG for every missing key.
    """
    d = DEFAULT_CONFIG
    directories = _as_mapping(raw.get("directories"), "directories")
    routing = _as_mapping(raw.get("routing"), "routing")
    body = _as_mapping(raw.get("bodyConfig"), "bodyConfig")

    refresh = raw.get("refreshInterval")
    listen = raw.get("listenAddr", d.listen_addr)

    return SiteConfig(
        refresh_interval=(
            d.refresh_interval if refresh is None else parse_duration(refresh, "refreshInterval")
        ),
        assets_dir=Path(_as_str(directories.get("assets", str(d.assets_dir)), "directories.assets")),
        documents_dir=Path(
            _as_str(directories.get("documents", str(d.documents_dir)), "directories.documents")
        ),
        templates_dir=Path(
            _as_str(directories.get("templates", str(d.templates_dir)), "directories.templates")
        ),
        route_prefix=_as_str(routing.get("routePrefix", d.route_prefix), "routing.routePrefix"),
        assets_prefix=_as_str(routing.get("assetsPrefix", d.assets_prefix), "routing.assetsPrefix"),
        url_file_suffix=_as_str(
            routing.get("urlFileSuffix", d.url_file_suffix), "routing.urlFileSuffix"
        ),
        css_imports=_as_str_tuple(raw.get("cssImports", list(d.css_imports)), "cssImports"),
        container_class=_as_str(
            body.get("containerClass", d.container_class), "bodyConfig.containerClass"
        ),
        row_class=_as_str(body.get("rowClass", d.row_class), "bodyConfig.rowClass"),
        col_class=_as_str(body.get("colClass", d.col_class), "bodyConfig.colClass"),
        table_responsive_class=_as_str(
            raw.get("tableResponsiveClass", d.table_responsive_class), "tableResponsiveClass"
        ),
        rules=_as_rules(raw["rules"], "rules") if "rules" in raw else dict(d.rules),
        listen_addr=str(listen),
    )


def load_config(path: Path) -> SiteConfig:
    """
    Load YAML config and return a SiteConfig instance.
    """
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise TypeError("Config root must be a mapping")

    return config_from_mapping(raw)
