"""Embed a runtime configuration object into the SPA's ``index.html``."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic_core import PydanticSerializationError, to_json

from .document import DocumentTree
from .errors import (
    ConfigSerializationFailed,
    DocumentParseFailed,
    DocumentRenderFailed,
    EntryDocumentMissing,
    HeadElementMissing,
    InvalidNamespace,
    MissingNamespace,
)
from .snapshot import Snapshot, TransformHook, build_snapshot
from .source import SourceTree

logger = logging.getLogger(__name__)

ENTRY_DOCUMENT = "index.html"
DEFAULT_NAMESPACE = "APP_ENV"

NAMESPACE_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# characters that could end the script element or break a JS string literal
_UNSAFE_JSON = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}
_UNSAFE_JSON_RE = re.compile("[<>&\u2028\u2029]")


def validate_namespace(ns: str) -> str:
    if not ns:
        raise MissingNamespace("no namespace provided")
    ns = ns.strip()
    if not NAMESPACE_RE.fullmatch(ns):
        raise InvalidNamespace(f"namespace {ns!r} must match {NAMESPACE_RE.pattern}")
    return ns


def config_to_json(config: Any) -> str:
    """Compact, HTML-safe JSON for ``config``.

    Dataclasses and pydantic models keep their declared field order.
    """
    try:
        encoded = to_json(config).decode()
        json.loads(encoded, parse_constant=_reject_constant)
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise ConfigSerializationFailed(f"could not marshal config: {exc}") from exc
    return _UNSAFE_JSON_RE.sub(lambda m: _UNSAFE_JSON[m.group()], encoded)


def _reject_constant(name: str):
    raise ValueError(f"{name} has no JSON representation")


def script_statement(ns: str, config: Any) -> str:
    return f"window.{ns} = {config_to_json(config)};"


def prepend_to_head(statement: str) -> TransformHook:
    """Hook that inserts ``<script>statement</script>`` as the first child of the root ``index.html`` head."""

    def hook(path: str, data: bytes) -> bytes:
        if path != ENTRY_DOCUMENT:
            return data

        try:
            doc = DocumentTree.parse(data.decode("utf-8"))
        except (UnicodeDecodeError, AssertionError) as exc:
            raise DocumentParseFailed(f"could not parse {path}") from exc

        head = doc.find_head()
        if head is None:
            raise HeadElementMissing(f"could not find <head> tag in {path}")

        script = doc.element("script", [("type", "text/javascript")], text=statement)
        doc.insert_before(head, script, doc.nodes[head].first_child)

        try:
            return doc.render().encode("utf-8")
        except UnicodeEncodeError as exc:
            raise DocumentRenderFailed(f"could not write {path}") from exc

    return hook


def inject_web_env(source: SourceTree, config: Any, ns: str = DEFAULT_NAMESPACE) -> Snapshot:
    """Snapshot ``source`` with ``window.<ns> = <config>;`` embedded in ``index.html``.

    The namespace is validated before the source is touched. Every file other
    than the root ``index.html`` is copied unchanged.
    """
    ns = validate_namespace(ns)

    try:
        source.open(ENTRY_DOCUMENT).close()
    except OSError as exc:
        raise EntryDocumentMissing(f"no {ENTRY_DOCUMENT} found") from exc

    statement = script_statement(ns, config)
    snapshot = build_snapshot(source, prepend_to_head(statement))
    logger.debug("Injected window.%s into %s", ns, ENTRY_DOCUMENT)
    return snapshot
