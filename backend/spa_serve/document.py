"""A small mutable HTML tree for splicing nodes into an existing document.

Nodes live in a flat list and refer to each other by index (parent, first and
last child, previous and next sibling), so inserting a node is a handful of
index updates. Parsed elements remember their original start-tag text, which
keeps a parse/render cycle byte-for-byte faithful everywhere outside the
nodes that were added.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from enum import Enum
from html.parser import HTMLParser
from typing import Iterator, Optional

VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})

# elements that belong in head; anything else starts the body
HEAD_CONTENT = frozenset({
    "base", "link", "meta", "noscript", "script", "style", "template", "title",
})


class NodeKind(Enum):
    DOCUMENT = "document"
    ELEMENT = "element"
    TEXT = "text"
    COMMENT = "comment"
    DOCTYPE = "doctype"
    RAW = "raw"


@dataclass
class Node:
    kind: NodeKind
    tag: str = ""
    attrs: list[tuple[str, Optional[str]]] = field(default_factory=list)
    data: str = ""
    # original start-tag text; None for nodes built in code
    source: Optional[str] = None
    closed: bool = True
    parent: Optional[int] = None
    first_child: Optional[int] = None
    last_child: Optional[int] = None
    prev_sibling: Optional[int] = None
    next_sibling: Optional[int] = None


class DocumentTree:
    def __init__(self) -> None:
        self.nodes: list[Node] = [Node(NodeKind.DOCUMENT)]
        self.root = 0

    @classmethod
    def parse(cls, text: str) -> DocumentTree:
        parser = _TreeBuilder()
        parser.feed(text)
        parser.close()
        return parser.tree

    def add(self, node: Node) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    def element(self, tag: str, attrs: Optional[list[tuple[str, Optional[str]]]] = None, text: str = "") -> int:
        """Create a detached element, optionally with a single text child."""
        idx = self.add(Node(NodeKind.ELEMENT, tag=tag, attrs=list(attrs or [])))
        if text:
            self.append_child(idx, self.add(Node(NodeKind.TEXT, data=text)))
        return idx

    def append_child(self, parent: int, child: int) -> None:
        self.insert_before(parent, child, None)

    def insert_before(self, parent: int, child: int, ref: Optional[int]) -> None:
        """Insert detached ``child`` under ``parent`` before ``ref`` (or last when ``ref`` is None)."""
        p, c = self.nodes[parent], self.nodes[child]
        if c.parent is not None:
            raise ValueError("node is already attached")
        if ref is None:
            prev = p.last_child
            p.last_child = child
        else:
            r = self.nodes[ref]
            if r.parent != parent:
                raise ValueError("reference node is not a child of parent")
            prev = r.prev_sibling
            r.prev_sibling = child
        c.parent, c.prev_sibling, c.next_sibling = parent, prev, ref
        if prev is None:
            p.first_child = child
        else:
            self.nodes[prev].next_sibling = child

    def children(self, idx: int) -> Iterator[int]:
        child = self.nodes[idx].first_child
        while child is not None:
            yield child
            child = self.nodes[child].next_sibling

    def find_head(self) -> Optional[int]:
        """Depth-first search for the first ``head`` element.

        The search gives up at the first ``body`` element: a head that only
        appears inside or after body content is not a document head.
        """
        stack = [self.root]
        while stack:
            idx = stack.pop()
            node = self.nodes[idx]
            if node.kind is NodeKind.ELEMENT:
                if node.tag == "body":
                    return None
                if node.tag == "head":
                    return idx
            stack.extend(reversed(list(self.children(idx))))
        return None

    def render(self) -> str:
        out: list[str] = []
        self._render(self.root, out)
        return "".join(out)

    def _render(self, idx: int, out: list[str]) -> None:
        node = self.nodes[idx]
        if node.kind is NodeKind.TEXT or node.kind is NodeKind.RAW:
            out.append(node.data)
            return
        if node.kind is NodeKind.COMMENT:
            out.append(f"<!--{node.data}-->")
            return
        if node.kind is NodeKind.DOCTYPE:
            out.append(f"<!{node.data}>")
            return
        if node.kind is NodeKind.ELEMENT:
            out.append(node.source if node.source is not None else _start_tag(node))
        for child in self.children(idx):
            self._render(child, out)
        if node.kind is NodeKind.ELEMENT and node.closed and node.tag not in VOID_ELEMENTS:
            out.append(f"</{node.tag}>")


def _start_tag(node: Node) -> str:
    parts = [node.tag]
    for name, value in node.attrs:
        parts.append(name if value is None else f'{name}="{html.escape(value, quote=True)}"')
    return "<" + " ".join(parts) + ">"


class _TreeBuilder(HTMLParser):
    """Feeds ``HTMLParser`` events into a :class:`DocumentTree`.

    Character references are kept as written, so text renders back unchanged.
    Like an HTML5 parser, the builder creates the ``html`` and ``head``
    elements a document leaves implicit: head content arriving before any
    ``<head>`` goes into a created head, and body content (or the end of input)
    with no head yet gets an empty one in front of it.
    """

    def __init__(self) -> None:
        super().__init__(convert_charrefs=False)
        self.tree = DocumentTree()
        self.open_elements = [self.tree.root]
        self.head: Optional[int] = None
        self.head_implied_open = False

    @property
    def current(self) -> int:
        return self.open_elements[-1]

    def close(self):
        super().close()
        if self.head is None:
            self._imply_head(None)

    def _html(self) -> int:
        for child in self.tree.children(self.tree.root):
            node = self.tree.nodes[child]
            if node.kind is NodeKind.ELEMENT and node.tag == "html":
                return child
        html = self.tree.element("html")
        self.tree.append_child(self.tree.root, html)
        self.open_elements.append(html)
        return html

    def _imply_head(self, tag: Optional[str]) -> None:
        """Create or leave an implied head before ``tag`` (None for text)."""
        if tag in ("html", "head"):
            return
        current = self.tree.nodes[self.current]
        if current.kind is not NodeKind.DOCUMENT and current.tag not in ("html", "head"):
            return
        if self.head is None:
            self.head = self.tree.element("head")
            self.tree.append_child(self._html(), self.head)
            if tag in HEAD_CONTENT:
                self.open_elements.append(self.head)
                self.head_implied_open = True
        elif self.head_implied_open and tag not in HEAD_CONTENT:
            if self.head in self.open_elements:
                del self.open_elements[self.open_elements.index(self.head):]
            self.head_implied_open = False

    def _append(self, node: Node) -> int:
        idx = self.tree.add(node)
        self.tree.append_child(self.current, idx)
        return idx

    def _append_text(self, text: str) -> None:
        if text.strip():
            self._imply_head(None)
        last = self.tree.nodes[self.current].last_child
        if last is not None and self.tree.nodes[last].kind is NodeKind.TEXT:
            self.tree.nodes[last].data += text
        else:
            self._append(Node(NodeKind.TEXT, data=text))

    def _start(self, tag, attrs) -> int:
        self._imply_head(tag)
        idx = self._append(Node(
            NodeKind.ELEMENT, tag=tag, attrs=attrs, source=self.get_starttag_text(), closed=False,
        ))
        if tag == "head" and self.head is None:
            self.head = idx
        return idx

    def handle_starttag(self, tag, attrs):
        idx = self._start(tag, attrs)
        if tag not in VOID_ELEMENTS:
            self.open_elements.append(idx)

    def handle_startendtag(self, tag, attrs):
        self._start(tag, attrs)

    def handle_endtag(self, tag):
        for depth in range(len(self.open_elements) - 1, 0, -1):
            node = self.tree.nodes[self.open_elements[depth]]
            if node.tag == tag:
                node.closed = True
                del self.open_elements[depth:]
                return
        # stray end tag, kept verbatim
        self._append(Node(NodeKind.RAW, data=f"</{tag}>"))

    def handle_data(self, data):
        self._append_text(data)

    def handle_entityref(self, name):
        self._append_text(f"&{name};")

    def handle_charref(self, name):
        self._append_text(f"&#{name};")

    def handle_comment(self, data):
        self._append(Node(NodeKind.COMMENT, data=data))

    def handle_decl(self, decl):
        self._append(Node(NodeKind.DOCTYPE, data=decl))

    def handle_pi(self, data):
        self._append(Node(NodeKind.RAW, data=f"<?{data}>"))

    def unknown_decl(self, data):
        self._append(Node(NodeKind.RAW, data=f"<![{data}]>"))
