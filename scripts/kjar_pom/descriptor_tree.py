"""Lossless XML tree for pom.xml documents.

Parses descriptor text into an ordered, mutable tree of :class:`Node` objects
and writes it back. Everything the parser sees is kept: the XML declaration,
comments, processing instructions, namespace declarations with their
prefixes, attributes and whitespace. No Maven semantics live here.

Nodes created after parsing carry no whitespace (``text``/``tail`` are
``None``); the writer indents those using the document's own indent unit so
new sections line up with the original ones.
"""

import copy
import logging
import re
import xml.etree.ElementTree as ET
from typing import Optional
from xml.sax.saxutils import escape

from .errors import MalformedDescriptorError

logger = logging.getLogger(__name__)

# XML namespace used by Maven POM files (POM model version 4.0.0).
NS = "http://maven.apache.org/POM/4.0.0"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
XML_NS = "http://www.w3.org/XML/1998/namespace"
SCHEMA_LOCATION = f"{NS} https://maven.apache.org/xsd/maven-4.0.0.xsd"

DEFAULT_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
DEFAULT_INDENT = "  "

ELEMENT = "element"
COMMENT = "comment"
PI = "pi"

_DECLARATION_RE = re.compile(r"^\s*(<\?xml\s[^?]*\?>)")
_INDENT_RE = re.compile(r"^\r?\n([ \t]+)$")
_ENCODING_RE = re.compile(r"\bencoding\s*=\s*['\"]([A-Za-z0-9._-]+)['\"]")


def local_name(tag: str) -> str:
    """Strip a namespace prefix: ``m:groupId`` → ``groupId``."""
    return tag.rsplit(":", 1)[-1]


class Node:
    """One node of a :class:`DescriptorTree`.

    Elements use ``tag``, ``attrib``, ``namespaces``, ``text`` and
    ``children``. Comments keep their body in ``text``; processing
    instructions keep their target in ``tag`` and data in ``text``. Every
    node kind has a ``tail``: the character data following it inside its
    parent.

    Attributes:
        tag: Qualified name as written in the document (e.g. ``project``,
            ``xsi:schemaLocation`` for attributes, ``m:dependency``).
        kind: ``element``, ``comment`` or ``pi``.
        text: Character data before the first child, or ``None`` when unset.
        tail: Character data after this node, or ``None`` when unset.
        attrib: Attributes keyed by qualified name, in document order.
        namespaces: ``(prefix, uri)`` pairs declared on this element; the
            default namespace has prefix ``""``.
        children: Child nodes in document order.
    """

    def __init__(self, tag: Optional[str], text: Optional[str] = None,
                 attrib: Optional[dict] = None, kind: str = ELEMENT):
        self.tag = tag
        self.kind = kind
        self.text = text
        self.tail = None
        self.attrib = dict(attrib or {})
        self.namespaces = []
        self.children = []

    def __repr__(self):
        if self.kind == ELEMENT:
            return f"<Node {self.tag!r} children={len(self.children)}>"
        return f"<Node {self.kind} {self.text!r}>"

    def __iter__(self):
        return iter(self.children)

    def __len__(self):
        return len(self.children)

    @property
    def is_element(self) -> bool:
        return self.kind == ELEMENT

    def qualify(self, name: str) -> str:
        """Name a new child element using this element's namespace prefix."""
        if ":" in self.tag:
            return f"{self.tag.split(':', 1)[0]}:{name}"
        return name

    def elements(self) -> list:
        return [child for child in self.children if child.is_element]

    def find(self, tag: str) -> Optional["Node"]:
        """Return the first child element whose local name is ``tag``."""
        for child in self.children:
            if child.is_element and local_name(child.tag) == tag:
                return child
        return None

    def findall(self, tag: str) -> list:
        return [
            child for child in self.children
            if child.is_element and local_name(child.tag) == tag
        ]

    def child_text(self, tag: str) -> Optional[str]:
        """Return the stripped text of a child element.

        Returns:
            ``None`` if the child is absent, ``""`` if it is present but
            empty, otherwise its text content with surrounding whitespace
            removed.
        """
        child = self.find(tag)
        if child is None:
            return None
        return child.leaf_text().strip()

    def leaf_text(self) -> str:
        """Return this element's own character data, skipping comments and PIs.

        Text after a comment or processing instruction lives in its ``tail``;
        it is joined with ``text`` the way ``ElementTree.itertext`` would.
        """
        parts = [self.text or ""]
        for child in self.children:
            if not child.is_element:
                parts.append(child.tail or "")
        return "".join(parts)

    def set_leaf_text(self, value: str):
        """Replace this element's character data, keeping any comments and PIs."""
        self.text = value
        for child in self.children:
            if not child.is_element:
                child.tail = ""

    def index(self, child: "Node") -> int:
        for i, candidate in enumerate(self.children):
            if candidate is child:
                return i
        raise ValueError(f"{child!r} is not a child of {self!r}")

    def insert(self, index: int, child: "Node"):
        """Insert ``child`` at ``index``, keeping sibling whitespace consistent.

        The inserted node's tail is left unset so the writer indents it. When
        appending after the last child, the closing whitespace moves onto the
        new node.
        """
        kids = self.children
        if not kids:
            if self.text is not None and not self.text.strip():
                self.text = None
            child.tail = None
        elif index >= len(kids):
            index = len(kids)
            last = kids[-1]
            child.tail = last.tail
            last.tail = None
        else:
            child.tail = None
        kids.insert(index, child)

    def append(self, child: "Node"):
        self.insert(len(self.children), child)

    def remove(self, child: "Node"):
        """Remove ``child``; if it was the last child, its tail moves to the new last."""
        index = self.index(child)
        del self.children[index]
        if not self.children:
            if self.text is not None and not self.text.strip():
                self.text = None
        elif index == len(self.children):
            self.children[-1].tail = child.tail

    def replace(self, old: "Node", new: "Node"):
        """Put ``new`` in place of ``old``, inheriting its trailing whitespace."""
        index = self.index(old)
        new.tail = old.tail
        self.children[index] = new

    def copy(self) -> "Node":
        return copy.deepcopy(self)


def element(tag: str, text: Optional[str] = None) -> Node:
    """Create a new element node with no recorded whitespace."""
    return Node(tag, text=text)


class DescriptorTree:
    """A parsed descriptor document.

    Attributes:
        root: The document element.
        declaration: The ``<?xml ...?>`` header as written, or ``None``.
        prolog: Comments and processing instructions before the root.
        epilog: Comments and processing instructions after the root.
        indent: Indent unit used for nodes without recorded whitespace.
        newline: Line ending written on output (``\r\n`` for CRLF documents).
    """

    def __init__(self, root: Node, declaration: Optional[str] = None,
                 prolog: Optional[list] = None, epilog: Optional[list] = None,
                 indent: str = DEFAULT_INDENT, newline: str = "\n"):
        self.root = root
        self.declaration = declaration
        self.prolog = prolog or []
        self.epilog = epilog or []
        self.indent = indent
        self.newline = newline


def declared_encoding(text: str, default: str = "utf-8") -> str:
    """Return the encoding named in the ``<?xml ...?>`` header of ``text``, or ``default``."""
    match = _DECLARATION_RE.match(text)
    if match:
        encoding = _ENCODING_RE.search(match.group(1))
        if encoding:
            return encoding.group(1)
    return default


def new_project_tree() -> DescriptorTree:
    """Create an empty ``<project>`` document with the Maven namespaces declared."""
    root = Node("project", attrib={"xsi:schemaLocation": SCHEMA_LOCATION})
    root.namespaces = [("", NS), ("xsi", XSI_NS)]
    return DescriptorTree(root, declaration=DEFAULT_DECLARATION)


class _TreeTarget:
    """ElementTree parser target that builds :class:`Node` objects.

    Mirrors ``xml.etree.ElementTree.TreeBuilder``: character data is routed to
    the ``text`` of the element just opened or the ``tail`` of the node just
    closed. Namespaced names arrive as ``{uri}local`` and are turned back into
    the prefixes that were in scope.
    """

    def __init__(self):
        self.root = None
        self.prolog = []
        self.epilog = []
        self._stack = []
        self._scopes = [{XML_NS: "xml"}]
        self._pending_ns = []
        self._data = []
        self._last = None
        self._tail = False

    def _flush(self):
        if not self._data:
            return
        if self._last is not None:
            text = "".join(self._data)
            if self._tail:
                self._last.tail = (self._last.tail or "") + text
            else:
                self._last.text = (self._last.text or "") + text
        self._data = []

    def _attach(self, node: Node):
        if self._stack:
            self._stack[-1].children.append(node)
        elif self.root is None:
            self.prolog.append(node)
        else:
            self.epilog.append(node)

    def _qualify(self, name: str, scope: dict) -> str:
        if not name.startswith("{"):
            return name
        uri, local = name[1:].split("}", 1)
        prefix = scope.get(uri)
        if not prefix:
            return local
        return f"{prefix}:{local}"

    def start_ns(self, prefix, uri):
        self._pending_ns.append((prefix or "", uri))

    def end_ns(self, prefix):
        pass

    def start(self, tag, attrib):
        self._flush()
        scope = dict(self._scopes[-1])
        for prefix, uri in self._pending_ns:
            scope[uri] = prefix
        self._scopes.append(scope)

        node = Node(self._qualify(tag, scope), text="")
        node.tail = ""
        node.namespaces = self._pending_ns
        node.attrib = {self._qualify(k, scope): v for k, v in attrib.items()}
        self._pending_ns = []

        if self._stack:
            self._stack[-1].children.append(node)
        else:
            self.root = node
        self._stack.append(node)
        self._last = node
        self._tail = False
        return node

    def end(self, tag):
        self._flush()
        self._scopes.pop()
        self._last = self._stack.pop()
        self._tail = True
        return self._last

    def data(self, data):
        self._data.append(data)

    def comment(self, text):
        self._flush()
        node = Node(None, text=text, kind=COMMENT)
        node.tail = ""
        self._attach(node)
        self._last = node
        self._tail = True

    def pi(self, target, text=None):
        self._flush()
        node = Node(target, text=text or "", kind=PI)
        node.tail = ""
        self._attach(node)
        self._last = node
        self._tail = True

    def close(self):
        self._flush()
        return self


def _detect_indent(root: Node) -> str:
    match = _INDENT_RE.match(root.text or "")
    if match:
        return match.group(1)
    return DEFAULT_INDENT


def parse(text: str) -> DescriptorTree:
    """Parse descriptor text into a :class:`DescriptorTree`.

    Unknown elements are kept as-is; no Maven validation is done.

    Args:
        text: The full pom.xml content.

    Returns:
        The parsed tree.

    Raises:
        MalformedDescriptorError: If ``text`` is empty or not well-formed XML.
    """
    if text is None or not text.strip():
        raise MalformedDescriptorError("Descriptor is empty")
    text = text.lstrip("\ufeff")
    match = _DECLARATION_RE.match(text)
    declaration = match.group(1) if match else None

    target = _TreeTarget()
    parser = ET.XMLParser(target=target)
    try:
        parser.feed(text)
        parser.close()
    except ET.ParseError as err:
        reason = str(err).rsplit(": line", 1)[0]
        raise MalformedDescriptorError(
            f"Malformed descriptor: {reason}", getattr(err, "position", None)
        ) from err

    logger.debug("Parsed descriptor with root <%s>", target.root.tag)
    return DescriptorTree(
        target.root,
        declaration=declaration,
        prolog=target.prolog,
        epilog=target.epilog,
        indent=_detect_indent(target.root),
        newline="\r\n" if "\r\n" in text else "\n",
    )


def _escape_attr(value: str) -> str:
    return escape(value, {'"': "&quot;", "\n": "&#10;", "\r": "&#13;", "\t": "&#9;"})


def _write_node(node: Node, out: list, depth: int, unit: str):
    if node.kind == COMMENT:
        out.append(f"<!--{node.text or ''}-->")
        return
    if node.kind == PI:
        out.append(f"<?{node.tag} {node.text}?>" if node.text else f"<?{node.tag}?>")
        return

    out.append(f"<{node.tag}")
    for prefix, uri in node.namespaces:
        name = f"xmlns:{prefix}" if prefix else "xmlns"
        out.append(f' {name}="{_escape_attr(uri)}"')
    for name, value in node.attrib.items():
        out.append(f' {name}="{_escape_attr(value)}"')

    if not node.children and not node.text:
        out.append("/>")
        return
    out.append(">")

    if node.children:
        text = node.text
        if text is None:
            text = "\n" + unit * (depth + 1)
        out.append(escape(text))
        last = len(node.children) - 1
        for i, child in enumerate(node.children):
            _write_node(child, out, depth + 1, unit)
            tail = child.tail
            if tail is None:
                tail = "\n" + unit * (depth + 1 if i < last else depth)
            out.append(escape(tail))
    else:
        out.append(escape(node.text))
    out.append(f"</{node.tag}>")


def write(tree: DescriptorTree) -> str:
    """Serialize a :class:`DescriptorTree` to text.

    The output always starts with an XML declaration (the original one when
    the document had it) and ends with a newline. CRLF documents are written
    back with CRLF line endings.
    """
    out = [tree.declaration or DEFAULT_DECLARATION, "\n"]
    for node in tree.prolog:
        _write_node(node, out, 0, tree.indent)
        out.append("\n")
    _write_node(tree.root, out, 0, tree.indent)
    out.append("\n")
    for node in tree.epilog:
        _write_node(node, out, 0, tree.indent)
        out.append("\n")
    text = "".join(out)
    if tree.newline != "\n":
        text = text.replace("\n", tree.newline)
    return text
