"""Lossless XML tree for editing pom.xml files in place.

``xml.etree.ElementTree`` is used to check that a document is well-formed,
but it cannot write a document back unchanged: it drops the XML declaration
and comments, rewrites attribute quoting and empty-element tags, and loses
whitespace inside tags. Here the document is tokenized into a small tree that
keeps the source text of every tag, text run and comment, so that
serializing an unmodified tree reproduces the input exactly and an edit only
touches the nodes it names.
"""

import codecs
import re
import xml.etree.ElementTree as ET
from typing import Iterator, Optional
from xml.sax.saxutils import escape

from .errors import PomParseError

# Encoding used when the document has no ``encoding="..."`` declaration.
DEFAULT_XML_ENCODING = "UTF-8"

_TOKEN_RE = re.compile(r"""
      (?P<comment><!--.*?-->)
    | (?P<cdata><!\[CDATA\[.*?\]\]>)
    | (?P<pi><\?.*?\?>)
    | (?P<doctype><!DOCTYPE(?:[^\[>]|\[.*?\])*>)
    | (?P<end></(?P<end_name>[^\s>]+)\s*>)
    | (?P<start><(?P<start_name>[^\s/>]+)(?:[^>"']|"[^"]*"|'[^']*')*>)
    | (?P<text>[^<]+)
""", re.VERBOSE | re.DOTALL)

_ATTRIBUTE_RE = re.compile(r"""([^\s=/>]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")

_ENCODING_RE = re.compile(
    rb"""^(?:\xef\xbb\xbf)?<\?xml[^>]*?\sencoding\s*=\s*["']([A-Za-z][A-Za-z0-9._-]*)["']"""
)

_REFERENCE_RE = re.compile(r"&(#x[0-9a-fA-F]+|#[0-9]+|amp|lt|gt|quot|apos);")

_PREDEFINED_ENTITIES = {"amp": "&", "lt": "<", "gt": ">", "quot": '"', "apos": "'"}


def _unescape(raw: str) -> str:
    """Resolve the predefined entities and character references in ``raw``."""
    def replace(match):
        ref = match.group(1)
        if ref.startswith("#x"):
            return chr(int(ref[2:], 16))
        if ref.startswith("#"):
            return chr(int(ref[1:]))
        return _PREDEFINED_ENTITIES[ref]
    return _REFERENCE_RE.sub(replace, raw)


class Node:
    """Base class of everything stored in the tree."""

    parent = None

    def iter_xml(self) -> Iterator[str]:
        raise NotImplementedError

    def to_xml(self) -> str:
        """Return the source text of this node."""
        return "".join(self.iter_xml())


class Text(Node):
    """Character data, kept exactly as written (entities still escaped)."""

    def __init__(self, text: str):
        self.text = text

    def __repr__(self):
        return f"Text({self.text!r})"

    def iter_xml(self):
        yield self.text

    @property
    def value(self) -> str:
        """The character data with entity and character references resolved."""
        return _unescape(self.text)

    @property
    def is_whitespace(self) -> bool:
        return not self.text.strip()


class Markup(Node):
    """A comment, CDATA section, processing instruction or DOCTYPE, kept verbatim.

    Attributes:
        kind: One of ``"comment"``, ``"cdata"``, ``"pi"``, ``"doctype"``.
        text: The complete source text, delimiters included.
    """

    def __init__(self, kind: str, text: str):
        self.kind = kind
        self.text = text

    def __repr__(self):
        return f"Markup({self.kind!r}, {self.text!r})"

    def iter_xml(self):
        yield self.text

    @property
    def value(self) -> str:
        """The literal content of a CDATA section (empty for other kinds)."""
        if self.kind == "cdata":
            return self.text[len("<![CDATA["):-len("]]>")]
        return ""


class Parent:
    """Mixin for nodes that own an ordered list of children."""

    def _init_children(self, children=()):
        self.children: list[Node] = []
        for child in children:
            self.append(child)

    def append(self, node: Node):
        node.parent = self
        self.children.append(node)

    def insert(self, index: int, node: Node):
        """Insert ``node`` so that it ends up at position ``index``."""
        node.parent = self
        self.children.insert(index, node)

    def index(self, node: Node) -> int:
        """Return the position of ``node`` among the children (by identity)."""
        for i, child in enumerate(self.children):
            if child is node:
                return i
        raise ValueError(f"{node!r} is not a child of {self!r}")

    def following_sibling(self, node: Node) -> Optional[Node]:
        """Return the child right after ``node``, or ``None`` if it is the last one."""
        i = self.index(node) + 1
        return self.children[i] if i < len(self.children) else None

    def remove(self, node: Node, with_trailing_text: bool = False) -> bool:
        """Remove a child node, optionally together with the text node following it.

        With ``with_trailing_text``, the sibling that came right after ``node``
        is removed as well, but only when it is a :class:`Text` node and only
        that single node. This drops the newline and indentation that carried
        a one-element-per-line layout without eating into an adjacent element.

        Args:
            node: The child to remove.
            with_trailing_text: Whether to also remove a directly following text node.

        Returns:
            ``True`` if a trailing text node was removed.
        """
        i = self.index(node)
        del self.children[i]
        node.parent = None
        if with_trailing_text and i < len(self.children) and isinstance(self.children[i], Text):
            trailing = self.children.pop(i)
            trailing.parent = None
            return True
        return False

    def elements(self) -> list["Element"]:
        """Return the direct child elements, in document order."""
        return [child for child in self.children if isinstance(child, Element)]


class Element(Parent, Node):
    """An XML element that remembers the exact text of its tags.

    Attributes:
        name: Qualified tag name as written (``project``, ``pom:version``).
        start_tag: Source text of the start tag, attributes and all.
        end_tag: Source text of the end tag, or ``None`` for an
            empty-element tag such as ``<relativePath/>``.
        children: Child nodes in document order.
    """

    def __init__(self, name: str, start_tag: Optional[str] = None,
                 end_tag: Optional[str] = None, children=()):
        self.name = name
        if start_tag is None:
            start_tag = f"<{name}>"
            end_tag = f"</{name}>"
        self.start_tag = start_tag
        self.end_tag = end_tag
        self._init_children(children)

    @classmethod
    def new(cls, name: str, text: Optional[str] = None) -> "Element":
        """Create ``<name>text</name>``, escaping ``text``."""
        element = cls(name)
        if text is not None:
            element.append(Text(escape(text)))
        return element

    def __repr__(self):
        return f"<Element {self.name} ({len(self.children)} children)>"

    def iter_xml(self):
        yield self.start_tag
        for child in self.children:
            yield from child.iter_xml()
        if self.end_tag is not None:
            yield self.end_tag

    @property
    def local_name(self) -> str:
        return self.name.rpartition(":")[2]

    @property
    def attributes(self) -> dict:
        """Attributes parsed from the start tag. Changes are not written back."""
        head = self.start_tag[1 + len(self.name):]
        return {
            m.group(1): _unescape(m.group(2) if m.group(2) is not None else m.group(3))
            for m in _ATTRIBUTE_RE.finditer(head)
        }

    def get_children(self, name: str) -> list["Element"]:
        """Return the direct child elements whose local name is ``name``."""
        return [el for el in self.elements() if el.local_name == name]

    def get_child(self, path: str) -> Optional["Element"]:
        """Find a descendant by a ``/``-separated path of local names.

        Each step takes the first matching child, so ``"parent/version"``
        returns the ``<version>`` inside the first ``<parent>``.

        Returns:
            The matching element, or ``None`` if any step has no match.
        """
        element = self
        for name in path.split("/"):
            matches = element.get_children(name)
            if not matches:
                return None
            element = matches[0]
        return element

    @property
    def text(self) -> str:
        """The unescaped character data of the direct text and CDATA children."""
        return "".join(
            child.value for child in self.children
            if isinstance(child, (Text, Markup))
        )

    @property
    def trimmed_text(self) -> str:
        return self.text.strip()

    def set_text(self, value: str):
        """Replace the content of this element with the (escaped) text ``value``.

        An empty-element tag is expanded into a start and end tag.
        """
        if self.end_tag is None:
            self.start_tag = self.start_tag[:-2].rstrip() + ">"
            self.end_tag = f"</{self.name}>"
        for child in self.children:
            child.parent = None
        self.children = []
        self.append(Text(escape(value)))


class Document(Parent):
    """A parsed XML document: prolog nodes, the root element, epilog nodes.

    Attributes:
        children: Top-level nodes in document order.
        encoding: Encoding named in the XML declaration, or ``None``.
    """

    def __init__(self, children=(), encoding: Optional[str] = None):
        self.encoding = encoding
        self._init_children(children)

    def __repr__(self):
        return f"<Document {self.root.name if self.root is not None else '-'}>"

    @property
    def root(self) -> Optional[Element]:
        elements = self.elements()
        return elements[0] if elements else None

    def iter_xml(self) -> Iterator[str]:
        for child in self.children:
            yield from child.iter_xml()

    def to_xml(self) -> str:
        """Return the full document text."""
        return "".join(self.iter_xml())

    def to_bytes(self) -> bytes:
        """Encode the document with its declared encoding (or the default).

        Characters the encoding cannot represent are written as character
        references.
        """
        return self.to_xml().encode(self.encoding or DEFAULT_XML_ENCODING, "xmlcharrefreplace")

    def write(self, stream):
        """Write the encoded document to a binary stream."""
        stream.write(self.to_bytes())


def detect_encoding(data: bytes) -> Optional[str]:
    """Return the encoding named by the XML declaration of ``data``, if any."""
    match = _ENCODING_RE.match(data)
    return match.group(1).decode("ascii") if match else None


def _decode(data: bytes):
    encoding = detect_encoding(data)
    codec = encoding or DEFAULT_XML_ENCODING
    try:
        codecs.lookup(codec)
    except LookupError as e:
        raise PomParseError(f"Unknown encoding {codec!r} in XML declaration") from e
    try:
        return data.decode(codec), encoding
    except UnicodeDecodeError as e:
        raise PomParseError(f"Document is not valid {codec}: {e}") from e


def parse(source) -> Document:
    """Parse XML into a :class:`Document` that serializes back to the same text.

    Args:
        source: ``bytes``, ``str``, or a binary stream with a ``read()`` method.
            Bytes are decoded with the encoding of the XML declaration, or
            UTF-8 if there is none.

    Returns:
        The parsed document.

    Raises:
        PomParseError: If the input cannot be decoded or is not well-formed.
    """
    if hasattr(source, "read"):
        source = source.read()
    if isinstance(source, bytes):
        text, encoding = _decode(source)
    else:
        text = source
        encoding = detect_encoding(text.encode("utf-8", "replace")[:200])

    try:
        ET.fromstring(text)
    except ET.ParseError as e:
        raise PomParseError(f"Malformed XML: {e}") from e

    document = Document(encoding=encoding)
    stack = [document]
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise PomParseError(f"Unexpected markup at offset {pos}")
        raw = match.group(0)
        parent = stack[-1]
        if match.group("text") is not None:
            parent.append(Text(raw))
        elif match.group("start") is not None:
            name = match.group("start_name")
            if raw.endswith("/>"):
                parent.append(Element(name, raw, None))
            else:
                element = Element(name, raw, None)
                parent.append(element)
                stack.append(element)
        elif match.group("end") is not None:
            if len(stack) < 2 or stack[-1].name != match.group("end_name"):
                raise PomParseError(f"Unbalanced end tag {raw!r} at offset {pos}")
            stack.pop().end_tag = raw
        else:
            parent.append(Markup(match.lastgroup, raw))
        pos = match.end()

    if len(stack) != 1 or document.root is None:
        raise PomParseError("Document has no complete root element")
    return document


def read_document(path) -> Document:
    """Parse the XML file at ``path``. The file is closed on all exit paths."""
    with open(path, "rb") as f:
        return parse(f)


def write_document(document: Document, path):
    """Write ``document`` to ``path``.

    The document is encoded before the file is opened, so a serialization
    error never leaves a truncated file behind.
    """
    data = document.to_bytes()
    with open(path, "wb") as f:
        f.write(data)
