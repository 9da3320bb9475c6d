"""
XML boundary adapter: reads MSM / MPM documents into the Element tree and back.

Element names, attributes (namespaced ones as ``{ns}local``), order,
character data, comments and processing instructions are carried over so a
modified document is written back intact. Values stay as text; numeric
reading happens later through :meth:`Element.number`.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Final

from performkit.document import ID, Element
from performkit.errors import DocumentError

XML_NAMESPACE: Final[str] = "http://www.w3.org/XML/1998/namespace"
_QUALIFIED_ID: Final[str] = f"{{{XML_NAMESPACE}}}id"
_XMLNS: Final[str] = "xmlns"

#: Kinds given to non-element nodes; their content lives in ``Element.text``.
COMMENT: Final[str] = "#comment"
PROCESSING_INSTRUCTION: Final[str] = "#pi"


def _parser() -> ET.XMLParser:
    return ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))


def _split_tag(tag: str) -> tuple[str | None, str]:
    """Split '{ns}tag' into ('ns', 'tag')."""
    if tag.startswith("{"):
        namespace, _, local = tag[1:].partition("}")
        return namespace, local
    return None, tag


def _from_etree(node: ET.Element, parent_namespace: str | None = None) -> Element:
    if node.tag is ET.Comment:
        return Element(COMMENT, text=node.text, tail=node.tail)
    if node.tag is ET.ProcessingInstruction:
        return Element(PROCESSING_INSTRUCTION, text=node.text, tail=node.tail)

    namespace, kind = _split_tag(node.tag)
    attributes: dict[str, str] = {}
    if namespace is not None and namespace != parent_namespace:
        attributes[_XMLNS] = namespace
    for name, value in node.attrib.items():
        attributes[ID if name == _QUALIFIED_ID else name] = value
    return Element(
        kind,
        attributes,
        (_from_etree(child, namespace) for child in node),
        text=node.text,
        tail=node.tail,
    )


def _to_etree(element: Element) -> ET.Element:
    if element.kind == COMMENT:
        node = ET.Comment(element.text)
    elif element.kind == PROCESSING_INSTRUCTION:
        node = ET.ProcessingInstruction(element.text or "")
    else:
        attributes = {
            (_QUALIFIED_ID if name == ID else name): str(value)
            for name, value in element.attributes.items()
            if value is not None
        }
        node = ET.Element(element.kind, attributes)
        node.text = element.text
        node.extend(_to_etree(child) for child in element.children)
    node.tail = element.tail
    return node


def parse_document(text: str | bytes) -> Element:
    """
    Raises:
        DocumentError: If *text* is not well-formed XML.
    """
    try:
        root = ET.fromstring(text, parser=_parser())
    except ET.ParseError as exc:
        raise DocumentError(f"Malformed XML: {exc}") from exc
    return _from_etree(root)


def load_document(path: str | Path) -> Element:
    """
    Read an XML document from disk.

    Raises:
        DocumentError: If the file is not well-formed XML.
        OSError: If the file cannot be read.
    """
    try:
        tree = ET.parse(path, parser=_parser())
    except ET.ParseError as exc:
        raise DocumentError(f"Malformed XML in {path}: {exc}") from exc
    return _from_etree(tree.getroot())


def to_xml_string(root: Element) -> str:
    node = _to_etree(root)
    ET.indent(node)
    return ET.tostring(node, encoding="unicode")


def write_document(root: Element, output_path: str | Path) -> None:
    """
    Write *root* as an indented UTF-8 XML file.

    Raises:
        OSError: If the output file cannot be written.
    """
    tree = ET.ElementTree(_to_etree(root))
    ET.indent(tree)
    with open(output_path, "wb") as fh:
        tree.write(fh, encoding="utf-8", xml_declaration=True)
