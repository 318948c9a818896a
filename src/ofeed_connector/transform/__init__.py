"""
Results list rewriting before upload.

Inserts or updates <Id> elements in an IOF XML 3.0 result list, turning
each occurrence of

    <Person><Name>...</Name></Person>

into

    <Person><Id>1</Id><Name>...</Name></Person>

where the id is a counter starting at 1 for every document.
"""

import logging
from xml.dom import minidom
from xml.dom.minidom import Document, Element
from xml.parsers.expat import ExpatError
from typing import List, Optional

logger = logging.getLogger(__name__)

PERSON_TAG = "Person"
ID_TAG = "Id"
NAME_TAG = "Name"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


class TransformError(ValueError):
    """The results list could not be parsed or rewritten."""


def _child_elements(parent: Element, tag: str) -> List[Element]:
    return [
        node for node in parent.childNodes
        if node.nodeType == node.ELEMENT_NODE and node.tagName == tag
    ]


def _set_text(doc: Document, element: Element, text: str) -> None:
    while element.firstChild is not None:
        element.removeChild(element.firstChild).unlink()
    element.appendChild(doc.createTextNode(text))


def _insert_id(doc: Document, person: Element, value: str) -> None:
    id_element = doc.createElement(ID_TAG)
    id_element.appendChild(doc.createTextNode(value))

    names = _child_elements(person, NAME_TAG)
    name: Optional[Element] = names[0] if names else None

    if name is None:
        person.appendChild(id_element)
        return

    person.insertBefore(id_element, name)

    # Repeat the indentation in front of <Name> so <Id> gets its own line
    indent = id_element.previousSibling
    if indent is not None and indent.nodeType == indent.TEXT_NODE and not indent.data.strip():
        person.insertBefore(doc.createTextNode(indent.data), name)


def _serialize(doc: Document) -> str:
    parts = [XML_DECLARATION]
    parts.extend(node.toxml() for node in doc.childNodes)
    return "\n".join(parts) + "\n"


def update_or_insert_ids(xml_input: str) -> str:
    """
    Number every <Person> of a result list.

    For the i-th <Person> in document order, an existing <Id> child gets
    its text replaced by i; otherwise a new <Id>i</Id> is inserted before
    the first <Name> child.

    Args:
        xml_input: IOF XML 3.0 result list

    Returns:
        The rewritten document, with XML declaration

    Raises:
        TransformError: If the document is not well-formed XML
    """
    if not xml_input:
        raise TransformError("Empty document")

    try:
        doc = minidom.parseString(xml_input)
    except (ExpatError, ValueError) as e:
        raise TransformError(str(e)) from e

    try:
        persons = doc.getElementsByTagName(PERSON_TAG)
        for index, person in enumerate(persons, start=1):
            value = str(index)
            ids = _child_elements(person, ID_TAG)
            if ids:
                _set_text(doc, ids[0], value)
            else:
                _insert_id(doc, person, value)

        logger.debug(f"Numbered {len(persons)} persons")
        return _serialize(doc)
    finally:
        doc.unlink()


__all__ = ["TransformError", "update_or_insert_ids"]
