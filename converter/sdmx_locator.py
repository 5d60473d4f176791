#!/usr/bin/env python3
# ----------------------------- requirements.txt -----------------------------
# rdflib==7.0.0
# ---------------------------------------------------------------------------

"""
Reading SDMX 2.0 structure documents and finding structural elements in them.

Elements are matched on their local name so that the structure namespace
prefix (or a missing namespace) does not matter. A lookup never raises for a
missing or duplicated identifier; it returns a Lookup that says which case
applied, and the caller decides what to do with it.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from rdflib import Literal


XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"


class SdmxParseError(ValueError):
    """The source document could not be read or is not well-formed XML."""


class MissingRequiredChild(ValueError):
    """A structural element lacks a child or attribute needed to describe it."""

    def __init__(self, element_kind: str, element_id: Optional[str], child: str):
        self.element_kind = element_kind
        self.element_id = element_id
        self.child = child
        super().__init__(f"{element_kind} '{element_id or '?'}' has no {child}")


class LookupStatus(Enum):
    UNIQUE = "unique"
    AMBIGUOUS = "ambiguous"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Lookup:
    """Outcome of locating one identifier: the first match and how many there were."""

    kind: str
    identifier: str
    status: LookupStatus
    element: Optional[ET.Element] = None
    count: int = 0

    @property
    def found(self) -> bool:
        return self.status is not LookupStatus.NOT_FOUND


def local_name(tag: str) -> str:
    return tag.split('}', 1)[1] if '}' in tag else tag


def load_sdmx_document(path: Union[str, Path]) -> ET.Element:
    """Parse an SDMX structure file and return its root element."""
    path = Path(path)
    logging.info(f"Reading SDMX structure document {path}")
    try:
        raw_bytes = path.read_bytes()
    except OSError as exc:
        raise SdmxParseError(f"Failed to read SDMX file {path}: {exc}") from exc
    return parse_sdmx_string(raw_bytes, source=str(path))


def parse_sdmx_string(data: Union[str, bytes], source: str = "<string>") -> ET.Element:
    try:
        return ET.fromstring(data)
    except ET.ParseError as exc:
        raise SdmxParseError(f"Failed to parse SDMX XML from {source}: {exc}") from exc


def find(document: ET.Element, element_name: str, id_value: str, id_attribute: str = "id") -> List[ET.Element]:
    """All elements named element_name whose id_attribute equals id_value, in document order."""
    return [
        elem for elem in document.iter()
        if local_name(elem.tag) == element_name and elem.attrib.get(id_attribute) == id_value
    ]


def locate(document: ET.Element, element_name: str, id_value: str, id_attribute: str = "id") -> Lookup:
    """Find exactly one element, degrading to the first match when there are several.

    Both degraded outcomes are reported on the log; neither is raised.
    """
    matches = find(document, element_name, id_value, id_attribute)
    if not matches:
        logging.warning(f"No {element_name} found with identifier {id_value}")
        return Lookup(element_name, id_value, LookupStatus.NOT_FOUND)
    if len(matches) > 1:
        logging.warning(
            "Several %s elements (%d) have identifier %s, using the first one found",
            element_name,
            len(matches),
            id_value,
        )
        return Lookup(element_name, id_value, LookupStatus.AMBIGUOUS, matches[0], len(matches))
    return Lookup(element_name, id_value, LookupStatus.UNIQUE, matches[0], 1)


def iter_named(document: ET.Element, element_name: str):
    for elem in document.iter():
        if local_name(elem.tag) == element_name:
            yield elem


def list_identifiers(document: ET.Element, element_name: str, id_attribute: str = "id") -> List[str]:
    return [
        elem.attrib[id_attribute]
        for elem in iter_named(document, element_name)
        if id_attribute in elem.attrib
    ]


def child_elements(element: ET.Element, name: str) -> List[ET.Element]:
    """Direct children with the given local name."""
    return [child for child in list(element) if local_name(child.tag) == name]


def first_child(element: ET.Element, name: str) -> Optional[ET.Element]:
    # Several localized Name/Description elements may exist; the first one wins
    for child in list(element):
        if local_name(child.tag) == name:
            return child
    return None


def require_child(element: ET.Element, name: str, element_id: Optional[str] = None) -> ET.Element:
    child = first_child(element, name)
    if child is None:
        raise MissingRequiredChild(local_name(element.tag), element_id, name)
    return child


def require_attribute(element: ET.Element, name: str, element_id: Optional[str] = None) -> str:
    value = element.attrib.get(name)
    if value is None:
        raise MissingRequiredChild(local_name(element.tag), element_id, f"@{name}")
    return value.strip()


def language_of(element: ET.Element) -> Optional[str]:
    return element.attrib.get(XML_LANG) or None


def text_literal(element: ET.Element) -> Literal:
    """Literal for the element text, tagged with its xml:lang when there is one."""
    return Literal(element.text or "", lang=language_of(element))
