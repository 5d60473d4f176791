#!/usr/bin/env python3
# ----------------------------- requirements.txt -----------------------------
# rdflib==7.0.0
# ---------------------------------------------------------------------------

"""
SDMX 2.0 code lists and concept schemes -> SKOS concept schemes.

- A CodeList becomes a skos:ConceptScheme; each Code becomes a skos:Concept.
  Codes without parentCode are top concepts, the others are linked to their
  parent with skos:broader / skos:narrower.
- A ConceptScheme becomes a flat skos:ConceptScheme of skos:Concepts.
- get_coded_concepts() reads which code list represents each concept.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

from rdflib import Graph, Literal, URIRef
from rdflib.namespace import RDF

from sdmx_locator import (
    MissingRequiredChild,
    child_elements,
    iter_named,
    list_identifiers,
    locate,
    require_attribute,
    require_child,
    text_literal,
)
from sdmx_naming import (
    BASE_URI,
    SKOS,
    code_list_uri,
    code_uri,
    concept_scheme_uri,
    concept_uri,
)


def new_skos_graph() -> Graph:
    g = Graph()
    g.bind("rdf", RDF); g.bind("skos", SKOS)
    return g


def add_scheme(graph: Graph, scheme_uri: str, identifier: str, name_elem: ET.Element) -> URIRef:
    scheme = URIRef(scheme_uri)
    graph.add((scheme, RDF.type, SKOS.ConceptScheme))
    graph.add((scheme, SKOS.notation, Literal(identifier)))
    graph.add((scheme, SKOS.prefLabel, text_literal(name_elem)))
    return scheme


def convert_code_list(
    document: ET.Element,
    code_list_id: str,
    base_uri: str = BASE_URI,
    strict: bool = True,
) -> Optional[Graph]:
    """Translate one SDMX code list into a SKOS concept scheme.

    Returns None when no CodeList carries the identifier. With strict=False a
    Code lacking its value or Description is skipped (and logged) instead of
    aborting the conversion.
    """
    lookup = locate(document, "CodeList", code_list_id)
    if not lookup.found:
        logging.warning(f"Returning no graph for code list {code_list_id}")
        return None

    code_list = lookup.element
    cl_identifier = require_attribute(code_list, "id", code_list_id)
    cl_name = require_child(code_list, "Name", cl_identifier)

    g = new_skos_graph()
    scheme_uri = code_list_uri(cl_identifier, base_uri)
    logging.info(f"Creating SKOS concept scheme for code list {cl_name.text} with URI {scheme_uri}")
    scheme = add_scheme(g, scheme_uri, cl_identifier, cl_name)

    seen_values = set()
    parent_values = set()
    for code in child_elements(code_list, "Code"):
        try:
            code_value = require_attribute(code, "value", cl_identifier)
            description = require_child(code, "Description", code_value)
        except MissingRequiredChild as exc:
            if strict:
                raise
            logging.warning(f"Skipping code in {cl_identifier}: {exc}")
            continue

        parent_value = (code.attrib.get("parentCode") or "").strip()
        logging.debug(f"Creating SKOS concept for code {code_value} ({description.text})")

        concept = URIRef(code_uri(cl_identifier, code_value, base_uri))
        g.add((concept, RDF.type, SKOS.Concept))
        g.add((concept, SKOS.notation, Literal(code_value)))
        g.add((concept, SKOS.prefLabel, text_literal(description)))
        g.add((concept, SKOS.inScheme, scheme))
        seen_values.add(code_value)

        if not parent_value:
            g.add((concept, SKOS.topConceptOf, scheme))
            g.add((scheme, SKOS.hasTopConcept, concept))
        else:
            # The parent may not have been visited yet: its URI is its identity
            parent = URIRef(code_uri(cl_identifier, parent_value, base_uri))
            g.add((concept, SKOS.broader, parent))
            g.add((parent, SKOS.narrower, concept))
            parent_values.add(parent_value)

    dangling = sorted(parent_values - seen_values)
    if dangling:
        logging.warning(
            "Code list %s refers to parent codes it does not define: %s",
            cl_identifier,
            ", ".join(dangling),
        )

    logging.info(f"Code list {cl_identifier} converted to SKOS ({len(seen_values)} codes)")
    return g


def convert_concept_scheme(
    document: ET.Element,
    concept_scheme_id: str,
    base_uri: str = BASE_URI,
    strict: bool = True,
) -> Optional[Graph]:
    """Translate one SDMX concept scheme into a flat SKOS concept scheme."""
    lookup = locate(document, "ConceptScheme", concept_scheme_id)
    if not lookup.found:
        logging.warning(f"Returning no graph for concept scheme {concept_scheme_id}")
        return None

    concept_scheme = lookup.element
    cs_identifier = require_attribute(concept_scheme, "id", concept_scheme_id)
    cs_name = require_child(concept_scheme, "Name", cs_identifier)

    g = new_skos_graph()
    scheme_uri = concept_scheme_uri(cs_identifier, base_uri)
    logging.info(f"Creating SKOS concept scheme for SDMX concept scheme {cs_name.text} with URI {scheme_uri}")
    scheme = add_scheme(g, scheme_uri, cs_identifier, cs_name)

    count = 0
    for concept_elem in child_elements(concept_scheme, "Concept"):
        try:
            concept_id = require_attribute(concept_elem, "id", cs_identifier)
            concept_name = require_child(concept_elem, "Name", concept_id)
        except MissingRequiredChild as exc:
            if strict:
                raise
            logging.warning(f"Skipping concept in {cs_identifier}: {exc}")
            continue

        logging.debug(f"Creating SKOS concept for concept {concept_id} ({concept_name.text})")
        concept = URIRef(concept_uri(cs_identifier, concept_id, base_uri))
        g.add((concept, RDF.type, SKOS.Concept))
        g.add((concept, SKOS.notation, Literal(concept_id)))
        g.add((concept, SKOS.prefLabel, text_literal(concept_name)))
        g.add((concept, SKOS.inScheme, scheme))
        count += 1

    logging.info(f"Concept scheme {cs_identifier} converted to SKOS ({count} concepts)")
    return g


def get_coded_concepts(document: ET.Element) -> Dict[str, str]:
    """Map concept id -> code list id for every concept with a coded core representation.

    Concepts of all schemes are read; when an id occurs several times the last
    occurrence in document order wins.
    """
    coded: Dict[str, str] = {}
    for concept_elem in iter_named(document, "Concept"):
        concept_id = concept_elem.attrib.get("id")
        code_list_id = concept_elem.attrib.get("coreRepresentation")
        if concept_id is None or code_list_id is None:
            continue
        coded[concept_id.strip()] = code_list_id.strip()
    return coded


def list_code_lists(document: ET.Element) -> List[str]:
    return list_identifiers(document, "CodeList")


def list_concept_schemes(document: ET.Element) -> List[str]:
    return list_identifiers(document, "ConceptScheme")
